# marketplace/db/models/warehouse.py
from sqlalchemy import Column, String, Integer, ForeignKey, func
from sqlalchemy.orm import relationship
from sqlalchemy.types import TIMESTAMP
from marketplace.db.base import Base


class Warehouse(Base):
    """Seller warehouse; carries default incoterms and country exclusions"""

    __tablename__ = "warehouses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    business_id = Column(Integer, ForeignKey("businesses.id", ondelete="SET NULL"))
    name = Column(String(255), nullable=False)
    country_code = Column(String(2))
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="warehouses")
    offers = relationship("Offer", back_populates="warehouse")
    incoterms = relationship(
        "Incoterm",
        primaryjoin="and_(Warehouse.id == foreign(Incoterm.owner_id), "
        "Incoterm.owner_kind == 'warehouse')",
        viewonly=True,
        order_by="Incoterm.id",
    )
    countries = relationship(
        "CountryExclusion",
        primaryjoin="and_(Warehouse.id == foreign(CountryExclusion.owner_id), "
        "CountryExclusion.owner_kind == 'warehouse')",
        viewonly=True,
        order_by="CountryExclusion.id",
    )

    def __repr__(self):
        return f"<Warehouse(id={self.id}, name='{self.name}')>"
