# marketplace/db/models/country.py
from sqlalchemy import Column, String, Integer, Boolean, Enum, Index, func
from sqlalchemy.types import TIMESTAMP
from marketplace.db.base import Base
from marketplace.db.models.enums import OwnerKind, enum_values


class CountryExclusion(Base):
    """
    Country listed against an offer or a warehouse.
    Rows with delivery_allowed = False are the excluded delivery countries.
    """

    __tablename__ = "offer_countries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_kind = Column(
        Enum(OwnerKind, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
    )
    owner_id = Column(Integer, nullable=False)
    country_code = Column(String(2), nullable=False)
    delivery_allowed = Column("value", Boolean, nullable=False, default=False)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("ix_offer_countries_owner", "owner_kind", "owner_id"),)

    def __repr__(self):
        return f"<CountryExclusion(country_code='{self.country_code}', owner={self.owner_kind}:{self.owner_id})>"
