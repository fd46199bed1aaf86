# marketplace/db/models/incoterm.py
from sqlalchemy import Column, String, Integer, Boolean, Enum, UniqueConstraint, Index, func
from sqlalchemy.types import TIMESTAMP
from marketplace.db.base import Base
from marketplace.db.models.enums import OwnerKind, enum_values


class Incoterm(Base):
    """
    Shipping term attached to an offer or a warehouse.
    The owner is a tagged reference (owner_kind, owner_id).
    """

    __tablename__ = "incoterms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_kind = Column(
        Enum(OwnerKind, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
    )
    owner_id = Column(Integer, nullable=False)
    name = Column(String(10), nullable=False, comment="e.g. CIF, EXW, FCA")
    value = Column(Boolean, nullable=False, default=False, comment="Whether the term is enabled")
    price = Column(Integer, comment="Price in minor units")
    shipping_from_country = Column(String(2))
    pickup_available_in_weeks = Column(Integer)
    override_warehouse = Column(Boolean, nullable=False, default=False)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("owner_kind", "owner_id", "name", name="uq_incoterms_owner_name"),
        Index("ix_incoterms_owner", "owner_kind", "owner_id"),
    )

    def __repr__(self):
        return f"<Incoterm(name='{self.name}', owner={self.owner_kind}:{self.owner_id})>"
