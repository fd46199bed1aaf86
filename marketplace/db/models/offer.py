# marketplace/db/models/offer.py
from sqlalchemy import Column, String, Text, ForeignKey, Float, Integer, Boolean, Enum, func
from sqlalchemy.orm import relationship
from sqlalchemy.types import TIMESTAMP
from marketplace.db.base import Base
from marketplace.db.models.enums import (
    OfferStatus,
    OfferSource,
    OfferUnit,
    OfferPriceDisplayUnit,
    enum_values,
)


class Offer(Base):
    """
    Offer model representing a seller's listing of a product at a warehouse.
    Prices are stored as quantity tiers in OfferPrice; incoterms and
    country exclusions are polymorphic children shared with Warehouse.
    """

    __tablename__ = "offers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    business_id = Column(
        Integer,
        ForeignKey("businesses.id", ondelete="SET NULL"),
        index=True,
        comment="Business owning the offer, copied from the seller",
    )
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="SET NULL"))
    promotion_id = Column(Integer, comment="Promotion the offer takes part in")

    status = Column(
        Enum(OfferStatus, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=OfferStatus.DRAFT,
        index=True,
    )
    source = Column(
        Enum(OfferSource, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=OfferSource.WEB,
    )
    name = Column(String(255), nullable=False)
    description = Column(Text)

    # Quantities
    availability_quantity = Column(Integer, nullable=False, default=0)
    min_order_quantity = Column(Integer, nullable=False, default=1)
    min_order_unit = Column(
        Enum(OfferUnit, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=OfferUnit.PIECES,
    )

    # Pricing
    price_display_unit = Column(
        Enum(OfferPriceDisplayUnit, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=OfferPriceDisplayUnit.ABSOLUTE,
    )
    lowest_price = Column(Float, comment="Cache of the minimum tier price")

    # Scheduling
    publish_at = Column(TIMESTAMP(timezone=True))
    expire_at = Column(TIMESTAMP(timezone=True))
    publish_at_defaulted = Column(
        Boolean, nullable=False, default=False, comment="publish_at was filled on activation"
    )
    expire_at_defaulted = Column(
        Boolean, nullable=False, default=False, comment="expire_at was filled on activation"
    )
    shipping_available_from = Column(TIMESTAMP(timezone=True))
    exported_at = Column(TIMESTAMP(timezone=True))

    # Timestamps
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    user = relationship("User", back_populates="offers")
    product = relationship("Product", back_populates="offers")
    warehouse = relationship("Warehouse", back_populates="offers")
    prices = relationship(
        "OfferPrice",
        back_populates="offer",
        cascade="all, delete-orphan",
        order_by="OfferPrice.id",
    )
    incoterms = relationship(
        "Incoterm",
        primaryjoin="and_(Offer.id == foreign(Incoterm.owner_id), "
        "Incoterm.owner_kind == 'offer')",
        viewonly=True,
        order_by="Incoterm.id",
    )
    countries = relationship(
        "CountryExclusion",
        primaryjoin="and_(Offer.id == foreign(CountryExclusion.owner_id), "
        "CountryExclusion.owner_kind == 'offer')",
        viewonly=True,
        order_by="CountryExclusion.id",
    )

    def __repr__(self):
        return f"<Offer(id={self.id}, name='{self.name}', status={self.status})>"


class OfferPrice(Base):
    """Quantity-bracketed price tier of an offer. A null from_quantity marks the base tier."""

    __tablename__ = "offer_prices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    offer_id = Column(
        Integer, ForeignKey("offers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    price = Column(Float, nullable=False)
    price_wp = Column(Float, comment="Price per watt-peak as entered")
    from_quantity = Column(Integer)
    to_quantity = Column(Integer)

    offer = relationship("Offer", back_populates="prices")

    def __repr__(self):
        return f"<OfferPrice(offer_id={self.offer_id}, price={self.price}, from={self.from_quantity})>"
