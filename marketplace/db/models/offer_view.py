# marketplace/db/models/offer_view.py
from sqlalchemy import Column, String, Integer, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from sqlalchemy.types import TIMESTAMP
from marketplace.db.base import Base


class OfferView(Base):
    """Append-only record of a user viewing an offer"""

    __tablename__ = "offer_views"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    offer_id = Column(
        Integer, ForeignKey("offers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ip_address = Column(String(45))
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    offer = relationship("Offer")

    def __repr__(self):
        return f"<OfferView(user_id={self.user_id}, offer_id={self.offer_id})>"


class OfferFavorite(Base):
    __tablename__ = "offer_favorites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    offer_id = Column(Integer, ForeignKey("offers.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    __table_args__ = (UniqueConstraint("user_id", "offer_id", name="uq_offer_favorites_user_offer"),)
