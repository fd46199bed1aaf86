# marketplace/services/offer_view_service.py
from typing import Optional
import logging

from sqlalchemy.orm import Session

from marketplace.db.models.offer import Offer
from marketplace.db.models.offer_view import OfferView
from marketplace.db.repositories.offer_view_repository import OfferViewRepository

logger = logging.getLogger(__name__)


class OfferViewService:
    """Records offer views; listing them lives on OfferService"""

    def __init__(self, db_session: Session):
        self.db_session = db_session
        self.view_repo = OfferViewRepository(db_session)

    def view(self, user, offer: Offer, ip_address: Optional[str] = None) -> OfferView:
        """Record that the user (or an anonymous visitor) opened the offer"""
        try:
            view = self.view_repo.create(
                offer_id=offer.id,
                user_id=user.id if user is not None else None,
                ip_address=ip_address,
            )
            self.db_session.commit()
        except Exception as e:
            self.db_session.rollback()
            logger.error(f"Offer view error: offer={offer.id} {e}")
            raise
        return view
