# marketplace/db/repositories/offer_view_repository.py
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func
from marketplace.db.models.offer import Offer, OfferPrice
from marketplace.db.models.offer_view import OfferView


class OfferViewRepository:
    """Repository for the offer view history"""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def create(self, offer_id: int, user_id: Optional[int] = None, ip_address: Optional[str] = None) -> OfferView:
        view = OfferView(offer_id=offer_id, user_id=user_id, ip_address=ip_address)
        self.db_session.add(view)
        self.db_session.flush()
        return view

    def list_for_user(
        self, user_id: int, order_by: str = "desc", page: int = 1, per_page: int = 15
    ) -> Tuple[List[Tuple[OfferView, int]], int]:
        """Views of a user with the price tier count of each viewed offer"""
        prices_count = (
            self.db_session.query(func.count(OfferPrice.id))
            .filter(OfferPrice.offer_id == OfferView.offer_id)
            .correlate(OfferView)
            .scalar_subquery()
        )
        ordering = OfferView.created_at.asc() if order_by == "asc" else OfferView.created_at.desc()

        query = (
            self.db_session.query(OfferView, prices_count)
            .options(
                selectinload(OfferView.offer).selectinload(Offer.product),
                selectinload(OfferView.offer).selectinload(Offer.warehouse),
            )
            .filter(OfferView.user_id == user_id)
        )
        total = query.order_by(None).count()
        rows = (
            query.order_by(ordering, OfferView.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return [(view, count) for view, count in rows], total
