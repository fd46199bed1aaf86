# marketplace/services/offer_bulk_service.py
from typing import List, Optional
from datetime import datetime, timedelta
import logging

from sqlalchemy import case, func, null, true, false
from sqlalchemy.orm import Session, Query

from marketplace.core.config import settings
from marketplace.db.models.offer import Offer
from marketplace.db.models.product import Product
from marketplace.db.models.enums import OfferStatus
from marketplace.db.repositories.offer_repository import OfferRepository
from marketplace.schemas.offer import OfferBulkFilter
from marketplace.services.search_index import BaseSearchIndexer, SearchIndexerFactory
from marketplace.utils.helpers import utcnow

logger = logging.getLogger(__name__)


def apply_status_guard(query: Query, status: Optional[OfferStatus]) -> Query:
    """
    Activation only touches offers that were never published; reverting to
    draft only touches offers that were.
    """
    if status == OfferStatus.ACTIVE:
        return query.filter(Offer.publish_at.is_(None))
    if status == OfferStatus.DRAFT:
        return query.filter(Offer.publish_at.isnot(None))
    return query


class OfferBulkService:
    """Status changes and deletion over a filtered selection of offers"""

    def __init__(self, db_session: Session, search_indexer: Optional[BaseSearchIndexer] = None):
        self.db_session = db_session
        self.offer_repo = OfferRepository(db_session)
        self.search_indexer = search_indexer or SearchIndexerFactory.create()

    def apply_bulk_filters(self, user, bulk_filter: OfferBulkFilter) -> Query:
        """
        Offers of the user's business (or of the user alone when they have
        no business) narrowed by the filter fields that are set.
        """
        query = self.db_session.query(Offer)

        if user.business_id is not None:
            query = query.filter(Offer.business_id == user.business_id)
        else:
            query = query.filter(Offer.user_id == user.id)

        if bulk_filter.ids:
            query = query.filter(Offer.id.in_(bulk_filter.ids))

        if bulk_filter.status:
            query = query.filter(Offer.status == bulk_filter.status)

        if bulk_filter.name:
            query = query.filter(Offer.name.ilike(f"%{bulk_filter.name}%"))

        if bulk_filter.product_name:
            query = query.filter(
                Offer.product.has(Product.name.ilike(f"%{bulk_filter.product_name}%"))
            )

        if bulk_filter.warehouse_id:
            query = query.filter(Offer.warehouse_id == bulk_filter.warehouse_id)

        return query

    def _matching_ids(self, query: Query) -> List[int]:
        return [offer_id for (offer_id,) in query.with_entities(Offer.id).order_by(Offer.id)]

    def _status_values(self, status: OfferStatus, now: datetime) -> dict:
        values = {Offer.status: status}

        if status == OfferStatus.ACTIVE:
            values.update(
                {
                    Offer.publish_at: now,
                    Offer.publish_at_defaulted: True,
                    Offer.expire_at: func.coalesce(
                        Offer.expire_at, now + timedelta(days=settings.OFFER_EXPIRE_DAYS)
                    ),
                    Offer.expire_at_defaulted: case(
                        (Offer.expire_at.is_(None), true()),
                        else_=Offer.expire_at_defaulted,
                    ),
                }
            )
        elif status == OfferStatus.DRAFT:
            values.update(
                {
                    Offer.publish_at: case(
                        (Offer.publish_at_defaulted == true(), null()),
                        else_=Offer.publish_at,
                    ),
                    Offer.expire_at: case(
                        (Offer.expire_at_defaulted == true(), null()),
                        else_=Offer.expire_at,
                    ),
                    Offer.publish_at_defaulted: false(),
                    Offer.expire_at_defaulted: false(),
                }
            )

        return values

    def update_bulk_status(
        self,
        user,
        bulk_filter: OfferBulkFilter,
        status: OfferStatus,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Move the selected offers to status and resync them to the search index.

        Returns:
            Number of offers updated
        """
        now = now or utcnow()
        query = apply_status_guard(self.apply_bulk_filters(user, bulk_filter), status)

        try:
            offer_ids = self._matching_ids(query)
            if not offer_ids:
                return 0

            updated_count = (
                self.db_session.query(Offer)
                .filter(Offer.id.in_(offer_ids))
                .update(self._status_values(status, now), synchronize_session="fetch")
            )

            # Out of stock offers stay inactive whatever was requested
            self.db_session.query(Offer).filter(
                Offer.id.in_(offer_ids), Offer.availability_quantity == 0
            ).update({Offer.status: OfferStatus.INACTIVE}, synchronize_session="fetch")

            offers = (
                self.offer_repo.with_relations(self.db_session.query(Offer))
                .filter(Offer.id.in_(offer_ids))
                .populate_existing()
                .all()
            )
            self.search_indexer.sync(offers)
            self.db_session.commit()
        except Exception as e:
            self.db_session.rollback()
            logger.error(
                f"Bulk status update error: user={user.id} status={status} "
                f"filter={bulk_filter.model_dump_json()} {e}"
            )
            raise

        logger.info(f"Bulk status update to {status.value}: {updated_count} offers for user {user.id}")
        return updated_count

    def delete_bulk_offers(
        self,
        user,
        bulk_filter: OfferBulkFilter,
        guard_status: Optional[OfferStatus] = None,
    ) -> int:
        """
        Delete the selected offers with their child rows and drop them from
        the search index. The publish_at guard follows guard_status, or the
        filter's status when none is given.

        Returns:
            Number of offers deleted
        """
        guard_status = guard_status or bulk_filter.status
        query = apply_status_guard(self.apply_bulk_filters(user, bulk_filter), guard_status)

        try:
            offer_ids = self._matching_ids(query)
            if not offer_ids:
                return 0

            self.offer_repo.delete_children(offer_ids)
            deleted_count = (
                self.db_session.query(Offer)
                .filter(Offer.id.in_(offer_ids))
                .delete(synchronize_session="fetch")
            )
            self.search_indexer.remove(offer_ids)
            self.db_session.commit()
        except Exception as e:
            self.db_session.rollback()
            logger.error(
                f"Bulk delete error: user={user.id} filter={bulk_filter.model_dump_json()} {e}"
            )
            raise

        logger.info(f"Bulk deleted {deleted_count} offers for user {user.id}")
        return deleted_count
