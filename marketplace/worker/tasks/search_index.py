# marketplace/worker/tasks/search_index.py
"""
Celery tasks keeping the offer search index in line with the database.
"""
import logging
from typing import List, Optional

from celery import shared_task
from sqlalchemy.orm import Session

from marketplace.db.base import SessionLocal
from marketplace.db.models.offer import Offer
from marketplace.db.repositories.offer_repository import OfferRepository
from marketplace.services.search_index import BaseSearchIndexer, SearchIndexerFactory

logger = logging.getLogger(__name__)

REINDEX_BATCH_SIZE = 500


def sync_offer_batch(
    db_session: Session, offer_ids: List[int], indexer: Optional[BaseSearchIndexer] = None
) -> int:
    """
    Write the given offers to the index (or drop them when not active).
    Ids without a row are removed from the index.

    Returns:
        Number of documents written
    """
    indexer = indexer or SearchIndexerFactory.create()
    offer_repo = OfferRepository(db_session)

    offers = (
        offer_repo.with_relations(db_session.query(Offer))
        .filter(Offer.id.in_(offer_ids))
        .all()
    )
    missing = set(offer_ids) - {offer.id for offer in offers}
    if missing:
        indexer.remove(sorted(missing))
    return indexer.sync(offers)


def reindex_all_offers(
    db_session: Session,
    indexer: Optional[BaseSearchIndexer] = None,
    batch_size: int = REINDEX_BATCH_SIZE,
) -> int:
    """Resync every offer in id order, batch_size rows at a time"""
    indexer = indexer or SearchIndexerFactory.create()
    written = 0
    last_id = 0

    while True:
        offer_ids = [
            offer_id
            for (offer_id,) in db_session.query(Offer.id)
            .filter(Offer.id > last_id)
            .order_by(Offer.id)
            .limit(batch_size)
        ]
        if not offer_ids:
            break

        written += sync_offer_batch(db_session, offer_ids, indexer)
        last_id = offer_ids[-1]
        db_session.expunge_all()

    return written


@shared_task(
    name="search_index:sync_offers",
    bind=True,
    max_retries=3,
    default_retry_delay=60,  # 1 minute
)
def sync_offers(self, offer_ids: List[int]):
    """
    Resync specific offers, e.g. after a failed inline sync.

    Args:
        offer_ids: Ids of the offers to resync
    """
    try:
        db_session = SessionLocal()
        try:
            written = sync_offer_batch(db_session, offer_ids)
        finally:
            db_session.close()

        logger.info(f"Synced {len(offer_ids)} offers to the search index ({written} written)")
        return {"status": "success", "offer_ids": offer_ids, "written": written}

    except Exception as e:
        logger.exception(f"Error syncing offers {offer_ids}: {str(e)}")

        retry_count = self.request.retries
        if retry_count < self.max_retries:
            logger.info(f"Retrying offer sync (attempt {retry_count + 1})")
            self.retry(exc=e, countdown=60 * (retry_count + 1))

        return {"status": "error", "offer_ids": offer_ids, "error": str(e)}


@shared_task(name="search_index:reindex_offers")
def reindex_offers(batch_size: int = REINDEX_BATCH_SIZE):
    """Rebuild the offer search index from the database"""
    logger.info("Starting full offer reindex")

    db_session = SessionLocal()
    try:
        written = reindex_all_offers(db_session, batch_size=batch_size)
    finally:
        db_session.close()

    logger.info(f"Reindex finished: {written} active offers indexed")
    return {"status": "success", "written": written}
