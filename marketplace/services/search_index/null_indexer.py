import logging
from typing import List

from .base import BaseSearchIndexer, OfferDocument

logger = logging.getLogger(__name__)


class NullSearchIndexer(BaseSearchIndexer):
    """Indexer that only logs; used when no search backend is configured"""

    def upsert(self, documents: List[OfferDocument]) -> None:
        logger.debug(f"Skipping index write for {len(documents)} offers")

    def remove(self, offer_ids: List[int]) -> None:
        logger.debug(f"Skipping index removal for offers {offer_ids}")
