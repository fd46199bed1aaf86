"""Redis-backed offer search index"""
import json
import logging
import redis
from typing import List, Optional

from marketplace.core.config import settings
from .base import BaseSearchIndexer, OfferDocument

logger = logging.getLogger(__name__)


class RedisSearchIndexer(BaseSearchIndexer):
    """
    Stores one JSON document per searchable offer under
    `{prefix}:doc:{id}` and keeps the id set `{prefix}:ids`.
    """

    def __init__(self, redis_url: Optional[str] = None, prefix: Optional[str] = None):
        self.redis_url = redis_url or settings.SEARCH_INDEX_REDIS_URL
        self.prefix = prefix or settings.SEARCH_INDEX_PREFIX

        conn_params = {
            "decode_responses": True,
            "socket_connect_timeout": 5,
            "socket_timeout": 5,
        }
        # Add SSL parameters for rediss:// URLs
        if self.redis_url.startswith("rediss://"):
            conn_params["ssl_cert_reqs"] = "none"

        self.redis_client = redis.from_url(self.redis_url, **conn_params)

    def _doc_key(self, offer_id: int) -> str:
        return f"{self.prefix}:doc:{offer_id}"

    @property
    def _ids_key(self) -> str:
        return f"{self.prefix}:ids"

    def upsert(self, documents: List[OfferDocument]) -> None:
        pipe = self.redis_client.pipeline()
        for document in documents:
            pipe.set(self._doc_key(document.id), json.dumps(document.to_dict(), separators=(",", ":")))
            pipe.sadd(self._ids_key, document.id)
        pipe.execute()
        logger.info(f"Indexed {len(documents)} offers")

    def remove(self, offer_ids: List[int]) -> None:
        if not offer_ids:
            return
        pipe = self.redis_client.pipeline()
        for offer_id in offer_ids:
            pipe.delete(self._doc_key(offer_id))
            pipe.srem(self._ids_key, offer_id)
        pipe.execute()
        logger.info(f"Removed {len(offer_ids)} offers from the index")

    def get(self, offer_id: int) -> Optional[dict]:
        raw = self.redis_client.get(self._doc_key(offer_id))
        return json.loads(raw) if raw else None
