from typing import Type
import logging

from marketplace.core.config import settings
from .base import BaseSearchIndexer
from .null_indexer import NullSearchIndexer
from .redis_indexer import RedisSearchIndexer

logger = logging.getLogger(__name__)


class SearchIndexerFactory:
    """Factory for creating search indexer instances based on configuration"""

    _indexers = {
        "redis": RedisSearchIndexer,
        "null": NullSearchIndexer,
    }

    @classmethod
    def create(cls) -> BaseSearchIndexer:
        """
        Create a search indexer based on the SEARCH_INDEX_PROVIDER setting

        Returns:
            BaseSearchIndexer instance
        """
        provider = settings.SEARCH_INDEX_PROVIDER

        if provider not in cls._indexers:
            raise ValueError(
                f"Unknown search index provider: {provider}. "
                f"Available providers: {list(cls._indexers.keys())}"
            )

        logger.info(f"Creating search indexer for provider: {provider}")
        return cls._indexers[provider]()

    @classmethod
    def register_indexer(cls, provider: str, indexer_class: Type[BaseSearchIndexer]):
        """Register a new search indexer provider"""
        if not issubclass(indexer_class, BaseSearchIndexer):
            raise ValueError(f"{indexer_class} must inherit from BaseSearchIndexer")

        cls._indexers[provider] = indexer_class
        logger.info(f"Registered search indexer: {provider}")
