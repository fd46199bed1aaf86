from .factory import SearchIndexerFactory
from .base import BaseSearchIndexer, OfferDocument

__all__ = ["SearchIndexerFactory", "BaseSearchIndexer", "OfferDocument"]
