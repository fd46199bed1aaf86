from marketplace.db.repositories.offer_repository import OfferRepository
from marketplace.db.repositories.offer_view_repository import OfferViewRepository

__all__ = ["OfferRepository", "OfferViewRepository"]
