from abc import ABC, abstractmethod
from typing import List, Dict, Any, Iterable, Optional
from dataclasses import dataclass, asdict

from marketplace.db.models.enums import OfferStatus


@dataclass
class OfferDocument:
    """Searchable projection of an offer"""

    id: int
    name: str
    status: str
    business_id: Optional[int]
    user_id: int
    product_id: int
    product_name: Optional[str]
    warehouse_id: Optional[int]
    lowest_price: Optional[float]
    availability_quantity: int
    publish_at: Optional[str] = None
    expire_at: Optional[str] = None

    @classmethod
    def from_offer(cls, offer) -> "OfferDocument":
        return cls(
            id=offer.id,
            name=offer.name,
            status=offer.status.value,
            business_id=offer.business_id,
            user_id=offer.user_id,
            product_id=offer.product_id,
            product_name=offer.product.name if offer.product else None,
            warehouse_id=offer.warehouse_id,
            lowest_price=offer.lowest_price,
            availability_quantity=offer.availability_quantity,
            publish_at=offer.publish_at.isoformat() if offer.publish_at else None,
            expire_at=offer.expire_at.isoformat() if offer.expire_at else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BaseSearchIndexer(ABC):
    """Abstract base class for offer search index writers"""

    def sync(self, offers: Iterable) -> int:
        """
        Bring the index in line with the given offers.
        Active offers are written, all others are removed.

        Returns:
            Number of documents written
        """
        offers = list(offers)
        searchable = [o for o in offers if o.status == OfferStatus.ACTIVE]
        hidden = [o.id for o in offers if o.status != OfferStatus.ACTIVE]

        if hidden:
            self.remove(hidden)
        if searchable:
            self.upsert([OfferDocument.from_offer(o) for o in searchable])
        return len(searchable)

    @abstractmethod
    def upsert(self, documents: List[OfferDocument]) -> None:
        """Write documents to the index"""
        pass

    @abstractmethod
    def remove(self, offer_ids: List[int]) -> None:
        """Remove offers from the index"""
        pass
