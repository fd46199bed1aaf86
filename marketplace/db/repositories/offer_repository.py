# marketplace/db/repositories/offer_repository.py
from typing import List, Optional, Dict, Any, Iterable, Tuple
from sqlalchemy.orm import Session, Query, selectinload
from sqlalchemy import or_, func, asc, desc
from marketplace.db.models.offer import Offer, OfferPrice
from marketplace.db.models.product import Product
from marketplace.db.models.warehouse import Warehouse
from marketplace.db.models.incoterm import Incoterm
from marketplace.db.models.country import CountryExclusion
from marketplace.db.models.offer_view import OfferFavorite
from marketplace.db.models.enums import OfferStatus, OwnerKind


class OfferRepository:
    """
    Repository for queries on Offer and its child rows.

    Writes are flushed, never committed: the calling service owns the
    transaction.
    """

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def get_by_id(self, offer_id: int) -> Optional[Offer]:
        """Get offer by ID"""
        return self.db_session.query(Offer).filter(Offer.id == offer_id).first()

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.db_session.query(Product).filter(Product.id == product_id).first()

    def get_warehouse(self, warehouse_id: int) -> Optional[Warehouse]:
        return (
            self.db_session.query(Warehouse).filter(Warehouse.id == warehouse_id).first()
        )

    def with_relations(self, query: Query) -> Query:
        """Eager-load what listings and exports read"""
        return query.options(
            selectinload(Offer.product).selectinload(Product.parameters),
            selectinload(Offer.warehouse),
            selectinload(Offer.incoterms),
            selectinload(Offer.prices),
            selectinload(Offer.countries),
        )

    def list_active(
        self,
        name: Optional[str] = None,
        sort_by: Optional[str] = None,
        order_by: str = "desc",
        business_id: Optional[int] = None,
    ) -> Query:
        """Active offers, optionally matched by id or product name"""
        query = self.with_relations(self.db_session.query(Offer)).filter(
            Offer.status == OfferStatus.ACTIVE
        )

        if name:
            conditions = [Offer.product.has(Product.name.ilike(f"%{name}%"))]
            if name.isdigit():
                conditions.append(Offer.id == int(name))
            query = query.filter(or_(*conditions))

        if business_id is not None:
            query = query.filter(Offer.business_id == business_id)

        return self._sorted(query, sort_by, order_by)

    def search(
        self,
        search_term: Optional[str] = None,
        sort_by: Optional[str] = None,
        order_by: str = "desc",
    ) -> Query:
        """Active offers whose own name or product name contains the term"""
        query = self.with_relations(self.db_session.query(Offer)).filter(
            Offer.status == OfferStatus.ACTIVE
        )

        if search_term:
            term = f"%{search_term}%"
            query = query.filter(
                or_(
                    Offer.name.ilike(term),
                    Offer.product.has(Product.name.ilike(term)),
                )
            )

        return self._sorted(query, sort_by, order_by)

    def _sorted(self, query: Query, sort_by: Optional[str], order_by: str) -> Query:
        if sort_by:
            column = getattr(Offer, sort_by)
            return query.order_by(asc(column) if order_by == "asc" else desc(column))
        return query.order_by(Offer.created_at.desc(), Offer.id.desc())

    def paginate(self, query: Query, page: int = 1, per_page: int = 15) -> Tuple[List[Any], int]:
        """Return one page of the query and the total row count"""
        total = query.order_by(None).count()
        items = query.offset((page - 1) * per_page).limit(per_page).all()
        return items, total

    def add(self, offer: Offer) -> Offer:
        """Add a new offer and flush it to get its id"""
        self.db_session.add(offer)
        self.db_session.flush()
        return offer

    def replace_prices(
        self, offer: Offer, prices: Iterable[Dict[str, Any]], clear_existing: bool = False
    ) -> List[OfferPrice]:
        """Insert price tiers for the offer, deleting the old ones first if asked"""
        rows = [OfferPrice(**price) for price in prices]
        if clear_existing:
            # Orphaned tiers are deleted on flush
            offer.prices = rows
        else:
            offer.prices.extend(rows)
        self.db_session.flush()
        return rows

    def replace_incoterms(
        self,
        owner_kind: OwnerKind,
        owner_id: int,
        incoterms: Iterable[Dict[str, Any]],
        clear_existing: bool = False,
    ) -> List[Incoterm]:
        """Insert incoterms for an owner, deleting the old ones first if asked"""
        if clear_existing:
            self.delete_incoterms(owner_kind, [owner_id])

        rows = [
            Incoterm(owner_kind=owner_kind, owner_id=owner_id, **incoterm)
            for incoterm in incoterms
        ]
        self.db_session.add_all(rows)
        self.db_session.flush()
        return rows

    def replace_countries(
        self,
        owner_kind: OwnerKind,
        owner_id: int,
        country_codes: Iterable[str],
        clear_existing: bool = False,
    ) -> List[CountryExclusion]:
        """Insert excluded countries for an owner, deleting the old ones first if asked"""
        if clear_existing:
            self.delete_countries(owner_kind, [owner_id])

        rows = [
            CountryExclusion(
                owner_kind=owner_kind,
                owner_id=owner_id,
                country_code=code.upper(),
                delivery_allowed=False,
            )
            for code in country_codes
        ]
        self.db_session.add_all(rows)
        self.db_session.flush()
        return rows

    def expire_children(self, offer: Offer) -> None:
        """Reload the offer's child collections on next access"""
        self.db_session.expire(offer, ["prices", "incoterms", "countries"])

    def delete_incoterms(self, owner_kind: OwnerKind, owner_ids: List[int]) -> int:
        return (
            self.db_session.query(Incoterm)
            .filter(Incoterm.owner_kind == owner_kind, Incoterm.owner_id.in_(owner_ids))
            .delete(synchronize_session="fetch")
        )

    def delete_countries(self, owner_kind: OwnerKind, owner_ids: List[int]) -> int:
        return (
            self.db_session.query(CountryExclusion)
            .filter(
                CountryExclusion.owner_kind == owner_kind,
                CountryExclusion.owner_id.in_(owner_ids),
            )
            .delete(synchronize_session="fetch")
        )

    def delete_children(self, offer_ids: List[int]) -> None:
        """Delete prices, incoterms and country rows of the given offers"""
        if not offer_ids:
            return
        self.db_session.query(OfferPrice).filter(
            OfferPrice.offer_id.in_(offer_ids)
        ).delete(synchronize_session="fetch")
        self.delete_incoterms(OwnerKind.OFFER, offer_ids)
        self.delete_countries(OwnerKind.OFFER, offer_ids)

    def delete(self, offer: Offer) -> None:
        """Delete an offer together with its child rows"""
        self.delete_incoterms(OwnerKind.OFFER, [offer.id])
        self.delete_countries(OwnerKind.OFFER, [offer.id])
        # Price tiers go through the relationship cascade
        self.db_session.delete(offer)
        self.db_session.flush()

    def is_favorite(self, user_id: int, offer_id: int) -> bool:
        return (
            self.db_session.query(OfferFavorite.id)
            .filter(OfferFavorite.user_id == user_id, OfferFavorite.offer_id == offer_id)
            .first()
            is not None
        )

    def count_by_status(self, status: OfferStatus, in_stock_only: bool = False) -> int:
        query = self.db_session.query(func.count(Offer.id)).filter(Offer.status == status)
        if in_stock_only:
            query = query.filter(Offer.availability_quantity > 0)
        return query.scalar() or 0

    def count_grouped_by_status(
        self, business_id: Optional[int] = None, user_id: Optional[int] = None
    ) -> Dict[str, int]:
        """Offer count per status, optionally scoped to a business and/or a user"""
        query = self.db_session.query(Offer.status, func.count(Offer.id)).group_by(
            Offer.status
        )
        if business_id is not None:
            query = query.filter(Offer.business_id == business_id)
        if user_id is not None:
            query = query.filter(Offer.user_id == user_id)
        return {status.value: count for status, count in query.all()}
