# marketplace/services/offer_service.py
from typing import List, Optional, Dict, Tuple
from dataclasses import dataclass
from datetime import datetime, timedelta
import logging

from sqlalchemy.orm import Session

from marketplace.core.config import settings
from marketplace.core.exceptions import (
    OfferValidationError,
    OfferNotFoundError,
    OfferForbiddenError,
)
from marketplace.core.permissions import can_update_offer, is_offer_admin
from marketplace.db.models.offer import Offer
from marketplace.db.models.product import Product
from marketplace.db.models.incoterm import Incoterm
from marketplace.db.models.country import CountryExclusion
from marketplace.db.models.enums import (
    OfferStatus,
    OfferSource,
    OfferPriceDisplayUnit,
    OwnerKind,
)
from marketplace.db.models.offer_view import OfferView
from marketplace.db.repositories.offer_repository import OfferRepository
from marketplace.db.repositories.offer_view_repository import OfferViewRepository
from marketplace.schemas.offer import (
    OfferStore,
    OfferIndexQuery,
    OfferSearchQuery,
    UserOfferViewsQuery,
)
from marketplace.services.pricing_service import PricingService
from marketplace.services.search_index import BaseSearchIndexer, SearchIndexerFactory
from marketplace.utils.helpers import utcnow, truncate

logger = logging.getLogger(__name__)

INCOTERM_COPY_FIELDS = (
    "name",
    "value",
    "price",
    "shipping_from_country",
    "pickup_available_in_weeks",
    "override_warehouse",
)
OFFER_COPY_EXCLUDE = {"id", "created_at", "updated_at"}


@dataclass
class OfferDetails:
    """Offer with the incoterms and countries that apply once warehouse defaults are merged in"""

    offer: Offer
    incoterms: List[Incoterm]
    countries: List[CountryExclusion]
    is_favorite: Optional[bool] = None


class OfferService:
    """Service for offer lifecycle business logic"""

    def __init__(
        self,
        db_session: Session,
        search_indexer: Optional[BaseSearchIndexer] = None,
        pricing_service: Optional[PricingService] = None,
    ):
        self.db_session = db_session
        self.offer_repo = OfferRepository(db_session)
        self.view_repo = OfferViewRepository(db_session)
        self.search_indexer = search_indexer or SearchIndexerFactory.create()
        self.pricing = pricing_service or PricingService()

    # Reads

    def get_offer(self, offer_id: int) -> Optional[Offer]:
        return self.offer_repo.get_by_id(offer_id)

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.offer_repo.get_product(product_id)

    def get(
        self, query: OfferIndexQuery, user=None, page: int = 1, per_page: int = 15
    ) -> Tuple[List[Offer], int]:
        """Active offers, limited to the user's business unless they administer offers"""
        business_id = None
        if user is not None and not is_offer_admin(user):
            business_id = user.business_id

        db_query = self.offer_repo.list_active(
            name=query.name,
            sort_by=query.sort_by,
            order_by=query.order_by,
            business_id=business_id,
        )
        return self.offer_repo.paginate(db_query, page, per_page)

    def search(
        self, query: OfferSearchQuery, page: int = 1, per_page: int = 15
    ) -> Tuple[List[Offer], int]:
        db_query = self.offer_repo.search(
            search_term=query.search_term,
            sort_by=query.sort_by,
            order_by=query.order_by,
        )
        return self.offer_repo.paginate(db_query, page, per_page)

    def details(self, offer: Offer, user=None) -> OfferDetails:
        """
        Offer incoterms take precedence over warehouse incoterms with the
        same name; country exclusions of both are combined.
        """
        incoterms = list(offer.incoterms)
        countries = list(offer.countries)

        if offer.warehouse is not None:
            offer_terms = {incoterm.name.lower() for incoterm in incoterms}
            incoterms.extend(
                incoterm
                for incoterm in offer.warehouse.incoterms
                if incoterm.name.lower() not in offer_terms
            )

            offer_codes = {country.country_code for country in countries}
            countries.extend(
                country
                for country in offer.warehouse.countries
                if country.country_code not in offer_codes
            )

        is_favorite = None
        if user is not None:
            is_favorite = self.offer_repo.is_favorite(user.id, offer.id)

        return OfferDetails(
            offer=offer, incoterms=incoterms, countries=countries, is_favorite=is_favorite
        )

    def get_user_viewed_offers(
        self, user, query: UserOfferViewsQuery, page: int = 1, per_page: int = 15
    ) -> Tuple[List[Tuple[OfferView, int]], int]:
        """The user's viewed offers with the price tier count of each"""
        return self.view_repo.list_for_user(
            user.id, order_by=query.order_by, page=page, per_page=per_page
        )

    def get_counters(self) -> Dict[str, int]:
        """Number of offers per status; inactive only counts offers still in stock"""
        counters = {
            status.value: self.offer_repo.count_by_status(status) for status in OfferStatus
        }
        counters[OfferStatus.INACTIVE.value] = self.offer_repo.count_by_status(
            OfferStatus.INACTIVE, in_stock_only=True
        )
        return counters

    def count_offers(self, user, admin: bool = False, user_id: Optional[int] = None) -> Dict[str, int]:
        """Offer count per status for the user's business, or for everyone if an admin asks"""
        business_id = None
        if not (admin and is_offer_admin(user)):
            business_id = user.business_id
        return self.offer_repo.count_grouped_by_status(business_id=business_id, user_id=user_id)

    # Writes

    def validate_price_unit(self, product: Product, data: OfferStore) -> None:
        if data.price_display_unit == OfferPriceDisplayUnit.WP and not self.pricing.validate_price_in_wp(product):
            raise OfferValidationError(
                "You can't set price in Wp for this product",
                errors={"price_display_unit": ["The product has no usable 'Module Power' value."]},
            )

    def validate_warehouse(self, user, warehouse_id: Optional[int]) -> None:
        """The warehouse must exist and belong to the seller or the seller's business"""
        if warehouse_id is None:
            return

        warehouse = self.offer_repo.get_warehouse(warehouse_id)
        if warehouse is None:
            raise OfferNotFoundError(f"Warehouse {warehouse_id} not found")

        same_business = user.business_id is not None and warehouse.business_id == user.business_id
        if warehouse.user_id != user.id and not same_business and not is_offer_admin(user):
            raise OfferForbiddenError("You can't list offers from this warehouse")

    def store(self, user, product: Product, data: OfferStore) -> Offer:
        """Create an offer with its prices, incoterms and excluded countries"""
        self.validate_price_unit(product, data)
        self.validate_warehouse(user, data.warehouse_id)

        try:
            offer = self._create_or_update(user, product, data)
            self.search_indexer.sync([offer])
            self.db_session.commit()
        except Exception as e:
            self.db_session.rollback()
            logger.error(f"Offer store error: {e} data={data.model_dump_json()}")
            raise

        logger.info(f"Created offer {offer.id} for product {product.id} by user {user.id}")
        return offer

    def update(self, offer: Offer, data: OfferStore, user=None) -> Offer:
        """Update an offer, replacing its prices, incoterms and excluded countries"""
        product = offer.product
        self.validate_price_unit(product, data)
        self.validate_warehouse(user or offer.user, data.warehouse_id)

        try:
            offer = self._create_or_update(user or offer.user, product, data, offer)
            self.search_indexer.sync([offer])
            self.db_session.commit()
        except Exception as e:
            self.db_session.rollback()
            logger.error(f"Offer update error: offer={offer.id} {e} data={data.model_dump_json()}")
            raise

        logger.info(f"Updated offer {offer.id}")
        return offer

    def update_bulk(self, user, offer_ids: List[int], data: OfferStore) -> List[Offer]:
        """
        Apply the same update to several of the user's offers. Each offer is
        updated in its own transaction; failures are logged and skipped.
        """
        offers = (
            self.db_session.query(Offer)
            .filter(Offer.user_id == user.id, Offer.id.in_(offer_ids))
            .order_by(Offer.id)
            .all()
        )

        updated = []
        for offer in offers:
            if not can_update_offer(user, offer):
                continue

            offer_id = offer.id
            try:
                self.validate_price_unit(offer.product, data)
                self.validate_warehouse(user, data.warehouse_id)
                self._create_or_update(offer.user, offer.product, data, offer)
                self.search_indexer.sync([offer])
                self.db_session.commit()
                updated.append(offer)
            except Exception as e:
                self.db_session.rollback()
                logger.error(f"Offer bulk update error: offer={offer_id} {e}")

        return updated

    def update_status(self, offer: Offer, status: OfferStatus) -> Offer:
        try:
            self._apply_status(offer, status)
            if offer.availability_quantity == 0:
                offer.status = OfferStatus.INACTIVE
            self.db_session.flush()
            self.search_indexer.sync([offer])
            self.db_session.commit()
        except Exception as e:
            self.db_session.rollback()
            logger.error(f"Offer status update error: offer={offer.id} status={status} {e}")
            raise

        return offer

    def duplicate(self, offer: Offer) -> Offer:
        """Copy an offer and its child rows into a new draft"""
        try:
            values = {
                column.key: getattr(offer, column.key)
                for column in Offer.__mapper__.column_attrs
                if column.key not in OFFER_COPY_EXCLUDE
            }
            new_offer = Offer(**values)
            new_offer.name = truncate(offer.name, settings.OFFER_NAME_LIMIT) + " (Copy)"
            new_offer.status = OfferStatus.DRAFT
            new_offer.publish_at = None
            new_offer.expire_at = None
            new_offer.publish_at_defaulted = False
            new_offer.expire_at_defaulted = False
            new_offer.lowest_price = None
            new_offer.exported_at = None
            self.offer_repo.add(new_offer)

            self.offer_repo.replace_incoterms(
                OwnerKind.OFFER,
                new_offer.id,
                [
                    {field: getattr(incoterm, field) for field in INCOTERM_COPY_FIELDS}
                    for incoterm in offer.incoterms
                ],
            )
            self.db_session.add_all(
                CountryExclusion(
                    owner_kind=OwnerKind.OFFER,
                    owner_id=new_offer.id,
                    country_code=country.country_code,
                    delivery_allowed=country.delivery_allowed,
                )
                for country in offer.countries
            )
            self.offer_repo.replace_prices(
                new_offer,
                [
                    {
                        "price": price.price,
                        "price_wp": price.price_wp,
                        "from_quantity": price.from_quantity,
                        "to_quantity": price.to_quantity,
                    }
                    for price in offer.prices
                ],
            )
            self.db_session.commit()
        except Exception as e:
            self.db_session.rollback()
            logger.error(f"Offer duplicate error: offer={offer.id} {e}")
            raise

        logger.info(f"Duplicated offer {offer.id} into {new_offer.id}")
        return new_offer

    def delete(self, offer: Offer) -> bool:
        offer_id = offer.id
        try:
            self.offer_repo.delete(offer)
            self.search_indexer.remove([offer_id])
            self.db_session.commit()
        except Exception as e:
            self.db_session.rollback()
            logger.error(f"Offer delete error: offer={offer_id} {e}")
            raise

        logger.info(f"Deleted offer {offer_id}")
        return True

    # Internals

    def _apply_status(self, offer: Offer, status: OfferStatus, now: Optional[datetime] = None) -> None:
        """
        Moving to active fills publish_at/expire_at when unset; moving to
        draft clears the values that were filled that way.
        """
        now = now or utcnow()

        if status == OfferStatus.ACTIVE:
            if not offer.publish_at:
                offer.publish_at = now
                offer.publish_at_defaulted = True
            if not offer.expire_at:
                offer.expire_at = now + timedelta(days=settings.OFFER_EXPIRE_DAYS)
                offer.expire_at_defaulted = True
        elif status == OfferStatus.DRAFT:
            if offer.publish_at_defaulted:
                offer.publish_at = None
                offer.publish_at_defaulted = False
            if offer.expire_at_defaulted:
                offer.expire_at = None
                offer.expire_at_defaulted = False

        offer.status = status

    def _create_or_update(
        self, user, product: Product, data: OfferStore, offer: Optional[Offer] = None
    ) -> Offer:
        is_new = offer is None
        if is_new:
            offer = Offer(
                source=OfferSource.WEB,
                user_id=user.id,
                business_id=user.business_id,
                publish_at_defaulted=False,
                expire_at_defaulted=False,
            )

        offer.product_id = product.id
        offer.warehouse_id = data.warehouse_id
        offer.name = data.name or truncate(product.name, settings.OFFER_NAME_LIMIT)
        offer.description = data.description
        offer.availability_quantity = data.availability_quantity
        offer.min_order_quantity = data.min_order_quantity
        offer.min_order_unit = data.min_order_unit
        offer.price_display_unit = data.price_display_unit

        # Explicit dates always win; an update without dates keeps the current ones
        if data.publish_at is not None or is_new:
            offer.publish_at = data.publish_at
            offer.publish_at_defaulted = False
        if data.expire_at is not None or is_new:
            offer.expire_at = data.expire_at
            offer.expire_at_defaulted = False

        if data.promotion_id:
            offer.promotion_id = data.promotion_id
        if data.shipping_available_from:
            offer.shipping_available_from = data.shipping_available_from

        status = data.status or (OfferStatus.DRAFT if is_new else offer.status)
        self._apply_status(offer, status)

        if data.availability_quantity == 0:
            offer.status = OfferStatus.INACTIVE

        if is_new:
            self.offer_repo.add(offer)

        self._handle_prices(data, product, offer, clear_existing=not is_new)
        self._handle_incoterms(data, offer, clear_existing=not is_new)
        self._handle_countries(data, offer, clear_existing=not is_new)
        self.offer_repo.expire_children(offer)

        self.pricing.update_lowest_price(offer, data.lowest_price)
        self.db_session.flush()

        return offer

    def _handle_prices(self, data: OfferStore, product: Product, offer: Offer, clear_existing: bool = False) -> None:
        prices = []
        for tier in data.prices:
            price = tier.price
            if data.price_display_unit == OfferPriceDisplayUnit.WP:
                price = self.pricing.price_from_wp(product, tier.price_wp)
            prices.append(
                {
                    "price": price,
                    "price_wp": tier.price_wp,
                    "from_quantity": tier.from_quantity,
                    "to_quantity": tier.to_quantity,
                }
            )
        self.offer_repo.replace_prices(offer, prices, clear_existing)

    def _handle_incoterms(self, data: OfferStore, offer: Offer, clear_existing: bool = False) -> None:
        self.offer_repo.replace_incoterms(
            OwnerKind.OFFER,
            offer.id,
            [
                {
                    "name": incoterm.name.value,
                    "value": incoterm.value,
                    "price": incoterm.price,
                    "shipping_from_country": incoterm.shipping_from_country,
                    "pickup_available_in_weeks": incoterm.pickup_available_in_weeks,
                    "override_warehouse": incoterm.override_warehouse,
                }
                for incoterm in data.incoterms
            ],
            clear_existing,
        )

    def _handle_countries(self, data: OfferStore, offer: Offer, clear_existing: bool = False) -> None:
        self.offer_repo.replace_countries(
            OwnerKind.OFFER, offer.id, data.excluded_countries, clear_existing
        )
