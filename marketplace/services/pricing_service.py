# marketplace/services/pricing_service.py
from typing import Iterable, Optional
import logging
import math
import re

from marketplace.db.models.offer import Offer
from marketplace.db.models.product import Product

logger = logging.getLogger(__name__)

MODULE_POWER_PARAMETER = "Module Power"

_NON_NUMERIC = re.compile(r"[^0-9.]")


def _to_float(value: str) -> Optional[float]:
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_module_power(raw_value, strict: bool = False) -> float:
    """
    Normalize a 'Module Power' value to a float.

    A plain number ('410', '410.5', '1e3') is used as is. Otherwise units
    are stripped ('410 Wp' -> 410.0) unless `strict` is set. Returns 0.0
    when the value is missing, not numeric or not positive.
    """
    if raw_value is None:
        return 0.0

    value = str(raw_value).strip()
    number = _to_float(value)
    if number is None and not strict:
        number = _to_float(_NON_NUMERIC.sub("", value))

    if number is None or number <= 0:
        return 0.0
    return number


class PricingService:
    """Price rules: watt-peak conversion and the offer's lowest price"""

    def validate_price_in_wp(self, product: Product) -> bool:
        """True when the product has a positive numeric 'Module Power'"""
        module_power = product.parameter_value(MODULE_POWER_PARAMETER)
        return parse_module_power(module_power, strict=True) > 0

    def price_from_wp(self, product: Product, price_wp: float) -> float:
        """
        Absolute price for a price per watt-peak: price_wp * module power,
        rounded to 3 decimals. Returns 0 when the product has no usable
        module power.
        """
        original = product.parameter_value(MODULE_POWER_PARAMETER)
        module_power = parse_module_power(original)

        if not module_power:
            logger.error(
                f"Module power not found for product {product.id}: "
                f"original={original!r} formatted={module_power}"
            )
            return 0

        return round(price_wp * module_power, 3)

    def lowest_price(self, prices: Iterable) -> Optional[float]:
        """Minimum tier price, None without tiers"""
        values = [price.price for price in prices if price.price is not None]
        if not values:
            return None
        return min(values)

    def update_lowest_price(self, offer: Offer, lowest_price: Optional[float] = None) -> Optional[float]:
        """Store the lowest tier price (or the given override) on the offer"""
        if not offer.prices:
            offer.lowest_price = None
            return None

        if lowest_price is None:
            lowest_price = self.lowest_price(offer.prices)

        if lowest_price is not None:
            offer.lowest_price = lowest_price

        return offer.lowest_price
