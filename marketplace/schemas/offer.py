# marketplace/schemas/offer.py
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import List, Optional
from datetime import datetime

from marketplace.db.models.enums import (
    OfferStatus,
    OfferSource,
    OfferUnit,
    OfferPriceDisplayUnit,
    IncotermName,
    ExportMode,
)


class PriceTierIn(BaseModel):
    """One quantity-bracketed price of an offer"""

    model_config = ConfigDict(populate_by_name=True)

    price: Optional[float] = Field(None, ge=0, description="Absolute price")
    price_wp: Optional[float] = Field(None, ge=0, description="Price per watt-peak")
    from_quantity: Optional[int] = Field(
        None, ge=0, alias="from", description="Lower bound of the range, null for the base tier"
    )
    to_quantity: Optional[int] = Field(None, ge=0, alias="to")

    @model_validator(mode="after")
    def validate_range(self):
        if (
            self.from_quantity is not None
            and self.to_quantity is not None
            and self.to_quantity < self.from_quantity
        ):
            raise ValueError("'to' must be greater than or equal to 'from'")
        return self


class IncotermIn(BaseModel):
    """Incoterm attached to an offer"""

    name: IncotermName
    value: bool = Field(False, description="Whether the incoterm is enabled")
    price: Optional[int] = Field(None, ge=0, description="Price in minor units")
    shipping_from_country: Optional[str] = Field(None, min_length=2, max_length=2)
    pickup_available_in_weeks: Optional[int] = Field(None, ge=0)
    override_warehouse: bool = False

    @field_validator("shipping_from_country")
    def upper_country(cls, v):
        return v.upper() if v else v


class OfferStore(BaseModel):
    """Fields accepted when creating or updating an offer"""

    warehouse_id: Optional[int] = None
    promotion_id: Optional[int] = None
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    status: Optional[OfferStatus] = Field(
        None, description="Requested status; drafts are created when omitted"
    )
    availability_quantity: int = Field(..., ge=0)
    min_order_quantity: int = Field(1, ge=1)
    min_order_unit: OfferUnit = OfferUnit.PIECES
    price_display_unit: OfferPriceDisplayUnit = OfferPriceDisplayUnit.ABSOLUTE
    publish_at: Optional[datetime] = None
    expire_at: Optional[datetime] = None
    shipping_available_from: Optional[datetime] = None
    lowest_price: Optional[float] = Field(
        None, ge=0, description="Explicit lowest price, skips recomputation"
    )
    prices: List[PriceTierIn] = Field(default_factory=list)
    incoterms: List[IncotermIn] = Field(default_factory=list)
    excluded_countries: List[str] = Field(default_factory=list)

    @field_validator("excluded_countries")
    def normalize_countries(cls, v):
        codes = []
        for code in v:
            code = code.strip().upper()
            if len(code) != 2:
                raise ValueError(f"Invalid country code: {code}")
            if code not in codes:
                codes.append(code)
        return codes

    @field_validator("incoterms")
    def unique_incoterms(cls, v):
        names = [incoterm.name for incoterm in v]
        if len(names) != len(set(names)):
            raise ValueError("Each incoterm can only be given once")
        return v

    @model_validator(mode="after")
    def validate_prices(self):
        base_tiers = [tier for tier in self.prices if tier.from_quantity is None]
        if len(base_tiers) > 1:
            raise ValueError("Only one price tier can have an empty 'from'")
        for tier in self.prices:
            if self.price_display_unit == OfferPriceDisplayUnit.WP and tier.price_wp is None:
                raise ValueError("price_wp is required for every tier when prices are set in Wp")
            if self.price_display_unit == OfferPriceDisplayUnit.ABSOLUTE and tier.price is None:
                raise ValueError("price is required for every tier")
        return self


class OfferStatusUpdate(BaseModel):
    status: OfferStatus


class OfferBulkFilter(BaseModel):
    """Shared selection of a business's offers for bulk operations and export"""

    ids: Optional[List[int]] = None
    status: Optional[OfferStatus] = None
    name: Optional[str] = None
    product_name: Optional[str] = None
    warehouse_id: Optional[int] = None


class OfferBulkStatusUpdate(BaseModel):
    filter: OfferBulkFilter = Field(default_factory=OfferBulkFilter)
    status: OfferStatus = Field(..., description="Status to move the selected offers to")


class OfferBulkDelete(BaseModel):
    filter: OfferBulkFilter = Field(default_factory=OfferBulkFilter)
    status: Optional[OfferStatus] = Field(
        None, description="Status whose publish_at guard applies; defaults to filter.status"
    )


class OfferBulkUpdate(BaseModel):
    offer_ids: List[int] = Field(..., min_length=1)
    offer: OfferStore


class OfferExportRequest(BaseModel):
    filter: OfferBulkFilter = Field(default_factory=OfferBulkFilter)
    mode: ExportMode = ExportMode.FILE
    user_id: Optional[int] = Field(
        None, description="Export another seller's offers; needs export permission"
    )


class OfferIndexQuery(BaseModel):
    name: Optional[str] = None
    sort_by: Optional[str] = None
    order_by: str = "desc"

    @field_validator("sort_by")
    def validate_sort_by(cls, v):
        if v is not None and v not in SORTABLE_COLUMNS:
            raise ValueError(f"sort_by must be one of {sorted(SORTABLE_COLUMNS)}")
        return v

    @field_validator("order_by")
    def validate_order_by(cls, v):
        v = v.lower()
        if v not in ("asc", "desc"):
            raise ValueError("order_by must be 'asc' or 'desc'")
        return v


class OfferSearchQuery(OfferIndexQuery):
    search_term: Optional[str] = None


class UserOfferViewsQuery(BaseModel):
    order_by: str = "desc"

    @field_validator("order_by")
    def validate_order_by(cls, v):
        v = v.lower()
        if v not in ("asc", "desc"):
            raise ValueError("order_by must be 'asc' or 'desc'")
        return v


SORTABLE_COLUMNS = {
    "created_at",
    "name",
    "lowest_price",
    "availability_quantity",
    "publish_at",
    "expire_at",
}


# Responses


class OfferPriceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    price: float
    price_wp: Optional[float] = None
    from_quantity: Optional[int] = None
    to_quantity: Optional[int] = None


class IncotermResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    value: bool
    price: Optional[int] = None
    shipping_from_country: Optional[str] = None
    pickup_available_in_weeks: Optional[int] = None
    override_warehouse: bool = False


class CountryExclusionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    country_code: str
    delivery_allowed: bool


class ProductSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class WarehouseSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    country_code: Optional[str] = None


class BasicOfferResponse(BaseModel):
    """Offer as shown to buyers, without seller or warehouse details"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    status: OfferStatus
    availability_quantity: int
    min_order_quantity: int
    min_order_unit: OfferUnit
    price_display_unit: OfferPriceDisplayUnit
    lowest_price: Optional[float] = None
    publish_at: Optional[datetime] = None
    expire_at: Optional[datetime] = None
    product: Optional[ProductSummary] = None
    incoterms: List[IncotermResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class OfferResponse(BasicOfferResponse):
    """Full offer, shown to the owner and to users allowed to see sellers"""

    user_id: int
    business_id: Optional[int] = None
    source: OfferSource
    promotion_id: Optional[int] = None
    shipping_available_from: Optional[datetime] = None
    exported_at: Optional[datetime] = None
    warehouse: Optional[WarehouseSummary] = None
    prices: List[OfferPriceResponse] = Field(default_factory=list)
    countries: List[CountryExclusionResponse] = Field(default_factory=list)
    is_favorite: Optional[bool] = None
    updated_at: Optional[datetime] = None


class OfferViewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    offer: BasicOfferResponse
    prices_count: int = 0
    created_at: Optional[datetime] = None


class PaginationMeta(BaseModel):
    current_page: int
    per_page: int
    total: int
    last_page: int


class OfferPage(BaseModel):
    data: List[BasicOfferResponse]
    meta: PaginationMeta


class OfferViewPage(BaseModel):
    data: List[OfferViewResponse]
    meta: PaginationMeta


class BulkResult(BaseModel):
    affected: int


class ExportResponse(BaseModel):
    path: Optional[str] = None
