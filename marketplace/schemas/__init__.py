# marketplace/schemas/__init__.py
from marketplace.schemas.offer import (
    PriceTierIn,
    IncotermIn,
    OfferStore,
    OfferStatusUpdate,
    OfferBulkFilter,
    OfferBulkStatusUpdate,
    OfferBulkDelete,
    OfferBulkUpdate,
    OfferExportRequest,
    OfferIndexQuery,
    OfferSearchQuery,
    UserOfferViewsQuery,
    BasicOfferResponse,
    OfferResponse,
    OfferViewResponse,
    OfferPage,
    OfferViewPage,
    BulkResult,
    ExportResponse,
)
