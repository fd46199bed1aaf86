from typing import Annotated, Dict, Optional, Union
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from marketplace.core.config import settings
from marketplace.core.dependencies import CurrentUser, get_offer_service, get_offer_view_service
from marketplace.core.exceptions import OfferServiceError
from marketplace.core.permissions import (
    authorize,
    can_sell_limited,
    can_update_offer,
    is_offer_admin,
)
from marketplace.db.models.enums import OfferStatus
from marketplace.schemas.offer import (
    BasicOfferResponse,
    OfferIndexQuery,
    OfferPage,
    OfferResponse,
    OfferSearchQuery,
    OfferStatusUpdate,
    OfferStore,
)
from marketplace.services.offer_service import OfferService
from marketplace.services.offer_view_service import OfferViewService
from .common import (
    get_offer_or_404,
    index_query,
    offer_response,
    pagination_meta,
    search_query,
)

logger = logging.getLogger(__name__)

offers_router = APIRouter(
    responses={
        401: {"description": "Missing or invalid API key"},
        403: {"description": "Not allowed"},
        404: {"description": "Not found"},
        500: {"description": "Internal server error"},
    },
)

Page = Annotated[int, Query(ge=1, description="Page number")]
PerPage = Annotated[
    int, Query(ge=1, le=settings.MAX_PER_PAGE, description="Items per page")
]


@offers_router.get(
    "/offers",
    response_model=OfferPage,
    summary="List active offers",
    description="Active offers of the caller's business, or of everyone for offer admins.",
)
async def list_offers(
    user: CurrentUser,
    query: OfferIndexQuery = Depends(index_query),
    page: Page = 1,
    per_page: PerPage = settings.DEFAULT_PER_PAGE,
    offer_service: OfferService = Depends(get_offer_service),
):
    offers, total = offer_service.get(query, user=user, page=page, per_page=per_page)
    return OfferPage(
        data=[BasicOfferResponse.model_validate(offer) for offer in offers],
        meta=pagination_meta(page, per_page, total),
    )


@offers_router.get(
    "/offers/search",
    response_model=OfferPage,
    summary="Search active offers",
    description="Match the search term against offer names and product names.",
)
async def search_offers(
    user: CurrentUser,
    query: OfferSearchQuery = Depends(search_query),
    page: Page = 1,
    per_page: PerPage = settings.DEFAULT_PER_PAGE,
    offer_service: OfferService = Depends(get_offer_service),
):
    offers, total = offer_service.search(query, page=page, per_page=per_page)
    return OfferPage(
        data=[BasicOfferResponse.model_validate(offer) for offer in offers],
        meta=pagination_meta(page, per_page, total),
    )


@offers_router.get(
    "/offers/count",
    response_model=Dict[str, int],
    summary="Count offers per status",
)
async def count_offers(
    user: CurrentUser,
    admin: bool = Query(False, description="Count across all businesses (offer admins only)"),
    user_id: Optional[int] = Query(None, description="Only count offers of this seller"),
    offer_service: OfferService = Depends(get_offer_service),
):
    return offer_service.count_offers(user, admin=admin, user_id=user_id)


@offers_router.get(
    "/offers/counters",
    response_model=Dict[str, int],
    summary="Marketplace-wide offer counters",
    description="Offers per status; inactive only counts offers still in stock.",
)
async def get_counters(
    user: CurrentUser,
    offer_service: OfferService = Depends(get_offer_service),
):
    authorize(is_offer_admin(user))
    return offer_service.get_counters()


@offers_router.get(
    "/offers/{offer_id}",
    response_model=Union[OfferResponse, BasicOfferResponse],
    summary="Offer details",
    description="Offer with warehouse incoterms and countries merged in. Records a view.",
)
async def get_offer(
    offer_id: int,
    request: Request,
    user: CurrentUser,
    offer_service: OfferService = Depends(get_offer_service),
    view_service: OfferViewService = Depends(get_offer_view_service),
):
    offer = get_offer_or_404(offer_service, offer_id)
    details = offer_service.details(offer, user=user)
    view_service.view(user, offer, ip_address=request.client.host if request.client else None)
    return offer_response(offer, details, user=user)


@offers_router.post(
    "/products/{product_id}/offers",
    response_model=OfferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an offer for a product",
)
async def create_offer(
    product_id: int,
    data: OfferStore,
    user: CurrentUser,
    offer_service: OfferService = Depends(get_offer_service),
):
    authorize(can_sell_limited(user), "You are not allowed to sell products.")

    product = offer_service.get_product(product_id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID {product_id} not found",
        )

    try:
        offer = offer_service.store(user, product, data)
    except (HTTPException, OfferServiceError):
        raise
    except Exception as e:
        logger.error(f"Error creating offer for product {product_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not create the offer",
        )

    return offer_response(offer, offer_service.details(offer, user=user))


@offers_router.put(
    "/offers/{offer_id}",
    response_model=OfferResponse,
    summary="Update an offer",
)
async def update_offer(
    offer_id: int,
    data: OfferStore,
    user: CurrentUser,
    offer_service: OfferService = Depends(get_offer_service),
):
    offer = get_offer_or_404(offer_service, offer_id)
    authorize(can_update_offer(user, offer))
    # Live offers can only be rewritten by users who may still sell
    if offer.status == OfferStatus.ACTIVE:
        authorize(can_sell_limited(user), "You are not allowed to sell products.")

    try:
        offer = offer_service.update(offer, data, user=user)
    except (HTTPException, OfferServiceError):
        raise
    except Exception as e:
        logger.error(f"Error updating offer {offer_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not update the offer",
        )

    return offer_response(offer, offer_service.details(offer, user=user))


@offers_router.patch(
    "/offers/{offer_id}/status",
    response_model=OfferResponse,
    summary="Change the status of an offer",
)
async def update_offer_status(
    offer_id: int,
    data: OfferStatusUpdate,
    user: CurrentUser,
    offer_service: OfferService = Depends(get_offer_service),
):
    offer = get_offer_or_404(offer_service, offer_id)
    authorize(can_update_offer(user, offer))

    offer = offer_service.update_status(offer, data.status)
    return offer_response(offer)


@offers_router.post(
    "/offers/{offer_id}/duplicate",
    response_model=OfferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate an offer as a new draft",
)
async def duplicate_offer(
    offer_id: int,
    user: CurrentUser,
    offer_service: OfferService = Depends(get_offer_service),
):
    offer = get_offer_or_404(offer_service, offer_id)
    authorize(can_update_offer(user, offer))

    new_offer = offer_service.duplicate(offer)
    return offer_response(new_offer, offer_service.details(new_offer, user=user))


@offers_router.delete(
    "/offers/{offer_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an offer",
)
async def delete_offer(
    offer_id: int,
    user: CurrentUser,
    offer_service: OfferService = Depends(get_offer_service),
):
    offer = get_offer_or_404(offer_service, offer_id)
    authorize(can_update_offer(user, offer))

    offer_service.delete(offer)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
