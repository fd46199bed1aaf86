from typing import List
import logging

from fastapi import APIRouter, Depends

from marketplace.core.dependencies import CurrentUser, get_offer_bulk_service, get_offer_service
from marketplace.core.permissions import authorize, can_sell_limited
from marketplace.schemas.offer import (
    BulkResult,
    OfferBulkDelete,
    OfferBulkStatusUpdate,
    OfferBulkUpdate,
    OfferResponse,
)
from marketplace.services.offer_bulk_service import OfferBulkService
from marketplace.services.offer_service import OfferService
from .common import offer_response

logger = logging.getLogger(__name__)

bulk_router = APIRouter(
    responses={
        401: {"description": "Missing or invalid API key"},
        403: {"description": "Not allowed"},
        500: {"description": "Internal server error"},
    },
)


@bulk_router.put(
    "/offers/bulk",
    response_model=List[OfferResponse],
    summary="Apply one update to several offers",
    description="Offers that fail to update are skipped; the updated ones are returned.",
)
async def update_offers_bulk(
    data: OfferBulkUpdate,
    user: CurrentUser,
    offer_service: OfferService = Depends(get_offer_service),
):
    authorize(can_sell_limited(user), "You are not allowed to sell products.")
    offers = offer_service.update_bulk(user, data.offer_ids, data.offer)
    return [offer_response(offer) for offer in offers]


@bulk_router.patch(
    "/offers/bulk/status",
    response_model=BulkResult,
    summary="Change the status of the selected offers",
)
async def update_offers_bulk_status(
    data: OfferBulkStatusUpdate,
    user: CurrentUser,
    bulk_service: OfferBulkService = Depends(get_offer_bulk_service),
):
    authorize(can_sell_limited(user), "You are not allowed to sell products.")
    affected = bulk_service.update_bulk_status(user, data.filter, data.status)
    return BulkResult(affected=affected)


@bulk_router.post(
    "/offers/bulk/delete",
    response_model=BulkResult,
    summary="Delete the selected offers",
)
async def delete_offers_bulk(
    data: OfferBulkDelete,
    user: CurrentUser,
    bulk_service: OfferBulkService = Depends(get_offer_bulk_service),
):
    authorize(can_sell_limited(user), "You are not allowed to sell products.")
    affected = bulk_service.delete_bulk_offers(user, data.filter, guard_status=data.status)
    return BulkResult(affected=affected)
