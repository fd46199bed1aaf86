"""Lookups and response builders shared by the offer routers"""
from math import ceil
from typing import Optional, Union

from fastapi import HTTPException, Query, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from marketplace.core.permissions import can_see_owner, can_update_offer
from marketplace.db.models.offer import Offer
from marketplace.schemas.offer import (
    BasicOfferResponse,
    CountryExclusionResponse,
    IncotermResponse,
    OfferIndexQuery,
    OfferResponse,
    OfferSearchQuery,
    UserOfferViewsQuery,
    PaginationMeta,
)
from marketplace.services.offer_service import OfferDetails, OfferService


def get_offer_or_404(offer_service: OfferService, offer_id: int) -> Offer:
    offer = offer_service.get_offer(offer_id)
    if not offer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Offer with ID {offer_id} not found",
        )
    return offer


def pagination_meta(page: int, per_page: int, total: int) -> PaginationMeta:
    return PaginationMeta(
        current_page=page,
        per_page=per_page,
        total=total,
        last_page=max(1, ceil(total / per_page)),
    )


def offer_response(
    offer: Offer, details: Optional[OfferDetails] = None, user=None
) -> Union[OfferResponse, BasicOfferResponse]:
    """
    Full offer for its owners and users allowed to see sellers, the basic
    view for everyone else. Details replace the offer's own incoterms and
    countries with the merged ones.
    """
    full = user is None or can_update_offer(user, offer) or can_see_owner(user)
    response = (OfferResponse if full else BasicOfferResponse).model_validate(offer)

    if details is not None:
        response.incoterms = [IncotermResponse.model_validate(i) for i in details.incoterms]
        if full:
            response.countries = [
                CountryExclusionResponse.model_validate(c) for c in details.countries
            ]
            response.is_favorite = details.is_favorite

    return response


def _validated(model_cls, **values):
    try:
        return model_cls(**values)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False))


def index_query(
    name: Optional[str] = Query(None, description="Offer id or part of the product name"),
    sort_by: Optional[str] = Query(None, description="Column to sort by"),
    order_by: str = Query("desc", description="asc or desc"),
) -> OfferIndexQuery:
    return _validated(OfferIndexQuery, name=name, sort_by=sort_by, order_by=order_by)


def search_query(
    q: Optional[str] = Query(None, max_length=255, description="Search term"),
    sort_by: Optional[str] = Query(None, description="Column to sort by"),
    order_by: str = Query("desc", description="asc or desc"),
) -> OfferSearchQuery:
    return _validated(OfferSearchQuery, search_term=q, sort_by=sort_by, order_by=order_by)


def views_query(order_by: str = Query("desc", description="asc or desc")) -> UserOfferViewsQuery:
    return _validated(UserOfferViewsQuery, order_by=order_by)
