from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from marketplace.core.config import settings
from marketplace.core.dependencies import CurrentUser, get_offer_service
from marketplace.core.permissions import authorize, can_check_user_history
from marketplace.db.base import get_db_session
from marketplace.db.models.user import User
from marketplace.schemas.offer import (
    BasicOfferResponse,
    OfferViewPage,
    OfferViewResponse,
    UserOfferViewsQuery,
)
from marketplace.services.offer_service import OfferService
from .common import pagination_meta, views_query
from .offers import Page, PerPage

views_router = APIRouter(
    responses={
        401: {"description": "Missing or invalid API key"},
        403: {"description": "Not allowed"},
        404: {"description": "Not found"},
    },
)


@views_router.get(
    "/users/{user_id}/offer-views",
    response_model=OfferViewPage,
    summary="Offers a user has viewed",
)
async def get_user_offer_views(
    user_id: int,
    user: CurrentUser,
    query: UserOfferViewsQuery = Depends(views_query),
    page: Page = 1,
    per_page: PerPage = settings.DEFAULT_PER_PAGE,
    db: Session = Depends(get_db_session),
    offer_service: OfferService = Depends(get_offer_service),
):
    target = db.query(User).filter(User.id == user_id).first()
    if not target:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID {user_id} not found",
        )
    authorize(can_check_user_history(user, target))

    views, total = offer_service.get_user_viewed_offers(target, query, page=page, per_page=per_page)
    return OfferViewPage(
        data=[
            OfferViewResponse(
                id=view.id,
                offer=BasicOfferResponse.model_validate(view.offer),
                prices_count=prices_count,
                created_at=view.created_at,
            )
            for view, prices_count in views
        ],
        meta=pagination_meta(page, per_page, total),
    )
