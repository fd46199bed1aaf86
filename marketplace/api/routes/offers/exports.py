import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response, StreamingResponse
from sqlalchemy.orm import Session

from marketplace.core.dependencies import CurrentUser, get_offer_export_service
from marketplace.core.permissions import authorize, can_export_import_offers
from marketplace.db.base import get_db_session
from marketplace.db.models.enums import ExportMode
from marketplace.db.models.user import User
from marketplace.schemas.offer import ExportResponse, OfferExportRequest
from marketplace.services.offer_export_service import OfferExportService, XLSX_MEDIA_TYPE

logger = logging.getLogger(__name__)

export_router = APIRouter(
    responses={
        401: {"description": "Missing or invalid API key"},
        403: {"description": "Not allowed"},
        404: {"description": "Not found"},
        500: {"description": "Export failed"},
    },
)


@export_router.post(
    "/offers/export",
    response_model=None,
    summary="Export the selected offers",
    description=(
        "mode=file stores an XLSX file and returns its path, mode=download returns "
        "the XLSX as an attachment and mode=stream returns a short CSV."
    ),
    responses={
        200: {
            "description": "Export result",
            "content": {
                "application/json": {"model": ExportResponse},
                XLSX_MEDIA_TYPE: {},
                "text/csv": {},
            },
        },
    },
)
async def export_offers(
    data: OfferExportRequest,
    user: CurrentUser,
    db: Session = Depends(get_db_session),
    export_service: OfferExportService = Depends(get_offer_export_service),
):
    owner = user
    if data.user_id is not None and data.user_id != user.id:
        authorize(can_export_import_offers(user), "You are not allowed to export offers of other users.")
        owner = db.query(User).filter(User.id == data.user_id).first()
        if not owner:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"User with ID {data.user_id} not found",
            )

    result = export_service.export(owner, data.filter, mode=data.mode)

    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Export failed: {result.error}",
        )

    if data.mode == ExportMode.STREAM:
        return StreamingResponse(
            result.stream,
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="export_offers.csv"'},
        )

    if data.mode == ExportMode.DOWNLOAD:
        return Response(
            content=result.content,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
        )

    return ExportResponse(path=result.path)
