from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from marketplace.core.auth import get_current_user
from marketplace.db.base import get_db_session
from marketplace.db.models.user import User
from marketplace.services.error_reporter import ErrorReporter, get_error_reporter
from marketplace.services.offer_bulk_service import OfferBulkService
from marketplace.services.offer_export_service import OfferExportService
from marketplace.services.offer_service import OfferService
from marketplace.services.offer_view_service import OfferViewService
from marketplace.services.search_index import BaseSearchIndexer, SearchIndexerFactory
from marketplace.storage import BlobStore, get_blob_store


def get_search_indexer() -> BaseSearchIndexer:
    """Search indexer for the configured provider"""
    return SearchIndexerFactory.create()


def get_offer_service(
    db: Session = Depends(get_db_session),
    search_indexer: BaseSearchIndexer = Depends(get_search_indexer),
) -> OfferService:
    return OfferService(db, search_indexer=search_indexer)


def get_offer_bulk_service(
    db: Session = Depends(get_db_session),
    search_indexer: BaseSearchIndexer = Depends(get_search_indexer),
) -> OfferBulkService:
    return OfferBulkService(db, search_indexer=search_indexer)


def get_offer_export_service(
    db: Session = Depends(get_db_session),
    search_indexer: BaseSearchIndexer = Depends(get_search_indexer),
    blob_store: BlobStore = Depends(get_blob_store),
    error_reporter: ErrorReporter = Depends(get_error_reporter),
) -> OfferExportService:
    return OfferExportService(
        db,
        blob_store=blob_store,
        error_reporter=error_reporter,
        bulk_service=OfferBulkService(db, search_indexer=search_indexer),
    )


def get_offer_view_service(db: Session = Depends(get_db_session)) -> OfferViewService:
    return OfferViewService(db)


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
