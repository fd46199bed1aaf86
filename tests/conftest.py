# tests/conftest.py
import pytest
import os
import sys
import hashlib
from pathlib import Path
from typing import Dict, List
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Settings are read at import time; point them at throwaway backends first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEARCH_INDEX_PROVIDER"] = "null"
os.environ["STORAGE_DRIVER"] = "local"
os.environ["LOG_LEVEL"] = "warning"

# Add project root to Python path
project_root = Path(__file__).parent.parent.absolute()
sys.path.insert(0, str(project_root))

from marketplace.db.base import Base
from marketplace.db.models import (
    Business,
    User,
    Product,
    ProductParameter,
    Warehouse,
    Offer,
    OfferPrice,
    Incoterm,
    CountryExclusion,
)
from marketplace.db.models.enums import (
    OfferStatus,
    OfferPriceDisplayUnit,
    OwnerKind,
    UserPermission,
)
from marketplace.services.error_reporter import ErrorReporter
from marketplace.services.offer_bulk_service import OfferBulkService
from marketplace.services.offer_export_service import OfferExportService
from marketplace.services.offer_service import OfferService
from marketplace.services.pricing_service import PricingService
from marketplace.services.search_index import BaseSearchIndexer
from marketplace.storage import BlobStore

TEST_DATABASE_URL = "sqlite://"


class FakeSearchIndexer(BaseSearchIndexer):
    """Keeps indexed documents in memory; set fail to make writes raise"""

    def __init__(self):
        self.documents: Dict[int, dict] = {}
        self.removed: List[int] = []
        self.fail = False

    def upsert(self, documents):
        if self.fail:
            raise RuntimeError("search index unavailable")
        for document in documents:
            self.documents[document.id] = document.to_dict()

    def remove(self, offer_ids):
        if self.fail:
            raise RuntimeError("search index unavailable")
        for offer_id in offer_ids:
            self.documents.pop(offer_id, None)
            self.removed.append(offer_id)


class MemoryBlobStore(BlobStore):
    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.fail = False

    def put(self, path, content, content_type="application/octet-stream"):
        if self.fail:
            raise IOError("storage unavailable")
        self.files[path] = content
        return path

    def get(self, path):
        return self.files[path]

    def exists(self, path):
        return path in self.files


class RecordingErrorReporter(ErrorReporter):
    def __init__(self):
        self.captured = []

    def capture_exception(self, exc, context=None):
        self.captured.append((exc, context))


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh in-memory database with every table."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a test database session."""
    Session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = Session()

    yield session

    session.close()


@pytest.fixture(scope="function")
def search_indexer():
    return FakeSearchIndexer()


@pytest.fixture(scope="function")
def blob_store():
    return MemoryBlobStore()


@pytest.fixture(scope="function")
def error_reporter():
    return RecordingErrorReporter()


@pytest.fixture(scope="function")
def pricing_service():
    return PricingService()


@pytest.fixture(scope="function")
def offer_service(db_session, search_indexer):
    """Create an offer service for testing."""
    return OfferService(db_session, search_indexer=search_indexer)


@pytest.fixture(scope="function")
def bulk_service(db_session, search_indexer):
    return OfferBulkService(db_session, search_indexer=search_indexer)


@pytest.fixture(scope="function")
def export_service(db_session, search_indexer, blob_store, error_reporter):
    return OfferExportService(
        db_session,
        blob_store=blob_store,
        error_reporter=error_reporter,
        bulk_service=OfferBulkService(db_session, search_indexer=search_indexer),
    )


@pytest.fixture(scope="function")
def business(db_session):
    business = Business(name="Sunrise Solar")
    db_session.add(business)
    db_session.commit()
    return business


@pytest.fixture(scope="function")
def make_user(db_session, business):
    """Create users; the token of each is 'token-<email>'"""

    def _make_user(email="seller@example.com", permissions=None, business_id="default"):
        user = User(
            name=email.split("@")[0],
            email=email,
            business_id=business.id if business_id == "default" else business_id,
            api_key_hash=hashlib.sha256(f"token-{email}".encode()).hexdigest(),
            permissions=[
                getattr(p, "value", p)
                for p in (permissions if permissions is not None else [UserPermission.CAN_SELL])
            ],
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture(scope="function")
def seller(make_user):
    return make_user()


@pytest.fixture(scope="function")
def make_product(db_session):
    def _make_product(name="Mono 410 Panel", module_power="410"):
        product = Product(name=name)
        if module_power is not None:
            product.parameters.append(ProductParameter(name="Module Power", value=module_power))
        db_session.add(product)
        db_session.commit()
        return product

    return _make_product


@pytest.fixture(scope="function")
def product(make_product):
    return make_product()


@pytest.fixture(scope="function")
def warehouse(db_session, seller):
    warehouse = Warehouse(
        user_id=seller.id,
        business_id=seller.business_id,
        name="Rotterdam Hub",
        country_code="NL",
    )
    db_session.add(warehouse)
    db_session.commit()
    return warehouse


@pytest.fixture(scope="function")
def make_offer(db_session, seller, product):
    """Insert an offer directly, bypassing the service"""

    def _make_offer(
        name="Mono 410 Panel",
        status=OfferStatus.DRAFT,
        user=None,
        prices=None,
        incoterms=None,
        excluded_countries=None,
        **fields,
    ):
        owner = user or seller
        offer = Offer(
            user_id=owner.id,
            business_id=owner.business_id,
            product_id=fields.pop("product_id", product.id),
            name=name,
            status=status,
            availability_quantity=fields.pop("availability_quantity", 100),
            price_display_unit=fields.pop("price_display_unit", OfferPriceDisplayUnit.ABSOLUTE),
            **fields,
        )
        for tier in prices if prices is not None else [{"price": 120.0}]:
            offer.prices.append(OfferPrice(**tier))
        db_session.add(offer)
        db_session.flush()

        for incoterm in incoterms or []:
            db_session.add(Incoterm(owner_kind=OwnerKind.OFFER, owner_id=offer.id, **incoterm))
        for code in excluded_countries or []:
            db_session.add(
                CountryExclusion(
                    owner_kind=OwnerKind.OFFER,
                    owner_id=offer.id,
                    country_code=code,
                    delivery_allowed=False,
                )
            )
        db_session.commit()
        return offer

    return _make_offer


@pytest.fixture(scope="function")
def offer_data():
    """Sample offer payload."""
    return {
        "name": "Mono 410 Panel - Q3 stock",
        "description": "Tier 1 panels, palletised",
        "availability_quantity": 500,
        "min_order_quantity": 10,
        "min_order_unit": "pieces",
        "price_display_unit": "absolute",
        "prices": [
            {"price": 120.0, "from": None, "to": 99},
            {"price": 110.0, "from": 100, "to": 499},
            {"price": 99.5, "from": 500},
        ],
        "incoterms": [
            {
                "name": "EXW",
                "value": True,
                "price": 12550,
                "shipping_from_country": "nl",
                "pickup_available_in_weeks": 2,
                "override_warehouse": True,
            },
        ],
        "excluded_countries": ["ru", "BY"],
    }
