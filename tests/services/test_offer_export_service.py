# tests/services/test_offer_export_service.py
from datetime import datetime, timedelta
from io import BytesIO

from openpyxl import load_workbook

from marketplace.db.models import Offer
from marketplace.db.models.enums import ExportMode, OfferPriceDisplayUnit
from marketplace.schemas.offer import OfferBulkFilter
from marketplace.services.offer_export_service import DISABLED, EXPORT_FILENAME, FIXED_COLUMNS

NOW = datetime(2026, 5, 1, 12, 0, 0)


def test_export_age_boundary(export_service, seller, make_offer):
    one_year = timedelta(days=365)
    too_old = make_offer(name="Too old", created_at=NOW - one_year - timedelta(seconds=1))
    just_in = make_offer(name="Just in", created_at=NOW - one_year + timedelta(seconds=1))

    offers = export_service.select_offers(seller, OfferBulkFilter(), NOW)

    ids = [offer.id for offer in offers]
    assert just_in.id in ids
    assert too_old.id not in ids


def test_export_orders_newest_first(export_service, seller, make_offer):
    older = make_offer(name="Older", created_at=NOW - timedelta(days=3))
    newer = make_offer(name="Newer", created_at=NOW - timedelta(days=1))

    offers = export_service.select_offers(seller, OfferBulkFilter(), NOW)

    assert [offer.id for offer in offers] == [newer.id, older.id]


def test_header_grows_two_columns_per_tier(export_service):
    base = len(FIXED_COLUMNS) + 2

    assert len(export_service.header(0)) == base + 4
    assert len(export_service.header(1)) == base + 6
    assert len(export_service.header(3)) == base + 10
    assert export_service.header(1)[-2:] == ["price_range_min_qty_3", "price_range_amount_3"]


def test_build_rows(export_service, seller, make_offer):
    make_offer(
        name="Panels",
        created_at=NOW - timedelta(days=1),
        min_order_quantity=5,
        prices=[
            {"price": 120.0},
            {"price": 100.0, "from_quantity": 500},
            {"price": 110.0, "from_quantity": 100},
        ],
        incoterms=[
            {"name": "CIF", "value": False},
            {
                "name": "EXW",
                "value": True,
                "price": 12550,
                "override_warehouse": True,
                "shipping_from_country": "NL",
                "pickup_available_in_weeks": 3,
            },
            {"name": "FCA", "value": True, "price": 900, "override_warehouse": False},
        ],
        excluded_countries=["FR", "ES"],
    )
    make_offer(name="Plain", created_at=NOW - timedelta(days=2))

    matrix = export_service.build_rows(seller, OfferBulkFilter(), now=NOW)

    header = matrix[0]
    assert len(header) == len(FIXED_COLUMNS) + 2 + 2 * 4
    assert len(matrix) == 3
    assert all(len(line) == len(header) for line in matrix)

    row = dict(zip(header, matrix[1]))
    assert row["name"] == "Panels"
    assert row["CIF"] == DISABLED
    assert row["EXW"] == 125.5
    assert row["FCA"] == ""
    assert row["shipping_from_country"] == "NL"
    assert row["pickup_available_in_weeks"] == 3
    assert row["excluded_countries"] == "FR,ES"
    assert row["price"] == 120.0
    assert row["min_order_quantity"] == 5
    assert row["price_range_min_qty_1"] == 100
    assert row["price_range_amount_1"] == 110.0
    assert row["price_range_min_qty_2"] == 500
    assert row["price_range_amount_2"] == 100.0
    assert row["price_range_min_qty_3"] == ""

    # The narrower row is padded
    plain = dict(zip(header, matrix[2]))
    assert plain["CIF"] == ""
    assert plain["price_range_min_qty_1"] == ""


def test_build_rows_uses_wp_prices(export_service, seller, make_offer):
    make_offer(
        created_at=NOW - timedelta(days=1),
        price_display_unit=OfferPriceDisplayUnit.WP,
        prices=[{"price": 82.0, "price_wp": 0.2}, {"price": 61.5, "price_wp": 0.15, "from_quantity": 1000}],
    )

    header, line = export_service.build_rows(seller, OfferBulkFilter(), now=NOW)
    row = dict(zip(header, line))

    assert row["price"] == 0.2
    assert row["price_range_amount_1"] == 0.15


def test_build_rows_does_not_stamp(export_service, seller, make_offer):
    offer = make_offer(created_at=NOW - timedelta(days=1))

    export_service.build_rows(seller, OfferBulkFilter(), now=NOW)

    assert offer.exported_at is None


def test_export_file(export_service, seller, make_offer, blob_store, db_session):
    offer = make_offer(name="Panels", created_at=NOW - timedelta(days=1))

    result = export_service.export(seller, OfferBulkFilter(), ExportMode.FILE, now=NOW)

    assert result.ok is True
    assert result.rows_count == 1
    assert result.path.startswith("export/offers/")
    assert result.path.endswith(EXPORT_FILENAME)

    # The stored workbook holds the header and the offer
    sheet = load_workbook(BytesIO(blob_store.files[result.path])).active
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0][0] == "id"
    assert rows[1][0] == offer.id
    assert rows[1][3] == "Panels"

    db_session.refresh(offer)
    assert offer.exported_at.replace(tzinfo=None) == NOW


def test_export_download(export_service, seller, make_offer):
    make_offer(created_at=NOW - timedelta(days=1))

    result = export_service.export(seller, OfferBulkFilter(), ExportMode.DOWNLOAD, now=NOW)

    assert result.ok is True
    assert result.filename == EXPORT_FILENAME
    assert result.content.startswith(b"PK")
    assert result.path is None


def test_export_stream(export_service, seller, make_offer):
    make_offer(
        name="Panels",
        created_at=NOW - timedelta(days=1),
        incoterms=[{"name": "FCA", "value": True, "price": 100, "override_warehouse": True}],
        excluded_countries=["FR", "ES"],
    )

    result = export_service.export(seller, OfferBulkFilter(), ExportMode.STREAM, now=NOW)

    lines = list(result.stream)
    assert lines[0].strip() == "id,name,price,incoterm,countries"
    assert lines[1].strip().endswith(',Panels,120.0,FCA,"FR,ES"')


def test_export_failure_is_reported(export_service, seller, make_offer, blob_store, error_reporter, db_session):
    offer = make_offer(created_at=NOW - timedelta(days=1))
    blob_store.fail = True

    result = export_service.export(seller, OfferBulkFilter(), ExportMode.FILE, now=NOW)

    assert result.ok is False
    assert result.error == "storage unavailable"
    assert result.path is None
    assert len(error_reporter.captured) == 1
    assert error_reporter.captured[0][1]["user_id"] == seller.id

    assert db_session.get(Offer, offer.id).exported_at is None
