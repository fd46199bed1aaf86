# marketplace/services/offer_export_service.py
from typing import List, Optional, Dict, Any, Iterator, Tuple
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from io import BytesIO, StringIO
import csv
import logging
import uuid

from openpyxl import Workbook
from sqlalchemy.orm import Session

from marketplace.core.config import settings
from marketplace.db.models.offer import Offer
from marketplace.db.models.enums import ExportMode, FileCollection, OfferPriceDisplayUnit
from marketplace.db.repositories.offer_repository import OfferRepository
from marketplace.schemas.offer import OfferBulkFilter
from marketplace.services.error_reporter import ErrorReporter, get_error_reporter
from marketplace.services.offer_bulk_service import OfferBulkService
from marketplace.storage import BlobStore, get_blob_store
from marketplace.utils.helpers import utcnow

logger = logging.getLogger(__name__)

EXPORT_INCOTERMS = ("CIF", "EXW", "FCA")
DISABLED = "DISABLED"
EXPORT_FILENAME = "export_offers.xlsx"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

FIXED_COLUMNS = [
    "id",
    "product_id",
    "product_name",
    "name",
    "description",
    "status",
    "warehouse_id",
    "availability_quantity",
    "min_order_unit",
    "price_display_unit",
    "publish_at",
    "expire_at",
    "CIF",
    "EXW",
    "FCA",
    "shipping_from_country",
    "pickup_available_in_weeks",
    "excluded_countries",
]
STREAM_COLUMNS = ["id", "name", "price", "incoterm", "countries"]


@dataclass
class ExportRow:
    """One offer flattened for export"""

    values: Dict[str, Any]
    price: Optional[float]
    min_order_quantity: int
    tiers: List[Tuple[Optional[int], float]] = field(default_factory=list)
    incoterm: Optional[str] = None


@dataclass
class ExportResult:
    """Outcome of an export; error is set when ok is False"""

    ok: bool
    mode: Optional[ExportMode] = None
    path: Optional[str] = None
    filename: Optional[str] = None
    content: Optional[bytes] = None
    stream: Optional[Iterator[str]] = None
    rows_count: int = 0
    error: Optional[str] = None


def tier_amount(tier, display_unit: OfferPriceDisplayUnit) -> Optional[float]:
    if display_unit == OfferPriceDisplayUnit.WP:
        return tier.price_wp
    return tier.price


def incoterm_cell(incoterm) -> Any:
    """Price in major units for an enabled override, DISABLED when switched off"""
    if incoterm is None:
        return ""
    if not incoterm.value:
        return DISABLED
    if incoterm.override_warehouse:
        return (incoterm.price or 0) / 100
    return ""


def is_resolved(incoterm) -> bool:
    return incoterm is not None and bool(incoterm.value) and bool(incoterm.override_warehouse)


def format_datetime(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else ""


class OfferExportService:
    """Flattens a bulk selection of offers into spreadsheet or CSV rows"""

    def __init__(
        self,
        db_session: Session,
        blob_store: Optional[BlobStore] = None,
        error_reporter: Optional[ErrorReporter] = None,
        bulk_service: Optional[OfferBulkService] = None,
    ):
        self.db_session = db_session
        self.offer_repo = OfferRepository(db_session)
        self.blob_store = blob_store or get_blob_store()
        self.error_reporter = error_reporter or get_error_reporter()
        self.bulk_service = bulk_service or OfferBulkService(db_session)

    def select_offers(self, user, bulk_filter: OfferBulkFilter, now: datetime) -> List[Offer]:
        """Newest matching offers created within the export age window"""
        oldest = now - timedelta(days=settings.EXPORT_MAX_AGE_DAYS)
        query = self.bulk_service.apply_bulk_filters(user, bulk_filter).filter(
            Offer.created_at >= oldest
        )
        return (
            self.offer_repo.with_relations(query)
            .order_by(Offer.created_at.desc(), Offer.id.desc())
            .limit(settings.EXPORT_MAX_ROWS)
            .all()
        )

    def flatten(self, offer: Offer) -> ExportRow:
        base_tiers = [tier for tier in offer.prices if tier.from_quantity is None]
        ranged_tiers = sorted(
            (tier for tier in offer.prices if tier.from_quantity is not None),
            key=lambda tier: tier.from_quantity,
        )
        display_unit = offer.price_display_unit

        incoterms = {incoterm.name.upper(): incoterm for incoterm in offer.incoterms}
        resolved = next(
            (incoterms[name] for name in EXPORT_INCOTERMS if is_resolved(incoterms.get(name))),
            None,
        )

        excluded = [
            country.country_code for country in offer.countries if not country.delivery_allowed
        ]

        values = {
            "id": offer.id,
            "product_id": offer.product_id,
            "product_name": offer.product.name if offer.product else "",
            "name": offer.name,
            "description": offer.description or "",
            "status": offer.status.value,
            "warehouse_id": offer.warehouse_id or "",
            "availability_quantity": offer.availability_quantity,
            "min_order_unit": offer.min_order_unit.value,
            "price_display_unit": display_unit.value,
            "publish_at": format_datetime(offer.publish_at),
            "expire_at": format_datetime(offer.expire_at),
            "shipping_from_country": (resolved.shipping_from_country or "") if resolved else "",
            "pickup_available_in_weeks": (
                resolved.pickup_available_in_weeks
                if resolved and resolved.pickup_available_in_weeks is not None
                else ""
            ),
            "excluded_countries": ",".join(excluded),
        }
        for name in EXPORT_INCOTERMS:
            values[name] = incoterm_cell(incoterms.get(name))

        return ExportRow(
            values=values,
            price=tier_amount(base_tiers[0], display_unit) if base_tiers else None,
            min_order_quantity=offer.min_order_quantity,
            tiers=[(tier.from_quantity, tier_amount(tier, display_unit)) for tier in ranged_tiers],
            incoterm=resolved.name if resolved else None,
        )

    def header(self, max_tiers: int) -> List[str]:
        columns = FIXED_COLUMNS + ["price", "min_order_quantity"]
        for n in range(1, max_tiers + 3):
            columns.extend([f"price_range_min_qty_{n}", f"price_range_amount_{n}"])
        return columns

    def to_matrix(self, rows: List[ExportRow]) -> List[List[Any]]:
        """Header followed by one padded line per row"""
        max_tiers = max((len(row.tiers) for row in rows), default=0)
        header = self.header(max_tiers)
        width = len(header)

        matrix = [header]
        for row in rows:
            line = [row.values[column] for column in FIXED_COLUMNS]
            line.extend(["" if row.price is None else row.price, row.min_order_quantity])
            for quantity, amount in row.tiers:
                line.extend([quantity, "" if amount is None else amount])
            line.extend([""] * (width - len(line)))
            matrix.append(line)
        return matrix

    def build_rows(self, user, bulk_filter: OfferBulkFilter, now: Optional[datetime] = None) -> List[List[Any]]:
        """In-memory export matrix; nothing is stamped or stored"""
        now = now or utcnow()
        offers = self.select_offers(user, bulk_filter, now)
        return self.to_matrix([self.flatten(offer) for offer in offers])

    def to_xlsx(self, matrix: List[List[Any]]) -> bytes:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "Offers"
        for line in matrix:
            sheet.append(line)

        output = BytesIO()
        workbook.save(output)
        return output.getvalue()

    def to_csv_lines(self, rows: List[ExportRow]) -> List[str]:
        lines = []
        for line in [STREAM_COLUMNS] + [
            [
                row.values["id"],
                row.values["name"],
                "" if row.price is None else row.price,
                row.incoterm or "",
                row.values["excluded_countries"],
            ]
            for row in rows
        ]:
            buffer = StringIO()
            csv.writer(buffer).writerow(line)
            lines.append(buffer.getvalue())
        return lines

    def export_path(self) -> str:
        return f"export/{FileCollection.OFFERS.value}/{uuid.uuid4().hex}/{EXPORT_FILENAME}"

    def export(
        self,
        user,
        bulk_filter: OfferBulkFilter,
        mode: ExportMode = ExportMode.FILE,
        now: Optional[datetime] = None,
    ) -> ExportResult:
        """
        Export the selected offers and stamp their exported_at.

        Failures are reported to the error reporter and returned as a
        result with ok=False; nothing is raised.
        """
        now = now or utcnow()

        try:
            offers = self.select_offers(user, bulk_filter, now)
            rows = [self.flatten(offer) for offer in offers]

            result = ExportResult(ok=True, mode=mode, rows_count=len(rows))
            if mode == ExportMode.STREAM:
                result.stream = iter(self.to_csv_lines(rows))
            else:
                content = self.to_xlsx(self.to_matrix(rows))
                if mode == ExportMode.FILE:
                    result.path = self.blob_store.put(self.export_path(), content, XLSX_MEDIA_TYPE)
                else:
                    result.content = content
                    result.filename = EXPORT_FILENAME

            for offer in offers:
                offer.exported_at = now
            self.db_session.commit()
        except Exception as e:
            self.db_session.rollback()
            self.error_reporter.capture_exception(
                e, {"user_id": user.id, "mode": str(mode), "filter": bulk_filter.model_dump()}
            )
            return ExportResult(ok=False, mode=mode, error=str(e))

        logger.info(f"Exported {result.rows_count} offers for user {user.id} ({mode.value})")
        return result
