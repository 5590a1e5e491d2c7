"""
Record Ingestion

Turns raw tabular rows (column name -> text) into immutable LeadRecord and
SaleRecord objects and bundles them into the MatchContext a match run needs.

Field-level problems (bad dates, empty ids) never fail ingestion: the field
is stored as absent. Structural problems (a row that is not a mapping, a
mapping that names columns the sales export does not have) raise
IngestionError and no matching is attempted.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import structlog

from lead_matcher.models.column_mapping import SalesColumnMapping
from lead_matcher.models.records import LeadRecord, SaleRecord
from lead_matcher.services.normalization import (
    DATE_FORMAT_DMY_DOTS,
    DATE_FORMAT_DMY_HYPHEN,
    fold_text,
    normalize_location,
    normalize_phone,
    parse_date,
)
from lead_matcher.services.matching.signals import email_pattern, name_pattern
from lead_matcher.services.matching.vehicle_url import parse_viewed_vehicle

logger = structlog.get_logger(__name__)

# Lead export columns (fixed by the lead platform)
LEAD_ID_COLUMNS = (
    "lead_id", "id", "leadId", "LeadId", "Lead ID", "AutoUncleLeadId", "autouncle_lead_id",
)
LEAD_URL_COLUMNS = ("seller_car_url", "Seller Car Url")
# Dealer name of the listing; preferred over buyer address fields as the lead's location
LEAD_OWNER_COLUMNS = ("owner_name", "Owner Name", "Owner")
LEAD_LOCATION_FALLBACK_COLUMNS = (
    "buyer_city", "buyer_country", "buyer_location", "buyer_zip",
    "buyer_postcode", "buyer_region", "buyer_state",
)
LEAD_NAME_COLUMN = "buyer_name"
LEAD_EMAIL_COLUMN = "buyer_email"
LEAD_PHONE_COLUMN = "buyer_phone_number"
LEAD_BRAND_COLUMN = "buyer_car_brand"
LEAD_MODEL_COLUMN = "buyer_car_car_model"
LEAD_DATE_COLUMN = "verified_completed_or_created_at"
LEAD_VIN_COLUMN = "vin_lpn"
LEAD_STOCK_ID_COLUMN = "stock_id"


class IngestionError(ValueError):
    """A batch is structurally unreadable; the whole run fails."""


def _first_present(row: Mapping[str, Any], columns: Sequence[str]) -> str:
    for column in columns:
        value = row.get(column)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _require_mapping(row: Any, kind: str, index: int) -> Mapping[str, Any]:
    if not isinstance(row, Mapping):
        raise IngestionError(f"{kind} row {index} is not a column mapping: {type(row).__name__}")
    return row


def lead_id_from_row(row: Mapping[str, Any], fallback_index: int) -> str:
    """External lead id, or the ordinal index when the row carries none."""
    return _first_present(row, LEAD_ID_COLUMNS) or str(fallback_index)


def build_lead_record(row: Mapping[str, Any], index: int) -> LeadRecord:
    """Normalize one raw lead row."""
    name = fold_text(row.get(LEAD_NAME_COLUMN))
    email = fold_text(row.get(LEAD_EMAIL_COLUMN))
    local_pattern, domain_pattern = email_pattern(email)

    location = _first_present(row, LEAD_OWNER_COLUMNS) or _first_present(row, LEAD_LOCATION_FALLBACK_COLUMNS)

    return LeadRecord(
        index=index,
        lead_id=lead_id_from_row(row, index),
        name=name,
        email=email,
        phone=normalize_phone(row.get(LEAD_PHONE_COLUMN)),
        brand=fold_text(row.get(LEAD_BRAND_COLUMN)),
        model=fold_text(row.get(LEAD_MODEL_COLUMN)),
        viewed_vehicle=parse_viewed_vehicle(_first_present(row, LEAD_URL_COLUMNS)),
        created_on=parse_date(row.get(LEAD_DATE_COLUMN), DATE_FORMAT_DMY_HYPHEN),
        vin=fold_text(row.get(LEAD_VIN_COLUMN)),
        stock_id=fold_text(row.get(LEAD_STOCK_ID_COLUMN)),
        location=normalize_location(location),
        name_pattern=tuple(name_pattern(name)),
        email_pattern_local=tuple(local_pattern),
        email_pattern_domain=tuple(domain_pattern),
    )


def build_sale_record(row: Mapping[str, Any], index: int, mapping: SalesColumnMapping) -> SaleRecord:
    """Normalize one raw sales row through the caller's column mapping."""
    name = fold_text(mapping.value(row, "buyer_name"))
    email = fold_text(mapping.value(row, "buyer_email"))
    local_pattern, domain_pattern = email_pattern(email)

    return SaleRecord(
        index=index,
        name=name,
        email=email,
        phone=normalize_phone(mapping.value(row, "buyer_phone")),
        vehicle_type=fold_text(mapping.value(row, "car_type")),
        sold_on=parse_date(mapping.value(row, "sale_date"), DATE_FORMAT_DMY_DOTS),
        location=normalize_location(mapping.value(row, "location")),
        stock_id=fold_text(mapping.value(row, "stock_id")),
        name_pattern=tuple(name_pattern(name)),
        email_pattern_local=tuple(local_pattern),
        email_pattern_domain=tuple(domain_pattern),
    )


def ingest_leads(rows: Sequence[Any]) -> List[LeadRecord]:
    """Normalize a lead batch in order; index == position in the batch."""
    return [
        build_lead_record(_require_mapping(row, "lead", index), index)
        for index, row in enumerate(rows)
    ]


def ingest_sales(rows: Sequence[Any], mapping: SalesColumnMapping) -> List[SaleRecord]:
    """
    Normalize a sales batch in order.

    Raises:
        IngestionError: a row is not a mapping, or a mapped column is missing
            from the sales headers (taken from the first row)
    """
    checked = [_require_mapping(row, "sale", index) for index, row in enumerate(rows)]

    if checked:
        missing = mapping.missing_columns(checked[0].keys())
        if missing:
            raise IngestionError(f"Mapped sales columns not found in export: {', '.join(missing)}")

    return [build_sale_record(row, index, mapping) for index, row in enumerate(checked)]


class MatchContext:
    """
    Everything one match run operates on, owned by the caller.

    Keeps the original rows next to the normalized records so the aggregator
    can merge results back onto unmodified source data.
    """

    def __init__(
        self,
        lead_rows: Sequence[Mapping[str, Any]],
        sale_rows: Sequence[Mapping[str, Any]],
        column_mapping: SalesColumnMapping,
        leads: List[LeadRecord],
        sales: List[SaleRecord],
        should_cancel: Optional[Callable[[], bool]] = None,
    ):
        self.lead_rows = lead_rows
        self.sale_rows = sale_rows
        self.column_mapping = column_mapping
        self.leads = leads
        self.sales = sales
        self.should_cancel = should_cancel

    def lead(self, index: int) -> LeadRecord:
        return self.leads[index]

    def sale(self, index: int) -> SaleRecord:
        return self.sales[index]


def build_match_context(
    lead_rows: Sequence[Any],
    sale_rows: Sequence[Any],
    column_mapping: SalesColumnMapping,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> MatchContext:
    """
    Ingest both batches and bundle them for a match run.

    Args:
        lead_rows: Raw lead rows in file order
        sale_rows: Raw sales rows in file order
        column_mapping: Sales column mapping (validated)
        should_cancel: Optional cooperative cancellation callback, polled
            between sale batches

    Raises:
        IngestionError: either batch is structurally unreadable
    """
    leads = ingest_leads(lead_rows)
    sales = ingest_sales(sale_rows, column_mapping)

    logger.info("batches_ingested",
                lead_count=len(leads),
                sale_count=len(sales),
                mapped_fields=sorted(column_mapping.mapped_columns()))

    return MatchContext(
        lead_rows=[dict(row) for row in lead_rows],
        sale_rows=[dict(row) for row in sale_rows],
        column_mapping=column_mapping,
        leads=leads,
        sales=sales,
        should_cancel=should_cancel,
    )


def original_value(row: Dict[str, Any], column: Optional[str]) -> str:
    """Unmodified cell value for exports ('' for unmapped/missing)."""
    if not column:
        return ""
    value = row.get(column)
    return "" if value is None else str(value)
