"""
Result Aggregator

Merges a match run back onto the original, unmodified sales rows and derives
the run summary, the probability histogram and the conversion figures that
the export and preview layers display.

Lead values in export rows come from the original lead row (the caller's
spelling), not from the normalized record.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from lead_matcher.config import settings
from lead_matcher.services.ingestion import MatchContext, original_value
from lead_matcher.services.matching_engine import MatchRunResult, SaleOutcome

logger = structlog.get_logger(__name__)

# Paired column order used by the tabular exporter
EXPORT_COLUMNS = [
    "SaleStockId", "MatchedLeadStockId",
    "SaleBuyer", "MatchedLeadName",
    "SaleEmail", "MatchedLeadEmail",
    "SalePhone", "MatchedLeadPhone",
    "SaleDate", "MatchedLeadDate",
    "SaleStandort", "MatchedLeadLocation",
    "SaleCar", "ViewedCar",
    "LeadMatch", "MatchProbability", "MatchExplanation",
    "MatchedLeadId", "MatchedLeadIndex",
]

# (label, min, max) inclusive, on two-decimal probabilities
PROBABILITY_BUCKETS = [
    ("100%", 1.00, 1.00),
    ("99-90%", 0.90, 0.99),
    ("89-80%", 0.80, 0.89),
    ("79-70%", 0.70, 0.79),
    ("69-60%", 0.60, 0.69),
    ("59-50%", 0.50, 0.59),
    ("49-40%", 0.40, 0.49),
    ("39-30%", 0.30, 0.39),
    ("29-20%", 0.20, 0.29),
    ("< 20%", 0.00, 0.19),
]


@dataclass
class RunSummary:
    matched: int
    unmatched: int
    total_sales: int
    total_leads: int


@dataclass
class ConversionSummary:
    """Share of sales attributable to leads at a display threshold."""
    threshold: float
    sales_from_leads: int
    leads_converted: int
    total_sales: int
    total_leads: int

    @property
    def sales_conversion_rate(self) -> float:
        """Percent of sales that came from a lead."""
        if not self.total_sales:
            return 0.0
        return round(self.sales_from_leads / self.total_sales * 100, 1)

    @property
    def lead_conversion_rate(self) -> float:
        """Percent of leads that turned into a sale."""
        if not self.total_leads:
            return 0.0
        return round(self.leads_converted / self.total_leads * 100, 1)


@dataclass
class MatchReport:
    """Everything the export/preview layers consume for one run."""
    rows: List[Dict[str, Any]]  # Sorted by probability desc
    outcomes: List[SaleOutcome]  # In sale order
    summary: RunSummary
    buckets: List[Dict[str, Any]] = field(default_factory=list)
    conversion: Optional[ConversionSummary] = None


def _lead_cell(lead_row: Optional[Dict[str, Any]], column: str, fallback: str = "") -> str:
    if lead_row is None:
        return ""
    return original_value(lead_row, column) or fallback


def build_export_row(context: MatchContext, outcome: SaleOutcome) -> Dict[str, Any]:
    """
    Original sales row plus the paired sale/lead columns.

    Unmatched sales get empty lead columns, probability "0.00" and an empty
    explanation.
    """
    sale_row = context.sale_rows[outcome.sale_index]
    mapping = context.column_mapping

    lead = context.lead(outcome.lead_index) if outcome.matched else None
    lead_row = context.lead_rows[outcome.lead_index] if outcome.matched else None

    row = dict(sale_row)
    row.update({
        "SaleStockId": original_value(sale_row, mapping.stock_id),
        "MatchedLeadStockId": _lead_cell(lead_row, "stock_id", lead.stock_id if lead else ""),
        "SaleBuyer": original_value(sale_row, mapping.buyer_name),
        "MatchedLeadName": _lead_cell(lead_row, "buyer_name", lead.name if lead else ""),
        "SaleEmail": original_value(sale_row, mapping.buyer_email),
        "MatchedLeadEmail": _lead_cell(lead_row, "buyer_email", lead.email if lead else ""),
        "SalePhone": original_value(sale_row, mapping.buyer_phone),
        "MatchedLeadPhone": _lead_cell(lead_row, "buyer_phone_number"),
        "SaleDate": original_value(sale_row, mapping.sale_date),
        "MatchedLeadDate": _lead_cell(lead_row, "verified_completed_or_created_at"),
        "SaleStandort": original_value(sale_row, mapping.location),
        "MatchedLeadLocation": lead.location if lead else "",
        "SaleCar": original_value(sale_row, mapping.car_type),
        "ViewedCar": lead.viewed_vehicle.label if lead else "",
        "LeadMatch": "true" if outcome.matched else "false",
        "MatchProbability": f"{outcome.probability:.2f}",
        "MatchExplanation": outcome.explanation_text,
        "MatchedLeadId": outcome.lead_id if outcome.matched else "",
        "MatchedLeadIndex": outcome.lead_index if outcome.matched else "",
    })
    return row


def probability_buckets(outcomes: List[SaleOutcome]) -> List[Dict[str, Any]]:
    """Histogram of sale probabilities (unmatched sales count as 0.00)."""
    counts = {label: 0 for label, _, _ in PROBABILITY_BUCKETS}
    for outcome in outcomes:
        for label, low, high in PROBABILITY_BUCKETS:
            if low <= outcome.probability <= high:
                counts[label] += 1
                break
    return [{"label": label, "count": counts[label]} for label, _, _ in PROBABILITY_BUCKETS]


def conversion_summary(
    outcomes: List[SaleOutcome],
    total_leads: int,
    threshold: Optional[float] = None,
) -> ConversionSummary:
    """
    Conversion figures at a display threshold.

    Assignment is one-to-one, so every sale counted as "from a lead" also
    counts one converted lead.
    """
    if threshold is None:
        threshold = settings.conversion_display_threshold

    converted = sum(1 for outcome in outcomes if outcome.matched and outcome.probability >= threshold)
    return ConversionSummary(
        threshold=threshold,
        sales_from_leads=converted,
        leads_converted=converted,
        total_sales=len(outcomes),
        total_leads=total_leads,
    )


def aggregate(
    context: MatchContext,
    result: MatchRunResult,
    conversion_threshold: Optional[float] = None,
) -> MatchReport:
    """
    Build the full report for one match run.

    Args:
        context: The context the run was executed on
        result: Engine output
        conversion_threshold: Display threshold for conversion figures
            (default: settings.conversion_display_threshold)
    """
    rows = [build_export_row(context, outcome) for outcome in result.outcomes]
    # Stable: equal probabilities keep sale order
    rows.sort(key=lambda row: float(row["MatchProbability"]), reverse=True)

    summary = RunSummary(
        matched=result.matched_count,
        unmatched=result.unmatched_count,
        total_sales=len(context.sales),
        total_leads=len(context.leads),
    )
    conversion = conversion_summary(result.outcomes, len(context.leads), conversion_threshold)

    logger.info("match_report_built",
                matched=summary.matched,
                unmatched=summary.unmatched,
                sales_conversion_rate=conversion.sales_conversion_rate,
                conversion_threshold=conversion.threshold)

    return MatchReport(
        rows=rows,
        outcomes=result.outcomes,
        summary=summary,
        buckets=probability_buckets(result.outcomes),
        conversion=conversion,
    )
