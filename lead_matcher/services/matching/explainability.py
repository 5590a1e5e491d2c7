"""
Explainability Builder

Human-readable reasons for each scoring rule and the payload attached to a
sale's outcome in reports.

The explanation trail is informational only: it never feeds back into scoring
or ranking.
"""

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from lead_matcher.models.records import LeadRecord, SaleRecord
    from lead_matcher.services.matching_engine import MatchCandidate


class Reasons:
    """Explanation entries, in scoring-rule order."""

    STOCK_ID_EXACT = "Stock ID exact match"
    STOCK_ID_LEAD_EXTENDS_SALE = "Stock ID partial match (lead extends sale ID)"
    STOCK_ID_SALE_EXTENDS_LEAD = "Stock ID partial match (sale extends lead ID)"
    EMAIL_EXACT = "Exact email"
    NAME_EXACT = "Exact name"
    PHONE_EXACT = "Exact phone"
    VEHICLE_BRAND_AND_MODEL = "Viewed brand and model match"
    VEHICLE_BRAND_OR_MODEL = "Viewed brand/model match"
    LOCATION_EXACT = "Location match (Standort)"
    LOCATION_PARTIAL = "Location partial match (Standort)"
    SALE_PRECEDES_LEAD = "Sale date precedes lead date"
    FORCED_FULL = "Forcing 100% due to exact identifier"

    @staticmethod
    def email_pattern(points: float) -> str:
        return f"Email pattern (score {points:.0f})"

    @staticmethod
    def date_proximity(days: int) -> str:
        return f"Sale {days} days after lead"


class ExplainabilityBuilder:
    """
    Build outcome payloads for reports.

    Produces plain dicts suitable for JSON responses and export rows.
    """

    VERSION = "v1.0"  # Track explainability schema version
    SEPARATOR = "; "

    @staticmethod
    def join(explanation: List[str]) -> str:
        """Flatten an explanation trail into a single export cell."""
        return ExplainabilityBuilder.SEPARATOR.join(explanation)

    @staticmethod
    def build(
        sale: "SaleRecord",
        candidate: Optional["MatchCandidate"],
        lead: Optional["LeadRecord"] = None,
    ) -> dict:
        """
        Build the explainability payload for one sale.

        Args:
            sale: Normalized sale record
            candidate: Committed candidate, or None when the sale is unmatched
            lead: Lead record the candidate points at

        Returns:
            Dict with version, match status, probability, raw score and reasons

        Example:
            >>> payload = ExplainabilityBuilder.build(sale, None)
            >>> payload["match_status"]
            'unmatched'
        """
        if candidate is None:
            return {
                "version": ExplainabilityBuilder.VERSION,
                "match_status": "unmatched",
                "sale_index": sale.index,
                "probability": 0.0,
                "score": 0.0,
                "reasons": [],
                "lead": None,
            }

        return {
            "version": ExplainabilityBuilder.VERSION,
            "match_status": "matched",
            "sale_index": sale.index,
            "probability": candidate.probability,
            "score": round(candidate.score, 4),
            "forced": candidate.forced,
            "reasons": list(candidate.explanation),
            "lead": {
                "index": candidate.lead_index,
                "lead_id": lead.lead_id if lead else None,
                "viewed_vehicle": lead.viewed_vehicle.label if lead else None,
                "location": lead.location if lead else None,
            },
        }
