"""
Pairwise Scorer

Scores one normalized lead against one normalized sale.

Two passes:
1. Primary signals (stock id, email, name, phone, viewed vehicle). Their
   points form the "non-date signal" total.
2. Supporting signals (location, date proximity). Only added when pass 1
   produced points, so a shared Standort or a plausible date alone never
   creates a candidate.

A sale dated before its lead invalidates the pair outright (score 0,
probability 0), even when email/name/phone would force 100%.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from lead_matcher.models.records import LeadRecord, SaleRecord
from lead_matcher.services.normalization import days_between
from lead_matcher.services.matching.explainability import Reasons
from lead_matcher.services.matching.signals import (
    contains_folded,
    email_exact_match,
    is_redacted,
    name_tokens_match,
    pattern_diff,
)
from lead_matcher.services.matching.thresholds import ScoringWeights

logger = structlog.get_logger(__name__)


@dataclass
class ScoreResult:
    """Outcome of scoring one lead/sale pair."""
    score: float  # Raw points, >= 0
    probability: float  # 0.0 to 1.0
    explanation: List[str] = field(default_factory=list)
    forced: bool = False  # A force-100 rule fired
    invalidated: bool = False  # Sale precedes lead

    @classmethod
    def sale_precedes_lead(cls) -> "ScoreResult":
        return cls(
            score=0.0,
            probability=0.0,
            explanation=[Reasons.SALE_PRECEDES_LEAD],
            invalidated=True,
        )


@dataclass
class _SignalTally:
    points: float = 0.0
    forced: bool = False
    explanation: List[str] = field(default_factory=list)

    def add(self, points: float, reason: str) -> None:
        self.points += points
        self.explanation.append(reason)

    def force(self, reason: str) -> None:
        self.forced = True
        self.explanation.append(reason)


class PairwiseScorer:
    """
    Deterministic multi-factor scorer.

    Usage:
        scorer = PairwiseScorer()
        result = scorer.score(lead, sale)
        if result.probability >= MATCH_THRESHOLD:
            ...
    """

    def __init__(self, weights: type = ScoringWeights):
        self.weights = weights

    def score(self, lead: LeadRecord, sale: SaleRecord) -> ScoreResult:
        primary = self._score_primary(lead, sale)

        days_after = self._days_after_lead(lead, sale)
        if days_after is not None and days_after < 0:
            logger.debug("pair_invalidated",
                         lead_index=lead.index,
                         sale_index=sale.index,
                         days_after_lead=days_after)
            return ScoreResult.sale_precedes_lead()

        score = primary.points
        explanation = list(primary.explanation)

        if primary.points > 0:
            location_points, location_reason = self._score_location(lead, sale)
            if location_points > 0:
                score += location_points
                explanation.append(location_reason)

            if days_after is not None:
                date_points = max(
                    self.weights.DATE_PROXIMITY_MAX - days_after / self.weights.DATE_PROXIMITY_DAYS_PER_POINT,
                    0,
                )
                if date_points > 0:
                    score += date_points
                    explanation.append(Reasons.date_proximity(days_after))

        if primary.forced:
            probability = 1.0
            explanation.append(Reasons.FORCED_FULL)
        else:
            probability = min(score / self.weights.FULL_SCORE, 1.0)

        return ScoreResult(
            score=score,
            probability=probability,
            explanation=explanation,
            forced=primary.forced,
        )

    # Pass 1

    def _score_primary(self, lead: LeadRecord, sale: SaleRecord) -> _SignalTally:
        tally = _SignalTally()
        self._score_stock_id(lead, sale, tally)
        self._score_email(lead, sale, tally)

        if (
            lead.name and sale.name
            and not is_redacted(lead.name) and not is_redacted(sale.name)
            and name_tokens_match(lead.name, sale.name)
        ):
            tally.force(Reasons.NAME_EXACT)

        if lead.phone and sale.phone and lead.phone == sale.phone:
            tally.force(Reasons.PHONE_EXACT)

        self._score_vehicle(lead, sale, tally)
        return tally

    def _score_stock_id(self, lead: LeadRecord, sale: SaleRecord, tally: _SignalTally) -> None:
        lead_id, sale_id = lead.stock_id, sale.stock_id
        if not lead_id or not sale_id:
            return

        if lead_id == sale_id:
            tally.add(self.weights.STOCK_ID_EXACT, Reasons.STOCK_ID_EXACT)
        elif self._extends(lead_id, sale_id):
            tally.add(self.weights.STOCK_ID_PARTIAL, Reasons.STOCK_ID_LEAD_EXTENDS_SALE)
        elif self._extends(sale_id, lead_id):
            tally.add(self.weights.STOCK_ID_PARTIAL, Reasons.STOCK_ID_SALE_EXTENDS_LEAD)

    def _extends(self, longer: str, base: str) -> bool:
        return any(
            longer.startswith(base + separator)
            for separator in self.weights.STOCK_ID_SUFFIX_SEPARATORS
        )

    def _score_email(self, lead: LeadRecord, sale: SaleRecord, tally: _SignalTally) -> None:
        if email_exact_match(lead.email, sale.email):
            tally.add(self.weights.EMAIL_EXACT, Reasons.EMAIL_EXACT)
            tally.forced = True
            return

        if not lead.email or not sale.email:
            return
        if not (is_redacted(lead.email) or is_redacted(sale.email)):
            return

        diff = (
            pattern_diff(lead.email_pattern_local, sale.email_pattern_local)
            + pattern_diff(lead.email_pattern_domain, sale.email_pattern_domain)
        )
        points = max(
            self.weights.EMAIL_PATTERN_MAX - self.weights.EMAIL_PATTERN_PENALTY_PER_DIFF * diff,
            0,
        )
        if points > 0:
            tally.add(points, Reasons.email_pattern(points))

    def _score_vehicle(self, lead: LeadRecord, sale: SaleRecord, tally: _SignalTally) -> None:
        viewed = lead.viewed_vehicle
        brand_match = contains_folded(sale.vehicle_type, viewed.brand)
        model_match = contains_folded(sale.vehicle_type, viewed.model)

        if brand_match and model_match:
            tally.add(self.weights.VEHICLE_BRAND_AND_MODEL, Reasons.VEHICLE_BRAND_AND_MODEL)
        elif brand_match or model_match:
            tally.add(self.weights.VEHICLE_BRAND_OR_MODEL, Reasons.VEHICLE_BRAND_OR_MODEL)

    # Pass 2

    def _score_location(self, lead: LeadRecord, sale: SaleRecord) -> tuple[float, str]:
        if not lead.location or not sale.location:
            return 0, ""
        if lead.location == sale.location:
            return self.weights.LOCATION_EXACT, Reasons.LOCATION_EXACT
        if lead.location in sale.location or sale.location in lead.location:
            return self.weights.LOCATION_PARTIAL, Reasons.LOCATION_PARTIAL
        return 0, ""

    @staticmethod
    def _days_after_lead(lead: LeadRecord, sale: SaleRecord) -> Optional[int]:
        if lead.created_on is None or sale.sold_on is None:
            return None
        return days_between(lead.created_on, sale.sold_on)


_default_scorer = PairwiseScorer()


def score_pair(lead: LeadRecord, sale: SaleRecord) -> ScoreResult:
    """Score a pair with the default weights."""
    return _default_scorer.score(lead, sale)
