"""
Matching Service Package

Provides redaction-aware signals, the viewed-vehicle URL parser, scoring
weights, the pairwise scorer and explainability builders for linking sales
to leads.
"""

from lead_matcher.services.matching.signals import (
    is_redacted,
    name_pattern,
    email_pattern,
    pattern_diff,
)
from lead_matcher.services.matching.vehicle_url import ViewedVehicle, parse_viewed_vehicle
from lead_matcher.services.matching.thresholds import MATCH_THRESHOLD, ScoringWeights
from lead_matcher.services.matching.explainability import ExplainabilityBuilder, Reasons
from lead_matcher.services.matching.scorer import PairwiseScorer, ScoreResult, score_pair

__all__ = [
    # Signals
    "is_redacted",
    "name_pattern",
    "email_pattern",
    "pattern_diff",
    # Viewed vehicle
    "ViewedVehicle",
    "parse_viewed_vehicle",
    # Thresholds
    "MATCH_THRESHOLD",
    "ScoringWeights",
    # Explainability
    "ExplainabilityBuilder",
    "Reasons",
    # Scoring
    "PairwiseScorer",
    "ScoreResult",
    "score_pair",
]
