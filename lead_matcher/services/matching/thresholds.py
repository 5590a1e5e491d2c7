"""
Scoring weights and the candidate threshold.

Hand-tuned constants, not fitted parameters. The threshold is deliberately a
module constant rather than a setting: it is part of the matching contract.
"""

# Rounded probability below which a pair is never a candidate
MATCH_THRESHOLD = 0.30

# Probabilities are rounded to this many decimals before thresholding/sorting
PROBABILITY_DECIMALS = 2


class ScoringWeights:
    """Points contributed by each scoring rule (100 points == probability 1.0)."""

    STOCK_ID_EXACT = 30
    STOCK_ID_PARTIAL = 25

    EMAIL_EXACT = 50  # Also forces 1.0
    EMAIL_PATTERN_MAX = 20
    EMAIL_PATTERN_PENALTY_PER_DIFF = 2

    VEHICLE_BRAND_AND_MODEL = 30
    VEHICLE_BRAND_OR_MODEL = 20

    LOCATION_EXACT = 10
    LOCATION_PARTIAL = 6

    DATE_PROXIMITY_MAX = 10
    DATE_PROXIMITY_DAYS_PER_POINT = 7  # Decays to 0 by day 70

    FULL_SCORE = 100

    # Stock ids like "55708841_65941" extend "55708841"
    STOCK_ID_SUFFIX_SEPARATORS = ("_", "-")
