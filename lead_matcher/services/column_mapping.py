"""
Sales Column Mapping Suggestions

Proposes which sales-export header holds each canonical field, so a caller
can pre-fill its mapping form. The caller still confirms the mapping; nothing
here is persisted.

Design decisions:
- RapidFuzz normalized Levenshtein similarity for header/alias comparison
- Folded equality wins outright (1.0), containment scores 0.8
- Phone headers are notoriously inconsistent ("Handynummer", "Tel. privat"),
  so any header containing a phone keyword scores 0.9 for the phone field
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from rapidfuzz.distance import Levenshtein
import structlog

from lead_matcher.models.column_mapping import SALES_FIELDS
from lead_matcher.services.normalization import fold_text

logger = structlog.get_logger(__name__)

PHONE_KEYWORDS = ("phone", "tel", "telefon", "mobile", "handy", "nummer", "number")
PHONE_KEYWORD_SCORE = 0.9
CONTAINMENT_SCORE = 0.8

HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.5


@dataclass
class ColumnSuggestion:
    """Best header for one canonical field."""
    field: str
    column: Optional[str]
    confidence: float

    @property
    def level(self) -> str:
        """Categorize suggestion confidence for display."""
        if self.confidence >= HIGH_CONFIDENCE:
            return "high"
        elif self.confidence >= MEDIUM_CONFIDENCE:
            return "medium"
        else:
            return "low"


def header_similarity(a: str, b: str) -> float:
    """
    Similarity between a header and an alias/label.

    Example:
        >>> header_similarity("Käufer", "käufer")
        1.0
        >>> header_similarity("E-Mail Adresse", "e-mail")
        0.8
    """
    folded_a = fold_text(a)
    folded_b = fold_text(b)

    if not folded_a or not folded_b:
        return 0.0
    if folded_a == folded_b:
        return 1.0
    if folded_a in folded_b or folded_b in folded_a:
        return CONTAINMENT_SCORE

    return Levenshtein.normalized_similarity(folded_a, folded_b)


def suggest_column(headers: Sequence[str], field_name: str) -> ColumnSuggestion:
    """Pick the header that best matches one canonical field."""
    field_spec = SALES_FIELDS[field_name]
    best_column: Optional[str] = None
    best_score = 0.0

    for header in headers:
        for alias in field_spec.aliases:
            score = header_similarity(header, alias)
            if score > best_score:
                best_score = score
                best_column = header

        if field_name == "buyer_phone":
            folded_header = fold_text(header)
            if any(keyword in folded_header for keyword in PHONE_KEYWORDS) and PHONE_KEYWORD_SCORE > best_score:
                best_score = PHONE_KEYWORD_SCORE
                best_column = header

        label_score = header_similarity(header, field_spec.label)
        if label_score > best_score:
            best_score = label_score
            best_column = header

    return ColumnSuggestion(field=field_name, column=best_column, confidence=best_score)


def suggest_column_mapping(headers: Sequence[str]) -> Dict[str, ColumnSuggestion]:
    """
    Suggest a header for every canonical sales field.

    Args:
        headers: Sales export headers in file order

    Returns:
        Dict of canonical field -> ColumnSuggestion
    """
    suggestions = {field_name: suggest_column(headers, field_name) for field_name in SALES_FIELDS}

    logger.info("column_mapping_suggested",
                header_count=len(headers),
                suggestions={name: s.column for name, s in suggestions.items()},
                low_confidence=[name for name, s in suggestions.items() if s.level == "low"])

    return suggestions


def missing_required_fields(mapping: Mapping[str, Optional[str]]) -> List[str]:
    """Labels of mandatory fields that the (partial) mapping leaves unmapped."""
    return [
        field_spec.label
        for field_name, field_spec in SALES_FIELDS.items()
        if field_spec.required and not mapping.get(field_name)
    ]
