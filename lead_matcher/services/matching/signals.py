"""
Signal Extractor Functions

Redaction-tolerant signals for names and emails.

Design decisions:
- A field containing the mask character anywhere is "redacted"
- Redacted values are never compared literally, only by their shape
  (count of mask characters per token / segment)
- Literal values get the same shape treatment (count of alphanumerics) so a
  redacted export can still be compared against a clear-text one
"""

import re
from typing import Any, List, Sequence, Tuple

from lead_matcher.services.normalization import fold_text

MASK_CHAR = "*"

_ALNUM = re.compile(r"[a-z0-9]", re.IGNORECASE)
_EMAIL_SEGMENT_SPLIT = re.compile(r"[.\-]")


def is_redacted(value: Any) -> bool:
    """True if the value contains the mask character anywhere."""
    return MASK_CHAR in ("" if value is None else str(value))


def count_alnum(segment: str) -> int:
    return len(_ALNUM.findall(segment or ""))


def _segment_shape(segments: Sequence[str], redacted: bool) -> List[int]:
    if redacted:
        return [segment.count(MASK_CHAR) for segment in segments]
    return [count_alnum(segment) for segment in segments]


def tokenize_name(name: Any) -> List[str]:
    """Fold and split on whitespace."""
    return fold_text(name).split()


def name_pattern(name: Any) -> List[int]:
    """
    Shape of a name: one count per whitespace token.

    Example:
        >>> name_pattern("Max Mustermann")
        [3, 10]
        >>> name_pattern("M** M*********")
        [2, 9]
    """
    return _segment_shape(tokenize_name(name), is_redacted(name))


def email_pattern(email: Any) -> Tuple[List[int], List[int]]:
    """
    Shape of an email as (local_part_counts, domain_part_counts).

    Both sides are split further on '.' and '-'.

    Example:
        >>> email_pattern("max.mustermann@web.de")
        ([3, 10], [3, 2])
    """
    folded = fold_text(email)
    if not folded:
        return [], []

    local, _, domain = folded.partition("@")
    local_parts = [part for part in _EMAIL_SEGMENT_SPLIT.split(local) if part]
    domain_parts = [part for part in _EMAIL_SEGMENT_SPLIT.split(domain) if part]

    redacted = is_redacted(folded)
    return _segment_shape(local_parts, redacted), _segment_shape(domain_parts, redacted)


def pattern_diff(seq_a: Sequence[int], seq_b: Sequence[int]) -> int:
    """
    Positional L1 distance between two shape sequences.

    Missing positions count as zero, so [3, 4] vs [3] is 4.
    """
    length = max(len(seq_a), len(seq_b))
    diff = 0
    for i in range(length):
        a = seq_a[i] if i < len(seq_a) else 0
        b = seq_b[i] if i < len(seq_b) else 0
        diff += abs(a - b)
    return diff


def email_exact_match(a: Any, b: Any) -> bool:
    """Folded equality of two non-empty, non-redacted emails."""
    folded_a = fold_text(a)
    folded_b = fold_text(b)
    if not folded_a or not folded_b:
        return False
    if is_redacted(folded_a) or is_redacted(folded_b):
        return False
    return folded_a == folded_b


def name_tokens_match(a: Any, b: Any) -> bool:
    """
    Order-insensitive name match: one side's token set is a subset of the other's.

    "max mustermann" matches "Mustermann Max" and also just "max".
    Redacted tokens are ignored.
    """
    tokens_a = {token for token in tokenize_name(a) if not is_redacted(token)}
    tokens_b = {token for token in tokenize_name(b) if not is_redacted(token)}
    if not tokens_a or not tokens_b:
        return False
    return tokens_a <= tokens_b or tokens_b <= tokens_a


def contains_folded(haystack: Any, needle: Any) -> bool:
    """Case/space folded substring test; empty values never match."""
    folded_haystack = fold_text(haystack)
    folded_needle = fold_text(needle)
    if not folded_haystack or not folded_needle:
        return False
    return folded_needle in folded_haystack
