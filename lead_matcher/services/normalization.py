"""
Field Normalizer

Canonicalizes raw lead/sale field values into comparable forms.

Design decisions:
- Nothing here raises on bad data: unparseable values come back as "" or None
  and simply do not contribute to scoring
- German phone and location conventions (49/0049 country code, umlauts,
  legal-entity suffixes like GmbH) because both exports come from German dealers
- Dates are local calendar dates, no timezone handling
"""

import re
from datetime import date
from typing import Any, Optional

import structlog

logger = structlog.get_logger(__name__)

# Lead timestamps: DD-MM-YYYY
DATE_FORMAT_DMY_HYPHEN = "-"
# Sale timestamps: DD.MM.YYYY
DATE_FORMAT_DMY_DOTS = "."

SUPPORTED_DATE_SEPARATORS = (DATE_FORMAT_DMY_HYPHEN, DATE_FORMAT_DMY_DOTS)

COUNTRY_CODE_PREFIXES = ("49", "0049")

UMLAUT_REPLACEMENTS = {
    "ä": "ae",
    "ö": "oe",
    "ü": "ue",
    "ß": "ss",
}

# Company words dropped from locations (whole tokens only)
LOCATION_STOPWORDS = frozenset({
    "gmbh", "ag", "kg", "mbh", "co", "kga", "se", "ug", "ohg",
    "autohaus", "autos", "group", "gruppe", "holding", "handel", "vertrieb",
})

_NON_DIGITS = re.compile(r"\D+")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def fold_text(value: Any) -> str:
    """Trim and lowercase; None becomes ''."""
    if value is None:
        return ""
    return str(value).strip().lower()


def normalize_phone(raw: Any) -> str:
    """
    Normalize a phone number to German national trunk form.

    Example:
        >>> normalize_phone("+49 151 1234567")
        '01511234567'
        >>> normalize_phone("0049 151 1234567")
        '01511234567'
    """
    digits = _NON_DIGITS.sub("", "" if raw is None else str(raw))

    # Repeated prefixes ("+49 0049 ...") are all stripped so the result is a fixed point
    stripped = True
    while stripped:
        stripped = False
        for prefix in COUNTRY_CODE_PREFIXES:
            if digits.startswith(prefix):
                digits = digits[len(prefix):]
                stripped = True
                break

    if digits and not digits.startswith("0"):
        digits = "0" + digits

    return digits


def normalize_location(raw: Any) -> str:
    """
    Normalize a dealer location / owner name for comparison.

    Folds case, transliterates umlauts, collapses punctuation and drops
    legal-entity words such as "GmbH" or "Autohaus".

    Example:
        >>> normalize_location("Autohaus Müller GmbH & Co. KG")
        'mueller'
    """
    text = fold_text(raw)
    if not text:
        return ""

    for umlaut, digraph in UMLAUT_REPLACEMENTS.items():
        text = text.replace(umlaut, digraph)

    text = _NON_ALNUM.sub(" ", text)
    tokens = [token for token in text.split() if token not in LOCATION_STOPWORDS]
    return " ".join(tokens).strip()


def _parse_component(part: str) -> int:
    """ASCII digits only; anything else (signs, '_', other scripts) is 0."""
    text = part.strip()
    if not (text.isascii() and text.isdigit()):
        return 0
    return int(text)


def parse_date(value: Any, separator: str) -> Optional[date]:
    """
    Parse a day-month-year date using the given separator.

    Args:
        value: Raw field value (e.g. "10-01-2024" or "05.01.2024")
        separator: DATE_FORMAT_DMY_HYPHEN or DATE_FORMAT_DMY_DOTS

    Returns:
        date, or None when any component is missing, zero, non-numeric,
        or the combination is not a real calendar date
    """
    if separator not in SUPPORTED_DATE_SEPARATORS:
        raise ValueError(f"Unsupported date separator: {separator!r}")

    text = fold_text(value)
    if not text:
        return None

    parts = text.split(separator)
    if len(parts) < 3:
        return None

    day, month, year = (_parse_component(part) for part in parts[:3])
    if not day or not month or not year:
        return None

    try:
        return date(year, month, day)
    except ValueError:
        logger.debug("date_out_of_range", value=text, separator=separator)
        return None


def days_between(a: date, b: date) -> int:
    """Whole days from a to b; negative when b precedes a."""
    return (b - a).days
