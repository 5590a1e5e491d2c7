"""
Viewed-Vehicle URL Parser

Extracts the brand/model a lead looked at from the listing URL, e.g.

    https://www.example.de/de/car/audi-a4-avant~123456 -> ("audi", "a4 avant", "audi-a4-avant")
"""

from typing import Any, List
from urllib.parse import urlparse

from lead_matcher.models.records import ViewedVehicle
from lead_matcher.services.normalization import fold_text

CAR_PATH_SEGMENT = "car"


def _pick_slug(segments: List[str]) -> str:
    for i, segment in enumerate(segments):
        if segment.lower() == CAR_PATH_SEGMENT and i + 1 < len(segments):
            return segments[i + 1]
    return segments[-1] if segments else ""


def _vehicle_from_slug(slug: str) -> ViewedVehicle:
    before_tilde = slug.split("~", 1)[0]
    tokens = [token for token in before_tilde.split("-") if token]
    brand = tokens[0] if tokens else ""
    model = " ".join(tokens[1:])
    return ViewedVehicle(brand=fold_text(brand), model=fold_text(model), slug=before_tilde)


def parse_viewed_vehicle(url: Any) -> ViewedVehicle:
    """
    Parse brand, model and slug from a listing URL.

    Uses the path segment after "car" when present, otherwise the last path
    segment. Strings that are not absolute URLs are split naively on '/'.
    """
    raw = "" if url is None else str(url).strip()
    if not raw:
        return ViewedVehicle()

    without_at = raw[1:] if raw.startswith("@") else raw

    try:
        parsed = urlparse(without_at)
    except ValueError:
        # e.g. unbalanced brackets in the netloc
        parsed = None

    if parsed is not None and parsed.scheme and parsed.netloc:
        segments = [segment for segment in parsed.path.split("/") if segment]
    else:
        segments = [segment for segment in without_at.split("/") if segment]

    return _vehicle_from_slug(_pick_slug(segments))
