"""
Normalized lead and sale records.

Both are built once per ingested batch by lead_matcher.services.ingestion and
never mutated afterwards; every derived field (phone, location, shape patterns,
viewed vehicle) is computed eagerly at construction.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple


@dataclass(frozen=True)
class ViewedVehicle:
    """Brand/model tokens parsed from the listing URL a lead looked at."""
    brand: str = ""
    model: str = ""
    slug: str = ""

    @property
    def label(self) -> str:
        """Human-readable "brand model" for reports."""
        return " ".join(part for part in (self.brand, self.model) if part)


@dataclass(frozen=True)
class LeadRecord:
    """A recorded expression of purchase interest."""
    index: int  # Ingestion order
    lead_id: str  # External id, or str(index) when the row has none
    name: str = ""
    email: str = ""
    phone: str = ""  # normalize_phone() form
    brand: str = ""
    model: str = ""
    viewed_vehicle: ViewedVehicle = field(default_factory=ViewedVehicle)
    created_on: Optional[date] = None
    vin: str = ""
    stock_id: str = ""
    location: str = ""  # normalize_location() form
    name_pattern: Tuple[int, ...] = ()
    email_pattern_local: Tuple[int, ...] = ()
    email_pattern_domain: Tuple[int, ...] = ()


@dataclass(frozen=True)
class SaleRecord:
    """A completed transaction from the dealer's sales export."""
    index: int
    name: str = ""
    email: str = ""
    phone: str = ""  # normalize_phone() form
    vehicle_type: str = ""
    sold_on: Optional[date] = None
    location: str = ""  # normalize_location() form
    stock_id: str = ""
    name_pattern: Tuple[int, ...] = ()
    email_pattern_local: Tuple[int, ...] = ()
    email_pattern_domain: Tuple[int, ...] = ()
