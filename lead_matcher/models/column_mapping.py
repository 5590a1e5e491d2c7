"""
Sales column mapping

The sales export has no fixed header names, so the caller tells us which
source column holds each canonical field. The mapping is resolved once at
ingestion; the scorer only ever sees SaleRecord attributes.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class SalesFieldSpec:
    """Canonical sales field: display label, mandatory flag, header aliases."""
    label: str
    required: bool
    aliases: Tuple[str, ...]


SALES_FIELDS: Dict[str, SalesFieldSpec] = {
    "buyer_name": SalesFieldSpec(
        label="Buyer Name",
        required=True,
        aliases=("käufer", "buyer", "customer", "name", "kunde", "client"),
    ),
    "buyer_email": SalesFieldSpec(
        label="Email",
        required=False,
        aliases=("e-mail", "email", "mail", "e_mail", "email_address"),
    ),
    "buyer_phone": SalesFieldSpec(
        label="Phone",
        required=False,
        aliases=("telefon", "phone", "tel", "telephone", "mobile", "handy"),
    ),
    "sale_date": SalesFieldSpec(
        label="Sale Date",
        required=True,
        aliases=("verkauft am", "sale_date", "date", "sold_date", "verkauft", "datum"),
    ),
    "car_type": SalesFieldSpec(
        label="Car Type/Model",
        required=True,
        aliases=("typ", "type", "model", "car_type", "vehicle_type", "fahrzeug"),
    ),
    "location": SalesFieldSpec(
        label="Location/Standort",
        required=False,
        aliases=("standort", "location", "place", "ort", "city", "stadt"),
    ),
    "stock_id": SalesFieldSpec(
        label="Stock ID/Car ID",
        required=False,
        aliases=(
            "gw/nw-nummer", "car_id", "stock_id", "vehicle_id", "fahrzeug_id",
            "auto_id", "stock number", "inventory_id",
        ),
    ),
}


class SalesColumnMapping(BaseModel):
    """
    Canonical sales field -> source column name.

    buyer_name, sale_date and car_type are mandatory; pydantic rejects a
    mapping without them.
    """
    buyer_name: str = Field(..., min_length=1, description="Column holding the buyer name")
    sale_date: str = Field(..., min_length=1, description="Column holding the sale date (DD.MM.YYYY)")
    car_type: str = Field(..., min_length=1, description="Column holding the vehicle type text")
    buyer_email: Optional[str] = Field(None, description="Column holding the buyer email")
    buyer_phone: Optional[str] = Field(None, description="Column holding the buyer phone")
    location: Optional[str] = Field(None, description="Column holding the dealer location (Standort)")
    stock_id: Optional[str] = Field(None, description="Column holding the stock / inventory id")

    class Config:
        frozen = True
        extra = "forbid"

    def mapped_columns(self) -> Dict[str, str]:
        """Canonical field -> column for every field that is mapped."""
        return {
            field_name: getattr(self, field_name)
            for field_name in SALES_FIELDS
            if getattr(self, field_name)
        }

    def missing_columns(self, headers: Iterable[str]) -> List[str]:
        """Mapped columns that do not exist in the given headers."""
        available = set(headers)
        return [column for column in self.mapped_columns().values() if column not in available]

    def value(self, row: Dict[str, str], field_name: str) -> str:
        """Raw value of a canonical field in a sales row ('' when unmapped)."""
        column = getattr(self, field_name)
        if not column:
            return ""
        value = row.get(column)
        return "" if value is None else str(value)
