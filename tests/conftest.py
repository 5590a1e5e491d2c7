"""Shared row factories for matching tests."""

import pytest

from lead_matcher.models.column_mapping import SalesColumnMapping
from lead_matcher.services.ingestion import build_lead_record, build_sale_record

SALES_MAPPING = SalesColumnMapping(
    buyer_name="Käufer",
    buyer_email="E-Mail",
    buyer_phone="Telefon",
    sale_date="verkauft am",
    car_type="Typ",
    location="Standort",
    stock_id="GW/NW-Nummer",
)


def lead_row(**overrides):
    """Lead export row with every field blank unless overridden."""
    row = {
        "lead_id": "",
        "buyer_name": "",
        "buyer_email": "",
        "buyer_phone_number": "",
        "buyer_car_brand": "",
        "buyer_car_car_model": "",
        "verified_completed_or_created_at": "",
        "vin_lpn": "",
        "stock_id": "",
        "seller_car_url": "",
        "owner_name": "",
    }
    row.update(overrides)
    return row


def sale_row(**overrides):
    """Sales export row (German headers) with every field blank unless overridden."""
    row = {
        "Käufer": "",
        "E-Mail": "",
        "Telefon": "",
        "verkauft am": "",
        "Typ": "",
        "Standort": "",
        "GW/NW-Nummer": "",
    }
    row.update(overrides)
    return row


def make_lead(index=0, **overrides):
    return build_lead_record(lead_row(**overrides), index)


def make_sale(index=0, **overrides):
    return build_sale_record(sale_row(**overrides), index, SALES_MAPPING)


@pytest.fixture
def sales_mapping():
    return SALES_MAPPING
