"""
Data Models
"""

from lead_matcher.models.records import LeadRecord, SaleRecord, ViewedVehicle
from lead_matcher.models.column_mapping import SALES_FIELDS, SalesColumnMapping, SalesFieldSpec

__all__ = [
    "LeadRecord",
    "SaleRecord",
    "ViewedVehicle",
    "SALES_FIELDS",
    "SalesColumnMapping",
    "SalesFieldSpec",
]
