"""
Pydantic schemas for the matching API
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from lead_matcher.models.column_mapping import SalesColumnMapping


class MatchRequest(BaseModel):
    """
    One matching run: both batches as parsed rows plus the sales column mapping.
    Rows are column name -> cell text, exactly as read from the exports.
    """
    leads: List[Dict[str, Any]] = Field(..., description="Lead rows in file order")
    sales: List[Dict[str, Any]] = Field(..., description="Sales rows in file order")
    column_mapping: SalesColumnMapping = Field(..., description="Canonical sales field -> source column")
    conversion_threshold: Optional[float] = Field(
        None, ge=0.0, le=1.0,
        description="Probability counted as converted in the conversion summary"
    )


class SaleOutcomeSchema(BaseModel):
    sale_index: int
    matched: bool
    probability: float
    explanation: str
    lead_index: Optional[int] = None
    lead_id: Optional[str] = None
    scoring_details: Dict[str, Any] = Field(default_factory=dict)


class RunSummarySchema(BaseModel):
    matched: int
    unmatched: int
    total_sales: int
    total_leads: int


class ConversionSchema(BaseModel):
    threshold: float
    sales_from_leads: int
    leads_converted: int
    sales_conversion_rate: float
    lead_conversion_rate: float


class MatchResponse(BaseModel):
    """
    Response returned from the match endpoint
    """
    summary: RunSummarySchema
    outcomes: List[SaleOutcomeSchema]
    rows: List[Dict[str, Any]]
    export_columns: List[str]
    buckets: List[Dict[str, Any]]
    conversion: ConversionSchema


class ColumnSuggestionRequest(BaseModel):
    headers: List[str] = Field(..., description="Sales export headers in file order")


class ColumnSuggestionSchema(BaseModel):
    column: Optional[str] = None
    confidence: float
    level: str
    label: str
    required: bool


class ColumnSuggestionResponse(BaseModel):
    suggestions: Dict[str, ColumnSuggestionSchema]
    missing_required: List[str]
