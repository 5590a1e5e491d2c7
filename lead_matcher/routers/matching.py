"""
Matching API Router
Runs lead/sales matching over already-parsed rows and suggests sales column mappings
"""

from fastapi import APIRouter, HTTPException
import structlog

from lead_matcher.models.api_schemas import (
    ColumnSuggestionRequest,
    ColumnSuggestionResponse,
    ColumnSuggestionSchema,
    ConversionSchema,
    MatchRequest,
    MatchResponse,
    RunSummarySchema,
    SaleOutcomeSchema,
)
from lead_matcher.middleware.correlation_id import match_run_scope
from lead_matcher.models.column_mapping import SALES_FIELDS
from lead_matcher.services.aggregation import EXPORT_COLUMNS, aggregate
from lead_matcher.services.column_mapping import missing_required_fields, suggest_column_mapping
from lead_matcher.services.ingestion import IngestionError, build_match_context
from lead_matcher.services.matching_engine import MatchingEngine, MatchRunCancelled

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["matching"])


@router.post("/match", response_model=MatchResponse)
def run_match(request: MatchRequest):
    """
    Match every sale to at most one lead.

    Ingests both batches, runs the greedy assignment and returns the merged
    export rows (sorted by probability), per-sale outcomes in sale order,
    the run summary, the probability histogram and conversion figures.

    Returns:
        MatchResponse

    Raises:
        HTTPException 422: a batch is structurally unreadable or the mapping
            names columns the sales rows do not have
        HTTPException 409: the run was cancelled
    """
    with match_run_scope(lead_rows=len(request.leads), sale_rows=len(request.sales)):
        try:
            context = build_match_context(request.leads, request.sales, request.column_mapping)
        except IngestionError as e:
            logger.warning("match_ingestion_failed", error=str(e))
            raise HTTPException(status_code=422, detail=str(e))

        try:
            result = MatchingEngine().run(context)
        except MatchRunCancelled as e:
            raise HTTPException(status_code=409, detail=str(e))

        report = aggregate(context, result, request.conversion_threshold)
    conversion = report.conversion

    return MatchResponse(
        summary=RunSummarySchema(
            matched=report.summary.matched,
            unmatched=report.summary.unmatched,
            total_sales=report.summary.total_sales,
            total_leads=report.summary.total_leads,
        ),
        outcomes=[
            SaleOutcomeSchema(
                sale_index=outcome.sale_index,
                matched=outcome.matched,
                probability=outcome.probability,
                explanation=outcome.explanation_text,
                lead_index=outcome.lead_index,
                lead_id=outcome.lead_id,
                scoring_details=outcome.scoring_details,
            )
            for outcome in report.outcomes
        ],
        rows=report.rows,
        export_columns=EXPORT_COLUMNS,
        buckets=report.buckets,
        conversion=ConversionSchema(
            threshold=conversion.threshold,
            sales_from_leads=conversion.sales_from_leads,
            leads_converted=conversion.leads_converted,
            sales_conversion_rate=conversion.sales_conversion_rate,
            lead_conversion_rate=conversion.lead_conversion_rate,
        ),
    )


@router.post("/column-mapping/suggest", response_model=ColumnSuggestionResponse)
def suggest_mapping(request: ColumnSuggestionRequest):
    """
    Suggest which sales header holds each canonical field.

    Returns:
        ColumnSuggestionResponse with one suggestion per field and the labels
        of mandatory fields no header could be matched to
    """
    suggestions = suggest_column_mapping(request.headers)

    return ColumnSuggestionResponse(
        suggestions={
            field_name: ColumnSuggestionSchema(
                column=suggestion.column,
                confidence=round(suggestion.confidence, 4),
                level=suggestion.level,
                label=SALES_FIELDS[field_name].label,
                required=SALES_FIELDS[field_name].required,
            )
            for field_name, suggestion in suggestions.items()
        },
        missing_required=missing_required_fields(
            {field_name: suggestion.column for field_name, suggestion in suggestions.items()}
        ),
    )
