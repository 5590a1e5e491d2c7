"""
Tests for the result aggregator

Tests cover:
- Export rows merged onto the unmodified sales rows
- Unmatched defaults and probability sorting
- Probability histogram buckets
- Conversion figures at a display threshold
"""

from conftest import SALES_MAPPING, lead_row, sale_row
from lead_matcher.services.aggregation import (
    EXPORT_COLUMNS,
    PROBABILITY_BUCKETS,
    ConversionSummary,
    aggregate,
    build_export_row,
    conversion_summary,
    probability_buckets,
)
from lead_matcher.services.ingestion import build_match_context
from lead_matcher.services.matching_engine import MatchingEngine, SaleOutcome

AUDI_URL = "https://example.de/car/audi-a4~1"


def run_report(lead_rows, sale_rows, **kwargs):
    context = build_match_context(lead_rows, sale_rows, SALES_MAPPING)
    result = MatchingEngine(workers=1).run(context)
    return context, aggregate(context, result, **kwargs)


class TestExportRow:

    def test_matched_row_uses_original_values(self):
        leads = [lead_row(
            lead_id="L-9",
            buyer_name="Max Mustermann",
            buyer_email="Max@Web.de",
            buyer_phone_number="+49 151 1234567",
            verified_completed_or_created_at="10-01-2024",
            seller_car_url=AUDI_URL,
            owner_name="Autohaus Müller",
        )]
        sales = [sale_row(**{
            "Käufer": "Max Mustermann",
            "E-Mail": "max@web.de",
            "verkauft am": "24.01.2024",
            "Typ": "Audi A4 Avant",
            "Standort": "Müller",
            "Extra": "kept",
        })]

        context, report = run_report(leads, sales)
        row = report.rows[0]

        assert row["Extra"] == "kept"
        assert row["LeadMatch"] == "true"
        assert row["MatchProbability"] == "1.00"
        assert row["MatchedLeadId"] == "L-9"
        assert row["MatchedLeadIndex"] == 0
        assert row["MatchedLeadName"] == "Max Mustermann"
        assert row["MatchedLeadEmail"] == "Max@Web.de"
        assert row["MatchedLeadPhone"] == "+49 151 1234567"
        assert row["MatchedLeadDate"] == "10-01-2024"
        assert row["MatchedLeadLocation"] == "mueller"
        assert row["SaleCar"] == "Audi A4 Avant"
        assert row["ViewedCar"] == "audi a4"
        assert row["MatchExplanation"].startswith("Exact email; Exact name")
        assert all(column in row for column in EXPORT_COLUMNS)

    def test_unmatched_row_defaults(self):
        context, report = run_report([lead_row()], [sale_row(Typ="Audi A4")])
        row = report.rows[0]

        assert row["LeadMatch"] == "false"
        assert row["MatchProbability"] == "0.00"
        assert row["MatchExplanation"] == ""
        assert row["MatchedLeadId"] == ""
        assert row["MatchedLeadIndex"] == ""
        assert row["MatchedLeadName"] == ""
        assert row["ViewedCar"] == ""

    def test_unmapped_sale_columns_are_empty(self):
        context = build_match_context([], [sale_row()], SALES_MAPPING.model_copy(update={"stock_id": None}))
        outcome = SaleOutcome(sale_index=0, matched=False)

        assert build_export_row(context, outcome)["SaleStockId"] == ""


class TestReport:

    def test_rows_sorted_by_probability(self):
        leads = [lead_row(seller_car_url=AUDI_URL), lead_row(buyer_email="erika@web.de")]
        sales = [
            sale_row(Typ="BMW 320d"),
            sale_row(Typ="Audi A4"),
            sale_row(**{"E-Mail": "erika@web.de"}),
        ]

        _, report = run_report(leads, sales)

        assert [row["MatchProbability"] for row in report.rows] == ["1.00", "0.30", "0.00"]
        assert [outcome.sale_index for outcome in report.outcomes] == [0, 1, 2]

    def test_summary(self):
        _, report = run_report(
            [lead_row(seller_car_url=AUDI_URL), lead_row()],
            [sale_row(Typ="Audi A4"), sale_row(Typ="VW Golf")],
        )

        assert report.summary.matched == 1
        assert report.summary.unmatched == 1
        assert report.summary.total_sales == 2
        assert report.summary.total_leads == 2

    def test_empty_batches(self):
        _, report = run_report([], [])

        assert report.rows == []
        assert report.summary.matched == 0
        assert report.conversion.sales_conversion_rate == 0.0
        assert report.conversion.lead_conversion_rate == 0.0


class TestProbabilityBuckets:

    def test_counts(self):
        outcomes = [
            SaleOutcome(sale_index=0, matched=True, probability=1.0),
            SaleOutcome(sale_index=1, matched=True, probability=0.95),
            SaleOutcome(sale_index=2, matched=True, probability=0.30),
            SaleOutcome(sale_index=3, matched=True, probability=0.39),
            SaleOutcome(sale_index=4, matched=False),
        ]

        counts = {bucket["label"]: bucket["count"] for bucket in probability_buckets(outcomes)}

        assert counts["100%"] == 1
        assert counts["99-90%"] == 1
        assert counts["39-30%"] == 2
        assert counts["< 20%"] == 1
        assert sum(counts.values()) == len(outcomes)

    def test_bucket_order(self):
        labels = [bucket["label"] for bucket in probability_buckets([])]
        assert labels == [label for label, _, _ in PROBABILITY_BUCKETS]


class TestConversionSummary:

    def test_threshold(self):
        outcomes = [
            SaleOutcome(sale_index=0, matched=True, probability=1.0),
            SaleOutcome(sale_index=1, matched=True, probability=0.9),
            SaleOutcome(sale_index=2, matched=True, probability=0.5),
            SaleOutcome(sale_index=3, matched=False),
        ]

        summary = conversion_summary(outcomes, total_leads=8, threshold=0.9)

        assert summary.sales_from_leads == 2
        assert summary.leads_converted == 2
        assert summary.sales_conversion_rate == 50.0
        assert summary.lead_conversion_rate == 25.0

    def test_default_threshold_from_settings(self):
        summary = conversion_summary([], total_leads=0)
        assert summary.threshold == 0.90

    def test_rate_rounding(self):
        summary = ConversionSummary(threshold=0.9, sales_from_leads=1, leads_converted=1,
                                    total_sales=3, total_leads=7)

        assert summary.sales_conversion_rate == 33.3
        assert summary.lead_conversion_rate == 14.3

    def test_report_uses_requested_threshold(self):
        _, report = run_report([lead_row(seller_car_url=AUDI_URL)], [sale_row(Typ="Audi A4")],
                               conversion_threshold=0.3)

        assert report.conversion.threshold == 0.3
        assert report.conversion.sales_from_leads == 1
