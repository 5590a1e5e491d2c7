"""
Tests for sales column mapping suggestions
"""

import pytest

from lead_matcher.services.column_mapping import (
    ColumnSuggestion,
    header_similarity,
    missing_required_fields,
    suggest_column,
    suggest_column_mapping,
)

GERMAN_HEADERS = [
    "Käufer", "E-Mail", "Telefon", "verkauft am", "Typ", "Standort", "GW/NW-Nummer", "Bemerkung",
]


class TestHeaderSimilarity:

    def test_folded_equality(self):
        assert header_similarity("Käufer", "käufer") == 1.0

    def test_containment(self):
        assert header_similarity("E-Mail Adresse", "e-mail") == 0.8

    def test_fuzzy(self):
        score = header_similarity("Verkaufsdatum", "verkauft am")
        assert 0.0 < score < 0.8

    def test_empty(self):
        assert header_similarity("", "name") == 0.0


class TestSuggestColumnMapping:

    def test_german_sales_export(self):
        suggestions = suggest_column_mapping(GERMAN_HEADERS)

        assert {name: s.column for name, s in suggestions.items()} == {
            "buyer_name": "Käufer",
            "buyer_email": "E-Mail",
            "buyer_phone": "Telefon",
            "sale_date": "verkauft am",
            "car_type": "Typ",
            "location": "Standort",
            "stock_id": "GW/NW-Nummer",
        }
        assert all(s.level == "high" for s in suggestions.values())

    def test_phone_keyword_boost(self):
        suggestion = suggest_column(["Name", "Handynummer privat"], "buyer_phone")

        assert suggestion.column == "Handynummer privat"
        assert suggestion.confidence == 0.9

    def test_no_headers(self):
        suggestion = suggest_column([], "buyer_name")

        assert suggestion.column is None
        assert suggestion.confidence == 0.0
        assert suggestion.level == "low"


class TestSuggestionLevel:

    @pytest.mark.parametrize("confidence,level", [
        (1.0, "high"),
        (0.8, "high"),
        (0.79, "medium"),
        (0.5, "medium"),
        (0.49, "low"),
    ])
    def test_levels(self, confidence, level):
        assert ColumnSuggestion(field="buyer_name", column="x", confidence=confidence).level == level


class TestMissingRequiredFields:

    def test_reports_labels(self):
        assert missing_required_fields({"buyer_name": "Käufer"}) == ["Sale Date", "Car Type/Model"]

    def test_optional_fields_never_reported(self):
        mapping = {"buyer_name": "K", "sale_date": "D", "car_type": "T"}
        assert missing_required_fields(mapping) == []
