"""Tests for field normalization."""

from datetime import date

import pytest

from lead_matcher.services.normalization import (
    DATE_FORMAT_DMY_DOTS,
    DATE_FORMAT_DMY_HYPHEN,
    days_between,
    fold_text,
    normalize_location,
    normalize_phone,
    parse_date,
)


class TestFoldText:

    def test_none_is_empty(self):
        assert fold_text(None) == ""

    def test_trims_and_lowercases(self):
        assert fold_text("  Max MUSTERMANN ") == "max mustermann"

    def test_numbers_are_stringified(self):
        assert fold_text(12345) == "12345"

    def test_idempotent(self):
        assert fold_text(fold_text(" ABC ")) == fold_text(" ABC ")


class TestNormalizePhone:

    def test_plus_49_prefix(self):
        """+49 151 1234567 -> national trunk form"""
        assert normalize_phone("+49 151 1234567") == "01511234567"

    def test_0049_prefix(self):
        assert normalize_phone("0049 151 1234567") == "01511234567"

    def test_national_form_unchanged(self):
        assert normalize_phone("0151/123 45 67") == "01511234567"

    def test_missing_trunk_zero_is_added(self):
        assert normalize_phone("151 1234567") == "01511234567"

    def test_repeated_country_codes_are_all_stripped(self):
        assert normalize_phone("+49 0049 151") == "0151"
        assert normalize_phone("4900491") == "01"

    def test_empty_and_none(self):
        assert normalize_phone("") == ""
        assert normalize_phone(None) == ""
        assert normalize_phone("n/a") == ""

    @pytest.mark.parametrize("raw", [
        "+49 151 1234567", "0049 151 1234567", "4949123", "0", "49", "+1 (555) 0100", "abc",
        "4900491", "+49 0049 151",
    ])
    def test_idempotent(self, raw):
        once = normalize_phone(raw)
        assert normalize_phone(once) == once


class TestNormalizeLocation:

    def test_umlauts_and_company_words(self):
        assert normalize_location("Autohaus Müller GmbH & Co. KG") == "mueller"

    def test_eszett(self):
        assert normalize_location("Große Straße") == "grosse strasse"

    def test_punctuation_collapses_to_single_spaces(self):
        assert normalize_location("Berlin--Mitte,  Nord") == "berlin mitte nord"

    def test_stopwords_are_whole_token_only(self):
        """'ag' is dropped as a token but not inside 'hagen'"""
        assert normalize_location("Hagen AG") == "hagen"

    def test_order_preserved(self):
        assert normalize_location("Mitte Berlin") == "mitte berlin"

    def test_empty(self):
        assert normalize_location(None) == ""
        assert normalize_location("   ") == ""
        assert normalize_location("GmbH") == ""

    @pytest.mark.parametrize("raw", [
        "Autohaus Müller GmbH & Co. KG", "Hagen AG", "  Köln-Süd  ", "ÄÖÜ ß", "",
    ])
    def test_idempotent(self, raw):
        once = normalize_location(raw)
        assert normalize_location(once) == once


class TestParseDate:

    def test_hyphen_format(self):
        assert parse_date("10-01-2024", DATE_FORMAT_DMY_HYPHEN) == date(2024, 1, 10)

    def test_dot_format(self):
        assert parse_date("05.01.2024", DATE_FORMAT_DMY_DOTS) == date(2024, 1, 5)

    def test_wrong_separator_is_absent(self):
        assert parse_date("05.01.2024", DATE_FORMAT_DMY_HYPHEN) is None

    def test_zero_component_is_absent(self):
        assert parse_date("00.01.2024", DATE_FORMAT_DMY_DOTS) is None

    def test_non_numeric_is_absent(self):
        assert parse_date("xx.01.2024", DATE_FORMAT_DMY_DOTS) is None

    @pytest.mark.parametrize("raw", ["1_0.01.2024", "\u0663.01.2024", "+5.01.2024", "-5.01.2024"])
    def test_non_ascii_digit_component_is_absent(self, raw):
        assert parse_date(raw, DATE_FORMAT_DMY_DOTS) is None

    def test_trailing_time_is_absent(self):
        assert parse_date("10-01-2024 12:30", DATE_FORMAT_DMY_HYPHEN) is None

    def test_impossible_calendar_date_is_absent(self):
        assert parse_date("31.02.2024", DATE_FORMAT_DMY_DOTS) is None

    def test_empty_is_absent(self):
        assert parse_date("", DATE_FORMAT_DMY_DOTS) is None
        assert parse_date(None, DATE_FORMAT_DMY_HYPHEN) is None

    def test_unsupported_separator_raises(self):
        with pytest.raises(ValueError):
            parse_date("2024/01/10", "/")


class TestDaysBetween:

    def test_forward(self):
        assert days_between(date(2024, 1, 10), date(2024, 1, 24)) == 14

    def test_negative_when_second_precedes_first(self):
        assert days_between(date(2024, 1, 10), date(2024, 1, 5)) == -5

    def test_same_day(self):
        assert days_between(date(2024, 1, 10), date(2024, 1, 10)) == 0
