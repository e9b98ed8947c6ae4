"""
Report cell helper tests.

Covers:
1. parse_currency_value: symbols, parentheses, separators, garbage, non-finite input
2. parse_report_date / parse_period_label
3. Month arithmetic (add_months, get_month_end, calendar_months_between)
4. round_half_away
"""

import math
from datetime import date, datetime

import pytest
from hypothesis import given, strategies as st

from ledgerlens.integrations.reports.utils import (
    add_months,
    calendar_months_between,
    days_in_month,
    format_month_label,
    get_month_end,
    parse_currency_value,
    parse_period_label,
    parse_report_date,
    round_half_away,
)


class TestParseCurrencyValue:
    @pytest.mark.parametrize("raw, expected", [
        ("1234.56", 1234.56),
        ("$1,234.56", 1234.56),
        ("(500.00)", -500.0),
        ("($1,000)", -1000.0),
        ("-250", -250.0),
        ("USD 2,000", 2000.0),
        ("€ 1.000,00", 1000.0),
        ("1.234,56", 1234.56),
        ("12,5", 12.5),
        ("1,234", 1234.0),
        (42, 42.0),
        (3.5, 3.5),
    ])
    def test_parses_formatted_amounts(self, raw, expected):
        assert parse_currency_value(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, "", "  ", "-", "—", "abc", "N/A", True, [], float("nan"), float("inf")])
    def test_unparseable_values_become_default(self, raw):
        assert parse_currency_value(raw) == 0.0

    def test_custom_default(self):
        assert parse_currency_value("garbled", default=-1.0) == -1.0

    @given(st.text())
    def test_never_raises_and_stays_finite(self, raw):
        result = parse_currency_value(raw)
        assert isinstance(result, float)
        assert math.isfinite(result)


class TestParseReportDate:
    def test_iso_date(self):
        assert parse_report_date("2024-03-31") == date(2024, 3, 31)

    def test_iso_datetime_with_zulu(self):
        assert parse_report_date("2024-03-31T10:15:00Z") == date(2024, 3, 31)

    def test_date_objects_pass_through(self):
        assert parse_report_date(date(2024, 1, 2)) == date(2024, 1, 2)
        assert parse_report_date(datetime(2024, 1, 2, 8, 30)) == date(2024, 1, 2)

    @pytest.mark.parametrize("raw", [None, "", "N/A", "31/03/2024", 20240331])
    def test_unparseable_is_none(self, raw):
        assert parse_report_date(raw) is None


class TestParsePeriodLabel:
    @pytest.mark.parametrize("label, start, end", [
        ("Jan 2024", date(2024, 1, 1), date(2024, 1, 31)),
        ("February 2024", date(2024, 2, 1), date(2024, 2, 29)),
        ("2023-02", date(2023, 2, 1), date(2023, 2, 28)),
        ("12/2023", date(2023, 12, 1), date(2023, 12, 31)),
    ])
    def test_month_labels(self, label, start, end):
        assert parse_period_label(label) == (start, end)

    @pytest.mark.parametrize("label", [None, "", "Total", "Q1 2024"])
    def test_non_month_labels(self, label):
        assert parse_period_label(label) is None


class TestMonthArithmetic:
    def test_month_end(self):
        assert get_month_end(date(2024, 2, 10)) == date(2024, 2, 29)
        assert get_month_end(date(2023, 12, 1)) == date(2023, 12, 31)
        assert days_in_month(date(2024, 4, 15)) == 30

    def test_add_months_clamps_day(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2024, 3, 15), -3) == date(2023, 12, 15)
        assert add_months(date(2024, 6, 1), -12) == date(2023, 6, 1)

    def test_calendar_months_between_ignores_day(self):
        assert calendar_months_between(date(2025, 3, 1), date(2024, 3, 31)) == 12
        assert calendar_months_between(date(2024, 1, 1), date(2024, 2, 1)) == -1

    def test_format_month_label(self):
        assert format_month_label(date(2025, 4, 1)) == "Apr 2025"


class TestRoundHalfAway:
    @pytest.mark.parametrize("value, places, expected", [
        (2.5, 0, 3.0),
        (-2.5, 0, -3.0),
        (2.4, 0, 2.0),
        (1.005, 2, 1.01),
        (-0.125, 2, -0.13),
    ])
    def test_rounds_half_away_from_zero(self, value, places, expected):
        assert round_half_away(value, places) == expected
