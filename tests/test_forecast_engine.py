"""
Forecast engine tests.

Covers:
1. Growth factor: minimum history, volatility filter, zero bases, raw and dampened clamps
2. AR/AP cash timing over the first three months
3. Incomplete-month exclusion
4. Forecast recurrence, labels, rounding and scenarios
"""

from datetime import date

import pytest
from hypothesis import given, strategies as st

from ledgerlens.insights.forecast_engine import ForecastEngine
from ledgerlens.insights.schemas import AgingBucket, ScenarioModifiers
from ledgerlens.integrations.reports.utils import add_months

from report_factory import make_periods

NO_AGING = AgingBucket()


class TestGrowthFactor:
    def test_needs_four_points(self):
        assert ForecastEngine.calculate_growth_factor([100, 200, 400]) == 1.0

    def test_flat_history(self):
        assert ForecastEngine.calculate_growth_factor([1000] * 8) == 1.0

    def test_raw_clamp(self):
        assert ForecastEngine.calculate_growth_factor([1000, 2000, 4000, 8000]) == 1.5
        assert ForecastEngine.calculate_growth_factor([8000, 2000, 500, 125]) == 0.5

    def test_only_recent_steps_count(self):
        # The early collapse falls outside the six-step lookback
        history = [100000, 1000, 1000, 1000, 1000, 1000, 1000, 1000]
        assert ForecastEngine.calculate_growth_factor(history) == 1.0

    def test_volatile_small_base_is_ignored(self):
        assert ForecastEngine.calculate_growth_factor([50, 1000, 1000, 1000]) == 1.0

    def test_zero_bases(self):
        assert ForecastEngine.calculate_growth_factor([0, 10, 10, 10]) == pytest.approx(3.5 / 3)
        assert ForecastEngine.calculate_growth_factor([0, 0, 0, 0]) == 1.0

    def test_ten_x_spike_stays_within_dampened_band(self):
        history = [1000, 1000, 1000, 10000, 100000, 1000000]
        raw = ForecastEngine.calculate_growth_factor(history)
        assert raw == 1.5
        assert ForecastEngine.dampen(raw) == 1.05

    @given(st.lists(st.floats(min_value=-1e9, max_value=1e9, allow_nan=False), max_size=24))
    def test_dampened_factor_always_in_band(self, history):
        factor = ForecastEngine.dampen(ForecastEngine.calculate_growth_factor(history))
        assert 0.95 <= factor <= 1.05


class TestArApImpact:
    def test_schedules(self):
        ar = AgingBucket(current=1000)
        ap = AgingBucket(current=500)
        assert ForecastEngine.estimate_ar_ap_impact(ar, ap, 5) == [300, 200, 50, 0, 0]

    def test_old_receivables_collect_slowly(self):
        ar = AgingBucket(days_90_plus=1000)
        assert ForecastEngine.estimate_ar_ap_impact(ar, NO_AGING, 4) == [100, 100, 100, 0]

    def test_short_horizon(self):
        ar = AgingBucket(current=1000)
        assert ForecastEngine.estimate_ar_ap_impact(ar, NO_AGING, 2) == [700, 200]


class TestIncompleteMonth:
    def test_low_latest_month_is_incomplete(self):
        periods = make_periods([10000, 10000, 10000, 2000])
        assert ForecastEngine.is_incomplete_month(periods[-1], periods)

    def test_normal_month(self):
        periods = make_periods([10000, 10000, 10000, 9000])
        assert not ForecastEngine.is_incomplete_month(periods[-1], periods)

    def test_short_history_never_incomplete(self):
        periods = make_periods([10000, 100])
        assert not ForecastEngine.is_incomplete_month(periods[-1], periods)


class TestGenerate:
    def test_insufficient_history(self):
        assert ForecastEngine.generate(make_periods([1, 2]), NO_AGING, NO_AGING, 0) == []

    def test_insufficient_after_dropping_incomplete_month(self):
        periods = make_periods([10000, 10000, 100])
        assert ForecastEngine.generate(periods, NO_AGING, NO_AGING, 0) == []

    def test_flat_business(self):
        periods = make_periods([10000] * 6, [8000] * 6)

        forecast = ForecastEngine.generate(periods, NO_AGING, NO_AGING, 50000, months=3)

        assert [p.label for p in forecast] == ["Jul 2024", "Aug 2024", "Sep 2024"]
        assert [p.projected_income for p in forecast] == [10000] * 3
        assert [p.projected_expenses for p in forecast] == [8000] * 3
        assert [p.projected_net_change for p in forecast] == [2000] * 3
        assert [p.projected_balance for p in forecast] == [52000, 54000, 56000]

    def test_default_horizon(self):
        forecast = ForecastEngine.generate(make_periods([1000] * 4), NO_AGING, NO_AGING, 0)
        assert len(forecast) == 12
        assert forecast[-1].label == "Apr 2025"

    def test_incomplete_month_excluded_from_baseline(self):
        periods = make_periods([10000, 10000, 10000, 1000], [5000] * 4)

        forecast = ForecastEngine.generate(periods, NO_AGING, NO_AGING, 0, months=1)

        assert forecast[0].projected_income == 10000
        # The partial month is dropped, so the forecast starts after March
        assert forecast[0].label == "Apr 2024"

    def test_ar_ap_timing_flows_into_balance(self):
        periods = make_periods([1000] * 3, [1000] * 3)

        forecast = ForecastEngine.generate(
            periods, AgingBucket(current=1000), AgingBucket(current=500), 0, months=4
        )

        assert [p.projected_net_change for p in forecast] == [300, 200, 50, 0]
        assert forecast[-1].projected_balance == 550

    def test_scenario_applies_to_baseline_then_recurs(self):
        periods = make_periods([10000] * 6, [8000] * 6)
        scenario = ScenarioModifiers(revenue_multiplier=1.1, new_recurring_expense=500)

        forecast = ForecastEngine.generate(periods, NO_AGING, NO_AGING, 0, months=3, scenario=scenario)

        assert [p.projected_income for p in forecast] == [11000] * 3
        assert [p.projected_expenses for p in forecast] == [8500, 9000, 9500]

    def test_figures_are_whole_units(self):
        periods = make_periods([1000.4, 1200.7, 1100.2, 1300.9], [900.3, 950.1, 980.6, 1010.5])

        forecast = ForecastEngine.generate(periods, NO_AGING, NO_AGING, 123.45, months=6)

        for point in forecast:
            for value in (
                point.projected_income,
                point.projected_expenses,
                point.projected_net_change,
                point.projected_balance,
            ):
                assert value == int(value)

    def test_growth_is_dampened_over_horizon(self):
        periods = make_periods([1000, 2000, 4000, 8000, 16000, 32000])

        forecast = ForecastEngine.generate(periods, NO_AGING, NO_AGING, 0, months=12)

        baseline = sum([1000, 2000, 4000, 8000, 16000, 32000]) / 6
        assert forecast[-1].projected_income == pytest.approx(baseline * 1.05 ** 12, abs=1)

    def test_periods_without_dates_start_next_month(self):
        periods = make_periods([1000] * 3, start=None)
        forecast = ForecastEngine.generate(periods, NO_AGING, NO_AGING, 0, months=1)
        next_month = add_months(date.today().replace(day=1), 1)
        assert forecast[0].label == next_month.strftime("%b %Y")
