"""
Cash Flow Forecast Engine
Projects monthly income, expenses and cash balance from P&L history and
the open AR/AP position.
"""

import logging
from datetime import date
from statistics import mean
from typing import Optional

from ledgerlens.config import settings
from ledgerlens.insights.schemas import AgingBucket, ForecastPoint, ScenarioModifiers
from ledgerlens.integrations.reports.extracted_types import PeriodRecord
from ledgerlens.integrations.reports.utils import add_months, format_month_label, round_half_away

logger = logging.getLogger(__name__)

MIN_HISTORY_FOR_FORECAST = 3
TRAILING_AVERAGE_MONTHS = 6
GROWTH_LOOKBACK_MONTHS = 6
INCOMPLETE_MONTH_THRESHOLD = 0.30

# Raw growth bounds, then the tighter monthly dampening band
GROWTH_FLOOR, GROWTH_CEILING = 0.5, 1.5
DAMPENED_FLOOR, DAMPENED_CEILING = 0.95, 1.05

# Near-zero bases swing wildly; such steps are ignored
VOLATILE_BASE = 100
VOLATILE_STEP = 500

# Share of each aging bucket (0-30, 31-60, 61-90, 90+) settled in forecast months 1..3
AR_COLLECTION_SCHEDULE = (
    (0.70, 0.50, 0.20, 0.10),
    (0.20, 0.30, 0.30, 0.10),
    (0.05, 0.10, 0.20, 0.10),
)
AP_PAYMENT_SCHEDULE = (
    (0.80, 0.60, 0.30, 0.10),
    (0.00, 0.30, 0.40, 0.20),
    (0.00, 0.00, 0.20, 0.20),
)


class ForecastEngine:
    """
    Generates a month-by-month cash flow forecast.

    Baseline is the six-month trailing average of income and expenses, grown
    each month by a dampened growth factor. Open receivables and payables
    settle over the first three months.
    """

    @staticmethod
    def calculate_growth_factor(history: list[float], lookback_months: int = GROWTH_LOOKBACK_MONTHS) -> float:
        """
        Average month-over-month growth ratio over the last lookback_months steps.

        Args:
            history: Monthly values, oldest to newest
            lookback_months: Number of steps to average

        Returns:
            Growth factor clamped to [0.5, 1.5]; 1.0 with fewer than four points
        """
        if len(history) < MIN_HISTORY_FOR_FORECAST + 1:
            return 1.0

        relevant = history[-(lookback_months + 1):]
        growth_rates = []
        for prev, curr in zip(relevant, relevant[1:]):
            if prev != 0:
                if abs(prev) < VOLATILE_BASE and abs(curr - prev) > VOLATILE_STEP:
                    continue
                growth_rates.append(curr / prev)
            elif curr > 0:
                growth_rates.append(1.5)
            elif curr == 0:
                growth_rates.append(1.0)

        if not growth_rates:
            return 1.0

        return max(GROWTH_FLOOR, min(mean(growth_rates), GROWTH_CEILING))

    @staticmethod
    def dampen(growth_factor: float) -> float:
        """Limit a growth factor to +/- 5% per month."""
        return max(DAMPENED_FLOOR, min(growth_factor, DAMPENED_CEILING))

    @staticmethod
    def estimate_ar_ap_impact(ar: AgingBucket, ap: AgingBucket, months: int) -> list[float]:
        """
        Net cash impact of collecting receivables and paying payables.

        Returns:
            One value per forecast month (non-zero only for the first three),
            each rounded to whole units
        """
        ar_buckets = (ar.current, ar.days_31_60, ar.days_61_90, ar.days_90_plus)
        ap_buckets = (ap.current, ap.days_31_60, ap.days_61_90, ap.days_90_plus)

        impact = [0.0] * months
        for month in range(min(months, len(AR_COLLECTION_SCHEDULE))):
            collected = sum(a * share for a, share in zip(ar_buckets, AR_COLLECTION_SCHEDULE[month]))
            paid = sum(a * share for a, share in zip(ap_buckets, AP_PAYMENT_SCHEDULE[month]))
            impact[month] = collected - paid

        return [round_half_away(value) for value in impact]

    @staticmethod
    def is_incomplete_month(period: PeriodRecord, history: list[PeriodRecord]) -> bool:
        """
        A month whose income is below 30% of the average of all earlier months is
        treated as still in progress.
        """
        if len(history) < MIN_HISTORY_FOR_FORECAST:
            return False

        earlier = history[:-1]
        average_income = mean(p.income for p in earlier)
        incomplete = average_income > 0 and period.income < average_income * INCOMPLETE_MONTH_THRESHOLD

        if incomplete:
            logger.info(
                "Detected incomplete month %s (income %.0f vs average %.0f)",
                period.label,
                period.income,
                average_income,
            )
        return incomplete

    @staticmethod
    def trailing_average(history: list[float], lookback_months: int = TRAILING_AVERAGE_MONTHS) -> float:
        if not history:
            return 0.0
        return mean(history[-lookback_months:])

    @staticmethod
    def first_forecast_month(last_complete: PeriodRecord) -> date:
        """Month after the last complete period (end date, else start date, else today)."""
        anchor = last_complete.end_date or last_complete.start_date or date.today()
        return add_months(anchor.replace(day=1), 1)

    @staticmethod
    def generate(
        historical: list[PeriodRecord],
        current_ar: AgingBucket,
        current_ap: AgingBucket,
        current_cash: float,
        months: Optional[int] = None,
        scenario: Optional[ScenarioModifiers] = None,
    ) -> list[ForecastPoint]:
        """
        Generate a cash flow forecast.

        Args:
            historical: Parsed P&L periods, oldest to newest
            current_ar: Current AR aging
            current_ap: Current AP aging
            current_cash: Opening cash balance
            months: Months to project (defaults to settings.forecast_months)
            scenario: Optional what-if modifiers

        Returns:
            Forecast points, or an empty list with fewer than three complete periods
        """
        months = settings.forecast_months if months is None else months
        scenario = scenario or ScenarioModifiers()

        if len(historical) < MIN_HISTORY_FOR_FORECAST:
            logger.warning("Insufficient history for forecasting: %d periods", len(historical))
            return []

        history = list(historical)
        if ForecastEngine.is_incomplete_month(history[-1], history):
            history = history[:-1]

        if len(history) < MIN_HISTORY_FOR_FORECAST:
            logger.warning("Insufficient complete history for forecasting after excluding incomplete month")
            return []

        income_history = [p.income for p in history]
        expense_history = [p.expenses for p in history]

        avg_income = ForecastEngine.trailing_average(income_history)
        avg_expenses = ForecastEngine.trailing_average(expense_history)
        income_growth = ForecastEngine.dampen(ForecastEngine.calculate_growth_factor(income_history))
        expense_growth = ForecastEngine.dampen(ForecastEngine.calculate_growth_factor(expense_history))

        logger.debug(
            "Forecast baseline: income=%.0f, expenses=%.0f, growth income=%.3f expenses=%.3f",
            avg_income,
            avg_expenses,
            income_growth,
            expense_growth,
        )

        projected_income = avg_income * scenario.revenue_multiplier
        projected_expenses = avg_expenses * scenario.expense_multiplier
        impact = ForecastEngine.estimate_ar_ap_impact(current_ar, current_ap, months)

        balance = current_cash
        month_start = ForecastEngine.first_forecast_month(history[-1])
        forecast = []

        for i in range(months):
            projected_income = projected_income * income_growth + scenario.new_recurring_revenue
            projected_expenses = projected_expenses * expense_growth + scenario.new_recurring_expense
            net_change = projected_income - projected_expenses + impact[i]
            balance += net_change

            forecast.append(ForecastPoint(
                label=format_month_label(month_start),
                projected_income=round_half_away(projected_income),
                projected_expenses=round_half_away(projected_expenses),
                projected_net_change=round_half_away(net_change),
                projected_balance=round_half_away(balance),
            ))
            month_start = add_months(month_start, 1)

        logger.info(
            "Generated %d-month forecast, closing balance %.0f",
            len(forecast),
            forecast[-1].projected_balance if forecast else current_cash,
        )
        return forecast
