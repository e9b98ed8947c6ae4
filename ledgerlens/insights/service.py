"""
Insights Service
Runs the full analysis pipeline: parse reports, calculate metrics, ratios,
trends, runway, aging and forecast, then generate insights.
"""

import logging
from datetime import date
from typing import Any, Optional

from ledgerlens.insights.aging_calculator import AgingCalculator
from ledgerlens.insights.benchmarks import BenchmarkService
from ledgerlens.insights.forecast_engine import ForecastEngine
from ledgerlens.insights.insight_generator import InsightGenerator
from ledgerlens.insights.metrics_calculator import MetricsCalculator
from ledgerlens.insights.ratio_calculator import RatioCalculator
from ledgerlens.insights.schemas import FinancialAnalysis, ScenarioModifiers
from ledgerlens.insights.trend_analyzer import CashRunwayCalculator, TrendAnalyzer
from ledgerlens.integrations.reports.orchestrator import ReportDataOrchestrator
from ledgerlens.integrations.reports.parsers import (
    AccountTypeMap,
    BalanceSheetParser,
    ExpenseCategoryExtractor,
    ProfitAndLossParser,
    TopCustomerExtractor,
)

logger = logging.getLogger(__name__)


class InsightsService:
    """
    Service for calculating financial analysis.

    Stateless: each call builds its own intermediate values, so concurrent
    analyses never share data.
    """

    @staticmethod
    def analyze(
        profit_and_loss: dict[str, Any],
        balance_sheet: dict[str, Any],
        open_invoices: Optional[list[dict[str, Any]]] = None,
        open_bills: Optional[list[dict[str, Any]]] = None,
        prior_balance_sheet: Optional[dict[str, Any]] = None,
        yoy_balance_sheet: Optional[dict[str, Any]] = None,
        account_map: Optional[AccountTypeMap] = None,
        invoices: Optional[list[dict[str, Any]]] = None,
        customers: Optional[list[dict[str, Any]]] = None,
        industry: Optional[str] = None,
        scenario: Optional[ScenarioModifiers] = None,
        forecast_months: Optional[int] = None,
        today: Optional[date] = None,
        errors: Optional[list[str]] = None,
    ) -> FinancialAnalysis:
        """
        Analyze one organization's reports.

        Args:
            profit_and_loss: Raw multi-period P&L report
            balance_sheet: Raw current Balance Sheet
            open_invoices: Open customer invoices
            open_bills: Open supplier bills
            prior_balance_sheet: Raw Balance Sheet one month back (optional)
            yoy_balance_sheet: Raw Balance Sheet one year back (optional)
            account_map: Optional chart-of-accounts map
            invoices: Invoices for the period, paid ones included (top customers)
            customers: Customer records naming the top customers
            industry: Industry for benchmarks (defaults to settings)
            scenario: What-if modifiers for the forecast
            forecast_months: Forecast length (defaults to settings)
            today: Reference date for aging (defaults to today)
            errors: Upstream fetch errors to carry into the result

        Returns:
            FinancialAnalysis bundle
        """
        errors = list(errors or [])

        # =================================================================
        # PARSING
        # =================================================================
        periods = ProfitAndLossParser.parse(profit_and_loss, account_map)
        if not periods:
            errors.append("No P&L periods could be parsed")

        current_bs = BalanceSheetParser.parse(balance_sheet, account_map)
        if not BalanceSheetParser.is_balanced(current_bs):
            errors.append("Balance Sheet does not balance: assets differ from liabilities plus equity")
        prior_bs = BalanceSheetParser.parse(prior_balance_sheet, account_map) if prior_balance_sheet else None
        yoy_bs = BalanceSheetParser.parse(yoy_balance_sheet, account_map) if yoy_balance_sheet else None

        top_expense_categories = []
        columns = ProfitAndLossParser.period_columns(profit_and_loss)
        if columns:
            top_expense_categories = ExpenseCategoryExtractor.top_categories(
                profit_and_loss, account_map, columns[-1]["index"]
            )
        top_customers = TopCustomerExtractor.top_customers(invoices, customers)

        # =================================================================
        # CALCULATIONS
        # =================================================================
        metrics = MetricsCalculator.calculate(periods, current_bs, prior_bs, yoy_bs)
        ratios = RatioCalculator.calculate(metrics)
        trends = TrendAnalyzer.calculate(periods)
        runway = CashRunwayCalculator.calculate_runway(metrics.cash_balance, trends.avg_monthly_burn)
        aging = AgingCalculator.calculate(open_invoices, open_bills, today)

        forecast = ForecastEngine.generate(
            periods,
            aging.ar,
            aging.ap,
            metrics.cash_balance,
            months=forecast_months,
            scenario=scenario,
        )
        if periods and not forecast:
            errors.append("Not enough complete periods to forecast cash flow")

        benchmarks = BenchmarkService.get_benchmarks(industry)
        insights = InsightGenerator.generate_insights(
            metrics, ratios, trends, aging, runway, forecast, benchmarks
        )

        logger.info(
            "Analysis complete: %d periods, runway=%.1f, %d forecast months, %d insights, %d errors",
            len(periods),
            runway,
            len(forecast),
            len(insights),
            len(errors),
        )

        return FinancialAnalysis(
            periods=periods,
            balance_sheet=current_bs,
            metrics=metrics,
            ratios=ratios,
            trends=trends,
            aging=aging,
            runway=runway,
            forecast=forecast,
            insights=insights,
            top_expense_categories=top_expense_categories,
            top_customers=top_customers,
            errors=errors,
        )

    @staticmethod
    def analyze_fetched(
        data: dict[str, Any],
        industry: Optional[str] = None,
        scenario: Optional[ScenarioModifiers] = None,
        forecast_months: Optional[int] = None,
    ) -> FinancialAnalysis:
        """
        Analyze the payload returned by ReportDataOrchestrator.fetch_all.
        """
        return InsightsService.analyze(
            profit_and_loss=data.get("profit_and_loss", {}),
            balance_sheet=data.get("balance_sheet_current", {}),
            open_invoices=data.get("open_invoices", []),
            open_bills=data.get("open_bills", []),
            prior_balance_sheet=data.get("balance_sheet_prior"),
            yoy_balance_sheet=data.get("balance_sheet_yoy"),
            account_map=data.get("account_map"),
            invoices=data.get("invoices"),
            customers=data.get("customers"),
            industry=industry,
            scenario=scenario,
            forecast_months=forecast_months,
            today=data.get("as_of"),
            errors=data.get("errors"),
        )

    @staticmethod
    async def run(
        orchestrator: ReportDataOrchestrator,
        as_of: Optional[date] = None,
        industry: Optional[str] = None,
        scenario: Optional[ScenarioModifiers] = None,
    ) -> FinancialAnalysis:
        """
        Fetch every report concurrently, then analyze.

        All fetches complete before any calculation starts.
        """
        data = await orchestrator.fetch_all(as_of)
        return InsightsService.analyze_fetched(data, industry=industry, scenario=scenario)
