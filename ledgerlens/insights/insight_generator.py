"""
Insight generator using rule-based logic.
"""

import logging
from typing import Optional

from ledgerlens.insights.benchmarks import BenchmarkService
from ledgerlens.insights.schemas import (
    AgingData,
    CoreMetrics,
    FinancialRatios,
    ForecastPoint,
    IndustryBenchmark,
    Insight,
    InsightType,
    TrendData,
)
from ledgerlens.insights.utils import format_percentage

logger = logging.getLogger(__name__)


def _format_ratio(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value:.2f}"


class InsightGenerator:
    """
    Generates insights from financial metrics.

    Every rule reads only its arguments; the result list is built per call.
    """

    @staticmethod
    def generate_insights(
        metrics: CoreMetrics,
        ratios: FinancialRatios,
        trends: TrendData,
        aging: AgingData,
        runway: Optional[float],
        forecast: list[ForecastPoint],
        benchmarks: Optional[list[IndustryBenchmark]] = None,
    ) -> list[Insight]:
        """
        Evaluate every rule and rank the results.

        Args:
            metrics: Core metrics
            ratios: Financial ratios
            trends: Trend data
            aging: AR/AP aging
            runway: Cash runway in months (-1 = cash-flow positive, None = unknown)
            forecast: Cash flow forecast
            benchmarks: Optional industry benchmarks

        Returns:
            Insights, one per title, highest priority first (ties keep rule order)
        """
        candidates: list[Insight] = []
        candidates.extend(InsightGenerator._generate_runway_insights(runway))
        candidates.extend(InsightGenerator._generate_liquidity_insights(ratios))
        candidates.extend(InsightGenerator._generate_receivables_insights(metrics, aging, benchmarks))
        candidates.extend(InsightGenerator._generate_profitability_insights(ratios, benchmarks))
        candidates.extend(InsightGenerator._generate_collection_speed_insight(metrics))
        candidates.extend(InsightGenerator._generate_forecast_insights(forecast))

        insights: list[Insight] = []
        seen_titles: set[str] = set()
        for insight in candidates:
            if insight.title in seen_titles:
                continue
            seen_titles.add(insight.title)
            insights.append(insight)

        insights.sort(key=lambda insight: insight.priority, reverse=True)
        logger.debug(
            "Generated %d insights (avg burn %.2f over %d periods)",
            len(insights),
            trends.avg_monthly_burn,
            len(trends.periods),
        )
        return insights

    @staticmethod
    def _generate_runway_insights(runway: Optional[float]) -> list[Insight]:
        """Short runway warnings, or praise when cash-flow positive / runway is long."""
        if runway is None:
            return []

        if 0 <= runway < 1.5:
            return [Insight(
                type=InsightType.CRITICAL,
                priority=10,
                title="Critically Low Cash Runway",
                description=(
                    f"Estimated cash runway is less than 1.5 months ({runway:.1f} months). "
                    "Immediate action required to increase cash inflow or drastically cut costs."
                ),
                related_metric="runwayMonths",
                action_text="Review Expenses & AR",
            )]
        if 0 <= runway < 3:
            return [Insight(
                type=InsightType.CRITICAL,
                priority=9,
                title="Short Cash Runway",
                description=(
                    f"Estimated cash runway is less than 3 months ({runway:.1f} months). "
                    "Prioritize collecting receivables and managing expenses carefully."
                ),
                related_metric="runwayMonths",
                action_text="Develop Cash Plan",
            )]
        if runway < 0:
            return [Insight(
                type=InsightType.SUCCESS,
                priority=5,
                title="Cash Flow Positive",
                description=(
                    "Your business is currently generating more cash than it's spending. "
                    "Consider opportunities for investment or building reserves."
                ),
                related_metric="runwayMonths",
            )]
        if runway > 9:
            return [Insight(
                type=InsightType.SUCCESS,
                priority=4,
                title="Healthy Cash Runway",
                description=(
                    f"You have over 9 months of cash runway ({runway:.1f} months), "
                    "providing a good buffer."
                ),
                related_metric="runwayMonths",
            )]
        return []

    @staticmethod
    def _generate_liquidity_insights(ratios: FinancialRatios) -> list[Insight]:
        insights = []
        current_ratio = ratios.current_ratio
        quick_ratio = ratios.quick_ratio

        if (current_ratio is not None and current_ratio < 0.8) or (quick_ratio is not None and quick_ratio < 0.5):
            insights.append(Insight(
                type=InsightType.CRITICAL,
                priority=9,
                title="Potential Liquidity Crisis",
                description=(
                    f"Current Ratio ({_format_ratio(current_ratio)}) or Quick Ratio "
                    f"({_format_ratio(quick_ratio)}) is critically low. "
                    "Difficulty meeting short-term obligations is likely."
                ),
                related_metric="liquidity",
                action_text="Manage Cash Flow",
            ))

        if quick_ratio is not None and quick_ratio > 1.5:
            insights.append(Insight(
                type=InsightType.TIP,
                priority=2,
                title="High Liquidity (Quick Ratio > 1.5)",
                description=(
                    f"Your quick ratio ({quick_ratio:.2f}) is strong, indicating ample liquid assets. "
                    "Consider if excess cash could be deployed for growth."
                ),
                related_metric="liquidity",
            ))

        return insights

    @staticmethod
    def _generate_receivables_insights(
        metrics: CoreMetrics,
        aging: AgingData,
        benchmarks: Optional[list[IndustryBenchmark]],
    ) -> list[Insight]:
        """Overdue receivables and slow collection."""
        insights = []
        total_ar = metrics.total_ar
        dso = metrics.dso

        if total_ar > 100 and aging.ar.days_90_plus > total_ar * 0.20:
            insights.append(Insight(
                type=InsightType.WARNING,
                priority=8,
                title="High Amount of Severely Overdue Invoices",
                description=(
                    f"A significant portion ({aging.ar.days_90_plus / total_ar * 100:.0f}%) of your "
                    "receivables is over 90 days past due. This ties up cash flow and increases "
                    "risk of bad debt."
                ),
                related_metric="agingAR",
                action_text="Review Overdue Invoices",
            ))
        elif total_ar > 100 and aging.ar.over_60 > total_ar * 0.35:
            insights.append(Insight(
                type=InsightType.WARNING,
                priority=7,
                title="Significant Overdue Receivables",
                description=(
                    "Over 35% of your receivables are more than 60 days past due. "
                    "Focus on collection efforts for invoices aged 61+ days."
                ),
                related_metric="agingAR",
                action_text="Implement Collection Strategy",
            ))

        if dso > 60:
            insights.append(Insight(
                type=InsightType.WARNING,
                priority=7,
                title="High Days Sales Outstanding (DSO)",
                description=(
                    f"Your DSO is {dso:.0f} days, indicating it takes a long time on average to "
                    "collect payments after a sale. Review credit terms and collection processes."
                ),
                related_metric="efficiency",
                action_text="Analyze Payment Terms",
            ))

        dso_benchmark = BenchmarkService.get_benchmark(benchmarks, "dso")
        if dso_benchmark and dso > dso_benchmark * 1.3:
            insights.append(Insight(
                type=InsightType.WARNING,
                priority=6,
                title="DSO Significantly Higher Than Industry",
                description=(
                    f"Your DSO ({dso:.0f} days) is notably higher than the industry average "
                    f"({dso_benchmark:.0f} days). This could indicate less efficient collection "
                    "processes compared to peers."
                ),
                related_metric="efficiency",
            ))

        return insights

    @staticmethod
    def _generate_collection_speed_insight(metrics: CoreMetrics) -> list[Insight]:
        dso = metrics.dso
        if 0 < dso < 30:
            return [Insight(
                type=InsightType.SUCCESS,
                priority=4,
                title="Excellent Collection Speed (Low DSO)",
                description=f"Your DSO of {dso:.0f} days indicates very efficient invoice collection.",
                related_metric="efficiency",
            )]
        return []

    @staticmethod
    def _generate_profitability_insights(
        ratios: FinancialRatios,
        benchmarks: Optional[list[IndustryBenchmark]],
    ) -> list[Insight]:
        insights = []
        net_margin = ratios.net_profit_margin
        operating_margin = ratios.operating_profit_margin

        if (net_margin is not None and net_margin < 5) or (operating_margin is not None and operating_margin < 8):
            insights.append(Insight(
                type=InsightType.WARNING,
                priority=6,
                title="Low Profit Margins",
                description=(
                    f"Your Net ({format_percentage(net_margin)}) or Operating "
                    f"({format_percentage(operating_margin)}) profit margin is low. "
                    "Investigate cost structure and pricing strategy."
                ),
                related_metric="margins",
                action_text="Review Profitability",
            ))

        margin_benchmark = BenchmarkService.get_benchmark(benchmarks, "netProfitMargin")
        if net_margin is not None and margin_benchmark and net_margin > margin_benchmark * 1.1:
            insights.append(Insight(
                type=InsightType.SUCCESS,
                priority=4,
                title="Strong Net Profit Margin vs Industry",
                description=(
                    f"Your net profit margin ({format_percentage(net_margin)}) is performing well "
                    f"compared to the industry average ({format_percentage(margin_benchmark)})."
                ),
                related_metric="margins",
            ))

        return insights

    @staticmethod
    def _generate_forecast_insights(forecast: list[ForecastPoint]) -> list[Insight]:
        if len(forecast) <= 3:
            return []

        if forecast[-1].projected_balance < forecast[0].projected_balance * 0.8:
            return [Insight(
                type=InsightType.WARNING,
                priority=7,
                title="Forecast Shows Declining Cash Balance",
                description=(
                    "The cash flow forecast predicts a significant decrease in your cash balance "
                    f"over the next {len(forecast)} months. Review projected income and expenses."
                ),
                related_metric="cashFlowForecast",
                action_text="Analyze Forecast Details",
            )]
        return []
