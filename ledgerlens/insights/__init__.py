"""
Insights Package
Financial metrics, forecasting and rule-based insights.
"""

from ledgerlens.insights.aging_calculator import AgingCalculator
from ledgerlens.insights.benchmarks import BenchmarkService
from ledgerlens.insights.forecast_engine import ForecastEngine
from ledgerlens.insights.insight_generator import InsightGenerator
from ledgerlens.insights.metrics_calculator import MetricsCalculator
from ledgerlens.insights.ratio_calculator import RatioCalculator
from ledgerlens.insights.service import InsightsService
from ledgerlens.insights.trend_analyzer import CashRunwayCalculator, TrendAnalyzer

__all__ = [
    "AgingCalculator",
    "BenchmarkService",
    "CashRunwayCalculator",
    "ForecastEngine",
    "InsightGenerator",
    "InsightsService",
    "MetricsCalculator",
    "RatioCalculator",
    "TrendAnalyzer",
]
