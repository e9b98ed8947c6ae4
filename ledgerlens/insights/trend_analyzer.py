"""
Trend analysis and cash runway calculators.
"""

import logging
from statistics import mean
from typing import Optional

from ledgerlens.insights.metrics_calculator import MetricsCalculator
from ledgerlens.insights.schemas import TrendData
from ledgerlens.insights.utils import calc_trend_change
from ledgerlens.integrations.reports.extracted_types import PeriodRecord

logger = logging.getLogger(__name__)

BURN_LOOKBACK_PERIODS = 6


class TrendAnalyzer:
    """
    Year-over-year changes and average monthly burn.
    """
    
    @staticmethod
    def calculate_avg_monthly_burn(periods: list[PeriodRecord]) -> float:
        """
        Average monthly burn over the last six periods (fewer if not available).
        
        Burn is negative net income, so a profitable business has a negative burn.
        """
        if not periods:
            return 0.0
        recent = periods[-BURN_LOOKBACK_PERIODS:]
        return -mean(period.net_income for period in recent)
    
    @staticmethod
    def calculate(periods: list[PeriodRecord]) -> TrendData:
        """
        Calculate trends over the parsed periods.
        
        Args:
            periods: Parsed P&L periods, oldest to newest
        
        Returns:
            TrendData; YoY changes are None when there is no period twelve
            months back or it started from zero
        """
        if not periods:
            logger.warning("Cannot calculate trends: no P&L periods")
            return TrendData()
        
        current = periods[-1]
        yoy = MetricsCalculator.find_yoy_period(periods)
        
        return TrendData(
            periods=list(periods),
            yoy_income_change=calc_trend_change(yoy.income if yoy else None, current.income),
            yoy_profit_change=calc_trend_change(yoy.net_income if yoy else None, current.net_income),
            avg_monthly_burn=TrendAnalyzer.calculate_avg_monthly_burn(periods),
        )


class CashRunwayCalculator:
    """
    Calculates cash runway.
    """
    
    @staticmethod
    def calculate_runway(cash: Optional[float], avg_burn: Optional[float]) -> float:
        """
        Months of cash at the current burn.
        
        Args:
            cash: Current cash balance
            avg_burn: Average monthly burn (positive = burning cash)
        
        Returns:
            -1 when not burning (cash-flow positive), 0 when there is no cash,
            otherwise cash / burn
        """
        cash = cash or 0.0
        avg_burn = avg_burn or 0.0
        if avg_burn <= 0:
            return -1.0
        if cash <= 0:
            return 0.0
        return cash / avg_burn
