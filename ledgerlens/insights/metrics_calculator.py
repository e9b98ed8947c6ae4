"""
Metrics Calculator
Absolute figures for the latest period, changes against the prior period,
and working-capital days (DSO / DPO).
"""

import logging
from typing import Optional

from ledgerlens.insights.schemas import CoreMetrics
from ledgerlens.insights.utils import calc_change
from ledgerlens.integrations.reports.extracted_types import BalanceSheetSnapshot, PeriodRecord
from ledgerlens.integrations.reports.utils import (
    calendar_months_between,
    days_in_month,
    round_half_away,
)

logger = logging.getLogger(__name__)

DEFAULT_DAYS_IN_MONTH = 30


class MetricsCalculator:
    """Build CoreMetrics from parsed periods and balance sheets."""
    
    @staticmethod
    def find_yoy_period(periods: list[PeriodRecord]) -> Optional[PeriodRecord]:
        """
        The period exactly twelve calendar months before the latest one.
        
        Returns:
            Matching period, or None when dates are missing or no period matches
        """
        if not periods or periods[-1].start_date is None:
            return None
        
        current_start = periods[-1].start_date
        for period in periods:
            if period.start_date is not None and calendar_months_between(current_start, period.start_date) == 12:
                return period
        return None
    
    @staticmethod
    def days_outstanding(balance: float, period_amount: float, days: int) -> float:
        """balance / (period_amount / days), rounded; 0 when the daily amount is not positive."""
        daily_amount = period_amount / days
        if daily_amount <= 0:
            return 0.0
        return round_half_away(balance / daily_amount)
    
    @staticmethod
    def calculate(
        periods: list[PeriodRecord],
        current_bs: BalanceSheetSnapshot,
        prior_bs: Optional[BalanceSheetSnapshot] = None,
        yoy_bs: Optional[BalanceSheetSnapshot] = None,
    ) -> CoreMetrics:
        """
        Calculate core metrics.
        
        The latest period is "current" and the one before it "prior". Cash
        change compares the prior balance sheet with the current one.
        
        Args:
            periods: Parsed P&L periods, oldest to newest
            current_bs: Balance sheet as of the analysis date
            prior_bs: Balance sheet one month earlier (optional)
            yoy_bs: Balance sheet one year earlier (optional)
            
        Returns:
            CoreMetrics (zeroed when there are no periods)
        """
        if not periods:
            logger.error("Cannot calculate core metrics: no P&L periods")
            return CoreMetrics()
        
        current = periods[-1]
        prior = periods[-2] if len(periods) > 1 else None
        
        days = days_in_month(current.start_date) if current.start_date else DEFAULT_DAYS_IN_MONTH
        
        cash_balance = current_bs.assets.cash
        prev_cash = prior_bs.assets.cash if prior_bs is not None else 0.0
        total_ar = current_bs.assets.accounts_receivable
        total_ap = current_bs.liabilities.accounts_payable
        
        dso = MetricsCalculator.days_outstanding(total_ar, current.income, days)
        dpo = MetricsCalculator.days_outstanding(total_ap, current.cogs, days)
        # Service businesses carry little COGS, so payables are measured against opex
        if dpo == 0 and total_ap > 0 and current.expenses > 0:
            dpo = MetricsCalculator.days_outstanding(total_ap, current.expenses, days)
        
        metrics = CoreMetrics(
            current_income=current.income,
            current_expenses=current.expenses,
            current_profit_loss=current.net_income,
            current_cogs=current.cogs,
            total_operating_expenses=current.expenses,
            total_cogs=current.cogs,
            cash_balance=cash_balance,
            prev_month_cash_balance=prev_cash,
            yoy_cash_balance=yoy_bs.assets.cash if yoy_bs is not None else None,
            total_ar=total_ar,
            total_ap=total_ap,
            total_current_assets=current_bs.assets.total_current,
            total_current_liabilities=current_bs.liabilities.total_current,
            total_assets=current_bs.assets.total,
            total_liabilities=current_bs.liabilities.total,
            total_equity=current_bs.equity.total,
            cash_change_percentage=calc_change(prev_cash, cash_balance),
            income_change_percentage=calc_change(prior.income if prior else None, current.income),
            expenses_change_percentage=calc_change(prior.expenses if prior else None, current.expenses),
            profit_loss_change_percentage=calc_change(prior.net_income if prior else None, current.net_income),
            dso=max(0.0, dso),
            dpo=max(0.0, dpo),
        )
        
        logger.info(
            "Metrics for %s: income=%.2f, net=%.2f, cash=%.2f, DSO=%.0f, DPO=%.0f",
            current.label,
            metrics.current_income,
            metrics.current_profit_loss,
            metrics.cash_balance,
            metrics.dso,
            metrics.dpo,
        )
        return metrics
