"""
Ratio Calculator
Margins, liquidity and leverage ratios from CoreMetrics.
"""

from typing import Optional

from ledgerlens.insights.schemas import CoreMetrics, FinancialRatios
from ledgerlens.insights.utils import finite_or_none


def _ratio(numerator: float, denominator: float) -> Optional[float]:
    if denominator == 0:
        return None
    return finite_or_none(numerator / denominator)


class RatioCalculator:
    """
    Derive FinancialRatios.
    
    Null conventions:
    - margins are None when income is 0
    - current and quick ratios are None unless current liabilities are positive
    - debt-to-equity is None when equity is 0
    - any non-finite result is None
    """
    
    @staticmethod
    def calculate(metrics: CoreMetrics) -> FinancialRatios:
        income = metrics.current_income
        gross_profit = income - metrics.current_cogs
        operating_income = gross_profit - metrics.total_operating_expenses
        
        current_liabilities = metrics.total_current_liabilities
        has_current_liabilities = current_liabilities > 0
        quick_assets = metrics.cash_balance + metrics.total_ar
        
        def margin(amount: float) -> Optional[float]:
            if income == 0:
                return None
            return finite_or_none(amount / income * 100)

        return FinancialRatios(
            net_profit_margin=margin(metrics.current_profit_loss),
            gross_profit_margin=margin(gross_profit),
            operating_profit_margin=margin(operating_income),
            current_ratio=_ratio(metrics.total_current_assets, current_liabilities) if has_current_liabilities else None,
            quick_ratio=_ratio(quick_assets, current_liabilities) if has_current_liabilities else None,
            working_capital=finite_or_none(metrics.total_current_assets - current_liabilities),
            debt_to_equity=_ratio(metrics.total_liabilities, metrics.total_equity),
        )
