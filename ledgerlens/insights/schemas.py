"""
Insights Schemas
Pydantic models for calculator outputs and the analysis bundle.
"""

import uuid
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ledgerlens.integrations.reports.extracted_types import (
    BalanceSheetSnapshot,
    CustomerRevenue,
    ExpenseCategory,
    PeriodRecord,
)


class CoreMetrics(BaseModel):
    """Absolute figures for the latest period and their changes against the prior period."""

    model_config = ConfigDict(frozen=True)

    # Current period P&L
    current_income: float = Field(0.0, description="Income of the latest period")
    current_expenses: float = Field(0.0, description="Operating expenses of the latest period")
    current_profit_loss: float = Field(0.0, description="Net income of the latest period")
    current_cogs: float = Field(0.0, description="COGS of the latest period")
    total_operating_expenses: float = Field(0.0, description="Same as current_expenses")
    total_cogs: float = Field(0.0, description="Same as current_cogs")

    # Balance sheet position
    cash_balance: float = Field(0.0, description="Cash and equivalents")
    prev_month_cash_balance: float = Field(0.0, description="Cash per the prior balance sheet")
    yoy_cash_balance: Optional[float] = Field(None, description="Cash one year earlier")
    total_ar: float = Field(0.0, description="Accounts receivable")
    total_ap: float = Field(0.0, description="Accounts payable")
    total_current_assets: float = 0.0
    total_current_liabilities: float = 0.0
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    total_equity: float = 0.0

    # Changes (whole percent)
    cash_change_percentage: float = Field(0.0, description="Cash change vs prior balance sheet, %")
    income_change_percentage: float = Field(0.0, description="Income change vs prior period, %")
    expenses_change_percentage: float = Field(0.0, description="Expense change vs prior period, %")
    profit_loss_change_percentage: float = Field(0.0, description="Net income change vs prior period, %")

    # Working capital days
    dso: float = Field(0.0, description="Days sales outstanding")
    dpo: float = Field(0.0, description="Days payables outstanding")


class FinancialRatios(BaseModel):
    """Ratios derived from CoreMetrics. None means the denominator was zero."""

    model_config = ConfigDict(frozen=True)

    net_profit_margin: Optional[float] = Field(None, description="Net income / income, %")
    gross_profit_margin: Optional[float] = Field(None, description="Gross profit / income, %")
    operating_profit_margin: Optional[float] = Field(None, description="Operating income / income, %")
    current_ratio: Optional[float] = Field(None, description="Current assets / current liabilities")
    quick_ratio: Optional[float] = Field(None, description="(Cash + AR) / current liabilities")
    working_capital: Optional[float] = Field(None, description="Current assets - current liabilities")
    debt_to_equity: Optional[float] = Field(None, description="Total liabilities / equity")


class TrendData(BaseModel):
    model_config = ConfigDict(frozen=True)

    periods: list[PeriodRecord] = Field(default_factory=list)
    yoy_income_change: Optional[float] = Field(None, description="Income vs same month last year, %")
    yoy_profit_change: Optional[float] = Field(None, description="Net income vs same month last year, %")
    avg_monthly_burn: float = Field(0.0, description="Negative mean net income over up to 6 periods")


class AgingBucket(BaseModel):
    """
    Open balances by days past due.

    Serialized with the report-style keys "0-30", "31-60", "61-90", "90+".
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    current: float = Field(0.0, alias="0-30")
    days_31_60: float = Field(0.0, alias="31-60")
    days_61_90: float = Field(0.0, alias="61-90")
    days_90_plus: float = Field(0.0, alias="90+")
    total: float = 0.0

    @property
    def over_60(self) -> float:
        return self.days_61_90 + self.days_90_plus


class AgingData(BaseModel):
    model_config = ConfigDict(frozen=True)

    ar: AgingBucket = Field(default_factory=AgingBucket)
    ap: AgingBucket = Field(default_factory=AgingBucket)


class ForecastPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="Month label, e.g. 'Apr 2025'")
    projected_income: float
    projected_expenses: float
    projected_net_change: float
    projected_balance: float


class ScenarioModifiers(BaseModel):
    """What-if adjustments applied to the forecast baseline."""

    model_config = ConfigDict(frozen=True)

    revenue_multiplier: float = Field(1.0, ge=0, description="Scales baseline income")
    expense_multiplier: float = Field(1.0, ge=0, description="Scales baseline expenses")
    new_recurring_revenue: float = Field(0.0, description="Added to income every month")
    new_recurring_expense: float = Field(0.0, description="Added to expenses every month")


class InsightType(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"
    TIP = "tip"


class Insight(BaseModel):
    """A single human-readable finding."""

    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: InsightType
    title: str
    description: str
    priority: int = Field(..., ge=1, le=10, description="1 (low) to 10 (urgent)")
    related_metric: Optional[str] = None
    action_text: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert insight to dictionary for JSON serialization."""
        return self.model_dump()


class IndustryBenchmark(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric: str = Field(..., description="e.g. 'netProfitMargin', 'dso'")
    average: float


class FinancialAnalysis(BaseModel):
    """Everything one analysis run produces."""

    periods: list[PeriodRecord] = Field(default_factory=list)
    balance_sheet: BalanceSheetSnapshot = Field(default_factory=BalanceSheetSnapshot)
    metrics: CoreMetrics = Field(default_factory=CoreMetrics)
    ratios: FinancialRatios = Field(default_factory=FinancialRatios)
    trends: TrendData = Field(default_factory=TrendData)
    aging: AgingData = Field(default_factory=AgingData)
    runway: Optional[float] = Field(None, description="Months of cash; -1 when cash-flow positive")
    forecast: list[ForecastPoint] = Field(default_factory=list)
    insights: list[Insight] = Field(default_factory=list)
    top_expense_categories: list[ExpenseCategory] = Field(default_factory=list)
    top_customers: list[CustomerRevenue] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list, description="Data-quality and fetch errors")
