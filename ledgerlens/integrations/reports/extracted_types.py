"""
Extracted Data Types
====================

Single source of truth for the canonical structures the report parsers emit.
Every calculator downstream consumes these types, never raw report JSON.

Design Principles:
- All numeric values are float (for JSON serialization)
- Dates are None when the report carried no usable period metadata
- Immutable structures (frozen pydantic models)
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PeriodRecord(BaseModel):
    """
    One reporting period (a P&L column).
    
    Identities:
    - gross_profit = income - cogs
    - operating_income = gross_profit - expenses
    - net_income defaults to operating_income when the report has no net row
    """
    
    model_config = ConfigDict(frozen=True)
    
    label: str = Field(..., description="Column title, e.g. 'Jan 2024'")
    start_date: Optional[date] = Field(None, description="First day of the period")
    end_date: Optional[date] = Field(None, description="Last day of the period")
    income: float = Field(0.0, description="Total income")
    cogs: float = Field(0.0, description="Cost of goods sold (non-negative)")
    gross_profit: float = Field(0.0, description="Income minus COGS")
    expenses: float = Field(0.0, description="Operating expenses excluding COGS (non-negative)")
    operating_income: float = Field(0.0, description="Gross profit minus expenses")
    net_income: float = Field(0.0, description="Reported net income, or operating income")


class AssetTotals(BaseModel):
    """Asset side of a balance sheet."""
    
    model_config = ConfigDict(frozen=True)
    
    cash: float = 0.0
    accounts_receivable: float = 0.0
    other_current: float = 0.0
    total_current: float = 0.0
    total_long_term: float = 0.0
    total: float = 0.0


class LiabilityTotals(BaseModel):
    """Liability side of a balance sheet."""
    
    model_config = ConfigDict(frozen=True)
    
    accounts_payable: float = 0.0
    credit_cards: float = 0.0
    other_current: float = 0.0
    total_current: float = 0.0
    total_long_term: float = 0.0
    total: float = 0.0


class EquityTotals(BaseModel):
    model_config = ConfigDict(frozen=True)
    
    total: float = 0.0


class BalanceSheetSnapshot(BaseModel):
    """
    Balance sheet as of one date.
    
    assets.total is expected to equal liabilities.total + equity.total within 1.0;
    a mismatch is logged by the parser, never corrected.
    """
    
    model_config = ConfigDict(frozen=True)
    
    report_date: Optional[date] = Field(None, description="As-of date of the report")
    assets: AssetTotals = Field(default_factory=AssetTotals)
    liabilities: LiabilityTotals = Field(default_factory=LiabilityTotals)
    equity: EquityTotals = Field(default_factory=EquityTotals)


class AccountInfo(BaseModel):
    """Chart-of-accounts classification used to match report rows by account id."""
    
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    
    account_type: str = Field(..., alias="type", description="e.g. 'Bank', 'Accounts Receivable'")
    sub_type: Optional[str] = Field(None, alias="subType", description="e.g. 'Checking', 'Savings'")


class ExpenseCategory(BaseModel):
    model_config = ConfigDict(frozen=True)
    
    name: str
    amount: float


class CustomerRevenue(BaseModel):
    """Cash received from one customer (invoice total minus open balance)."""
    
    model_config = ConfigDict(frozen=True)
    
    id: str
    name: str
    revenue: float
