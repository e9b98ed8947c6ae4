"""
Report Integration Package
Parses bookkeeping-platform reports into canonical records.
"""

from ledgerlens.integrations.reports.exceptions import ReportFetchError
from ledgerlens.integrations.reports.extracted_types import (
    AccountInfo,
    BalanceSheetSnapshot,
    CustomerRevenue,
    ExpenseCategory,
    PeriodRecord,
)
from ledgerlens.integrations.reports.orchestrator import ReportDataOrchestrator, ReportFetcher
from ledgerlens.integrations.reports.parsers import (
    BalanceSheetParser,
    ExpenseCategoryExtractor,
    ProfitAndLossParser,
    TopCustomerExtractor,
)

__all__ = [
    "AccountInfo",
    "BalanceSheetParser",
    "BalanceSheetSnapshot",
    "CustomerRevenue",
    "ExpenseCategory",
    "ExpenseCategoryExtractor",
    "PeriodRecord",
    "ProfitAndLossParser",
    "ReportDataOrchestrator",
    "ReportFetchError",
    "ReportFetcher",
    "TopCustomerExtractor",
]
