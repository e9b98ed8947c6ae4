"""
Report Data Orchestrator
Coordinates parallel fetching of every report one analysis run needs.

The bookkeeping platform client is a collaborator behind the ReportFetcher
protocol; this module owns only concurrency and degradation.
"""

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Optional, Protocol, TypeVar

from ledgerlens.config import settings
from ledgerlens.integrations.reports.exceptions import ReportFetchError
from ledgerlens.integrations.reports.utils import add_months, get_month_end

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReportFetcher(Protocol):
    """Async client for a bookkeeping platform's reports and open-item lists."""

    async def fetch_profit_and_loss(self, start: date, end: date) -> dict[str, Any]:
        """Monthly-column P&L report covering start..end."""
        ...

    async def fetch_balance_sheet(self, as_of: date) -> dict[str, Any]:
        """Single-column Balance Sheet as of a date."""
        ...

    async def fetch_open_invoices(self) -> list[dict[str, Any]]:
        """Invoices with an outstanding balance."""
        ...

    async def fetch_open_bills(self) -> list[dict[str, Any]]:
        """Bills with an outstanding balance."""
        ...

    async def fetch_account_map(self) -> dict[str, Any]:
        """Chart of accounts: account id -> {"type", "subType"}."""
        ...

    async def fetch_invoices(self, start: date, end: date) -> list[dict[str, Any]]:
        """Invoices dated start..end, paid ones included."""
        ...

    async def fetch_customers(self) -> list[dict[str, Any]]:
        """Customer records (Id, DisplayName)."""
        ...


class ReportDataOrchestrator:
    """
    Fetch P&L, three balance sheets, open invoices, open bills, the chart of
    accounts, the period's invoices and the customer list concurrently.

    A failed fetch never fails the run: it degrades to an empty payload and
    its message is recorded in "errors".
    """

    def __init__(self, fetcher: ReportFetcher, history_months: Optional[int] = None):
        """
        Initialize orchestrator.

        Args:
            fetcher: Platform client implementing ReportFetcher
            history_months: Months of P&L history to request (defaults to settings)
        """
        self.fetcher = fetcher
        self.history_months = history_months or settings.history_months

    async def _with_error_handling(
        self, label: str, awaitable: Awaitable[T], empty: T
    ) -> tuple[T, Optional[str]]:
        """Await one fetch, degrading a ReportFetchError to (empty, message)."""
        try:
            return await awaitable, None
        except ReportFetchError as e:
            error_msg = f"{label}: {e.message}"
            logger.warning(error_msg)
            return empty, error_msg

    @staticmethod
    def report_dates(as_of: date, history_months: int) -> dict[str, date]:
        """
        Dates to request reports for.

        - P&L: first day of the month history_months - 1 months back, through as_of
        - prior balance sheet: end of the previous month
        - YoY balance sheet: same day one year earlier
        """
        month_start = as_of.replace(day=1)
        return {
            "pnl_start": add_months(month_start, -(history_months - 1)),
            "pnl_end": as_of,
            "current": as_of,
            "prior": get_month_end(add_months(month_start, -1)),
            "yoy": add_months(as_of, -12),
        }

    async def fetch_all(self, as_of: Optional[date] = None) -> dict[str, Any]:
        """
        Fetch everything in parallel.

        Args:
            as_of: Report date (defaults to today)

        Returns:
            Dict with raw payloads ("profit_and_loss", "balance_sheet_current",
            "balance_sheet_prior", "balance_sheet_yoy", "open_invoices",
            "open_bills", "account_map", "invoices", "customers") plus "as_of",
            "fetched_at" and "errors"
        """
        as_of = as_of or date.today()
        dates = self.report_dates(as_of, self.history_months)

        try:
            (
                (profit_and_loss, error_pnl),
                (balance_sheet_current, error_current),
                (balance_sheet_prior, error_prior),
                (balance_sheet_yoy, error_yoy),
                (open_invoices, error_invoices),
                (open_bills, error_bills),
                (account_map, error_accounts),
                (invoices, error_period_invoices),
                (customers, error_customers),
            ) = await asyncio.gather(
                self._with_error_handling(
                    "Profit and Loss",
                    self.fetcher.fetch_profit_and_loss(dates["pnl_start"], dates["pnl_end"]),
                    {},
                ),
                self._with_error_handling(
                    "Balance Sheet (current)", self.fetcher.fetch_balance_sheet(dates["current"]), {}
                ),
                self._with_error_handling(
                    "Balance Sheet (prior)", self.fetcher.fetch_balance_sheet(dates["prior"]), {}
                ),
                self._with_error_handling(
                    "Balance Sheet (year ago)", self.fetcher.fetch_balance_sheet(dates["yoy"]), {}
                ),
                self._with_error_handling("Open invoices", self.fetcher.fetch_open_invoices(), []),
                self._with_error_handling("Open bills", self.fetcher.fetch_open_bills(), []),
                self._with_error_handling("Accounts", self.fetcher.fetch_account_map(), {}),
                self._with_error_handling(
                    "Invoices",
                    self.fetcher.fetch_invoices(dates["pnl_start"], dates["pnl_end"]),
                    [],
                ),
                self._with_error_handling("Customers", self.fetcher.fetch_customers(), []),
            )
        except Exception as e:
            logger.error("Failed to fetch report data: %s", e)
            raise ReportFetchError(f"Failed to fetch report data: {str(e)}") from e

        errors = [
            error
            for error in (
                error_pnl, error_current, error_prior, error_yoy,
                error_invoices, error_bills, error_accounts,
                error_period_invoices, error_customers,
            )
            if error
        ]
        if errors:
            logger.warning("Some report fetches failed: %s", ", ".join(errors))

        logger.info(
            "Fetched reports as of %s: %d open invoices, %d open bills, %d accounts, %d invoices, %d customers",
            as_of,
            len(open_invoices or []),
            len(open_bills or []),
            len(account_map or {}),
            len(invoices or []),
            len(customers or []),
        )

        return {
            "profit_and_loss": profit_and_loss or {},
            "balance_sheet_current": balance_sheet_current or {},
            "balance_sheet_prior": balance_sheet_prior or {},
            "balance_sheet_yoy": balance_sheet_yoy or {},
            "open_invoices": open_invoices or [],
            "open_bills": open_bills or [],
            "account_map": account_map or {},
            "invoices": invoices or [],
            "customers": customers or [],
            "as_of": as_of,
            "fetched_at": datetime.now(timezone.utc).isoformat(),
            "errors": errors,
        }
