"""
Run Analysis Script
Analyze exported report JSON files from the command line.

Expected files in --data-dir:
    profit_and_loss.json
    balance_sheet_<YYYY-MM-DD>.json (or balance_sheet.json for the current one)
    open_invoices.json, open_bills.json, accounts.json
    invoices.json (the period's invoices, paid ones included), customers.json

A missing file is reported in the analysis errors; the rest still runs.
Any other failure is logged with its error code and exits with status 2.
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any

# Add parent directory to path to import ledgerlens without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))

from ledgerlens.config import settings
from ledgerlens.core.errors import get_error_code_for_exception, sanitize_error_message
from ledgerlens.core.logging import configure_logging
from ledgerlens.insights.service import InsightsService
from ledgerlens.integrations.reports.exceptions import ReportFetchError
from ledgerlens.integrations.reports.orchestrator import ReportDataOrchestrator

logger = logging.getLogger("run_analysis")


class FileReportFetcher:
    """ReportFetcher reading exported reports from a directory."""

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir

    def _load(self, filename: str) -> Any:
        path = self.data_dir / filename
        if not path.exists():
            raise ReportFetchError(f"{filename} not found", status_code=404, endpoint=str(path))
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ReportFetchError(f"{filename} is not valid JSON: {e}", endpoint=str(path)) from e

    async def fetch_profit_and_loss(self, start: date, end: date) -> dict[str, Any]:
        return self._load("profit_and_loss.json")

    async def fetch_balance_sheet(self, as_of: date) -> dict[str, Any]:
        dated = self.data_dir / f"balance_sheet_{as_of.isoformat()}.json"
        if dated.exists():
            return self._load(dated.name)
        return self._load("balance_sheet.json")

    async def fetch_open_invoices(self) -> list[dict[str, Any]]:
        return self._load("open_invoices.json")

    async def fetch_open_bills(self) -> list[dict[str, Any]]:
        return self._load("open_bills.json")

    async def fetch_account_map(self) -> dict[str, Any]:
        return self._load("accounts.json")

    async def fetch_invoices(self, start: date, end: date) -> list[dict[str, Any]]:
        return self._load("invoices.json")

    async def fetch_customers(self) -> list[dict[str, Any]]:
        return self._load("customers.json")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Analyze exported financial reports.")
    parser.add_argument("--data-dir", required=True, type=Path, help="Directory holding the report JSON files")
    parser.add_argument("--as-of", type=date.fromisoformat, default=None, help="Report date, YYYY-MM-DD")
    parser.add_argument("--industry", default=settings.default_industry, help="Industry for benchmarks")
    return parser.parse_args(argv)


async def main(argv: list[str]) -> int:
    """Main script entry point."""
    args = parse_args(argv)
    configure_logging()

    if not args.data_dir.is_dir():
        logger.error("Data directory %s does not exist", args.data_dir)
        return 1

    orchestrator = ReportDataOrchestrator(FileReportFetcher(args.data_dir))
    try:
        analysis = await InsightsService.run(orchestrator, as_of=args.as_of, industry=args.industry)
    except Exception as e:
        error_code, _ = get_error_code_for_exception(e)
        logger.error("%s (%s)", sanitize_error_message(e, error_code), error_code.value)
        return 2

    print(analysis.model_dump_json(indent=2, by_alias=True))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
