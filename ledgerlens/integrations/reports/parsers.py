"""
Report Parsers
Turn raw Profit & Loss and Balance Sheet reports into canonical records.

Rows are classified once (see report_rows) and matched by chart-of-accounts
type where an account map is available, falling back to row names.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Union

from ledgerlens.integrations.reports.extracted_types import (
    AccountInfo,
    AssetTotals,
    BalanceSheetSnapshot,
    CustomerRevenue,
    EquityTotals,
    ExpenseCategory,
    LiabilityTotals,
    PeriodRecord,
)
from ledgerlens.integrations.reports.report_rows import (
    DetailRow,
    HeaderRow,
    ReportRow,
    SectionTotalRow,
    report_rows,
    row_titles,
    total_line,
    value_cells,
)
from ledgerlens.integrations.reports.utils import (
    parse_currency_value,
    parse_period_label,
    parse_report_date,
    round_half_away,
)

logger = logging.getLogger(__name__)

# account_id -> AccountInfo, {"type": ..., "subType": ...} or a bare type string
AccountTypeMap = Mapping[str, Union[AccountInfo, dict, str]]

BALANCE_TOLERANCE = 1.0
VALUE_COLUMN = 1

INCOME_TITLES = ("total income", "total revenue")
COGS_TITLES = ("total cost of goods sold", "total cogs")
EXPENSE_TITLES = ("total expenses",)
NET_INCOME_TITLES = ("net income", "net earnings", "net operating income")

CASH_TYPES = ["Bank"]
CASH_SUB_TYPES = ["Checking", "Savings", "CashOnHand", "MoneyMarket"]
CASH_KEYWORDS = ["cash", "bank"]
AR_TYPES = ["Accounts Receivable"]
AR_KEYWORDS = ["accounts receivable"]
OTHER_CURRENT_ASSET_TYPES = ["Other Current Asset", "Inventory"]
OTHER_CURRENT_ASSET_KEYWORDS = ["current asset"]
AP_TYPES = ["Accounts Payable"]
AP_KEYWORDS = ["accounts payable"]
CREDIT_CARD_TYPES = ["Credit Card"]
CREDIT_CARD_KEYWORDS = ["credit card"]
OTHER_CURRENT_LIABILITY_TYPES = ["Other Current Liability"]
OTHER_CURRENT_LIABILITY_KEYWORDS = ["current liability"]

EXPENSE_ACCOUNT_TYPES = ("Expense", "Cost of Goods Sold")
EXPENSE_SECTION_GROUPS = ("expenses", "costofgoodssold", "cogs", "otherexpenses")
EXPENSE_SECTION_TITLES = ("expenses", "cost of goods sold", "other expenses", "cogs")


def get_account_info(account_map: Optional[AccountTypeMap], account_id: Optional[str]) -> Optional[AccountInfo]:
    """
    Look up an account's classification, supporting every map value shape.

    {"uuid": "Bank"} and {"uuid": {"type": "Bank", "subType": "Checking"}}
    are both accepted alongside AccountInfo instances.
    """
    if not account_map or not account_id:
        return None
    info = account_map.get(account_id)
    if info is None:
        return None
    if isinstance(info, AccountInfo):
        return info
    if isinstance(info, str):
        return AccountInfo(account_type=info)
    if isinstance(info, dict):
        account_type = info.get("type", info.get("account_type", info.get("accountType")))
        if not account_type:
            return None
        sub_type = info.get("subType", info.get("sub_type", info.get("accountSubType")))
        return AccountInfo(account_type=account_type, sub_type=sub_type)
    return None


def _get(data: Any, *keys: str) -> Any:
    if not isinstance(data, dict):
        return None
    for key in keys:
        if key in data:
            return data[key]
    return None


def _normalize_group(group: Optional[str]) -> str:
    return (group or "").replace(" ", "").lower()


def _sum(values: Iterable[float]) -> float:
    """Sum with Decimal so long account lists don't accumulate float error."""
    total = Decimal("0")
    for value in values:
        total += Decimal(str(value))
    return float(total)


def find_row_values(
    rows: Iterable[ReportRow],
    account_map: Optional[AccountTypeMap],
    column_index: int,
    types: list[str],
    sub_types: Optional[list[str]] = None,
    keywords: Optional[list[str]] = None,
    exact_name: str = "",
) -> list[float]:
    """
    Collect values of rows matching the given criteria, searching recursively.

    Matching order for each row:
    1. exact_name against the row's header or summary title
    2. chart-of-accounts type (and sub-type, when given) for rows with a known account
    3. name keywords, only for rows with no account map entry; section rows
       match only when named exactly "<keyword>" or "total <keyword>"

    A matched row contributes its own value (ColData for accounts, Summary for
    sections) and is not descended into. Unmatched sections are searched.

    Args:
        rows: Classified rows to search
        account_map: Optional chart-of-accounts map
        column_index: Column holding the value
        types: Account types to match
        sub_types: Account sub-types narrowing a type match
        keywords: Lowercase name keywords (fallback)
        exact_name: Exact title to match (case-insensitive)

    Returns:
        Matched row values, in report order
    """
    sub_types = sub_types or []
    keywords = keywords or []
    results: list[float] = []

    for row in rows:
        cells = value_cells(row)
        value = cells.amount_at(column_index) if cells is not None else None
        name = (row.title or (row.summary_title if isinstance(row, HeaderRow) else "")).strip().lower()
        account = None if isinstance(row, SectionTotalRow) else get_account_info(account_map, row.account_id)

        match = False
        if exact_name and any(title.lower() == exact_name.lower() for title in row_titles(row)):
            match = True
        elif account is not None and types:
            match = account.account_type in types and (
                not sub_types or (account.sub_type or "") in sub_types
            )
        elif not exact_name and account is None and keywords:
            if any(keyword in name for keyword in keywords):
                is_section = isinstance(row, (HeaderRow, SectionTotalRow))
                if not is_section or any(name in (keyword, f"total {keyword}") for keyword in keywords):
                    match = True

        if match and value is not None:
            logger.debug("Matched row %r = %s", name, value)
            results.append(value)
        elif isinstance(row, HeaderRow):
            results.extend(
                find_row_values(
                    row.children, account_map, column_index, types, sub_types, keywords, exact_name
                )
            )

    return results


class ProfitAndLossParser:
    """
    Parse a multi-period Profit & Loss report into one PeriodRecord per column.

    Only top-level total rows are read; the detail lines under them are
    covered by ExpenseCategoryExtractor.
    """

    @staticmethod
    def period_columns(report: dict[str, Any]) -> list[dict[str, Any]]:
        """
        Identify period columns (every column after the first that is not a total).

        Returns:
            List of {"index", "label", "start", "end"} with raw metadata values
        """
        columns = _get(_get(report, "Columns", "columns"), "Column", "column")
        if not isinstance(columns, list):
            return []

        period_columns = []
        for index, column in enumerate(columns):
            if index == 0 or not isinstance(column, dict):
                continue
            col_type = str(_get(column, "ColType", "colType") or "")
            col_title = str(_get(column, "ColTitle", "colTitle") or "").strip()
            if col_type.lower() == "total" or col_title.lower() == "total" or not col_title:
                logger.debug("Skipping P&L column %d (%r, type %r)", index, col_title, col_type)
                continue

            metadata = _get(column, "MetaData", "metaData") or []
            meta = {
                _get(item, "Name", "name"): _get(item, "Value", "value")
                for item in metadata
                if isinstance(item, dict)
            }
            period_columns.append({
                "index": index,
                "label": col_title,
                "start": meta.get("StartPeriod"),
                "end": meta.get("EndPeriod"),
            })

        return period_columns

    @staticmethod
    def parse(
        report: dict[str, Any],
        account_map: Optional[AccountTypeMap] = None,
    ) -> list[PeriodRecord]:
        """
        Parse a P&L report into period records, oldest to newest.

        Args:
            report: Raw P&L report
            account_map: Accepted for symmetry with BalanceSheetParser; totals are read by title

        Returns:
            List of PeriodRecord (empty when the report has no usable columns)
        """
        columns = ProfitAndLossParser.period_columns(report)
        if not columns:
            logger.warning("P&L report has no period columns, returning no periods")
            return []

        rows = report_rows(report)
        if not rows:
            logger.warning("P&L report has no rows, returning no periods")
            return []

        periods = []
        for column in columns:
            record = ProfitAndLossParser._parse_column(rows, column)
            if record is not None:
                periods.append(record)

        logger.info("Parsed %d P&L periods from %d columns", len(periods), len(columns))
        return periods

    @staticmethod
    def _parse_column(rows: tuple[ReportRow, ...], column: dict[str, Any]) -> Optional[PeriodRecord]:
        column_index = column["index"]
        found: dict[str, float] = {}

        for row in rows:
            title, cells = total_line(row)
            if not cells.has_column(column_index):
                continue
            title = title.strip().lower()
            value = cells.amount_at(column_index) or 0.0

            if "income" not in found and title in INCOME_TITLES:
                found["income"] = value
            elif "cogs" not in found and title in COGS_TITLES:
                found["cogs"] = value
            elif "expenses" not in found and title in EXPENSE_TITLES:
                found["expenses"] = value
            elif "net_income" not in found and title in NET_INCOME_TITLES:
                found["net_income"] = value

            if len(found) == 4:
                break

        if not found:
            logger.warning(
                "P&L column %r (index %d) has none of the total rows, skipping",
                column["label"],
                column_index,
            )
            return None

        income = found.get("income", 0.0)
        cogs = abs(found.get("cogs", 0.0))
        total_expenses = abs(found.get("expenses", 0.0))
        expenses = max(0.0, total_expenses - cogs) if "expenses" in found else 0.0
        gross_profit = income - cogs
        operating_income = gross_profit - expenses
        net_income = found.get("net_income", operating_income)

        start_date = parse_report_date(column["start"])
        end_date = parse_report_date(column["end"])
        if start_date is None or end_date is None:
            derived = parse_period_label(column["label"])
            if derived is None:
                logger.warning("Could not derive dates from period label %r", column["label"])
                start_date, end_date = None, None
            else:
                start_date, end_date = derived

        return PeriodRecord(
            label=column["label"],
            start_date=start_date,
            end_date=end_date,
            income=income,
            cogs=cogs,
            gross_profit=gross_profit,
            expenses=expenses,
            operating_income=operating_income,
            net_income=net_income,
        )


class BalanceSheetParser:
    """
    Parse a single-date Balance Sheet into a BalanceSheetSnapshot.

    Current-asset and current-liability splits are remainder-first: when the
    report states a positive "Total Current ..." figure, the "other" bucket is
    whatever the identified accounts don't explain.
    """

    @staticmethod
    def find_sections(rows: tuple[ReportRow, ...]) -> dict[str, HeaderRow]:
        """
        Locate the assets, liabilities and equity sections by title or group.

        A combined "Liabilities and Equity" section is split into its two children.
        """
        sections: dict[str, HeaderRow] = {}
        combined: Optional[HeaderRow] = None

        for row in rows:
            if not isinstance(row, HeaderRow):
                continue
            title = (row.title or row.summary_title).strip().lower()
            group = _normalize_group(row.group)
            if title == "assets" or group == "assets":
                sections["assets"] = row
            elif title == "liabilities and equity" or group == "liabilitiesandequity":
                combined = row
            elif title == "liabilities" or group == "liabilities":
                sections["liabilities"] = row
            elif title == "equity" or group == "equity":
                sections["equity"] = row

        if combined is not None:
            for child in combined.children:
                if not isinstance(child, HeaderRow):
                    continue
                title = (child.title or child.summary_title).strip().lower()
                group = _normalize_group(child.group)
                if "liabilities" not in sections and (title == "liabilities" or group == "liabilities"):
                    sections["liabilities"] = child
                if "equity" not in sections and (title == "equity" or group == "equity"):
                    sections["equity"] = child

        return sections

    @staticmethod
    def section_total(section: HeaderRow, total_name: str, column_index: int = VALUE_COLUMN) -> float:
        """
        Read a named total from a section: its own summary first, then its children.

        Returns:
            The total, or 0.0 when the section doesn't state it
        """
        target = total_name.lower()
        if section.summary is not None and section.summary.title.strip().lower() == target:
            return section.summary.amount_at(column_index) or 0.0

        for child in section.children:
            if isinstance(child, HeaderRow):
                title = (child.summary_title or child.title).strip().lower()
                cells = child.summary
            elif isinstance(child, SectionTotalRow):
                title = child.title.strip().lower()
                cells = child
            else:
                continue
            if title == target:
                return (cells.amount_at(column_index) if cells is not None else None) or 0.0

        return 0.0

    @staticmethod
    def parse(
        report: dict[str, Any],
        account_map: Optional[AccountTypeMap] = None,
    ) -> BalanceSheetSnapshot:
        """
        Parse a Balance Sheet report.

        Args:
            report: Raw Balance Sheet report (single value column)
            account_map: Optional chart-of-accounts map, preferred over name keywords

        Returns:
            BalanceSheetSnapshot (zeroed when the report has no rows)
        """
        header = _get(report, "Header", "header")
        report_date = parse_report_date(
            _get(header, "EndPeriod", "endPeriod") or _get(header, "Date", "date")
        )

        rows = report_rows(report)
        if not rows:
            logger.warning("Balance Sheet for %s has no rows, returning zeroed snapshot", report_date)
            return BalanceSheetSnapshot(report_date=report_date)

        sections = BalanceSheetParser.find_sections(rows)
        if len(sections) < 3:
            return BalanceSheetParser._parse_from_totals(rows, report_date, account_map)

        column = VALUE_COLUMN
        assets_section = sections["assets"]
        liabilities_section = sections["liabilities"]
        equity_section = sections["equity"]

        # ========================================
        # Assets
        # ========================================
        asset_rows = assets_section.children
        total_assets = BalanceSheetParser.section_total(assets_section, "Total Assets")
        total_current_assets = BalanceSheetParser.section_total(assets_section, "Total Current Assets")
        cash = _sum(find_row_values(
            asset_rows, account_map, column, CASH_TYPES, CASH_SUB_TYPES, CASH_KEYWORDS
        ))
        receivables = _sum(find_row_values(
            asset_rows, account_map, column, AR_TYPES, [], AR_KEYWORDS
        ))

        if total_current_assets > 0:
            other_current_assets = total_current_assets - cash - receivables
        else:
            other_current_assets = _sum(find_row_values(
                asset_rows, account_map, column, OTHER_CURRENT_ASSET_TYPES, [], OTHER_CURRENT_ASSET_KEYWORDS
            ))
            total_current_assets = cash + receivables + other_current_assets

        # ========================================
        # Liabilities
        # ========================================
        liability_rows = liabilities_section.children
        total_liabilities = BalanceSheetParser.section_total(liabilities_section, "Total Liabilities")
        total_current_liabilities = BalanceSheetParser.section_total(
            liabilities_section, "Total Current Liabilities"
        )
        payables = _sum(find_row_values(
            liability_rows, account_map, column, AP_TYPES, [], AP_KEYWORDS
        ))
        credit_cards = _sum(find_row_values(
            liability_rows, account_map, column, CREDIT_CARD_TYPES, [], CREDIT_CARD_KEYWORDS
        ))

        if total_current_liabilities > 0:
            other_current_liabilities = total_current_liabilities - payables - credit_cards
        else:
            other_current_liabilities = _sum(find_row_values(
                liability_rows, account_map, column,
                OTHER_CURRENT_LIABILITY_TYPES, [], OTHER_CURRENT_LIABILITY_KEYWORDS,
            ))
            total_current_liabilities = payables + credit_cards + other_current_liabilities

        # ========================================
        # Equity
        # ========================================
        total_equity = BalanceSheetParser.section_total(equity_section, "Total Equity")
        if total_equity == 0 and total_assets != 0:
            total_equity = total_assets - total_liabilities

        snapshot = BalanceSheetSnapshot(
            report_date=report_date,
            assets=AssetTotals(
                cash=cash,
                accounts_receivable=receivables,
                other_current=other_current_assets,
                total_current=total_current_assets,
                total_long_term=total_assets - total_current_assets,
                total=total_assets,
            ),
            liabilities=LiabilityTotals(
                accounts_payable=payables,
                credit_cards=credit_cards,
                other_current=other_current_liabilities,
                total_current=total_current_liabilities,
                total_long_term=total_liabilities - total_current_liabilities,
                total=total_liabilities,
            ),
            equity=EquityTotals(total=total_equity),
        )

        BalanceSheetParser.check_balance(snapshot)
        return snapshot

    @staticmethod
    def _parse_from_totals(
        rows: tuple[ReportRow, ...],
        report_date: Any,
        account_map: Optional[AccountTypeMap],
    ) -> BalanceSheetSnapshot:
        """Fallback when sections are missing: search the whole report for the grand totals."""
        logger.warning(
            "Balance Sheet for %s is missing the Assets, Liabilities or Equity section, "
            "falling back to grand totals",
            report_date,
        )
        total_assets = _sum(find_row_values(rows, account_map, VALUE_COLUMN, [], exact_name="Total Assets"))
        total_liabilities = _sum(
            find_row_values(rows, account_map, VALUE_COLUMN, [], exact_name="Total Liabilities")
        )
        total_equity = _sum(find_row_values(rows, account_map, VALUE_COLUMN, [], exact_name="Total Equity"))
        logger.warning(
            "Fallback totals: A=%.2f, L=%.2f, E=%.2f", total_assets, total_liabilities, total_equity
        )

        snapshot = BalanceSheetSnapshot(
            report_date=report_date,
            assets=AssetTotals(total=total_assets),
            liabilities=LiabilityTotals(total=total_liabilities),
            equity=EquityTotals(total=total_equity),
        )
        BalanceSheetParser.check_balance(snapshot)
        return snapshot

    @staticmethod
    def balance_difference(snapshot: BalanceSheetSnapshot) -> float:
        """assets - (liabilities + equity)"""
        return snapshot.assets.total - (snapshot.liabilities.total + snapshot.equity.total)

    @staticmethod
    def is_balanced(snapshot: BalanceSheetSnapshot) -> bool:
        return abs(BalanceSheetParser.balance_difference(snapshot)) <= BALANCE_TOLERANCE

    @staticmethod
    def check_balance(snapshot: BalanceSheetSnapshot) -> bool:
        """
        Check assets = liabilities + equity within tolerance.

        Logs a warning on mismatch; the snapshot is never altered. parse runs
        this once per report, so callers use is_balanced instead.
        """
        difference = BalanceSheetParser.balance_difference(snapshot)
        if abs(difference) > BALANCE_TOLERANCE:
            logger.warning(
                "Balance Sheet for %s might be unbalanced. A=%.2f, L=%.2f, E=%.2f. Diff: %.2f",
                snapshot.report_date,
                snapshot.assets.total,
                snapshot.liabilities.total,
                snapshot.equity.total,
                difference,
            )
            return False
        return True


class ExpenseCategoryExtractor:
    """Rank expense accounts from one P&L column."""

    @staticmethod
    def top_categories(
        report: dict[str, Any],
        account_map: Optional[AccountTypeMap] = None,
        column_index: int = VALUE_COLUMN,
        limit: int = 10,
    ) -> list[ExpenseCategory]:
        """
        Largest expense and COGS accounts for a column.

        With an account map, detail rows are selected by account type. Without
        one, every detail row nested under an expense or COGS section counts.

        Args:
            report: Raw P&L report
            account_map: Optional chart-of-accounts map
            column_index: Column to read (must be a real column of the report)
            limit: Maximum categories returned

        Returns:
            Categories consolidated by name, rounded to cents, largest first
        """
        columns = _get(_get(report, "Columns", "columns"), "Column", "column")
        column_count = len(columns) if isinstance(columns, list) else 0
        rows = report_rows(report)
        if not rows or column_index < 1 or column_index >= column_count:
            logger.warning(
                "Cannot extract expense categories: column %d of %d, %d rows",
                column_index,
                column_count,
                len(rows),
            )
            return []

        totals: dict[str, Decimal] = {}
        for name, amount in ExpenseCategoryExtractor._expense_lines(
            rows, account_map, column_index, in_expense_section=False
        ):
            totals[name] = totals.get(name, Decimal("0")) + Decimal(str(abs(amount)))

        categories = [
            ExpenseCategory(name=name, amount=round_half_away(float(amount), 2))
            for name, amount in totals.items()
        ]
        categories.sort(key=lambda category: category.amount, reverse=True)
        return categories[:limit]

    @staticmethod
    def _expense_lines(
        rows: Iterable[ReportRow],
        account_map: Optional[AccountTypeMap],
        column_index: int,
        in_expense_section: bool,
    ):
        for row in rows:
            if isinstance(row, DetailRow):
                amount = row.amount_at(column_index)
                if not amount:
                    continue
                if account_map:
                    account = get_account_info(account_map, row.account_id)
                    if account is not None and account.account_type in EXPENSE_ACCOUNT_TYPES:
                        yield row.title, amount
                elif in_expense_section and not row.title.lower().startswith("total "):
                    yield row.title, amount
            elif isinstance(row, HeaderRow):
                is_expense_section = in_expense_section or (
                    _normalize_group(row.group) in EXPENSE_SECTION_GROUPS
                    or row.title.strip().lower() in EXPENSE_SECTION_TITLES
                )
                yield from ExpenseCategoryExtractor._expense_lines(
                    row.children, account_map, column_index, is_expense_section
                )


class TopCustomerExtractor:
    """
    Rank customers by cash received on their invoices.

    Paid amount per invoice is total minus open balance, so fully and
    partially paid invoices both count. Open invoices contribute nothing.
    """

    @staticmethod
    def customer_names(customers: Optional[Iterable[dict[str, Any]]]) -> dict[str, str]:
        """Customer id -> display name."""
        names = {}
        for customer in customers or []:
            customer_id = _get(customer, "Id", "id")
            name = _get(customer, "DisplayName", "display_name", "name")
            if customer_id not in (None, "") and name:
                names[str(customer_id)] = str(name)
        return names

    @staticmethod
    def top_customers(
        invoices: Optional[Iterable[dict[str, Any]]],
        customers: Optional[Iterable[dict[str, Any]]] = None,
        limit: int = 10,
    ) -> list[CustomerRevenue]:
        """
        Largest customers by paid revenue.

        Args:
            invoices: Invoices for the period, paid ones included
            customers: Customer records used to name the ranking
            limit: Maximum customers returned

        Returns:
            Customers grouped by id, revenue rounded to cents, largest first
        """
        names = TopCustomerExtractor.customer_names(customers)
        revenue: dict[str, Decimal] = {}

        for invoice in invoices or []:
            if not isinstance(invoice, dict):
                continue
            customer_ref = _get(invoice, "CustomerRef", "customer_ref")
            customer_id = _get(customer_ref, "value", "Value") if isinstance(customer_ref, dict) else customer_ref
            if customer_id in (None, ""):
                customer_id = _get(invoice, "customer_id", "customerId")
            if customer_id in (None, ""):
                continue
            customer_id = str(customer_id)

            total = parse_currency_value(_get(invoice, "TotalAmt", "total_amt", "total"))
            balance = parse_currency_value(_get(invoice, "Balance", "balance"))
            paid = total - balance
            if paid <= 0:
                continue

            if customer_id not in names and isinstance(customer_ref, dict) and customer_ref.get("name"):
                names[customer_id] = str(customer_ref["name"])
            revenue[customer_id] = revenue.get(customer_id, Decimal("0")) + Decimal(str(paid))

        ranked = [
            CustomerRevenue(
                id=customer_id,
                name=names.get(customer_id, f"Customer ID {customer_id}"),
                revenue=round_half_away(float(amount), 2),
            )
            for customer_id, amount in revenue.items()
        ]
        ranked.sort(key=lambda customer: customer.revenue, reverse=True)
        logger.debug("Ranked %d customers by paid revenue", len(ranked))
        return ranked[:limit]
