"""
Report Row Model
================

Raw report rows arrive as loosely shaped JSON: a row may carry a Header,
a ColData leaf, a Summary, nested Rows, or several of these at once.
classify_rows turns them into three tagged variants once, up front, so the
parsers never look up optional keys again:

- HeaderRow: a section (has a Header and/or child Rows, optional Summary)
- DetailRow: an account line (ColData leaf, optional account id)
- SectionTotalRow: a bare total line (Summary only), e.g. "Net Income"

Cell values are parsed once per column index. Index 0 holds the row title
and never carries an amount.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ledgerlens.integrations.reports.utils import parse_currency_value

logger = logging.getLogger(__name__)


def _get(data: Any, *keys: str) -> Any:
    """Read the first present key, tolerating both PascalCase and camelCase payloads."""
    if not isinstance(data, dict):
        return None
    for key in keys:
        if key in data:
            return data[key]
    return None


def _col_data(container: Any) -> list:
    cells = _get(container, "ColData", "colData", "col_data")
    return cells if isinstance(cells, list) else []


def _cell_value(cell: Any) -> Any:
    if isinstance(cell, dict):
        return _get(cell, "value", "Value")
    return cell


def _cell_title(cells: list) -> str:
    if not cells:
        return ""
    value = _cell_value(cells[0])
    return str(value).strip() if value is not None else ""


def _cell_id(cells: list) -> Optional[str]:
    if not cells or not isinstance(cells[0], dict):
        return None
    account_id = _get(cells[0], "id", "Id")
    return str(account_id) if account_id not in (None, "") else None


def _parse_amounts(cells: list) -> tuple[Optional[float], ...]:
    if not cells:
        return ()
    return (None,) + tuple(parse_currency_value(_cell_value(cell)) for cell in cells[1:])


@dataclass(frozen=True)
class _AmountsMixin:
    amounts: tuple[Optional[float], ...] = ()
    
    def has_column(self, column_index: int) -> bool:
        """True when this row's cells reach the given column."""
        return 0 < column_index < len(self.amounts)
    
    def amount_at(self, column_index: int) -> Optional[float]:
        """Parsed amount at a column, or None when the row has no such cell."""
        if not self.has_column(column_index):
            return None
        return self.amounts[column_index]


@dataclass(frozen=True)
class DetailRow(_AmountsMixin):
    title: str = ""
    account_id: Optional[str] = None


@dataclass(frozen=True)
class SectionTotalRow(_AmountsMixin):
    title: str = ""
    group: Optional[str] = None


@dataclass(frozen=True)
class HeaderRow(_AmountsMixin):
    """A report section. amounts are the header's own cells (usually blank)."""
    
    title: str = ""
    account_id: Optional[str] = None
    group: Optional[str] = None
    summary: Optional[SectionTotalRow] = None
    children: tuple["ReportRow", ...] = field(default_factory=tuple)
    
    @property
    def summary_title(self) -> str:
        return self.summary.title if self.summary else ""


ReportRow = Union[HeaderRow, DetailRow, SectionTotalRow]


def classify_row(raw_row: Any) -> Optional[ReportRow]:
    """
    Classify one raw row.
    
    Returns:
        The tagged row, or None for rows with no usable content
    """
    if not isinstance(raw_row, dict):
        logger.debug("Skipping non-object report row: %r", raw_row)
        return None
    
    header = _get(raw_row, "Header", "header")
    summary = _get(raw_row, "Summary", "summary")
    nested = _get(raw_row, "Rows", "rows")
    group = _get(raw_row, "group", "Group")
    group = str(group) if group else None
    
    summary_row = None
    if summary is not None:
        summary_cells = _col_data(summary)
        summary_row = SectionTotalRow(
            title=_cell_title(summary_cells),
            amounts=_parse_amounts(summary_cells),
            group=group,
        )
    
    if header is not None or nested is not None:
        header_cells = _col_data(header)
        child_rows = _get(nested, "Row", "row") if isinstance(nested, dict) else nested
        return HeaderRow(
            title=_cell_title(header_cells),
            account_id=_cell_id(header_cells),
            amounts=_parse_amounts(header_cells),
            group=group,
            summary=summary_row,
            children=classify_rows(child_rows),
        )
    
    leaf_cells = _col_data(raw_row)
    if leaf_cells:
        return DetailRow(
            title=_cell_title(leaf_cells),
            account_id=_cell_id(leaf_cells),
            amounts=_parse_amounts(leaf_cells),
        )
    
    if summary_row is not None:
        return summary_row
    
    logger.debug("Skipping report row without Header, ColData or Summary")
    return None


def classify_rows(raw_rows: Any) -> tuple[ReportRow, ...]:
    """Classify a list of raw rows, dropping unusable ones."""
    if not isinstance(raw_rows, list):
        return ()
    
    rows = []
    for raw_row in raw_rows:
        row = classify_row(raw_row)
        if row is not None:
            rows.append(row)
    return tuple(rows)


def report_rows(report: Any) -> tuple[ReportRow, ...]:
    """Classify the top-level rows of a report (report.Rows.Row)."""
    rows = _get(report, "Rows", "rows")
    if isinstance(rows, dict):
        rows = _get(rows, "Row", "row")
    return classify_rows(rows)


def total_line(row: ReportRow) -> tuple[str, "_AmountsMixin"]:
    """
    The (title, cells) a row presents as its figure line.
    
    Summary wins over the row's own cells, so a section is read as its total.
    """
    if isinstance(row, HeaderRow):
        if row.summary is not None:
            return row.summary.title, row.summary
        return row.title, row
    return row.title, row


def value_cells(row: ReportRow) -> Optional["_AmountsMixin"]:
    """Cells holding a row's own value: ColData for accounts, Summary for sections."""
    if isinstance(row, HeaderRow):
        return row.summary
    return row


def row_titles(row: ReportRow) -> tuple[str, ...]:
    """Every title a row can be recognised by (header and summary)."""
    if isinstance(row, HeaderRow):
        return tuple(title for title in (row.title, row.summary_title) if title)
    return (row.title,) if row.title else ()
