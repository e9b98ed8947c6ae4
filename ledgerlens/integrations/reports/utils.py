"""
Report Cell Utilities
Shared helpers for turning report cell values and column labels into numbers and dates.
"""

import logging
import math
import re
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = ["$", "£", "€", "USD", "EUR", "GBP", "AUD", "NZD", "CAD"]

_US_THOUSANDS = re.compile(r"^-?\d{1,3}(,\d{3})+(\.\d+)?$")
_EUROPEAN_THOUSANDS = re.compile(r"^-?\d{1,3}(\.\d{3})+,\d{1,2}$")
_EUROPEAN_DECIMAL = re.compile(r"^-?\d+,\d{1,2}$")

PERIOD_LABEL_FORMATS = ("%b %Y", "%B %Y", "%Y-%m", "%m/%Y")


def parse_currency_value(value: Any, default: float = 0.0) -> float:
    """
    Robustly parse a currency value from a report cell.
    
    Handles:
    - Numbers (NaN and infinities become the default)
    - Currency symbols: $, £, €, USD, EUR, GBP, etc.
    - Parentheses for negatives: (500.00) → -500.00
    - Dashes/empty for zeros: -, —, "" → 0.00
    - Thousands separators: 1,234.56 and 1.234,56
    
    Never raises: a garbled figure must not abort an otherwise valid period.
    
    Args:
        value: Raw cell value (string, number, None)
        default: Value returned when parsing fails
        
    Returns:
        Parsed float, or default
    """
    if value is None or isinstance(value, bool):
        return default
    
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        return number if math.isfinite(number) else default
    
    if not isinstance(value, str):
        return default
    
    value_str = value.strip()
    
    # Handle empty strings, dashes, em-dashes
    if not value_str or value_str in ("-", "—", "–"):
        return default
    
    for symbol in CURRENCY_SYMBOLS:
        value_str = value_str.replace(symbol, "")
    value_str = value_str.replace(" ", "")
    
    # Handle parentheses for negatives: (500.00) → -500.00
    if value_str.startswith("(") and value_str.endswith(")"):
        value_str = "-" + value_str[1:-1].strip().lstrip("-")
    
    if _US_THOUSANDS.match(value_str):
        value_str = value_str.replace(",", "")
    elif _EUROPEAN_THOUSANDS.match(value_str):
        value_str = value_str.replace(".", "").replace(",", ".")
    elif _EUROPEAN_DECIMAL.match(value_str):
        value_str = value_str.replace(",", ".")
    else:
        value_str = value_str.replace(",", "")
    
    try:
        number = float(Decimal(value_str))
    except (InvalidOperation, ValueError):
        logger.debug("Failed to parse currency value %r, using default %s", value, default)
        return default
    
    return number if math.isfinite(number) else default


def parse_report_date(value: Any) -> Optional[date]:
    """
    Parse a date from report metadata or invoice fields.
    
    Accepts date/datetime objects and ISO strings (date or datetime, optional Z suffix).
    
    Returns:
        Parsed date, or None when the value is missing or unparseable
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    
    value_str = value.strip()
    if not value_str:
        return None
    
    try:
        return date.fromisoformat(value_str[:10])
    except ValueError:
        pass
    
    try:
        return datetime.fromisoformat(value_str.replace("Z", "+00:00")).date()
    except ValueError:
        if value_str.upper() != "N/A":
            logger.debug("Could not parse date string: %s", value_str)
        return None


def parse_period_label(label: Optional[str]) -> Optional[tuple[date, date]]:
    """
    Derive a (start, end) month range from a column title such as "Jan 2024".
    
    Returns:
        First and last day of the month, or None if the label is not a month
    """
    if not label:
        return None
    
    for fmt in PERIOD_LABEL_FORMATS:
        try:
            parsed = datetime.strptime(label.strip(), fmt).date()
        except ValueError:
            continue
        start = parsed.replace(day=1)
        return start, get_month_end(start)
    
    return None


def get_month_end(target_date: date) -> date:
    """
    Return the last day of the month for the given date.
    
    Args:
        target_date: Date to get month end for
        
    Returns:
        Last day of the month
    """
    next_month = target_date.replace(day=28) + timedelta(days=4)
    return next_month - timedelta(days=next_month.day)


def days_in_month(target_date: date) -> int:
    """Number of calendar days in the month containing target_date."""
    return get_month_end(target_date).day


def add_months(target_date: date, months: int) -> date:
    """
    Shift a date by a number of calendar months (negative goes back).
    
    Handles month-end edge cases (e.g., Jan 31 + 1 month = Feb 28/29).
    """
    month_index = target_date.year * 12 + (target_date.month - 1) + months
    new_year, new_month = divmod(month_index, 12)
    new_month += 1
    
    last_day = get_month_end(date(new_year, new_month, 1)).day
    return date(new_year, new_month, min(target_date.day, last_day))


def calendar_months_between(later: date, earlier: date) -> int:
    """Difference in calendar months, ignoring the day of month."""
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


def format_month_label(target_date: date) -> str:
    """Format a date as a month column label, e.g. "Apr 2025"."""
    return target_date.strftime("%b %Y")


def round_half_away(value: float, places: int = 0) -> float:
    """
    Round half away from zero (2.5 → 3, -2.5 → -3).
    
    Built-in round() rounds half to even, which drifts on money figures.
    """
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
