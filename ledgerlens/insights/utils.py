"""
Utility functions for insights calculations.
"""

import math
from typing import Any, Optional

from ledgerlens.integrations.reports.utils import round_half_away


def safe_get(data: Any, *keys: str, default: Any = None) -> Any:
    """
    Get the first non-None value among several keys.
    
    Open-item lists arrive as either snake_case or PascalCase dicts
    (balance / Balance, due_date / DueDate), so callers pass both.
    
    Args:
        data: Dictionary to read
        keys: Candidate keys, in order of preference
        default: Default value if every key is missing or None
        
    Returns:
        First present value, or default
    """
    if not isinstance(data, dict):
        return default
    
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def calc_change(old: Optional[float], new: Optional[float]) -> float:
    """
    Percentage change from old to new, in whole percent.
    
    From zero the change is +100 / -100 / 0 by the sign of new, so a move off
    zero still registers.
    """
    old_value = old or 0.0
    new_value = new or 0.0
    if old_value == 0:
        if new_value > 0:
            return 100.0
        if new_value < 0:
            return -100.0
        return 0.0
    return round_half_away((new_value - old_value) / abs(old_value) * 100)


def calc_trend_change(old: Optional[float], new: Optional[float]) -> Optional[float]:
    """
    Percentage change for trend comparisons.
    
    Unlike calc_change, growth from zero is undefined and returns None.
    """
    old_value = old or 0.0
    new_value = new or 0.0
    if old_value == 0:
        return 0.0 if new_value == 0 else None
    return round_half_away((new_value - old_value) / abs(old_value) * 100)


def finite_or_none(value: Optional[float]) -> Optional[float]:
    """Map NaN and infinities to None."""
    if value is None or not math.isfinite(value):
        return None
    return value


def round_cents(value: float) -> float:
    return round_half_away(value, 2)


def format_percentage(value: Optional[float]) -> str:
    """Format a percentage for insight text, e.g. 12.3%; N/A when unknown."""
    if value is None or not math.isfinite(value):
        return "N/A"
    return f"{value:.1f}%"

