"""General utilities for balancesheet

Contents
--------
- Numeric guards (finite_or_zero, safe_percentage)
- Calendar helpers (month_index)
- Breakdown helpers (even monthly breakdowns, totals)
"""

from __future__ import annotations

import math
from datetime import date
from typing import Dict, Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from .constants import CALENDAR_MONTHS, PERCENT

__all__ = [
    # Numeric guards
    "finite_or_zero",
    "safe_percentage",
    "safe_ratio",
    # Calendar
    "month_index",
    # Breakdowns
    "even_breakdown",
    "breakdown_total",
]

# ---------------------------------------------------------------------------
# Numeric guards
# ---------------------------------------------------------------------------

def finite_or_zero(value: Optional[float]) -> float:
    """Return *value* as float, or 0.0 when it is None, NaN or infinite."""
    if value is None:
        return 0.0
    try:
        x = float(value)
    except (TypeError, ValueError):
        return 0.0
    return x if math.isfinite(x) else 0.0


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0.0 when the denominator is not positive."""
    if denominator <= 0:
        return 0.0
    return finite_or_zero(numerator / denominator)


def safe_percentage(value: float, total: float) -> float:
    """value as a percentage of total; 0.0 when total is zero."""
    return safe_ratio(value * PERCENT, total)


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def month_index(start: Optional[date], months: int) -> pd.DatetimeIndex:
    """Construct a first-of-month DatetimeIndex for *months* periods.

    If *start* is None, uses the current month as the first period.
    """
    if months <= 0:
        return pd.DatetimeIndex([], dtype="datetime64[ns]")
    if start is None:
        today = pd.Timestamp.today().normalize()
        first = pd.Timestamp(today.year, today.month, 1)
    else:
        first = pd.Timestamp(start.year, start.month, 1)
    return pd.date_range(start=first, periods=months, freq="MS")


# ---------------------------------------------------------------------------
# Breakdown helpers
# ---------------------------------------------------------------------------

def even_breakdown(monthly: float) -> Dict[int, float]:
    """A 12-slot breakdown with the same (finite) amount in every month."""
    value = finite_or_zero(monthly)
    return {m: value for m in CALENDAR_MONTHS}


def breakdown_total(breakdown: Mapping[int, float] | Iterable[float]) -> float:
    """Sum of a monthly breakdown with non-finite slots treated as zero."""
    values = breakdown.values() if isinstance(breakdown, Mapping) else breakdown
    arr = np.fromiter((finite_or_zero(v) for v in values), dtype=float)
    return float(arr.sum()) if arr.size else 0.0
