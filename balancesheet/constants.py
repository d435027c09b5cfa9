"""
Global constants for balancesheet.

Purpose
-------
Centralizes default values and magic numbers used by the income
derivation, aggregation and projection modules.

Usage
-----
>>> from balancesheet.constants import MONTHS_PER_YEAR, CALENDAR_MONTHS
>>> annual = monthly * MONTHS_PER_YEAR

Categories
----------
- Calendar: months per year, calendar month numbers
- Schedules: default payment months per frequency
- Aggregation: fallback bucket names
- Projection: default horizon
"""

from typing import Tuple

__all__ = [
    # Calendar
    "MONTHS_PER_YEAR",
    "CALENDAR_MONTHS",
    # Schedules
    "DEFAULT_QUARTERLY_MONTHS",
    "DEFAULT_ANNUAL_MONTHS",
    # Aggregation
    "UNKNOWN_BUCKET",
    "UNCATEGORIZED_NAME",
    "UNCATEGORIZED_ID",
    "PERCENT",
    # Projection
    "DEFAULT_PROJECTION_MONTHS",
    # Cache
    "CACHE_HASH_ALGORITHM",
]


# =============================================================================
# Calendar
# =============================================================================

MONTHS_PER_YEAR: int = 12
"""Number of calendar months in a year."""

CALENDAR_MONTHS: Tuple[int, ...] = tuple(range(1, MONTHS_PER_YEAR + 1))
"""Calendar month numbers, January=1 through December=12."""


# =============================================================================
# Schedule Defaults
# =============================================================================

DEFAULT_QUARTERLY_MONTHS: Tuple[int, ...] = (3, 6, 9, 12)
"""Payment months assumed for quarterly schedules without explicit months."""

DEFAULT_ANNUAL_MONTHS: Tuple[int, ...] = (12,)
"""Payment month assumed for annual schedules without explicit months."""


# =============================================================================
# Aggregation
# =============================================================================

UNKNOWN_BUCKET: str = "Unknown"
"""Allocation bucket for positions without sector or country data."""

UNCATEGORIZED_NAME: str = "Uncategorized"
"""Display name of the synthetic category for unassigned positions."""

UNCATEGORIZED_ID: str = "uncategorized"
"""Identifier of the synthetic category for unassigned positions."""

PERCENT: float = 100.0
"""Scale factor from fractions to percentages."""


# =============================================================================
# Projection
# =============================================================================

DEFAULT_PROJECTION_MONTHS: int = 12
"""Default number of months produced by the projection engine."""


# =============================================================================
# Cache
# =============================================================================

CACHE_HASH_ALGORITHM: str = "sha256"
"""hashlib algorithm used to fingerprint income-relevant asset fields."""
