"""
Custom exceptions for balancesheet.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across all balancesheet modules. All exceptions inherit from
BalanceSheetError, enabling catch-all handling when needed.

The computation core (schedule conversion, asset income, aggregation)
never raises for malformed input *values*; those degrade to zero. The
exceptions below cover structural failures and boundary validation.

Exception Hierarchy
-------------------
BalanceSheetError (base)
├── ConfigurationError - Invalid settings or balance-sheet documents
├── ValidationError - Data validation failures at strict boundaries
│   ├── TimeIndexError - Calendar month out of range
│   └── ScheduleError - Inconsistent payment schedule
├── CacheError - Cache-layer failures
│   └── CacheMissingError - Required precomputed cache is absent
└── SerializationError - Malformed persisted data

Usage
-----
>>> from balancesheet.exceptions import CacheMissingError
>>>
>>> try:
...     rows = engine.project_months_cached(None, None)
... except CacheMissingError:
...     rows = engine.project_months(incomes, expenses, liabilities, assets)
"""

__all__ = [
    "BalanceSheetError",
    "ConfigurationError",
    "ValidationError",
    "TimeIndexError",
    "ScheduleError",
    "CacheError",
    "CacheMissingError",
    "SerializationError",
]


class BalanceSheetError(Exception):
    """
    Base exception for all balancesheet errors.

    Examples
    --------
    >>> try:
    ...     sheet = load_balance_sheet(path)
    ... except BalanceSheetError as e:
    ...     logger.error("Could not load balance sheet: %s", e)
    """
    pass


class ConfigurationError(BalanceSheetError):
    """
    Invalid configuration or input document.

    Raised when a balance-sheet document or application setting fails
    validation, such as:
    - Unknown asset type or payment frequency
    - Negative amounts where only non-negative values make sense
    - Duplicate entity identifiers

    Examples
    --------
    >>> raise ConfigurationError(
    ...     "Duplicate asset id 'acme' in balance sheet document."
    ... )
    """
    pass


class ValidationError(BalanceSheetError):
    """
    Data validation failures.

    Raised by strict entry points (constructors, explicit month lookups)
    when an argument is structurally wrong rather than merely degenerate.
    """
    pass


class TimeIndexError(ValidationError):
    """
    Calendar month errors.

    Raised when a month number outside 1..12 is passed to an API that
    requires a calendar month, or when a projection horizon is negative.

    Examples
    --------
    >>> raise TimeIndexError(f"Month must be in 1..12, got {month}.")
    """
    pass


class ScheduleError(ValidationError):
    """
    Inconsistent payment schedule.

    Raised when a schedule is built with contradictory fields, e.g. a
    payment month outside the calendar or a custom amount keyed by an
    invalid month.
    """
    pass


class CacheError(BalanceSheetError):
    """Base class for cache-layer failures."""
    pass


class CacheMissingError(CacheError):
    """
    Required precomputed cache is absent.

    Raised by cache-only projections when the base totals or the
    month-indexed asset income cache were never computed. Substituting
    zero here would misreport the holdings, so callers must fall back to
    the uncached path explicitly.

    Examples
    --------
    >>> raise CacheMissingError(
    ...     "Monthly asset income cache is missing; "
    ...     "rebuild it or use project_months()."
    ... )
    """
    pass


class SerializationError(BalanceSheetError):
    """
    Malformed persisted data.

    Raised when a stored CachedDividends payload or balance-sheet JSON
    document cannot be decoded into domain objects.
    """
    pass
