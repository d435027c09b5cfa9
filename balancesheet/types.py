"""
Type definitions for balancesheet.

Purpose
-------
Provides TypedDict definitions for the dictionary shapes that cross the
package boundary: persisted cache payloads, breakdown rows and the
pre-aggregated totals consumed by the cached projection.

Usage
-----
>>> from balancesheet.types import CachedDividendsDict
>>> payload: CachedDividendsDict = {
...     "monthlyAmount": 100.0,
...     "annualAmount": 1200.0,
...     "monthlyBreakdown": {"1": 0.0, "2": 0.0, "3": 300.0},
... }

Type Definitions
----------------
CachedDividendsDict
    Storage shape of a cached income entry (camelCase keys, month keys
    "1".."12").

BaseTotalsDict
    Pre-aggregated monthly figures for the cached projection.

AssetIncomeBreakdownDict
    Passive and asset income parts of one projected month.

ExpenseBreakdownDict, IncomeAllocationDict, AssetTypeAllocationDict
    Rows of the flat breakdown tables.
"""

from typing import Dict
from typing_extensions import NotRequired, TypedDict

__all__ = [
    "CachedDividendsDict",
    "BaseTotalsDict",
    "AssetIncomeBreakdownDict",
    "ExpenseBreakdownDict",
    "IncomeAllocationDict",
    "AssetTypeAllocationDict",
]


class CachedDividendsDict(TypedDict):
    """
    Persisted CachedDividends.

    Attributes
    ----------
    monthlyAmount : float
        Normalized monthly income of the asset.
    annualAmount : float
        Yearly income of the asset.
    monthlyBreakdown : dict[str, float]
        Income by calendar month, keys "1".."12".
    lastCalculated : str, optional
        ISO timestamp of the computation.
    calculationHash : str, optional
        Fingerprint of the inputs the entry was computed from.
    """

    monthlyAmount: float
    annualAmount: float
    monthlyBreakdown: Dict[str, float]
    lastCalculated: NotRequired[str]
    calculationHash: NotRequired[str]


class BaseTotalsDict(TypedDict):
    """Monthly totals that do not vary by calendar month."""

    active_income: float
    passive_income: float
    total_expenses: float
    total_liabilities: float


class AssetIncomeBreakdownDict(TypedDict):
    """Income parts counted as passive in one projected month."""

    passive_income: float
    asset_income: float


class ExpenseBreakdownDict(TypedDict):
    category: str
    amount: float
    percentage: float


class IncomeAllocationDict(TypedDict):
    type: str
    amount: float
    percentage: float


class AssetTypeAllocationDict(TypedDict):
    type: str
    value: float
    count: int
    percentage: float
