"""
Balance-sheet totals and derived snapshot for balancesheet.

Purpose
-------
Bundles the raw entity lists into a BalanceSheet, reduces them to the
base monthly totals used by projections, and computes a headline
FinancialSummary. A PortfolioSnapshot holds everything derived from one
state of the balance sheet (base totals, month-indexed asset income,
positions, summary) and is what the invalidation policy drops after a
relevant write.

Key components
--------------
- BalanceSheet: assets, definitions, incomes, expenses, liabilities.
- BaseTotals / compute_base_totals: month-invariant monthly figures.
- FinancialSummary / calculate_financial_summary: headline metrics.
- PortfolioSnapshot / build_snapshot: the derived cache of one state.

Conventions
-----------
- ``active_income`` and ``passive_income`` partition the income
  entities by their passive flag; asset income is tracked separately.
- Ratios (coverage, savings rate, debt-to-income) are fractions, not
  percentages, and are 0 when their denominator is not positive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional, Tuple, Union

from .assets import Asset, AssetDefinition
from .cache import IncomeCache
from .constants import CALENDAR_MONTHS
from .expenses import Expense, total_monthly_expenses
from .income import Income, active_income, passive_income
from .liabilities import Liability, total_debt, total_monthly_liability_payments
from .portfolio import CategoryAssignment, PortfolioPosition, positions_from_assets
from .types import BaseTotalsDict
from .utils import finite_or_zero, safe_ratio

__all__ = [
    "BalanceSheet",
    "BaseTotals",
    "compute_base_totals",
    "FinancialSummary",
    "calculate_financial_summary",
    "PortfolioSnapshot",
    "build_snapshot",
]


@dataclass(frozen=True)
class BalanceSheet:
    """All raw entities of one personal balance sheet."""

    assets: Tuple[Asset, ...] = ()
    definitions: Tuple[AssetDefinition, ...] = ()
    incomes: Tuple[Income, ...] = ()
    expenses: Tuple[Expense, ...] = ()
    liabilities: Tuple[Liability, ...] = ()
    category_assignments: Dict[str, Tuple[CategoryAssignment, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("assets", "definitions", "incomes", "expenses", "liabilities"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @property
    def definitions_by_id(self) -> Dict[str, AssetDefinition]:
        return {d.id: d for d in self.definitions}


# ---------------------------------------------------------------------------
# Base totals
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BaseTotals:
    """
    Monthly figures that do not depend on the calendar month.

    Attributes
    ----------
    active_income : float
        Income entities not flagged passive.
    passive_income : float
        Income entities flagged passive.
    total_expenses : float
        Monthly expenses.
    total_liabilities : float
        Monthly liability payments.
    """

    active_income: float = 0.0
    passive_income: float = 0.0
    total_expenses: float = 0.0
    total_liabilities: float = 0.0

    @property
    def obligations(self) -> float:
        return self.total_expenses + self.total_liabilities

    def to_dict(self) -> BaseTotalsDict:
        return {
            "active_income": self.active_income,
            "passive_income": self.passive_income,
            "total_expenses": self.total_expenses,
            "total_liabilities": self.total_liabilities,
        }

    @classmethod
    def coerce(cls, value: Union["BaseTotals", Mapping[str, float]]) -> "BaseTotals":
        """Accept a BaseTotals or its dict form."""
        if isinstance(value, cls):
            return value
        return cls(**{k: finite_or_zero(value.get(k, 0.0)) for k in
                      ("active_income", "passive_income", "total_expenses", "total_liabilities")})


def compute_base_totals(incomes, expenses, liabilities) -> BaseTotals:
    """Reduce entity lists to :class:`BaseTotals`."""
    incomes = list(incomes)
    return BaseTotals(
        active_income=active_income(incomes),
        passive_income=passive_income(incomes),
        total_expenses=total_monthly_expenses(expenses),
        total_liabilities=total_monthly_liability_payments(liabilities),
    )


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FinancialSummary:
    total_assets: float
    total_liabilities: float
    net_worth: float
    monthly_income: float
    monthly_expenses: float
    monthly_liability_payments: float
    monthly_asset_income: float
    passive_income: float
    total_monthly_income: float
    total_passive_income: float
    monthly_cash_flow: float
    passive_income_coverage: float
    savings_rate: float
    debt_to_income_ratio: float
    last_updated: Optional[str] = None


def calculate_financial_summary(
    sheet: BalanceSheet,
    income_cache: Optional[IncomeCache] = None,
    *,
    base_totals: Optional[BaseTotals] = None,
    now: Optional[datetime] = None,
) -> FinancialSummary:
    """
    Headline figures of *sheet*.

    Asset income comes from *income_cache* (cache-first); a fresh
    in-memory cache is used when none is given.
    """
    cache = income_cache or IncomeCache()
    base = base_totals or compute_base_totals(sheet.incomes, sheet.expenses, sheet.liabilities)

    total_assets = sum(finite_or_zero(a.value) for a in sheet.assets)
    debt = total_debt(sheet.liabilities)
    asset_income = cache.total_monthly(sheet.assets)

    monthly_income = base.active_income + base.passive_income
    total_income = monthly_income + asset_income
    total_passive = base.passive_income + asset_income
    cash_flow = total_income - base.total_expenses - base.total_liabilities

    return FinancialSummary(
        total_assets=total_assets,
        total_liabilities=debt,
        net_worth=total_assets - debt,
        monthly_income=monthly_income,
        monthly_expenses=base.total_expenses,
        monthly_liability_payments=base.total_liabilities,
        monthly_asset_income=asset_income,
        passive_income=base.passive_income,
        total_monthly_income=total_income,
        total_passive_income=total_passive,
        monthly_cash_flow=cash_flow,
        passive_income_coverage=safe_ratio(total_passive, base.obligations),
        savings_rate=safe_ratio(cash_flow, total_income),
        debt_to_income_ratio=safe_ratio(base.total_liabilities, total_income),
        last_updated=(now or datetime.now(timezone.utc)).isoformat(),
    )


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PortfolioSnapshot:
    """
    Derived data of one balance-sheet state.

    ``monthly_asset_income`` maps calendar months 1..12 to the total
    asset income of that month and feeds the cached projection.
    """

    base_totals: BaseTotals
    monthly_asset_income: Dict[int, float]
    positions: Tuple[PortfolioPosition, ...] = ()
    summary: Optional[FinancialSummary] = None
    last_calculated: Optional[str] = None


def build_snapshot(
    sheet: BalanceSheet,
    income_cache: Optional[IncomeCache] = None,
    *,
    now: Optional[datetime] = None,
) -> PortfolioSnapshot:
    """Compute every derived figure of *sheet* in one pass."""
    cache = income_cache or IncomeCache()
    stamp = now or datetime.now(timezone.utc)
    base = compute_base_totals(sheet.incomes, sheet.expenses, sheet.liabilities)
    by_month = cache.monthly_income_by_month(sheet.assets)
    return PortfolioSnapshot(
        base_totals=base,
        monthly_asset_income={m: by_month.get(m, 0.0) for m in CALENDAR_MONTHS},
        positions=tuple(positions_from_assets(
            sheet.assets, cache.calculator, sheet.category_assignments
        )),
        summary=calculate_financial_summary(sheet, cache, base_totals=base, now=stamp),
        last_calculated=stamp.isoformat(),
    )
