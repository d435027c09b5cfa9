"""
Cash-flow projection for balancesheet.

Purpose
-------
Produces a month-by-month forecast of income, expenses, liability
payments and the resulting (cumulative) cash flow. Asset income is
evaluated per calendar month, so quarterly or annual dividends appear in
the months they are actually paid rather than as a flat twelfth.

Key components
--------------
- MonthlyProjection:
    Frozen row of the forecast.

- ProjectionEngine:
    ``project_months`` derives everything from raw entities;
    ``project_months_cached`` reuses pre-aggregated base totals and a
    month-indexed asset income cache and fails loudly when either is
    missing. Both run the same core loop and return identical rows for
    identical inputs.

- project_months / project_months_cached:
    Module-level shortcuts backed by a default engine.

Design principles
-----------------
- Calendar-aware: rows follow a first-of-month DatetimeIndex starting at
  the current month unless ``start`` is given.
- No hidden state: the cumulative cash flow is recomputed from the first
  row on every call.
- Month-invariant totals (income, expenses, liability payments) are
  computed once per call, asset income once per calendar month.

Example
-------
>>> from datetime import date
>>> from balancesheet.projection import ProjectionEngine
>>> engine = ProjectionEngine()
>>> rows = engine.project_months(incomes, expenses, liabilities, assets,
...                              months=12, start=date(2025, 1, 1))
>>> df = engine.to_frame(rows)
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .asset_income import AssetIncomeCalculator
from .assets import Asset
from .cache import IncomeCache
from .constants import CALENDAR_MONTHS, DEFAULT_PROJECTION_MONTHS
from .exceptions import CacheMissingError, TimeIndexError
from .expenses import Expense
from .income import Income
from .liabilities import Liability
from .log import get_logger
from .summary import BaseTotals, PortfolioSnapshot, compute_base_totals
from .types import AssetIncomeBreakdownDict, BaseTotalsDict
from .utils import finite_or_zero, month_index, safe_ratio

__all__ = [
    "MonthlyProjection",
    "ProjectionEngine",
    "project_months",
    "project_months_cached",
]


@dataclass(frozen=True)
class MonthlyProjection:
    """
    One projected month.

    Attributes
    ----------
    month : int
        Calendar month (1..12).
    year : int
        Calendar year.
    total_income : float
        Active + passive + asset income.
    total_expenses : float
        Monthly expenses.
    total_liabilities : float
        Monthly liability payments.
    net_cash_flow : float
        ``total_income - total_expenses - total_liabilities``.
    cumulative_cash_flow : float
        Running sum of ``net_cash_flow`` from the first projected month.
    asset_income_breakdown : dict
        ``{"passive_income": ..., "asset_income": ...}`` for the month.
    passive_income_coverage : float
        (passive + asset income) / (expenses + liability payments), or 0
        without obligations.
    """

    month: int
    year: int
    total_income: float
    total_expenses: float
    total_liabilities: float
    net_cash_flow: float
    cumulative_cash_flow: float
    asset_income_breakdown: AssetIncomeBreakdownDict = field(default_factory=dict)
    passive_income_coverage: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


MonthlyIncomeCache = Mapping[Union[int, str], float]


class ProjectionEngine:
    """
    Month-by-month cash-flow projection.

    Parameters
    ----------
    calculator : AssetIncomeCalculator, optional
        Per-asset derivation for the uncached path.
    income_cache : IncomeCache, optional
        When given, the uncached path reads asset income through it
        (cache-first, per-asset fallback) instead of the bare calculator.
    logger : logging.Logger, optional
        Receives INFO summaries and DEBUG per-month traces.
    """

    def __init__(
        self,
        calculator: Optional[AssetIncomeCalculator] = None,
        income_cache: Optional[IncomeCache] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or get_logger(__name__)
        self.income_cache = income_cache
        if calculator is None:
            calculator = income_cache.calculator if income_cache is not None else AssetIncomeCalculator(logger=self._logger)
        self.calculator = calculator

    # -- entry points --------------------------------------------------------

    def project_months(
        self,
        incomes: Iterable[Income] = (),
        expenses: Iterable[Expense] = (),
        liabilities: Iterable[Liability] = (),
        assets: Iterable[Asset] = (),
        months: int = DEFAULT_PROJECTION_MONTHS,
        *,
        start: Optional[date] = None,
    ) -> List[MonthlyProjection]:
        """Project *months* months from raw entities."""
        self._check_months(months)
        assets = list(assets)
        base = compute_base_totals(incomes, expenses, liabilities)
        self._logger.info(
            "Projecting %d months: active=%.2f passive=%.2f expenses=%.2f liabilities=%.2f",
            months, base.active_income, base.passive_income,
            base.total_expenses, base.total_liabilities,
        )

        index = month_index(start, months)
        by_month = {m: self._asset_income_for_month(assets, m) for m in sorted(set(index.month))}
        return self._project(base, by_month, index)

    def project_months_cached(
        self,
        base_totals: Optional[Union[BaseTotals, BaseTotalsDict]],
        monthly_asset_income_cache: Optional[MonthlyIncomeCache],
        months: int = DEFAULT_PROJECTION_MONTHS,
        *,
        start: Optional[date] = None,
    ) -> List[MonthlyProjection]:
        """
        Project from pre-aggregated totals and a month → asset income map.

        Raises
        ------
        CacheMissingError
            If *base_totals* or *monthly_asset_income_cache* is None.
            Months absent from a present cache count as 0.
        """
        if base_totals is None:
            raise CacheMissingError(
                "Base totals are missing; compute them or use project_months()."
            )
        if monthly_asset_income_cache is None:
            raise CacheMissingError(
                "Monthly asset income cache is missing; rebuild it or use project_months()."
            )
        self._check_months(months)
        base = BaseTotals.coerce(base_totals)
        by_month = {
            m: finite_or_zero(monthly_asset_income_cache.get(m, monthly_asset_income_cache.get(str(m), 0.0)))
            for m in CALENDAR_MONTHS
        }
        self._logger.info("Projecting %d months from cached totals", months)
        return self._project(base, by_month, month_index(start, months))

    def project_snapshot(
        self,
        snapshot: Optional[PortfolioSnapshot],
        months: int = DEFAULT_PROJECTION_MONTHS,
        *,
        start: Optional[date] = None,
    ) -> List[MonthlyProjection]:
        """Cached projection from a :class:`PortfolioSnapshot`."""
        if snapshot is None:
            raise CacheMissingError("Portfolio snapshot is missing; rebuild it first.")
        return self.project_months_cached(
            snapshot.base_totals, snapshot.monthly_asset_income, months, start=start
        )

    # -- output --------------------------------------------------------------

    @staticmethod
    def to_frame(projections: Sequence[MonthlyProjection]) -> pd.DataFrame:
        """Rows as a DataFrame indexed by first-of-month dates."""
        if not projections:
            return pd.DataFrame(columns=[
                "month", "year", "total_income", "total_expenses", "total_liabilities",
                "net_cash_flow", "cumulative_cash_flow", "passive_income", "asset_income",
                "passive_income_coverage",
            ])
        records = []
        for p in projections:
            row = p.to_dict()
            row.update(row.pop("asset_income_breakdown"))
            records.append(row)
        index = pd.DatetimeIndex(
            [pd.Timestamp(p.year, p.month, 1) for p in projections], name="date"
        )
        return pd.DataFrame.from_records(records, index=index)

    # -- core ----------------------------------------------------------------

    @staticmethod
    def _check_months(months: int) -> None:
        if months < 0:
            raise TimeIndexError(f"months must be non-negative, got {months}.")

    def _asset_income_for_month(self, assets: List[Asset], month: int) -> float:
        if self.income_cache is not None:
            return self.income_cache.total_for_month(assets, month)
        return self.calculator.total_income_for_month(assets, month)

    def _project(
        self,
        base: BaseTotals,
        asset_income_by_month: Mapping[int, float],
        index: pd.DatetimeIndex,
    ) -> List[MonthlyProjection]:
        if len(index) == 0:
            return []

        asset_income = np.array([asset_income_by_month.get(m, 0.0) for m in index.month], dtype=float)
        total_income = base.active_income + base.passive_income + asset_income
        net = total_income - base.total_expenses - base.total_liabilities
        cumulative = np.cumsum(net)
        obligations = base.obligations

        rows: List[MonthlyProjection] = []
        for i, ts in enumerate(index):
            passive_total = base.passive_income + asset_income[i]
            rows.append(MonthlyProjection(
                month=int(ts.month),
                year=int(ts.year),
                total_income=float(total_income[i]),
                total_expenses=base.total_expenses,
                total_liabilities=base.total_liabilities,
                net_cash_flow=float(net[i]),
                cumulative_cash_flow=float(cumulative[i]),
                asset_income_breakdown={
                    "passive_income": base.passive_income,
                    "asset_income": float(asset_income[i]),
                },
                passive_income_coverage=safe_ratio(passive_total, obligations),
            ))
            self._logger.debug(
                "Month %d/%d: asset income %.2f, net %.2f",
                ts.month, ts.year, asset_income[i], net[i],
            )

        self._logger.info(
            "Projection complete: %d months, cumulative cash flow %.2f",
            len(rows), rows[-1].cumulative_cash_flow,
        )
        return rows


def project_months(
    incomes: Iterable[Income] = (),
    expenses: Iterable[Expense] = (),
    liabilities: Iterable[Liability] = (),
    assets: Iterable[Asset] = (),
    months: int = DEFAULT_PROJECTION_MONTHS,
    *,
    start: Optional[date] = None,
) -> List[MonthlyProjection]:
    """Uncached projection with a default engine."""
    return ProjectionEngine().project_months(incomes, expenses, liabilities, assets, months, start=start)


def project_months_cached(
    base_totals: Optional[Union[BaseTotals, BaseTotalsDict]],
    monthly_asset_income_cache: Optional[MonthlyIncomeCache],
    months: int = DEFAULT_PROJECTION_MONTHS,
    *,
    start: Optional[date] = None,
) -> List[MonthlyProjection]:
    """Cached projection with a default engine."""
    return ProjectionEngine().project_months_cached(
        base_totals, monthly_asset_income_cache, months, start=start
    )
