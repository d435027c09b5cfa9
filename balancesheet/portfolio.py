"""
Portfolio aggregation for balancesheet.

Purpose
-------
Groups resolved portfolio positions along four independent allocation
dimensions (asset type, sector, country, user-defined category) and
builds a two-level category → option breakdown. Every grouping is
produced twice: once weighted by current value and once by monthly
income.

Key components
--------------
- CategoryAssignment, PortfolioPosition:
    Read-only input. Positions are resolved upstream from transactions
    and asset definitions; :func:`positions_from_assets` builds them
    from holdings for callers without such a merge step.

- AllocationEntry, CategoryBreakdown, AllocationSet, PortfolioAllocations:
    Frozen results. Percentages are relative to the dimension total
    (options: relative to their category subtotal) and are 0 whenever
    the denominator is 0. All lists are sorted by value, descending.

- PortfolioAggregator:
    The aggregation itself, with injectable logger.

- income_type_allocation, asset_type_allocation:
    Flat breakdowns over raw income entities and holdings.

Resolution rules
----------------
Sector
    Weighted sectors of the definition (value share ``percentage/100``),
    else the position's own ``sectors`` list split evenly, else the
    definition's single ``sector``, else "Unknown".
Country
    Weighted countries of the definition, else the definition's
    ``country``, else the position's weighted ``countries``, else the
    position's ``country``, else "Unknown".
Category
    Each assigned option receives the full position value (no split).
    Unassigned positions go to the synthetic "Uncategorized" bucket.

When weighted shares of one position sum below 100 % the remainder is
reported under "Unknown"; when they exceed 100 % they are scaled down,
so every dimension except category sums back to the portfolio total.

Example
-------
>>> from balancesheet.portfolio import PortfolioAggregator, PortfolioPosition
>>> positions = [
...     PortfolioPosition(id="a", name="ACME", type="stock",
...                       current_value=6000, monthly_income=20, country="US"),
...     PortfolioPosition(id="b", name="Bund", type="bond",
...                       current_value=4000, monthly_income=10, country="DE"),
... ]
>>> result = PortfolioAggregator().aggregate(positions)
>>> [(e.name, e.percentage) for e in result.value_allocations.by_country]
[('US', 60.0), ('DE', 40.0)]
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .asset_income import AssetIncomeCalculator
from .assets import Asset, AssetDefinition, AssetType, CountryAllocation
from .constants import PERCENT, UNCATEGORIZED_ID, UNCATEGORIZED_NAME, UNKNOWN_BUCKET
from .income import Income, IncomeType, monthly_income
from .log import get_logger
from .types import AssetTypeAllocationDict, IncomeAllocationDict
from .utils import finite_or_zero, safe_percentage

__all__ = [
    "CategoryAssignment",
    "PortfolioPosition",
    "AllocationEntry",
    "CategoryBreakdown",
    "AllocationSet",
    "PortfolioAllocations",
    "PortfolioAggregator",
    "aggregate_portfolio",
    "positions_from_assets",
    "income_type_for_asset",
    "income_type_allocation",
    "asset_type_allocation",
]

Definitions = Union[Mapping[str, AssetDefinition], Iterable[AssetDefinition], None]


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CategoryAssignment:
    """Assignment of a position to one option of a user-defined category."""

    category_id: str
    category_name: str
    option_id: str
    option_name: str


@dataclass(frozen=True)
class PortfolioPosition:
    """
    Resolved view of one logical holding.

    Parameters
    ----------
    id, name : str
        Identifier and label of the holding.
    type : AssetType or str
        Asset type used by the type dimension.
    current_value : float
        Market value of the position.
    monthly_income : float
        Normalized monthly income of the position.
    sectors : tuple[str, ...]
        Legacy sector labels used when the definition has no weights.
    country : str, optional
        Legacy single country.
    countries : tuple[CountryAllocation, ...]
        Weighted countries attached to the position itself.
    category_assignments : tuple[CategoryAssignment, ...]
        User-defined category options of the position.
    asset_definition_id : str, optional
        Key into the definitions passed to the aggregator.
    """

    id: str
    name: str
    type: Union[AssetType, str] = AssetType.OTHER
    current_value: float = 0.0
    monthly_income: float = 0.0
    sectors: Tuple[str, ...] = ()
    country: Optional[str] = None
    countries: Tuple[CountryAllocation, ...] = ()
    category_assignments: Tuple[CategoryAssignment, ...] = ()
    asset_definition_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", AssetType(self.type))
        object.__setattr__(self, "sectors", tuple(self.sectors))
        object.__setattr__(self, "countries", tuple(self.countries))
        object.__setattr__(self, "category_assignments", tuple(self.category_assignments))


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AllocationEntry:
    name: str
    value: float
    percentage: float


@dataclass(frozen=True)
class CategoryBreakdown:
    """One category with its option allocations."""

    category_id: str
    category_name: str
    total_value: float
    total_percentage: float
    options: Tuple[AllocationEntry, ...] = ()


@dataclass(frozen=True)
class AllocationSet:
    """All dimensions for one metric (value or monthly income)."""

    total: float = 0.0
    by_type: Tuple[AllocationEntry, ...] = ()
    by_sector: Tuple[AllocationEntry, ...] = ()
    by_country: Tuple[AllocationEntry, ...] = ()
    by_category: Tuple[AllocationEntry, ...] = ()
    category_breakdown: Tuple[CategoryBreakdown, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.by_type or self.by_sector or self.by_country
                    or self.by_category or self.category_breakdown)


@dataclass(frozen=True)
class PortfolioAllocations:
    value_allocations: AllocationSet = field(default_factory=AllocationSet)
    income_allocations: AllocationSet = field(default_factory=AllocationSet)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _index_definitions(definitions: Definitions) -> Dict[str, AssetDefinition]:
    if definitions is None:
        return {}
    if isinstance(definitions, Mapping):
        return dict(definitions)
    return {d.id: d for d in definitions}


def _entries(totals: Mapping[str, float], denominator: float) -> Tuple[AllocationEntry, ...]:
    rows = [
        AllocationEntry(name=name, value=value, percentage=safe_percentage(value, denominator))
        for name, value in totals.items()
    ]
    return tuple(sorted(rows, key=lambda e: e.value, reverse=True))


def _weighted_shares(
    amount: float, weights: Sequence[Tuple[Optional[str], float]]
) -> List[Tuple[str, float]]:
    """Split *amount* by percentage weights; remainder to Unknown, excess scaled down."""
    cleaned = [(name or UNKNOWN_BUCKET, max(finite_or_zero(pct), 0.0)) for name, pct in weights]
    total_pct = sum(pct for _, pct in cleaned)
    if total_pct <= 0:
        return [(UNKNOWN_BUCKET, amount)]
    scale = PERCENT / total_pct if total_pct > PERCENT else 1.0
    shares = [(name, amount * pct * scale / PERCENT) for name, pct in cleaned]
    remainder = amount - sum(s for _, s in shares)
    if total_pct < PERCENT and remainder != 0:
        shares.append((UNKNOWN_BUCKET, remainder))
    return shares


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------

class PortfolioAggregator:
    """
    Multi-dimensional allocation of portfolio positions.

    Parameters
    ----------
    logger : logging.Logger, optional
        Receives an INFO summary per aggregation.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or get_logger(__name__)

    def aggregate(
        self,
        positions: Iterable[PortfolioPosition],
        definitions: Definitions = None,
    ) -> PortfolioAllocations:
        """Value and income allocations of *positions*."""
        positions = list(positions)
        defs = _index_definitions(definitions)
        return PortfolioAllocations(
            value_allocations=self.value_allocation(positions, defs),
            income_allocations=self.income_allocation(positions, defs),
        )

    def value_allocation(
        self, positions: Iterable[PortfolioPosition], definitions: Definitions = None
    ) -> AllocationSet:
        """Allocations weighted by current value."""
        return self._allocate(list(positions), _index_definitions(definitions), "value")

    def income_allocation(
        self, positions: Iterable[PortfolioPosition], definitions: Definitions = None
    ) -> AllocationSet:
        """Allocations weighted by monthly income; positions without income are skipped."""
        return self._allocate(list(positions), _index_definitions(definitions), "income")

    # -- dimension resolution ----------------------------------------------

    @staticmethod
    def sector_shares(
        position: PortfolioPosition, amount: float, definition: Optional[AssetDefinition]
    ) -> List[Tuple[str, float]]:
        if definition is not None and definition.sectors:
            return _weighted_shares(amount, [(s.name, s.percentage) for s in definition.sectors])
        if position.sectors:
            share = amount / len(position.sectors)
            return [(s or UNKNOWN_BUCKET, share) for s in position.sectors]
        if definition is not None and definition.sector:
            return [(definition.sector, amount)]
        return [(UNKNOWN_BUCKET, amount)]

    @staticmethod
    def country_shares(
        position: PortfolioPosition, amount: float, definition: Optional[AssetDefinition]
    ) -> List[Tuple[str, float]]:
        if definition is not None and definition.countries:
            return _weighted_shares(amount, [(c.country, c.percentage) for c in definition.countries])
        if definition is not None and definition.country:
            return [(definition.country, amount)]
        if position.countries:
            return _weighted_shares(amount, [(c.country, c.percentage) for c in position.countries])
        return [(position.country or UNKNOWN_BUCKET, amount)]

    # -- core ----------------------------------------------------------------

    def _allocate(
        self,
        positions: List[PortfolioPosition],
        definitions: Dict[str, AssetDefinition],
        metric: str,
    ) -> AllocationSet:
        def amount_of(p: PortfolioPosition) -> float:
            raw = p.current_value if metric == "value" else p.monthly_income
            return finite_or_zero(raw)

        total = sum(amount_of(p) for p in positions)
        if total <= 0:
            self._logger.info("No portfolio %s; returning empty allocations", metric)
            return AllocationSet()

        by_type: Dict[str, float] = defaultdict(float)
        by_sector: Dict[str, float] = defaultdict(float)
        by_country: Dict[str, float] = defaultdict(float)
        by_category: Dict[str, float] = defaultdict(float)
        categories: Dict[str, Tuple[str, Dict[str, float]]] = {}

        for p in positions:
            amount = amount_of(p)
            if metric == "income" and amount <= 0:
                continue
            definition = definitions.get(p.asset_definition_id) if p.asset_definition_id else None

            by_type[p.type.value] += amount
            for name, share in self.sector_shares(p, amount, definition):
                by_sector[name] += share
            for name, share in self.country_shares(p, amount, definition):
                by_country[name] += share

            assignments = p.category_assignments or (
                CategoryAssignment(UNCATEGORIZED_ID, UNCATEGORIZED_NAME,
                                   UNCATEGORIZED_ID, UNCATEGORIZED_NAME),
            )
            for a in assignments:
                by_category[a.option_name] += amount
                _, options = categories.setdefault(a.category_id, (a.category_name, defaultdict(float)))
                options[a.option_name] += amount

        breakdown = []
        for cat_id, (cat_name, options) in categories.items():
            subtotal = sum(options.values())
            breakdown.append(CategoryBreakdown(
                category_id=cat_id,
                category_name=cat_name,
                total_value=subtotal,
                total_percentage=safe_percentage(subtotal, total),
                options=_entries(options, subtotal),
            ))
        breakdown.sort(key=lambda c: c.total_value, reverse=True)

        result = AllocationSet(
            total=total,
            by_type=_entries(by_type, total),
            by_sector=_entries(by_sector, total),
            by_country=_entries(by_country, total),
            by_category=_entries(by_category, total),
            category_breakdown=tuple(breakdown),
        )
        self._logger.info(
            "Portfolio %s allocation: %d types, %d sectors, %d countries, "
            "%d category options, %d categories, total %.2f",
            metric, len(result.by_type), len(result.by_sector), len(result.by_country),
            len(result.by_category), len(result.category_breakdown), total,
        )
        return result


def aggregate_portfolio(
    positions: Iterable[PortfolioPosition],
    definitions: Definitions = None,
) -> PortfolioAllocations:
    """Value and income allocations using a default aggregator."""
    return PortfolioAggregator().aggregate(positions, definitions)


# ---------------------------------------------------------------------------
# Positions from holdings
# ---------------------------------------------------------------------------

def positions_from_assets(
    assets: Iterable[Asset],
    calculator: Optional[AssetIncomeCalculator] = None,
    category_assignments: Optional[Mapping[str, Sequence[CategoryAssignment]]] = None,
) -> List[PortfolioPosition]:
    """
    One position per holding, with income derived by *calculator*.

    Holdings are not merged by definition; callers with lot-level data
    should resolve positions upstream instead.
    """
    calculator = calculator or AssetIncomeCalculator()
    assignments = category_assignments or {}
    out: List[PortfolioPosition] = []
    for asset in assets:
        definition = asset.definition
        out.append(PortfolioPosition(
            id=asset.id,
            name=asset.name,
            type=asset.type,
            current_value=finite_or_zero(asset.value),
            monthly_income=calculator.monthly_income(asset),
            sectors=(definition.sector,) if definition is not None and definition.sector else (),
            country=definition.country if definition is not None else None,
            countries=definition.countries if definition is not None else (),
            category_assignments=tuple(assignments.get(asset.id, ())),
            asset_definition_id=asset.asset_definition_id,
        ))
    return out


# ---------------------------------------------------------------------------
# Flat breakdowns
# ---------------------------------------------------------------------------

_INCOME_TYPE_BY_ASSET: Dict[AssetType, IncomeType] = {
    AssetType.STOCK: IncomeType.DIVIDEND,
    AssetType.BOND: IncomeType.INTEREST,
    AssetType.CASH: IncomeType.INTEREST,
    AssetType.REAL_ESTATE: IncomeType.RENTAL,
    AssetType.OTHER: IncomeType.OTHER,
}


def income_type_for_asset(asset_type: Union[AssetType, str]) -> IncomeType:
    """Income category of income produced by an asset of *asset_type*."""
    return _INCOME_TYPE_BY_ASSET[AssetType(asset_type)]


def income_type_allocation(
    incomes: Iterable[Income],
    assets: Iterable[Asset] = (),
    calculator: Optional[AssetIncomeCalculator] = None,
) -> List[IncomeAllocationDict]:
    """
    Monthly income by income type, including asset-derived income.

    Asset income is skipped for holdings already referenced by an income
    entity through ``source_id``, so it is never counted twice.
    """
    calculator = calculator or AssetIncomeCalculator()
    incomes = list(incomes)
    totals: Dict[str, float] = defaultdict(float)

    for inc in incomes:
        amount = monthly_income(inc)
        if amount > 0:
            totals[inc.type.value] += amount

    recorded = {inc.source_id for inc in incomes if inc.source_id}
    for asset in assets:
        if asset.id in recorded:
            continue
        amount = calculator.monthly_income(asset)
        if amount > 0:
            totals[income_type_for_asset(asset.type).value] += amount

    grand = sum(totals.values())
    rows: List[IncomeAllocationDict] = [
        {"type": t, "amount": a, "percentage": safe_percentage(a, grand)}
        for t, a in totals.items()
    ]
    return sorted(rows, key=lambda r: r["amount"], reverse=True)


def asset_type_allocation(assets: Iterable[Asset]) -> List[AssetTypeAllocationDict]:
    """Holding value and count per asset type."""
    values: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)
    for asset in assets:
        values[asset.type.value] += finite_or_zero(asset.value)
        counts[asset.type.value] += 1
    grand = sum(values.values())
    rows: List[AssetTypeAllocationDict] = [
        {"type": t, "value": v, "count": counts[t], "percentage": safe_percentage(v, grand)}
        for t, v in values.items()
    ]
    return sorted(rows, key=lambda r: r["value"], reverse=True)
