"""
Asset income derivation for balancesheet.

Purpose
-------
Turns a holding plus its definition's income metadata into a normalized
monthly figure, an annual figure and a 12-slot calendar breakdown. The
calculator is pure: it never reads or writes caches (see
:mod:`balancesheet.cache` for memoization).

Key components
--------------
- IncomeBreakdown:
    Frozen result ``(monthly_amount, annual_amount, monthly_breakdown)``.
    The "no income" result has zero amounts and an empty breakdown.

- AssetIncomeCalculator:
    Per-variant calculators (stock dividends, bond/cash interest,
    real-estate rent) composed by a dispatch table keyed on AssetType.
    Each variant calculator returns ``None`` when its preconditions are
    not met, and the dispatcher then falls back to "no income".

- compute_asset_monthly_income / compute_asset_income_for_month:
    Module-level entry points backed by a default calculator.

Rules
-----
Stock dividends
    Requires a dividend frequency on the definition and a resolved
    quantity > 0. With the default ``amount_basis="annual"`` the
    dividend amount is the yearly payout per share: the annual income is
    ``amount * quantity`` and it is split evenly across the resolved
    payment months. With ``"per_payment"`` each payment month pays
    ``amount * quantity`` and the monthly figure follows the frequency
    converter. Custom schedules pay ``custom_amounts[m] * quantity``;
    without a table they pay like the other bases in their listed
    ``payment_months``.

Bond / cash interest
    Requires an interest rate (asset override or definition bond info)
    and a non-zero value. ``annual = rate% * value``; all 12 months equal.

Real-estate rent
    Requires ``rental_info.base_rent``; already monthly, all 12 months
    equal.

Every amount is clamped to 0 when non-finite, so one corrupted
definition never poisons a portfolio total.

Example
-------
>>> from balancesheet.asset_income import AssetIncomeCalculator
>>> calc = AssetIncomeCalculator()
>>> calc.breakdown(bond).monthly_amount  # 5% of 10,000
41.666...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Mapping, Optional

import numpy as np

from .assets import (
    Asset,
    AssetType,
    BondAsset,
    CashAsset,
    DividendInfo,
    RealEstateAsset,
    StockAsset,
)
from .constants import CALENDAR_MONTHS, MONTHS_PER_YEAR
from .log import get_logger
from .schedules import PaymentFrequency, PaymentFrequencyConverter
from .utils import breakdown_total, even_breakdown, finite_or_zero

__all__ = [
    "IncomeBreakdown",
    "NO_INCOME",
    "QuantityResolver",
    "AssetIncomeCalculator",
    "default_quantity",
    "dividend_for_month",
    "compute_asset_monthly_income",
    "compute_asset_income_for_month",
    "compute_asset_breakdown",
]

QuantityResolver = Callable[[StockAsset], Optional[float]]


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IncomeBreakdown:
    """
    Derived income of one asset.

    Attributes
    ----------
    monthly_amount : float
        Normalized monthly income.
    annual_amount : float
        Yearly income.
    monthly_breakdown : dict[int, float]
        Income by calendar month (1..12). Empty when the asset has no
        income model.
    """

    monthly_amount: float = 0.0
    annual_amount: float = 0.0
    monthly_breakdown: Dict[int, float] = field(default_factory=dict)

    @property
    def has_income(self) -> bool:
        return bool(self.monthly_breakdown)

    def for_month(self, month: int) -> float:
        return finite_or_zero(self.monthly_breakdown.get(month, 0.0))


NO_INCOME = IncomeBreakdown()


def default_quantity(asset: StockAsset) -> Optional[float]:
    """Quantity stored on the holding itself."""
    return asset.quantity


# ---------------------------------------------------------------------------
# Dividend schedule helpers
# ---------------------------------------------------------------------------

def dividend_for_month(info: DividendInfo, quantity: float, month: int) -> float:
    """
    Dividend income of *quantity* shares in calendar *month*.

    Schedule-aware: quarterly and annual dividends land only in their
    payment months.
    """
    if month not in CALENDAR_MONTHS:
        return 0.0
    freq = PaymentFrequency.parse(info.frequency)
    if freq is None or freq is PaymentFrequency.NONE:
        return 0.0
    qty = finite_or_zero(quantity)
    if freq is PaymentFrequency.CUSTOM and info.custom_amounts:
        per_share = info.custom_amounts.get(month, 0.0)
        return finite_or_zero(per_share * qty)

    pay_months = info.resolved_payment_months
    if month not in pay_months:
        return 0.0
    amount = finite_or_zero(info.amount) * qty
    if info.amount_basis == "annual":
        return finite_or_zero(amount / len(pay_months))
    return finite_or_zero(amount)


def _dividend_monthly_amount(
    info: DividendInfo,
    quantity: float,
    converter: PaymentFrequencyConverter,
) -> float:
    freq = PaymentFrequency.parse(info.frequency)
    qty = finite_or_zero(quantity)
    if freq is PaymentFrequency.CUSTOM and info.custom_amounts:
        scaled = {m: v * qty for m, v in info.custom_amounts.items()}
        return converter.monthly(None, freq, scaled)
    pay_months = info.resolved_payment_months
    if info.amount_basis == "annual":
        if freq is None or freq is PaymentFrequency.NONE or not pay_months:
            return 0.0
        return finite_or_zero(finite_or_zero(info.amount) * qty / MONTHS_PER_YEAR)
    return converter.monthly(finite_or_zero(info.amount) * qty, freq, payment_months=pay_months)


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

class AssetIncomeCalculator:
    """
    Per-asset income derivation.

    Parameters
    ----------
    quantity_resolver : callable, optional
        Maps a StockAsset to its current quantity. Lot and transaction
        resolution lives outside this package; defaults to
        ``asset.quantity``.
    converter : PaymentFrequencyConverter, optional
        Frequency converter used for per-payment dividend schedules.
    logger : logging.Logger, optional
        Receives debug traces of each derivation.

    Notes
    -----
    The dispatch table covers every :class:`AssetType`. Variants without
    an income model map to ``None`` and produce :data:`NO_INCOME`.
    """

    def __init__(
        self,
        quantity_resolver: Optional[QuantityResolver] = None,
        converter: Optional[PaymentFrequencyConverter] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or get_logger(__name__)
        self._quantity = quantity_resolver or default_quantity
        self._converter = converter or PaymentFrequencyConverter(logger=self._logger)
        self._dispatch: Mapping[AssetType, Optional[Callable[[Asset], Optional[IncomeBreakdown]]]] = {
            AssetType.STOCK: self.stock_dividend_breakdown,
            AssetType.BOND: self.interest_breakdown,
            AssetType.CASH: self.interest_breakdown,
            AssetType.REAL_ESTATE: self.rental_breakdown,
            AssetType.OTHER: None,
        }

    @property
    def dispatch_table(self) -> Mapping[AssetType, Optional[Callable]]:
        """Read-only view of the AssetType → variant calculator table."""
        return dict(self._dispatch)

    def resolve_quantity(self, asset: StockAsset) -> float:
        """Current quantity of a stock holding, 0 when unknown or non-finite."""
        return finite_or_zero(self._quantity(asset))

    # -- variant calculators -------------------------------------------------

    def stock_dividend_breakdown(self, asset: Asset) -> Optional[IncomeBreakdown]:
        """Dividend income of a stock holding, or None when not derivable."""
        if not isinstance(asset, StockAsset) or asset.definition is None:
            return None
        info = asset.definition.dividend_info
        if info is None or not info.frequency:
            return None

        quantity = self.resolve_quantity(asset)
        if quantity <= 0:
            self._logger.debug(
                "Stock %s has no valid quantity (%s); skipping dividends", asset.id, quantity
            )
            return None

        breakdown = {m: dividend_for_month(info, quantity, m) for m in CALENDAR_MONTHS}
        monthly = _dividend_monthly_amount(info, quantity, self._converter)
        result = IncomeBreakdown(
            monthly_amount=monthly,
            annual_amount=finite_or_zero(monthly * MONTHS_PER_YEAR),
            monthly_breakdown=breakdown,
        )
        self._logger.debug(
            "Dividends for %s: quantity=%s monthly=%.4f annual=%.4f",
            asset.id, quantity, result.monthly_amount, result.annual_amount,
        )
        return result

    def interest_breakdown(self, asset: Asset) -> Optional[IncomeBreakdown]:
        """Interest income of a bond or cash holding, or None when not derivable."""
        if not isinstance(asset, (BondAsset, CashAsset)):
            return None
        rate = asset.interest_rate
        if rate is None and asset.definition is not None and asset.definition.bond_info is not None:
            rate = asset.definition.bond_info.interest_rate
        if rate is None:
            return None
        value = asset.value
        if value is None or value == 0 or np.isnan(value):
            return None

        annual = finite_or_zero(rate * value / 100.0)
        monthly = annual / MONTHS_PER_YEAR
        self._logger.debug(
            "Interest for %s: %s%% of %s = %.4f annually", asset.id, rate, value, annual
        )
        return IncomeBreakdown(monthly, annual, even_breakdown(monthly))

    def rental_breakdown(self, asset: Asset) -> Optional[IncomeBreakdown]:
        """Rent of a real-estate holding, or None without rental info."""
        if not isinstance(asset, RealEstateAsset) or asset.definition is None:
            return None
        info = asset.definition.rental_info
        if info is None or info.base_rent is None:
            return None
        monthly = finite_or_zero(info.base_rent)
        self._logger.debug("Rent for %s: %.4f monthly", asset.id, monthly)
        return IncomeBreakdown(
            monthly, finite_or_zero(monthly * MONTHS_PER_YEAR), even_breakdown(monthly)
        )

    # -- dispatch ----------------------------------------------------------

    def breakdown(self, asset: Asset) -> IncomeBreakdown:
        """Income of any holding; :data:`NO_INCOME` when nothing applies."""
        handler = self._dispatch.get(asset.type)
        result = handler(asset) if handler is not None else None
        return result if result is not None else NO_INCOME

    def monthly_income(self, asset: Asset) -> float:
        return self.breakdown(asset).monthly_amount

    def annual_income(self, asset: Asset) -> float:
        return self.breakdown(asset).annual_amount

    def income_for_month(self, asset: Asset, month: int) -> float:
        """Income of *asset* in calendar *month*; 0 for months outside 1..12."""
        if month not in CALENDAR_MONTHS:
            self._logger.warning("Month %r outside 1..12 for asset %s; using 0", month, asset.id)
            return 0.0
        return self.breakdown(asset).for_month(month)

    # -- portfolio totals --------------------------------------------------

    def total_monthly_income(self, assets: Iterable[Asset]) -> float:
        return breakdown_total(self.monthly_income(a) for a in assets)

    def total_income_for_month(self, assets: Iterable[Asset], month: int) -> float:
        return breakdown_total(self.income_for_month(a, month) for a in assets)


_DEFAULT_CALCULATOR = AssetIncomeCalculator()


def compute_asset_breakdown(asset: Asset) -> IncomeBreakdown:
    return _DEFAULT_CALCULATOR.breakdown(asset)


def compute_asset_monthly_income(asset: Asset) -> float:
    """Monthly income of *asset* using the default calculator."""
    return _DEFAULT_CALCULATOR.monthly_income(asset)


def compute_asset_income_for_month(asset: Asset, month: int) -> float:
    """Income of *asset* in calendar *month* using the default calculator."""
    return _DEFAULT_CALCULATOR.income_for_month(asset, month)
