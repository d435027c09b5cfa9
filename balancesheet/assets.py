"""
Asset model for balancesheet.

Purpose
-------
Represents the holdings on the asset side of the balance sheet as a
tagged union. Each variant carries only the fields relevant to its
type, and references an AssetDefinition that holds type-specific
income metadata supplied by external market-data providers.

Key components
--------------
- AssetType:
    Discriminator enumeration (stock, bond, cash, real_estate, other).

- DividendInfo, BondInfo, RentalInfo:
    Income info blocks of an AssetDefinition. Income derivation only
    ever reads the block that matches the asset's own type.

- SectorAllocation, CountryAllocation:
    Weighted multi-sector / multi-country exposure of a definition,
    used by the portfolio aggregator.

- AssetDefinition:
    Shared metadata for one instrument (ticker, sectors, countries,
    income info), referenced by any number of holdings.

- StockAsset, BondAsset, CashAsset, RealEstateAsset, OtherAsset:
    Frozen holding variants. Every variant may carry an attached
    ``cached_dividends`` entry produced by the income cache.

Design principles
-----------------
- Immutable: holdings are frozen dataclasses; attaching a cache entry
  returns a new instance via :meth:`with_cache`.
- Tolerant: info blocks accept degenerate numbers (NaN, negative,
  missing) because income derivation degrades them to zero instead of
  raising.

Example
-------
>>> from balancesheet.assets import AssetDefinition, DividendInfo, StockAsset
>>> acme = AssetDefinition(
...     id="acme", name="ACME Corp", type="stock",
...     dividend_info=DividendInfo(amount=12.0, frequency="quarterly"),
... )
>>> holding = StockAsset(id="acme-1", name="ACME", value=5000.0,
...                      quantity=100, definition=acme)
>>> holding.type
<AssetType.STOCK: 'stock'>
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Dict, Literal, Optional, Tuple, Union

from .schedules import PaymentFrequency, normalize_custom_amounts, resolve_payment_months

if TYPE_CHECKING:
    from .cache import CachedDividends

__all__ = [
    "AssetType",
    "AmountBasis",
    "DividendInfo",
    "BondInfo",
    "RentalInfo",
    "SectorAllocation",
    "CountryAllocation",
    "AssetDefinition",
    "StockAsset",
    "BondAsset",
    "CashAsset",
    "RealEstateAsset",
    "OtherAsset",
    "Asset",
    "ASSET_CLASSES",
    "make_asset",
]

AmountBasis = Literal["annual", "per_payment"]


class AssetType(str, Enum):
    """Discriminator of the asset tagged union."""

    STOCK = "stock"
    BOND = "bond"
    CASH = "cash"
    REAL_ESTATE = "real_estate"
    OTHER = "other"


# ---------------------------------------------------------------------------
# Income info blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DividendInfo:
    """
    Dividend schedule of a stock definition.

    Parameters
    ----------
    amount : float
        Dividend per share. With ``amount_basis="annual"`` (default) it is
        the yearly dividend per share, paid out in equal parts across the
        payment months. With ``"per_payment"`` it is the amount paid per
        share on each payment date.
    frequency : PaymentFrequency or str
        monthly, quarterly, annually, custom or none.
    payment_months : tuple[int, ...], optional
        Calendar months in which dividends are paid.
    months : tuple[int, ...], optional
        Legacy alias of ``payment_months``; used only when the former is
        absent.
    custom_amounts : dict[int, float], optional
        Per-share amount by calendar month for ``custom`` schedules.
    amount_basis : {"annual", "per_payment"}
        Interpretation of ``amount``.
    """

    amount: float = 0.0
    frequency: Union[PaymentFrequency, str, None] = PaymentFrequency.QUARTERLY
    payment_months: Optional[Tuple[int, ...]] = None
    months: Optional[Tuple[int, ...]] = None
    custom_amounts: Optional[Dict[int, float]] = None
    amount_basis: AmountBasis = "annual"

    def __post_init__(self) -> None:
        parsed = PaymentFrequency.parse(self.frequency)
        if parsed is not None:
            object.__setattr__(self, "frequency", parsed)
        object.__setattr__(self, "custom_amounts", normalize_custom_amounts(self.custom_amounts))
        if self.payment_months is not None:
            object.__setattr__(self, "payment_months", tuple(self.payment_months))
        if self.months is not None:
            object.__setattr__(self, "months", tuple(self.months))
        if self.amount_basis not in ("annual", "per_payment"):
            raise ValueError(
                f"amount_basis must be 'annual' or 'per_payment', got {self.amount_basis!r}."
            )

    @property
    def resolved_payment_months(self) -> Tuple[int, ...]:
        """Payment months after applying explicit months and defaults."""
        return resolve_payment_months(self.frequency, self.payment_months, self.months)


@dataclass(frozen=True)
class BondInfo:
    """Interest terms of a bond or cash definition. ``interest_rate`` is an annual percent."""

    interest_rate: Optional[float] = None
    coupon_frequency: Optional[str] = None
    maturity_date: Optional[str] = None


@dataclass(frozen=True)
class RentalInfo:
    """Rental terms of a real-estate definition. ``base_rent`` is already monthly."""

    base_rent: Optional[float] = None


# ---------------------------------------------------------------------------
# Exposure
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SectorAllocation:
    """Weighted sector exposure; ``percentage`` in 0..100."""

    sector: Optional[str] = None
    percentage: float = 100.0
    sector_name: Optional[str] = None

    @property
    def name(self) -> Optional[str]:
        return self.sector_name or self.sector


@dataclass(frozen=True)
class CountryAllocation:
    """Weighted country exposure; ``percentage`` in 0..100."""

    country: str
    percentage: float = 100.0


# ---------------------------------------------------------------------------
# Definition
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AssetDefinition:
    """
    Instrument metadata shared by holdings.

    Only the info block matching ``type`` is read for income; any other
    block present on the definition is ignored.
    """

    id: str
    name: str
    type: Union[AssetType, str] = AssetType.OTHER
    ticker: Optional[str] = None
    sector: Optional[str] = None
    sectors: Tuple[SectorAllocation, ...] = ()
    country: Optional[str] = None
    countries: Tuple[CountryAllocation, ...] = ()
    currency: Optional[str] = None
    dividend_info: Optional[DividendInfo] = None
    bond_info: Optional[BondInfo] = None
    rental_info: Optional[RentalInfo] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", AssetType(self.type))
        object.__setattr__(self, "sectors", tuple(self.sectors))
        object.__setattr__(self, "countries", tuple(self.countries))


# ---------------------------------------------------------------------------
# Holdings (tagged union)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _AssetBase:
    id: str
    name: str
    value: Optional[float] = 0.0
    definition: Optional[AssetDefinition] = None
    cached_dividends: Optional["CachedDividends"] = field(default=None, compare=False)

    type: ClassVar[AssetType]

    @property
    def asset_definition_id(self) -> Optional[str]:
        return self.definition.id if self.definition is not None else None

    def with_cache(self, cached: Optional["CachedDividends"]):
        """Return a copy of this holding with *cached* attached (None detaches)."""
        return replace(self, cached_dividends=cached)


@dataclass(frozen=True)
class StockAsset(_AssetBase):
    """Equity holding; income comes from the definition's dividend info."""

    quantity: Optional[float] = 0.0
    price: Optional[float] = None

    type: ClassVar[AssetType] = AssetType.STOCK


@dataclass(frozen=True)
class BondAsset(_AssetBase):
    """
    Bond holding; income is annual interest on ``value``.

    ``interest_rate`` overrides the definition's bond info when set.
    """

    interest_rate: Optional[float] = None

    type: ClassVar[AssetType] = AssetType.BOND


@dataclass(frozen=True)
class CashAsset(_AssetBase):
    """Cash or savings holding; interest follows the bond rules."""

    interest_rate: Optional[float] = None

    type: ClassVar[AssetType] = AssetType.CASH


@dataclass(frozen=True)
class RealEstateAsset(_AssetBase):
    """Property holding; income is the definition's monthly base rent."""

    type: ClassVar[AssetType] = AssetType.REAL_ESTATE


@dataclass(frozen=True)
class OtherAsset(_AssetBase):
    """Any holding without a recurring income model."""

    type: ClassVar[AssetType] = AssetType.OTHER


Asset = Union[StockAsset, BondAsset, CashAsset, RealEstateAsset, OtherAsset]

ASSET_CLASSES: Dict[AssetType, type] = {
    AssetType.STOCK: StockAsset,
    AssetType.BOND: BondAsset,
    AssetType.CASH: CashAsset,
    AssetType.REAL_ESTATE: RealEstateAsset,
    AssetType.OTHER: OtherAsset,
}


def make_asset(asset_type: Union[AssetType, str], **fields) -> Asset:
    """Build the holding variant for *asset_type* from keyword fields."""
    cls = ASSET_CLASSES[AssetType(asset_type)]
    return cls(**fields)
