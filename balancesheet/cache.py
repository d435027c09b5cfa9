"""
Asset income caching for balancesheet.

Purpose
-------
Memoizes the per-asset income derivation so that portfolio-wide totals
and projections do not recompute every holding on every read. The
calculation layer stays pure: a cache miss returns the fresh result plus
a payload to persist, and a single CacheWriter performs the write.

Key components
--------------
- CachedDividends:
    Frozen cache entry ``(monthly_amount, annual_amount, monthly_breakdown)``
    with optional ``last_calculated`` timestamp and ``calculation_hash``.

- calculation_hash:
    SHA-256 fingerprint of every input the derivation reads. An entry
    whose hash no longer matches the holding is treated as absent.

- CacheStore / InMemoryCacheStore:
    Key-value interface (get/put/delete/clear) keyed by asset id, and a
    dict-backed implementation. Persistent stores implement the same
    four methods.

- IncomeCache:
    Read-through lookup (``get_or_compute``) plus all-or-nothing batch
    totals that return ``None`` unless every holding is cached.

- CacheWriter:
    The one component that persists cache payloads and drops entries.

Cache validity
--------------
An entry is looked up on the holding itself (``asset.cached_dividends``)
first, then in the store. Entries carrying a ``calculation_hash`` are
valid only while the hash matches; entries without a hash (e.g. loaded
from the plain persisted shape) are trusted until invalidated.

Example
-------
>>> cache = IncomeCache()
>>> first = cache.get_or_compute(stock)
>>> first.cache_hit
False
>>> stock = stock.with_cache(first.cache_data_to_update)
>>> cache.get_or_compute(stock).cache_hit
True
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from typing_extensions import Protocol

from .asset_income import AssetIncomeCalculator, IncomeBreakdown
from .assets import Asset, StockAsset
from .constants import CACHE_HASH_ALGORITHM, CALENDAR_MONTHS
from .log import get_logger
from .utils import breakdown_total, finite_or_zero

__all__ = [
    "CachedDividends",
    "CacheResult",
    "calculation_hash",
    "should_invalidate",
    "CacheStore",
    "InMemoryCacheStore",
    "IncomeCache",
    "CacheWriter",
]

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Entry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CachedDividends:
    """
    Cached income of one holding.

    Attributes
    ----------
    monthly_amount : float
        Normalized monthly income.
    annual_amount : float
        Yearly income.
    monthly_breakdown : dict[int, float]
        Income by calendar month. Empty for holdings without income.
    last_calculated : str, optional
        ISO-8601 timestamp of the computation.
    calculation_hash : str, optional
        Fingerprint of the inputs; see :func:`calculation_hash`.
    """

    monthly_amount: float
    annual_amount: float
    monthly_breakdown: Dict[int, float] = field(default_factory=dict)
    last_calculated: Optional[str] = None
    calculation_hash: Optional[str] = None

    @classmethod
    def from_breakdown(
        cls,
        result: IncomeBreakdown,
        *,
        calculation_hash: Optional[str] = None,
        calculated_at: Optional[datetime] = None,
    ) -> "CachedDividends":
        stamp = (calculated_at or _utcnow()).isoformat()
        return cls(
            monthly_amount=result.monthly_amount,
            annual_amount=result.annual_amount,
            monthly_breakdown=dict(result.monthly_breakdown),
            last_calculated=stamp,
            calculation_hash=calculation_hash,
        )

    def to_breakdown(self) -> IncomeBreakdown:
        return IncomeBreakdown(
            monthly_amount=finite_or_zero(self.monthly_amount),
            annual_amount=finite_or_zero(self.annual_amount),
            monthly_breakdown=dict(self.monthly_breakdown),
        )

    def for_month(self, month: int) -> float:
        return finite_or_zero(self.monthly_breakdown.get(month, 0.0))


@dataclass(frozen=True)
class CacheResult:
    """
    Outcome of :meth:`IncomeCache.get_or_compute`.

    ``cache_data_to_update`` is set only on a miss; the caller hands it
    to a :class:`CacheWriter` to persist.
    """

    monthly_amount: float
    annual_amount: float
    monthly_breakdown: Dict[int, float]
    cache_hit: bool
    cache_data_to_update: Optional[CachedDividends] = None


# ---------------------------------------------------------------------------
# Fingerprint
# ---------------------------------------------------------------------------

def _jsonable(obj):
    if obj is None:
        return None
    if is_dataclass(obj):
        return asdict(obj)
    return obj


def calculation_hash(asset: Asset, quantity: Optional[float] = None) -> str:
    """
    Fingerprint of the income-relevant inputs of *asset*.

    Covers the holding type, value, resolved quantity, price, interest
    override, the definition id and its dividend/bond/rental info. Any
    change to one of them yields a different hash.
    """
    definition = asset.definition
    if quantity is None:
        quantity = getattr(asset, "quantity", None)
    relevant = {
        "type": asset.type.value,
        "value": float(asset.value) if asset.value is not None else None,
        "quantity": finite_or_zero(quantity) if quantity is not None else None,
        "price": getattr(asset, "price", None),
        "interest_rate": getattr(asset, "interest_rate", None),
        "asset_definition_id": asset.asset_definition_id,
        "dividend_info": _jsonable(definition.dividend_info) if definition else None,
        "bond_info": _jsonable(definition.bond_info) if definition else None,
        "rental_info": _jsonable(definition.rental_info) if definition else None,
    }
    payload = json.dumps(relevant, sort_keys=True, default=str)
    return hashlib.new(CACHE_HASH_ALGORITHM, payload.encode("utf-8")).hexdigest()


def should_invalidate(old: Asset, new: Asset) -> bool:
    """True when *old* carries a cache entry and the income inputs changed."""
    if old.cached_dividends is None:
        return False
    return calculation_hash(old) != calculation_hash(new)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class CacheStore(Protocol):
    """Key-value store for cache entries, keyed by asset id."""

    def get(self, key: str) -> Optional[CachedDividends]: ...

    def put(self, key: str, entry: CachedDividends) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def is_dropped(self, key: str) -> bool: ...


class InMemoryCacheStore:
    """
    Dict-backed :class:`CacheStore`.

    Deleted keys are remembered until the next ``put`` so that entries
    still attached to holdings loaded earlier are not trusted again.
    """

    def __init__(self, entries: Optional[Dict[str, CachedDividends]] = None) -> None:
        self._entries: Dict[str, CachedDividends] = dict(entries or {})
        self._dropped: Set[str] = set()

    def get(self, key: str) -> Optional[CachedDividends]:
        return self._entries.get(key)

    def put(self, key: str, entry: CachedDividends) -> None:
        self._entries[key] = entry
        self._dropped.discard(key)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)
        self._dropped.add(key)

    def clear(self) -> None:
        self._entries.clear()
        self._dropped.clear()

    def is_dropped(self, key: str) -> bool:
        return key in self._dropped

    def keys(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))


# ---------------------------------------------------------------------------
# Read-through cache
# ---------------------------------------------------------------------------

class IncomeCache:
    """
    Read-through memoization of asset income.

    Parameters
    ----------
    calculator : AssetIncomeCalculator, optional
        Derivation used on a miss.
    store : CacheStore, optional
        Entries keyed by asset id, consulted after the entry attached to
        the holding. Defaults to an empty in-memory store.
    logger : logging.Logger, optional
        Receives hit/miss traces at DEBUG level.
    clock : callable, optional
        Returns the timestamp recorded on fresh entries.

    Notes
    -----
    This class never writes to ``store``; persisting is the job of
    :class:`CacheWriter`.
    """

    def __init__(
        self,
        calculator: Optional[AssetIncomeCalculator] = None,
        store: Optional[CacheStore] = None,
        logger: Optional[logging.Logger] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._logger = logger or get_logger(__name__)
        self.calculator = calculator or AssetIncomeCalculator(logger=self._logger)
        self.store: CacheStore = store if store is not None else InMemoryCacheStore()
        self._clock = clock or _utcnow

    # -- lookup --------------------------------------------------------------

    def fingerprint(self, asset: Asset) -> str:
        quantity = self.calculator.resolve_quantity(asset) if isinstance(asset, StockAsset) else None
        return calculation_hash(asset, quantity)

    def is_valid(self, asset: Asset, entry: Optional[CachedDividends]) -> bool:
        if entry is None:
            return False
        if entry.calculation_hash is None:
            return True
        return entry.calculation_hash == self.fingerprint(asset)

    def lookup(self, asset: Asset) -> Optional[CachedDividends]:
        """
        Valid cache entry for *asset*, or None.

        The attached entry is ignored once the store has dropped the id.
        """
        attached = asset.cached_dividends
        if attached is not None and self.store.is_dropped(asset.id):
            attached = None
        for entry in (attached, self.store.get(asset.id)):
            if self.is_valid(asset, entry):
                return entry
        return None

    def is_cached(self, asset: Asset) -> bool:
        return self.lookup(asset) is not None

    def get_or_compute(self, asset: Asset) -> CacheResult:
        """
        Cached income of *asset*, computing it on a miss.

        A hit returns the entry verbatim with ``cache_hit=True``. A miss
        returns the fresh derivation with ``cache_hit=False`` and a
        :class:`CachedDividends` payload for the caller to persist.
        """
        entry = self.lookup(asset)
        if entry is not None:
            self._logger.debug("Cache hit for asset %s", asset.id)
            return CacheResult(
                monthly_amount=entry.monthly_amount,
                annual_amount=entry.annual_amount,
                monthly_breakdown=dict(entry.monthly_breakdown),
                cache_hit=True,
            )

        self._logger.debug("Cache miss for asset %s; computing income", asset.id)
        result = self.calculator.breakdown(asset)
        payload = CachedDividends.from_breakdown(
            result,
            calculation_hash=self.fingerprint(asset),
            calculated_at=self._clock(),
        )
        return CacheResult(
            monthly_amount=result.monthly_amount,
            annual_amount=result.annual_amount,
            monthly_breakdown=dict(result.monthly_breakdown),
            cache_hit=False,
            cache_data_to_update=payload,
        )

    # -- batch (all-or-nothing) ---------------------------------------------

    def _all_entries(self, assets: Iterable[Asset]) -> Optional[List[CachedDividends]]:
        entries: List[CachedDividends] = []
        for asset in assets:
            entry = self.lookup(asset)
            if entry is None:
                self._logger.debug("Asset %s not cached; batch total unavailable", asset.id)
                return None
            entries.append(entry)
        return entries

    def total_monthly_from_cache(self, assets: Iterable[Asset]) -> Optional[float]:
        """
        Sum of cached monthly amounts, or None unless every asset is cached.

        A cached entry of 0 counts as cached.
        """
        entries = self._all_entries(assets)
        if entries is None:
            return None
        return breakdown_total(e.monthly_amount for e in entries)

    def total_for_month_from_cache(self, assets: Iterable[Asset], month: int) -> Optional[float]:
        """Sum of cached amounts for *month*, or None unless every asset is cached."""
        entries = self._all_entries(assets)
        if entries is None:
            return None
        return breakdown_total(e.for_month(month) for e in entries)

    # -- batch with fallback -------------------------------------------------

    def total_monthly(self, assets: Iterable[Asset]) -> float:
        """Monthly asset income, cache-only when possible, per asset otherwise."""
        assets = list(assets)
        cached = self.total_monthly_from_cache(assets)
        if cached is not None:
            return cached
        return breakdown_total(self.get_or_compute(a).monthly_amount for a in assets)

    def total_for_month(self, assets: Iterable[Asset], month: int) -> float:
        """Asset income in *month*, cache-only when possible, per asset otherwise."""
        assets = list(assets)
        cached = self.total_for_month_from_cache(assets, month)
        if cached is not None:
            return cached
        return breakdown_total(
            self.get_or_compute(a).monthly_breakdown.get(month, 0.0) for a in assets
        )

    def monthly_income_by_month(self, assets: Iterable[Asset]) -> Dict[int, float]:
        """Month-indexed total asset income (1..12), as used by cached projections."""
        results = [self.get_or_compute(a) for a in assets]
        return {
            m: breakdown_total(r.monthly_breakdown.get(m, 0.0) for r in results)
            for m in CALENDAR_MONTHS
        }


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------

class CacheWriter:
    """
    Persists cache payloads and drops invalidated entries.

    All writes for one asset id go through :meth:`write` or
    :meth:`drop`, so read-modify-write on one holding is never split
    across call sites.
    """

    def __init__(self, store: CacheStore, logger: Optional[logging.Logger] = None) -> None:
        self.store = store
        self._logger = logger or get_logger(__name__)

    def write(self, asset_id: str, entry: CachedDividends) -> None:
        self.store.put(asset_id, entry)
        self._logger.debug("Stored income cache for asset %s", asset_id)

    def drop(self, asset_id: str) -> None:
        self.store.delete(asset_id)
        self._logger.debug("Dropped income cache for asset %s", asset_id)

    def apply(self, asset: Asset, result: CacheResult) -> Asset:
        """
        Persist the payload of a miss and return the holding with it attached.

        Hits are returned unchanged.
        """
        payload = result.cache_data_to_update
        if payload is None:
            return asset
        self.write(asset.id, payload)
        return asset.with_cache(payload)

    def warm(self, cache: IncomeCache, assets: Iterable[Asset]) -> Tuple[List[Asset], int]:
        """
        Fill the cache for every holding.

        Returns the holdings with entries attached and the number of
        entries written.
        """
        updated: List[Asset] = []
        written = 0
        for asset in assets:
            result = cache.get_or_compute(asset)
            if not result.cache_hit:
                written += 1
            updated.append(self.apply(asset, result))
        self._logger.info("Warmed income cache: %d written, %d total", written, len(updated))
        return updated, written
