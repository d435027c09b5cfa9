"""
Cache invalidation for balancesheet.

Purpose
-------
Maps write events on the balance sheet to the derived caches they make
stale, and drops those caches. Events are typed (entity kind ×
operation) and resolved through one declarative table, so adding a new
entity kind without a table entry fails loudly instead of being
silently ignored.

Key components
--------------
- EntityKind, Operation:
    What was written and how.

- InvalidationTarget:
    Flag set of derived caches: PORTFOLIO (positions, totals, summary
    snapshot), PROJECTION and ASSET_INCOME (per-asset CachedDividends).

- INVALIDATION_TABLE:
    ``(EntityKind, Operation) → InvalidationTarget`` for every pair.

- MutationEvent:
    One write: kind, operation, entity id and, for definitions, the ids
    of holdings that reference the definition.

- CacheInvalidationPolicy:
    Applies events synchronously: drops the portfolio snapshot and
    projection cache and, where the table says so, the affected assets'
    cached income through a CacheWriter. Invalidation drops entries; it
    never marks them dirty.

Example
-------
>>> policy = CacheInvalidationPolicy(writer=CacheWriter(store))
>>> policy.apply(MutationEvent(EntityKind.ASSET_DEFINITION, Operation.UPDATE,
...                            "acme", affected_asset_ids=("acme-1",)))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, Flag, auto
from itertools import product
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .assets import Asset
from .cache import CacheWriter
from .log import get_logger
from .summary import PortfolioSnapshot

__all__ = [
    "EntityKind",
    "Operation",
    "InvalidationTarget",
    "INVALIDATION_TABLE",
    "MutationEvent",
    "targets_for",
    "affected_assets",
    "CacheInvalidationPolicy",
]


class EntityKind(str, Enum):
    ASSET = "asset"
    ASSET_DEFINITION = "asset_definition"
    INCOME = "income"
    EXPENSE = "expense"
    LIABILITY = "liability"


class Operation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class InvalidationTarget(Flag):
    NONE = 0
    PORTFOLIO = auto()
    PROJECTION = auto()
    ASSET_INCOME = auto()


_DERIVED = InvalidationTarget.PORTFOLIO | InvalidationTarget.PROJECTION


def _build_table() -> Dict[Tuple[EntityKind, Operation], InvalidationTarget]:
    table: Dict[Tuple[EntityKind, Operation], InvalidationTarget] = {}
    for kind, op in product(EntityKind, Operation):
        target = _DERIVED
        if kind is EntityKind.ASSET_DEFINITION:
            target |= InvalidationTarget.ASSET_INCOME
        elif kind is EntityKind.ASSET and op is not Operation.CREATE:
            target |= InvalidationTarget.ASSET_INCOME
        table[(kind, op)] = target
    return table


INVALIDATION_TABLE: Mapping[Tuple[EntityKind, Operation], InvalidationTarget] = _build_table()
"""Every (EntityKind, Operation) pair and the caches it invalidates."""


def targets_for(kind: EntityKind, operation: Operation) -> InvalidationTarget:
    """Table lookup; unknown kinds or operations raise ValueError."""
    return INVALIDATION_TABLE[(EntityKind(kind), Operation(operation))]


@dataclass(frozen=True)
class MutationEvent:
    """
    One write to the balance sheet.

    Parameters
    ----------
    kind : EntityKind
        Entity kind written.
    operation : Operation
        Create, update or delete.
    entity_id : str
        Id of the written entity.
    affected_asset_ids : tuple[str, ...]
        For definition events: holdings referencing the definition.
        :func:`affected_assets` resolves them from a holding list.
    """

    kind: EntityKind
    operation: Operation
    entity_id: str
    affected_asset_ids: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", EntityKind(self.kind))
        object.__setattr__(self, "operation", Operation(self.operation))
        object.__setattr__(self, "affected_asset_ids", tuple(self.affected_asset_ids))

    @property
    def targets(self) -> InvalidationTarget:
        return targets_for(self.kind, self.operation)


def affected_assets(definition_id: str, assets: Iterable[Asset]) -> Tuple[str, ...]:
    """Ids of holdings whose definition is *definition_id*."""
    return tuple(a.id for a in assets if a.asset_definition_id == definition_id)


class CacheInvalidationPolicy:
    """
    Synchronous invalidation of derived caches.

    Parameters
    ----------
    writer : CacheWriter, optional
        Drops per-asset cached income. Without a writer only the
        portfolio and projection caches are dropped.
    logger : logging.Logger, optional
        Receives one INFO line per applied event.

    Attributes
    ----------
    snapshot : PortfolioSnapshot or None
        Portfolio-level derived cache; ``None`` after invalidation.
    projections : list or None
        Cached projection rows; ``None`` after invalidation.
    """

    def __init__(
        self,
        writer: Optional[CacheWriter] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.writer = writer
        self._logger = logger or get_logger(__name__)
        self.snapshot: Optional[PortfolioSnapshot] = None
        self.projections: Optional[list] = None

    def asset_ids_to_drop(self, event: MutationEvent) -> List[str]:
        """Holdings whose cached income *event* invalidates."""
        if not event.targets & InvalidationTarget.ASSET_INCOME:
            return []
        if event.kind is EntityKind.ASSET_DEFINITION:
            return list(event.affected_asset_ids)
        return [event.entity_id]

    def apply(self, event: MutationEvent) -> InvalidationTarget:
        """Drop every cache *event* invalidates and return the targets hit."""
        targets = event.targets
        if targets & InvalidationTarget.PORTFOLIO:
            self.snapshot = None
        if targets & InvalidationTarget.PROJECTION:
            self.projections = None
        dropped = self.asset_ids_to_drop(event)
        if dropped and self.writer is not None:
            for asset_id in dropped:
                self.writer.drop(asset_id)
        self._logger.info(
            "Invalidated %s after %s %s %s (%d asset caches dropped)",
            targets, event.operation.value, event.kind.value, event.entity_id,
            len(dropped) if self.writer is not None else 0,
        )
        return targets

    def apply_all(self, events: Iterable[MutationEvent]) -> InvalidationTarget:
        hit = InvalidationTarget.NONE
        for event in events:
            hit |= self.apply(event)
        return hit

    def detach(self, assets: Iterable[Asset], event: MutationEvent) -> List[Asset]:
        """Holdings with the cache entries *event* invalidates removed."""
        dropped = set(self.asset_ids_to_drop(event))
        return [a.with_cache(None) if a.id in dropped else a for a in assets]
