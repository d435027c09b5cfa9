"""
Serialization module for balancesheet persistence.

Purpose
-------
Provides JSON serialization and deserialization of balance sheets and
of the per-asset income cache, so derived data can be stored next to the
entities it was derived from.

Supports serialization of:
- CachedDividends (persisted shape: monthlyAmount / annualAmount /
  monthlyBreakdown keyed "1".."12", lastCalculated, calculationHash)
- Payment schedules, asset definitions and holdings
- Incomes, expenses, liabilities and category assignments
- Full BalanceSheet documents
- Projection rows

Design Principles
-----------------
- Type-safe: documents are validated with the Pydantic configs first
- Human-readable: plain JSON with string month keys
- Backward compatible: schema versions are checked on load

Example
-------
>>> from pathlib import Path
>>> from balancesheet.serialization import save_balance_sheet, load_balance_sheet
>>> save_balance_sheet(sheet, Path("sheet.json"))
>>> loaded = load_balance_sheet(Path("sheet.json"))
"""

from __future__ import annotations

import json
import warnings
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from .assets import (
    Asset,
    AssetDefinition,
    BondAsset,
    BondInfo,
    CashAsset,
    CountryAllocation,
    DividendInfo,
    RentalInfo,
    SectorAllocation,
    StockAsset,
    make_asset,
)
from .cache import CachedDividends
from .config import (
    AssetConfig,
    AssetDefinitionConfig,
    BalanceSheetConfig,
    PaymentScheduleConfig,
    PortfolioPositionConfig,
)
from .constants import CALENDAR_MONTHS
from .exceptions import ConfigurationError, SerializationError
from .expenses import Expense
from .income import Income
from .liabilities import Liability
from .portfolio import CategoryAssignment, PortfolioPosition
from .projection import MonthlyProjection
from .schedules import PaymentSchedule
from .summary import BalanceSheet
from .types import CachedDividendsDict

__all__ = [
    "SCHEMA_VERSION",
    "cached_dividends_to_dict",
    "cached_dividends_from_dict",
    "schedule_to_dict",
    "schedule_from_config",
    "definition_to_dict",
    "definition_from_config",
    "asset_to_dict",
    "asset_from_config",
    "balance_sheet_to_dict",
    "balance_sheet_from_dict",
    "save_balance_sheet",
    "load_balance_sheet",
    "save_projection",
    "positions_from_dicts",
    "load_positions",
]


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "0.1.0"


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _month_keys(table: Optional[Mapping[int, float]]) -> Optional[Dict[str, float]]:
    if table is None:
        return None
    return {str(m): float(v) for m, v in sorted(table.items())}


# ---------------------------------------------------------------------------
# Income cache
# ---------------------------------------------------------------------------

def cached_dividends_to_dict(cached: CachedDividends) -> CachedDividendsDict:
    """
    Convert CachedDividends to its persisted representation.

    Month keys are written as strings "1".."12". An empty breakdown
    (no income) stays empty; optional fields are omitted when unset.
    """
    breakdown = cached.monthly_breakdown
    data: CachedDividendsDict = {
        "monthlyAmount": float(cached.monthly_amount),
        "annualAmount": float(cached.annual_amount),
        "monthlyBreakdown": {
            str(m): float(breakdown.get(m, 0.0)) for m in CALENDAR_MONTHS
        } if breakdown else {},
    }
    if cached.last_calculated is not None:
        data["lastCalculated"] = cached.last_calculated
    if cached.calculation_hash is not None:
        data["calculationHash"] = cached.calculation_hash
    return data


def cached_dividends_from_dict(data: Mapping[str, Any]) -> CachedDividends:
    """
    Rebuild CachedDividends from its persisted representation.

    Missing months of a non-empty breakdown read as 0.

    Raises
    ------
    SerializationError
        If a required key is missing or a month key is not in 1..12.
    """
    try:
        monthly = float(data["monthlyAmount"])
        annual = float(data["annualAmount"])
        raw = data.get("monthlyBreakdown") or {}
        breakdown = {int(k): float(v) for k, v in raw.items()}
    except KeyError as e:
        raise SerializationError(f"Cached income entry is missing {e.args[0]!r}") from e
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Malformed cached income entry: {e}") from e

    bad = sorted(m for m in breakdown if m not in CALENDAR_MONTHS)
    if bad:
        raise SerializationError(f"Cached income breakdown has invalid months {bad}")

    return CachedDividends(
        monthly_amount=monthly,
        annual_amount=annual,
        monthly_breakdown={m: breakdown.get(m, 0.0) for m in CALENDAR_MONTHS} if breakdown else {},
        last_calculated=data.get("lastCalculated"),
        calculation_hash=data.get("calculationHash"),
    )


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------

def schedule_to_dict(schedule: Optional[PaymentSchedule]) -> Optional[Dict[str, Any]]:
    if schedule is None:
        return None
    data: Dict[str, Any] = {
        "frequency": _enum_value(schedule.frequency),
        "amount": float(schedule.amount),
    }
    if schedule.custom_amounts is not None:
        data["custom_amounts"] = _month_keys(schedule.custom_amounts)
    if schedule.payment_months is not None:
        data["payment_months"] = list(schedule.payment_months)
    if schedule.day_of_month is not None:
        data["day_of_month"] = schedule.day_of_month
    return data


def schedule_from_config(config: Optional[PaymentScheduleConfig]) -> Optional[PaymentSchedule]:
    if config is None:
        return None
    return PaymentSchedule(
        frequency=config.frequency,
        amount=config.amount,
        custom_amounts=config.custom_amounts,
        payment_months=tuple(config.payment_months) if config.payment_months else None,
        day_of_month=config.day_of_month,
    )


# ---------------------------------------------------------------------------
# Asset definitions
# ---------------------------------------------------------------------------

def definition_to_dict(definition: AssetDefinition) -> Dict[str, Any]:
    """Convert an AssetDefinition to dictionary representation."""
    data: Dict[str, Any] = {
        "id": definition.id,
        "name": definition.name,
        "type": _enum_value(definition.type),
    }
    for key in ("ticker", "sector", "country", "currency"):
        value = getattr(definition, key)
        if value is not None:
            data[key] = value
    if definition.sectors:
        data["sectors"] = [
            {"sector": s.sector, "sector_name": s.sector_name, "percentage": s.percentage}
            for s in definition.sectors
        ]
    if definition.countries:
        data["countries"] = [
            {"country": c.country, "percentage": c.percentage} for c in definition.countries
        ]

    info = definition.dividend_info
    if info is not None:
        dividend: Dict[str, Any] = {
            "amount": float(info.amount),
            "frequency": _enum_value(info.frequency),
            "amount_basis": info.amount_basis,
        }
        if info.payment_months is not None:
            dividend["payment_months"] = list(info.payment_months)
        if info.months is not None:
            dividend["months"] = list(info.months)
        if info.custom_amounts is not None:
            dividend["custom_amounts"] = _month_keys(info.custom_amounts)
        data["dividend_info"] = dividend
    if definition.bond_info is not None:
        data["bond_info"] = {
            "interest_rate": definition.bond_info.interest_rate,
            "coupon_frequency": definition.bond_info.coupon_frequency,
            "maturity_date": definition.bond_info.maturity_date,
        }
    if definition.rental_info is not None:
        data["rental_info"] = {"base_rent": definition.rental_info.base_rent}
    return data


def definition_from_config(config: AssetDefinitionConfig) -> AssetDefinition:
    """Build an AssetDefinition from a validated config."""
    dividend = None
    if config.dividend_info is not None:
        d = config.dividend_info
        dividend = DividendInfo(
            amount=d.amount,
            frequency=d.frequency,
            payment_months=tuple(d.payment_months) if d.payment_months else None,
            months=tuple(d.months) if d.months else None,
            custom_amounts=d.custom_amounts,
            amount_basis=d.amount_basis,
        )
    bond = None
    if config.bond_info is not None:
        bond = BondInfo(**config.bond_info.model_dump())
    rental = None
    if config.rental_info is not None:
        rental = RentalInfo(base_rent=config.rental_info.base_rent)

    return AssetDefinition(
        id=config.id,
        name=config.name,
        type=config.type,
        ticker=config.ticker,
        sector=config.sector,
        sectors=tuple(SectorAllocation(**s.model_dump()) for s in config.sectors),
        country=config.country,
        countries=tuple(CountryAllocation(**c.model_dump()) for c in config.countries),
        currency=config.currency,
        dividend_info=dividend,
        bond_info=bond,
        rental_info=rental,
    )


# ---------------------------------------------------------------------------
# Holdings
# ---------------------------------------------------------------------------

def asset_to_dict(asset: Asset, include_cache: bool = True) -> Dict[str, Any]:
    """
    Convert a holding to dictionary representation.

    The definition is referenced by id; its content lives in the
    document's ``asset_definitions`` list.
    """
    data: Dict[str, Any] = {
        "id": asset.id,
        "name": asset.name,
        "type": asset.type.value,
        "value": asset.value,
    }
    if asset.asset_definition_id is not None:
        data["asset_definition_id"] = asset.asset_definition_id
    if isinstance(asset, StockAsset):
        data["quantity"] = asset.quantity
        if asset.price is not None:
            data["price"] = asset.price
    if isinstance(asset, (BondAsset, CashAsset)) and asset.interest_rate is not None:
        data["interest_rate"] = asset.interest_rate
    if include_cache and asset.cached_dividends is not None:
        data["cached_dividends"] = cached_dividends_to_dict(asset.cached_dividends)
    return data


def asset_from_config(
    config: AssetConfig,
    definitions: Mapping[str, AssetDefinition],
) -> Asset:
    """Build the holding variant for *config*, resolving its definition."""
    fields: Dict[str, Any] = {
        "id": config.id,
        "name": config.name,
        "value": config.value,
        "definition": definitions.get(config.asset_definition_id) if config.asset_definition_id else None,
    }
    if config.cached_dividends is not None:
        fields["cached_dividends"] = cached_dividends_from_dict(config.cached_dividends)
    if config.type == "stock":
        fields["quantity"] = config.quantity
        fields["price"] = config.price
    elif config.type in ("bond", "cash"):
        fields["interest_rate"] = config.interest_rate
    return make_asset(config.type, **fields)


# ---------------------------------------------------------------------------
# Balance sheet
# ---------------------------------------------------------------------------

def balance_sheet_to_dict(sheet: BalanceSheet, include_cache: bool = True) -> Dict[str, Any]:
    """
    Convert a BalanceSheet to a JSON-ready document.

    Definitions referenced by holdings but missing from
    ``sheet.definitions`` are written too, so the document reloads.
    """
    definitions: Dict[str, AssetDefinition] = {d.id: d for d in sheet.definitions}
    for asset in sheet.assets:
        if asset.definition is not None:
            definitions.setdefault(asset.definition.id, asset.definition)

    return {
        "schema_version": SCHEMA_VERSION,
        "asset_definitions": [definition_to_dict(d) for d in definitions.values()],
        "assets": [asset_to_dict(a, include_cache) for a in sheet.assets],
        "incomes": [
            {
                "id": i.id,
                "name": i.name,
                "type": _enum_value(i.type),
                "payment_schedule": schedule_to_dict(i.payment_schedule),
                "is_passive": i.is_passive,
                "source_id": i.source_id,
                "start_date": i.start_date,
                "end_date": i.end_date,
            }
            for i in sheet.incomes
        ],
        "expenses": [
            {
                "id": e.id,
                "name": e.name,
                "category": _enum_value(e.category),
                "payment_schedule": schedule_to_dict(e.payment_schedule),
                "start_date": e.start_date,
                "end_date": e.end_date,
            }
            for e in sheet.expenses
        ],
        "liabilities": [
            {
                "id": l.id,
                "name": l.name,
                "type": _enum_value(l.type),
                "principal_amount": l.principal_amount,
                "current_balance": l.current_balance,
                "interest_rate": l.interest_rate,
                "payment_schedule": schedule_to_dict(l.payment_schedule),
                "start_date": l.start_date,
                "end_date": l.end_date,
            }
            for l in sheet.liabilities
        ],
        "category_assignments": {
            asset_id: [
                {
                    "category_id": c.category_id,
                    "category_name": c.category_name,
                    "option_id": c.option_id,
                    "option_name": c.option_name,
                }
                for c in assignments
            ]
            for asset_id, assignments in sheet.category_assignments.items()
        },
    }


def balance_sheet_from_dict(data: Mapping[str, Any]) -> BalanceSheet:
    """
    Validate *data* and build a BalanceSheet.

    Raises
    ------
    ConfigurationError
        If the document fails validation.
    SerializationError
        If an embedded cache entry is malformed.
    """
    try:
        config = BalanceSheetConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid balance sheet document:\n{e}") from e

    definitions = {d.id: definition_from_config(d) for d in config.asset_definitions}
    return BalanceSheet(
        assets=tuple(asset_from_config(a, definitions) for a in config.assets),
        definitions=tuple(definitions.values()),
        incomes=tuple(
            Income(
                id=i.id,
                name=i.name,
                type=i.type,
                payment_schedule=schedule_from_config(i.payment_schedule),
                is_passive=i.is_passive,
                source_id=i.source_id,
                start_date=i.start_date,
                end_date=i.end_date,
            )
            for i in config.incomes
        ),
        expenses=tuple(
            Expense(
                id=e.id,
                name=e.name,
                category=e.category,
                payment_schedule=schedule_from_config(e.payment_schedule),
                start_date=e.start_date,
                end_date=e.end_date,
            )
            for e in config.expenses
        ),
        liabilities=tuple(
            Liability(
                id=l.id,
                name=l.name,
                type=l.type,
                principal_amount=l.principal_amount,
                current_balance=l.current_balance,
                interest_rate=l.interest_rate,
                payment_schedule=schedule_from_config(l.payment_schedule),
                start_date=l.start_date,
                end_date=l.end_date,
            )
            for l in config.liabilities
        ),
        category_assignments={
            asset_id: tuple(CategoryAssignment(**c.model_dump()) for c in items)
            for asset_id, items in config.category_assignments.items()
        },
    )


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def save_balance_sheet(sheet: BalanceSheet, path: Path, include_cache: bool = True) -> None:
    """
    Save a BalanceSheet to a JSON file.

    Parameters
    ----------
    sheet : BalanceSheet
        Balance sheet to save
    path : Path
        Output file path (should have .json extension)
    include_cache : bool
        Whether to write each holding's cached income
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(balance_sheet_to_dict(sheet, include_cache), f, indent=2)


def load_balance_sheet(path: Path) -> BalanceSheet:
    """
    Load a BalanceSheet from a JSON file.

    A missing or different ``schema_version`` emits a UserWarning; the
    document is still validated and loaded.
    """
    path = Path(path)
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SerializationError(f"{path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SerializationError(f"{path} must contain a JSON object")

    schema_version = data.get("schema_version", "0.0.0")
    if schema_version != SCHEMA_VERSION:
        warnings.warn(
            f"Config schema version {schema_version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )

    return balance_sheet_from_dict(data)


def save_projection(rows: Sequence[MonthlyProjection], path: Path) -> None:
    """Save projection rows to a JSON file."""
    path = Path(path)
    payload: Dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "projections": [row.to_dict() for row in rows],
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(payload, f, indent=2)


# ---------------------------------------------------------------------------
# Resolved positions
# ---------------------------------------------------------------------------

def positions_from_dicts(items: Sequence[Mapping[str, Any]]) -> List[PortfolioPosition]:
    """
    Validate externally merged positions and build PortfolioPosition objects.

    Raises
    ------
    ConfigurationError
        If an item fails validation.
    """
    try:
        configs = [PortfolioPositionConfig.model_validate(item) for item in items]
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid portfolio position:\n{e}") from e

    return [
        PortfolioPosition(
            id=c.id,
            name=c.name,
            type=c.type,
            current_value=c.current_value,
            monthly_income=c.monthly_income,
            sectors=tuple(c.sectors),
            country=c.country,
            countries=tuple(CountryAllocation(**a.model_dump()) for a in c.countries),
            category_assignments=tuple(
                CategoryAssignment(**a.model_dump()) for a in c.category_assignments
            ),
            asset_definition_id=c.asset_definition_id,
        )
        for c in configs
    ]


def load_positions(path: Path) -> List[PortfolioPosition]:
    """Load a JSON list of positions, or an object with a ``positions`` list."""
    path = Path(path)
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SerializationError(f"{path} is not valid JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get("positions", [])
    if not isinstance(data, list):
        raise SerializationError(f"{path} must contain a list of positions")
    return positions_from_dicts(data)
