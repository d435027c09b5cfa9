"""
Configuration management module for balancesheet.

Purpose
-------
Validates external balance-sheet documents with Pydantic before they are
turned into domain objects, and loads application settings from the
environment.

Design Principles
-----------------
- Type-safe: Pydantic enforces types, literals and ranges
- Immutable: Frozen models prevent accidental mutation
- Strict: unknown fields are rejected (``extra="forbid"``)
- Boundary-only: the computation core never sees unvalidated documents
- Environment-aware: AppSettings reads BALANCESHEET_* variables and .env

Example
-------
>>> from balancesheet.config import BalanceSheetConfig, AppSettings
>>> doc = BalanceSheetConfig.model_validate({"assets": [], "incomes": []})
>>> settings = AppSettings()
>>> settings.default_projection_months
12
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "PaymentScheduleConfig",
    "DividendInfoConfig",
    "BondInfoConfig",
    "RentalInfoConfig",
    "SectorAllocationConfig",
    "CountryAllocationConfig",
    "AssetDefinitionConfig",
    "AssetConfig",
    "IncomeConfig",
    "ExpenseConfig",
    "LiabilityConfig",
    "CategoryAssignmentConfig",
    "PortfolioPositionConfig",
    "ProjectionConfig",
    "BalanceSheetConfig",
    "AppSettings",
]

FrequencyLiteral = Literal["monthly", "quarterly", "annually", "custom", "none"]
AssetTypeLiteral = Literal["stock", "bond", "cash", "real_estate", "other"]


def _check_months(v: Optional[List[int]]) -> Optional[List[int]]:
    if v is not None:
        bad = [m for m in v if not 1 <= m <= 12]
        if bad:
            raise ValueError(f"Months must be in 1..12, got {bad}")
    return v


def _check_custom(v: Optional[Dict[int, float]]) -> Optional[Dict[int, float]]:
    if v is not None:
        bad = [m for m in v if not 1 <= m <= 12]
        if bad:
            raise ValueError(f"Custom amount months must be in 1..12, got {bad}")
    return v


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------

class PaymentScheduleConfig(BaseModel):
    """Recurring payment: frequency, amount and optional calendar detail."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    frequency: FrequencyLiteral = Field(description="Payment frequency")
    amount: float = Field(default=0.0, ge=0, description="Amount per payment")
    custom_amounts: Optional[Dict[int, float]] = Field(
        default=None,
        description="Per-month amounts for custom schedules (keys 1..12)"
    )
    payment_months: Optional[List[int]] = Field(
        default=None,
        description="Months in which quarterly/annual payments land"
    )
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)

    @field_validator("payment_months")
    @classmethod
    def validate_payment_months(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        return _check_months(v)

    @field_validator("custom_amounts")
    @classmethod
    def validate_custom_amounts(cls, v: Optional[Dict[int, float]]) -> Optional[Dict[int, float]]:
        return _check_custom(v)

    @model_validator(mode="after")
    def validate_custom_has_amounts(self) -> "PaymentScheduleConfig":
        """A custom schedule needs a per-month table or its payment months."""
        if self.frequency == "custom" and not (self.custom_amounts or self.payment_months):
            raise ValueError("custom frequency requires custom_amounts or payment_months")
        return self


# ---------------------------------------------------------------------------
# Asset definitions
# ---------------------------------------------------------------------------

class DividendInfoConfig(BaseModel):
    """Dividend schedule of a stock definition."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    amount: float = Field(default=0.0, ge=0, description="Dividend per share")
    frequency: Optional[FrequencyLiteral] = Field(default="quarterly")
    payment_months: Optional[List[int]] = None
    months: Optional[List[int]] = None
    custom_amounts: Optional[Dict[int, float]] = None
    amount_basis: Literal["annual", "per_payment"] = Field(
        default="annual",
        description="Whether amount is the yearly dividend or the per-payment dividend"
    )

    @field_validator("payment_months", "months")
    @classmethod
    def validate_months(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        return _check_months(v)

    @field_validator("custom_amounts")
    @classmethod
    def validate_custom_amounts(cls, v: Optional[Dict[int, float]]) -> Optional[Dict[int, float]]:
        return _check_custom(v)


class BondInfoConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    interest_rate: Optional[float] = Field(default=None, description="Annual rate in percent")
    coupon_frequency: Optional[str] = None
    maturity_date: Optional[str] = None


class RentalInfoConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    base_rent: Optional[float] = Field(default=None, ge=0, description="Monthly rent")


class SectorAllocationConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    sector: Optional[str] = None
    sector_name: Optional[str] = None
    percentage: float = Field(default=100.0, ge=0, le=100)


class CountryAllocationConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    country: str
    percentage: float = Field(default=100.0, ge=0, le=100)


class AssetDefinitionConfig(BaseModel):
    """Instrument metadata shared by holdings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str
    type: AssetTypeLiteral = "other"
    ticker: Optional[str] = None
    sector: Optional[str] = None
    sectors: List[SectorAllocationConfig] = Field(default_factory=list)
    country: Optional[str] = None
    countries: List[CountryAllocationConfig] = Field(default_factory=list)
    currency: Optional[str] = None
    dividend_info: Optional[DividendInfoConfig] = None
    bond_info: Optional[BondInfoConfig] = None
    rental_info: Optional[RentalInfoConfig] = None


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

class AssetConfig(BaseModel):
    """
    One holding.

    ``cached_dividends`` accepts the persisted cache shape
    (monthlyAmount / annualAmount / monthlyBreakdown).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str
    type: AssetTypeLiteral
    value: Optional[float] = Field(default=0.0, description="Current market value")
    quantity: Optional[float] = Field(default=None, description="Shares held (stocks)")
    price: Optional[float] = None
    interest_rate: Optional[float] = Field(
        default=None,
        description="Annual percent; overrides the definition for bonds and cash"
    )
    asset_definition_id: Optional[str] = None
    cached_dividends: Optional[dict] = None


class IncomeConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str
    type: Literal["salary", "rental", "dividend", "interest", "side_hustle", "other"] = "other"
    payment_schedule: Optional[PaymentScheduleConfig] = None
    is_passive: bool = False
    source_id: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class ExpenseConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str
    category: Literal[
        "housing", "transportation", "food", "utilities", "insurance", "healthcare",
        "entertainment", "personal", "debt_payments", "education", "subscriptions", "other",
    ] = "other"
    payment_schedule: Optional[PaymentScheduleConfig] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class LiabilityConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str
    type: Literal[
        "mortgage", "personal_loan", "credit_card", "student_loan", "auto_loan", "other"
    ] = "other"
    principal_amount: float = Field(default=0.0, ge=0)
    current_balance: float = Field(default=0.0, ge=0)
    interest_rate: float = Field(default=0.0, ge=0)
    payment_schedule: Optional[PaymentScheduleConfig] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class CategoryAssignmentConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    category_id: str
    category_name: str
    option_id: str
    option_name: str


class PortfolioPositionConfig(BaseModel):
    """
    One resolved position, as produced by an external merge of
    transactions, definitions and category assignments.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str
    type: AssetTypeLiteral = "other"
    current_value: float = Field(default=0.0, description="Market value")
    monthly_income: float = Field(default=0.0, description="Normalized monthly income")
    sectors: List[str] = Field(default_factory=list)
    country: Optional[str] = None
    countries: List[CountryAllocationConfig] = Field(default_factory=list)
    category_assignments: List[CategoryAssignmentConfig] = Field(default_factory=list)
    asset_definition_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

class ProjectionConfig(BaseModel):
    """Projection run parameters."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    months: int = Field(default=12, ge=0, le=600, description="Months to project")
    start: Optional[date] = Field(default=None, description="First projected month")
    cached: bool = Field(default=False, description="Use the cached projection path")


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

class BalanceSheetConfig(BaseModel):
    """
    Complete balance-sheet document.

    Validates id uniqueness per entity list and that every holding's
    ``asset_definition_id`` refers to a definition in the document.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    schema_version: Optional[str] = None
    asset_definitions: List[AssetDefinitionConfig] = Field(default_factory=list)
    assets: List[AssetConfig] = Field(default_factory=list)
    incomes: List[IncomeConfig] = Field(default_factory=list)
    expenses: List[ExpenseConfig] = Field(default_factory=list)
    liabilities: List[LiabilityConfig] = Field(default_factory=list)
    category_assignments: Dict[str, List[CategoryAssignmentConfig]] = Field(
        default_factory=dict,
        description="Category options keyed by asset id"
    )

    @model_validator(mode="after")
    def validate_references(self) -> "BalanceSheetConfig":
        """Ids are unique per list and definition references resolve."""
        for label, items in (
            ("asset definition", self.asset_definitions),
            ("asset", self.assets),
            ("income", self.incomes),
            ("expense", self.expenses),
            ("liability", self.liabilities),
        ):
            seen = set()
            for item in items:
                if item.id in seen:
                    raise ValueError(f"Duplicate {label} id '{item.id}'")
                seen.add(item.id)

        known = {d.id for d in self.asset_definitions}
        for asset in self.assets:
            if asset.asset_definition_id and asset.asset_definition_id not in known:
                raise ValueError(
                    f"Asset '{asset.id}' references unknown definition "
                    f"'{asset.asset_definition_id}'"
                )
        return self


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    are prefixed with BALANCESHEET_ (e.g., BALANCESHEET_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    debug : bool
        Enable debug mode with verbose logging
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    default_projection_months : int
        Horizon used when a command does not specify one
    cache_enabled : bool
        Read asset income through the income cache

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.log_level
    'WARNING'
    """

    model_config = SettingsConfigDict(
        env_prefix="BALANCESHEET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )
    default_projection_months: int = Field(
        default=12,
        ge=1,
        le=600,
        description="Default projection horizon in months"
    )
    cache_enabled: bool = Field(
        default=True,
        description="Use the income cache for asset income"
    )

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level
