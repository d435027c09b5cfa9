"""
balancesheet: personal balance-sheet income and cash-flow core

Derives income from holdings, caches it, aggregates portfolio
allocations and projects monthly cash flow.

Modules
-------
- schedules     : Payment frequencies, schedules and monthly conversion
- assets        : Asset definitions and holding variants
- asset_income  : Per-asset income derivation (dividends, interest, rent)
- cache         : Income cache, fingerprints, cache writer
- portfolio     : Allocations by type, sector, country and category
- summary       : Base totals, financial summary, portfolio snapshot
- projection    : Month-by-month cash-flow projection
- invalidation  : Write events and the caches they invalidate
- income / expenses / liabilities : Schedule-bearing entities
- config / serialization : Validated documents and JSON persistence
- utils         : Shared utilities (numeric guards, calendar helpers)

"""

from .schedules import PaymentFrequency, PaymentSchedule, PaymentFrequencyConverter
from .assets import (
    AssetType,
    AssetDefinition,
    DividendInfo,
    BondInfo,
    RentalInfo,
    SectorAllocation,
    CountryAllocation,
    StockAsset,
    BondAsset,
    CashAsset,
    RealEstateAsset,
    OtherAsset,
    make_asset,
)
from .income import Income, IncomeType
from .expenses import Expense, ExpenseCategory
from .liabilities import Liability, LiabilityType
from .asset_income import (
    AssetIncomeCalculator,
    IncomeBreakdown,
    compute_asset_monthly_income,
    compute_asset_income_for_month,
)
from .cache import CachedDividends, CacheResult, IncomeCache, CacheWriter, InMemoryCacheStore
from .portfolio import (
    CategoryAssignment,
    PortfolioPosition,
    PortfolioAggregator,
    aggregate_portfolio,
)
from .summary import BalanceSheet, BaseTotals, build_snapshot, calculate_financial_summary
from .projection import MonthlyProjection, ProjectionEngine, project_months, project_months_cached
from .invalidation import CacheInvalidationPolicy, EntityKind, MutationEvent, Operation
from . import utils

__version__ = "0.1.0"
