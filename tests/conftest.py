"""
Pytest configuration and fixtures for the balancesheet test suite.

This module provides reusable fixtures for testing all balancesheet
components. Fixtures follow the principle of "arrange-act-assert" with
clear separation.
"""

import json
from datetime import date, datetime, timezone

import pytest

from balancesheet.assets import (
    AssetDefinition,
    BondAsset,
    BondInfo,
    CashAsset,
    CountryAllocation,
    DividendInfo,
    RealEstateAsset,
    RentalInfo,
    SectorAllocation,
    StockAsset,
)
from balancesheet.expenses import Expense
from balancesheet.income import Income
from balancesheet.liabilities import Liability
from balancesheet.portfolio import CategoryAssignment
from balancesheet.schedules import PaymentSchedule
from balancesheet.summary import BalanceSheet


# ---------------------------------------------------------------------------
# Date Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def start_date() -> date:
    """Standard first projected month for tests (January)."""
    return date(2025, 1, 1)


@pytest.fixture
def fixed_now() -> datetime:
    """Deterministic clock value for cache timestamps."""
    return datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Asset Definition Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def stock_definition() -> AssetDefinition:
    """
    Quarterly dividend payer.

    Dividend: 12 per share per year, paid in March/June/September/December.
    """
    return AssetDefinition(
        id="def-acme",
        name="ACME Corp",
        type="stock",
        ticker="ACME",
        sector="Technology",
        country="US",
        dividend_info=DividendInfo(amount=12.0, frequency="quarterly"),
    )


@pytest.fixture
def multi_sector_definition() -> AssetDefinition:
    """ETF split 60/40 across two sectors and two countries."""
    return AssetDefinition(
        id="def-etf",
        name="World ETF",
        type="stock",
        sectors=(
            SectorAllocation(sector="technology", sector_name="Technology", percentage=60),
            SectorAllocation(sector="healthcare", sector_name="Healthcare", percentage=40),
        ),
        countries=(
            CountryAllocation(country="US", percentage=70),
            CountryAllocation(country="DE", percentage=30),
        ),
        dividend_info=DividendInfo(amount=2.0, frequency="annually"),
    )


@pytest.fixture
def bond_definition() -> AssetDefinition:
    """Government bond paying 5% a year."""
    return AssetDefinition(
        id="def-bund",
        name="Bund 2030",
        type="bond",
        country="DE",
        bond_info=BondInfo(interest_rate=5.0),
    )


@pytest.fixture
def rental_definition() -> AssetDefinition:
    """Apartment rented at 2500 a month."""
    return AssetDefinition(
        id="def-flat",
        name="City Flat",
        type="real_estate",
        rental_info=RentalInfo(base_rent=2500.0),
    )


# ---------------------------------------------------------------------------
# Holding Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def stock(stock_definition) -> StockAsset:
    """100 shares of ACME: 1200 a year, 100 a month."""
    return StockAsset(id="acme-1", name="ACME", value=15_000.0,
                      definition=stock_definition, quantity=100, price=150.0)


@pytest.fixture
def bond(bond_definition) -> BondAsset:
    """10,000 at 5%: 500 a year."""
    return BondAsset(id="bund-1", name="Bund", value=10_000.0, definition=bond_definition)


@pytest.fixture
def cash() -> CashAsset:
    """Savings account at 2% without a definition."""
    return CashAsset(id="cash-1", name="Savings", value=6_000.0, interest_rate=2.0)


@pytest.fixture
def real_estate(rental_definition) -> RealEstateAsset:
    return RealEstateAsset(id="flat-1", name="Flat", value=300_000.0, definition=rental_definition)


@pytest.fixture
def assets(stock, bond, real_estate):
    """Stock, bond and rental property."""
    return [stock, bond, real_estate]


# ---------------------------------------------------------------------------
# Entity Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def incomes():
    """Salary 4000/month (active) and a 1200/year royalty (passive)."""
    return [
        Income(id="salary", name="Salary", type="salary",
               payment_schedule=PaymentSchedule("monthly", 4000.0)),
        Income(id="royalty", name="Royalty", type="other", is_passive=True,
               payment_schedule=PaymentSchedule("annually", 1200.0)),
    ]


@pytest.fixture
def expenses():
    """Rent 1500/month, insurance 600/quarter (200/month)."""
    return [
        Expense(id="rent", name="Rent", category="housing",
                payment_schedule=PaymentSchedule("monthly", 1500.0)),
        Expense(id="insurance", name="Insurance", category="insurance",
                payment_schedule=PaymentSchedule("quarterly", 600.0)),
    ]


@pytest.fixture
def liabilities():
    """Mortgage paying 800/month on a 150,000 balance."""
    return [
        Liability(id="mortgage", name="Mortgage", type="mortgage",
                  principal_amount=200_000.0, current_balance=150_000.0, interest_rate=3.5,
                  payment_schedule=PaymentSchedule("monthly", 800.0)),
    ]


@pytest.fixture
def sheet(assets, stock_definition, bond_definition, rental_definition,
          incomes, expenses, liabilities) -> BalanceSheet:
    """Complete balance sheet built from the entity fixtures."""
    return BalanceSheet(
        assets=assets,
        definitions=(stock_definition, bond_definition, rental_definition),
        incomes=incomes,
        expenses=expenses,
        liabilities=liabilities,
        category_assignments={
            "acme-1": (CategoryAssignment("risk", "Risk", "high", "High"),),
            "bund-1": (CategoryAssignment("risk", "Risk", "low", "Low"),),
        },
    )


# ---------------------------------------------------------------------------
# Document Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sheet_document() -> dict:
    """JSON balance-sheet document equivalent to the ``sheet`` fixture."""
    return {
        "schema_version": "0.1.0",
        "asset_definitions": [
            {
                "id": "def-acme", "name": "ACME Corp", "type": "stock",
                "sector": "Technology", "country": "US",
                "dividend_info": {"amount": 12.0, "frequency": "quarterly"},
            },
            {
                "id": "def-bund", "name": "Bund 2030", "type": "bond", "country": "DE",
                "bond_info": {"interest_rate": 5.0},
            },
            {
                "id": "def-flat", "name": "City Flat", "type": "real_estate",
                "rental_info": {"base_rent": 2500.0},
            },
        ],
        "assets": [
            {"id": "acme-1", "name": "ACME", "type": "stock", "value": 15000.0,
             "quantity": 100, "price": 150.0, "asset_definition_id": "def-acme"},
            {"id": "bund-1", "name": "Bund", "type": "bond", "value": 10000.0,
             "asset_definition_id": "def-bund"},
            {"id": "flat-1", "name": "Flat", "type": "real_estate", "value": 300000.0,
             "asset_definition_id": "def-flat"},
        ],
        "incomes": [
            {"id": "salary", "name": "Salary", "type": "salary",
             "payment_schedule": {"frequency": "monthly", "amount": 4000.0}},
            {"id": "royalty", "name": "Royalty", "type": "other", "is_passive": True,
             "payment_schedule": {"frequency": "annually", "amount": 1200.0}},
        ],
        "expenses": [
            {"id": "rent", "name": "Rent", "category": "housing",
             "payment_schedule": {"frequency": "monthly", "amount": 1500.0}},
            {"id": "insurance", "name": "Insurance", "category": "insurance",
             "payment_schedule": {"frequency": "quarterly", "amount": 600.0}},
        ],
        "liabilities": [
            {"id": "mortgage", "name": "Mortgage", "type": "mortgage",
             "principal_amount": 200000.0, "current_balance": 150000.0,
             "interest_rate": 3.5,
             "payment_schedule": {"frequency": "monthly", "amount": 800.0}},
        ],
        "category_assignments": {
            "acme-1": [{"category_id": "risk", "category_name": "Risk",
                        "option_id": "high", "option_name": "High"}],
            "bund-1": [{"category_id": "risk", "category_name": "Risk",
                        "option_id": "low", "option_name": "Low"}],
        },
    }


@pytest.fixture
def sheet_file(tmp_path, sheet_document):
    """Balance-sheet document written to a temporary JSON file."""
    path = tmp_path / "sheet.json"
    with open(path, "w") as f:
        json.dump(sheet_document, f)
    return path
