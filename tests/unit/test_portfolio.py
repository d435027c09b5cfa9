"""
Unit tests for portfolio.py module.

Tests value/income allocations along type, sector, country and category
dimensions, plus the flat income-type and asset-type breakdowns.
"""

import pytest

from balancesheet.assets import (
    AssetDefinition,
    CountryAllocation,
    OtherAsset,
    SectorAllocation,
)
from balancesheet.income import Income
from balancesheet.portfolio import (
    AllocationSet,
    CategoryAssignment,
    PortfolioAggregator,
    PortfolioPosition,
    aggregate_portfolio,
    asset_type_allocation,
    income_type_allocation,
    positions_from_assets,
)
from balancesheet.schedules import PaymentSchedule


def _names(entries):
    return {e.name: e.value for e in entries}


@pytest.fixture
def aggregator():
    return PortfolioAggregator()


@pytest.fixture
def positions():
    """6000 stock (US, tech), 4000 bond (DE), 2000 cash (no metadata)."""
    return [
        PortfolioPosition(
            id="a", name="ACME", type="stock", current_value=6000, monthly_income=20,
            sectors=("Technology",), country="US",
            category_assignments=(
                CategoryAssignment("risk", "Risk", "high", "High"),
                CategoryAssignment("region", "Region", "na", "North America"),
            ),
        ),
        PortfolioPosition(
            id="b", name="Bund", type="bond", current_value=4000, monthly_income=10,
            country="DE",
            category_assignments=(CategoryAssignment("risk", "Risk", "low", "Low"),),
        ),
        PortfolioPosition(id="c", name="Cash", type="cash", current_value=2000, monthly_income=0),
    ]


# ============================================================================
# VALUE ALLOCATION
# ============================================================================

class TestValueAllocation:
    """Test allocation by current value."""

    def test_percentages_sum_to_100(self, aggregator, positions):
        result = aggregator.value_allocation(positions)

        assert result.total == pytest.approx(12_000)
        for dimension in (result.by_type, result.by_sector, result.by_country):
            assert sum(e.percentage for e in dimension) == pytest.approx(100.0)
            assert sum(e.value for e in dimension) == pytest.approx(result.total)

    def test_by_type(self, aggregator, positions):
        result = aggregator.value_allocation(positions)
        assert _names(result.by_type) == {"stock": 6000, "bond": 4000, "cash": 2000}

    def test_sorted_descending(self, aggregator, positions):
        result = aggregator.value_allocation(positions)
        values = [e.value for e in result.by_type]
        assert values == sorted(values, reverse=True)

    def test_unknown_sector_and_country(self, aggregator, positions):
        result = aggregator.value_allocation(positions)
        assert _names(result.by_sector)["Unknown"] == pytest.approx(6000)
        assert _names(result.by_country)["Unknown"] == pytest.approx(2000)

    def test_zero_total_is_empty(self, aggregator):
        empty = aggregator.value_allocation([PortfolioPosition(id="x", name="X")])
        assert empty == AllocationSet()
        assert empty.is_empty
        assert aggregator.value_allocation([]).is_empty


# ============================================================================
# WEIGHTED SECTORS AND COUNTRIES
# ============================================================================

class TestWeightedDimensions:
    """Test multi-sector and multi-country definitions."""

    def test_multi_sector_and_country(self, aggregator, multi_sector_definition):
        position = PortfolioPosition(id="e", name="ETF", type="stock", current_value=10_000,
                                     asset_definition_id="def-etf")
        result = aggregator.value_allocation([position], [multi_sector_definition])

        assert _names(result.by_sector) == pytest.approx({"Technology": 6000, "Healthcare": 4000})
        assert _names(result.by_country) == pytest.approx({"US": 7000, "DE": 3000})

    def test_partial_weights_remainder_unknown(self, aggregator):
        definition = AssetDefinition(id="d", name="D", sectors=(SectorAllocation("energy", 50),))
        position = PortfolioPosition(id="p", name="P", current_value=1000, asset_definition_id="d")
        result = aggregator.value_allocation([position], {"d": definition})

        assert _names(result.by_sector) == pytest.approx({"energy": 500, "Unknown": 500})

    def test_excess_weights_scaled(self, aggregator):
        definition = AssetDefinition(id="d", name="D", countries=(
            CountryAllocation("US", 80), CountryAllocation("JP", 40),
        ))
        position = PortfolioPosition(id="p", name="P", current_value=1200, asset_definition_id="d")
        result = aggregator.value_allocation([position], [definition])

        assert _names(result.by_country) == pytest.approx({"US": 800, "JP": 400})
        assert sum(e.percentage for e in result.by_country) == pytest.approx(100.0)

    def test_definition_country_before_position(self, aggregator):
        definition = AssetDefinition(id="d", name="D", country="FR")
        position = PortfolioPosition(id="p", name="P", current_value=100, country="US",
                                     asset_definition_id="d")
        result = aggregator.value_allocation([position], [definition])
        assert _names(result.by_country) == {"FR": 100}

    def test_position_weighted_countries(self, aggregator):
        position = PortfolioPosition(
            id="p", name="P", current_value=100,
            countries=(CountryAllocation("US", 50), CountryAllocation("CA", 50)),
        )
        result = aggregator.value_allocation([position])
        assert _names(result.by_country) == pytest.approx({"US": 50, "CA": 50})

    def test_position_sectors_split_evenly(self, aggregator):
        position = PortfolioPosition(id="p", name="P", current_value=100, sectors=("A", "B"))
        result = aggregator.value_allocation([position])
        assert _names(result.by_sector) == pytest.approx({"A": 50, "B": 50})


# ============================================================================
# CATEGORIES
# ============================================================================

class TestCategories:
    """Test category assignment allocation and hierarchical breakdown."""

    def test_full_value_per_option(self, aggregator, positions):
        result = aggregator.value_allocation(positions)
        by_category = _names(result.by_category)

        assert by_category["High"] == 6000
        assert by_category["North America"] == 6000
        assert by_category["Low"] == 4000
        assert by_category["Uncategorized"] == 2000

    def test_breakdown_percentages(self, aggregator, positions):
        result = aggregator.value_allocation(positions)
        breakdown = {c.category_id: c for c in result.category_breakdown}

        risk = breakdown["risk"]
        assert risk.total_value == 10_000
        assert risk.total_percentage == pytest.approx(10_000 / 12_000 * 100)
        assert [(o.name, o.percentage) for o in risk.options] == [
            ("High", pytest.approx(60.0)), ("Low", pytest.approx(40.0)),
        ]
        assert breakdown["region"].options[0].percentage == pytest.approx(100.0)
        assert breakdown["uncategorized"].category_name == "Uncategorized"

    def test_categories_sorted_by_subtotal(self, aggregator, positions):
        result = aggregator.value_allocation(positions)
        assert [c.category_id for c in result.category_breakdown] == [
            "risk", "region", "uncategorized",
        ]


# ============================================================================
# INCOME ALLOCATION
# ============================================================================

class TestIncomeAllocation:
    """Test allocation by monthly income."""

    def test_skips_positions_without_income(self, aggregator, positions):
        result = aggregator.income_allocation(positions)

        assert result.total == pytest.approx(30)
        assert _names(result.by_type) == {"stock": 20, "bond": 10}
        assert "Uncategorized" not in _names(result.by_category)
        assert sum(e.percentage for e in result.by_type) == pytest.approx(100.0)

    def test_no_income_is_empty(self, aggregator):
        position = PortfolioPosition(id="p", name="P", current_value=100)
        assert aggregator.income_allocation([position]).is_empty

    def test_aggregate_returns_both(self, positions):
        result = aggregate_portfolio(positions)
        assert result.value_allocations.total == pytest.approx(12_000)
        assert result.income_allocations.total == pytest.approx(30)


# ============================================================================
# POSITIONS FROM HOLDINGS
# ============================================================================

class TestPositionsFromAssets:
    """Test building positions from holdings."""

    def test_positions_carry_income_and_metadata(self, sheet):
        positions = positions_from_assets(sheet.assets, category_assignments=sheet.category_assignments)
        by_id = {p.id: p for p in positions}

        assert by_id["acme-1"].monthly_income == pytest.approx(100.0)
        assert by_id["acme-1"].sectors == ("Technology",)
        assert by_id["acme-1"].country == "US"
        assert by_id["acme-1"].category_assignments[0].option_name == "High"
        assert by_id["flat-1"].category_assignments == ()

    def test_country_without_definitions(self, sheet):
        result = aggregate_portfolio(positions_from_assets(sheet.assets))
        assert _names(result.value_allocations.by_country)["DE"] == pytest.approx(10_000)


# ============================================================================
# FLAT BREAKDOWNS
# ============================================================================

class TestFlatBreakdowns:
    """Test income-type and asset-type breakdowns."""

    def test_income_type_allocation(self, incomes, assets):
        rows = income_type_allocation(incomes, assets)
        amounts = {r["type"]: r["amount"] for r in rows}

        assert amounts["salary"] == pytest.approx(4000.0)
        assert amounts["rental"] == pytest.approx(2500.0)
        assert amounts["dividend"] == pytest.approx(100.0)
        assert amounts["interest"] == pytest.approx(500.0 / 12)
        assert sum(r["percentage"] for r in rows) == pytest.approx(100.0)
        assert rows[0]["type"] == "salary"

    def test_income_with_source_not_counted_twice(self, real_estate):
        rent = Income(id="rent", name="Rent", type="rental", is_passive=True,
                      source_id="flat-1", payment_schedule=PaymentSchedule("monthly", 2500.0))
        rows = income_type_allocation([rent], [real_estate])
        assert rows == [{"type": "rental", "amount": 2500.0, "percentage": 100.0}]

    def test_asset_type_allocation(self, assets):
        rows = asset_type_allocation(assets + [OtherAsset(id="o", name="Art", value=25_000.0)])
        by_type = {r["type"]: r for r in rows}

        assert by_type["real_estate"]["value"] == 300_000.0
        assert by_type["other"]["count"] == 1
        assert sum(r["percentage"] for r in rows) == pytest.approx(100.0)
