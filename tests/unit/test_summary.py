"""
Unit tests for summary.py module.

Tests base totals, the financial summary and portfolio snapshots.
"""

import pytest

from balancesheet.cache import CacheWriter, IncomeCache, InMemoryCacheStore
from balancesheet.summary import (
    BalanceSheet,
    BaseTotals,
    build_snapshot,
    calculate_financial_summary,
    compute_base_totals,
)


ASSET_INCOME = 100.0 + 500.0 / 12 + 2500.0


class TestBaseTotals:
    """Test month-invariant totals."""

    def test_compute(self, incomes, expenses, liabilities):
        base = compute_base_totals(incomes, expenses, liabilities)

        assert base.active_income == pytest.approx(4000.0)
        assert base.passive_income == pytest.approx(100.0)
        assert base.total_expenses == pytest.approx(1700.0)
        assert base.total_liabilities == pytest.approx(800.0)
        assert base.obligations == pytest.approx(2500.0)

    def test_dict_roundtrip(self):
        base = BaseTotals(1.0, 2.0, 3.0, 4.0)
        assert BaseTotals.coerce(base.to_dict()) == base
        assert BaseTotals.coerce(base) is base

    def test_coerce_fills_missing_and_non_finite(self):
        base = BaseTotals.coerce({"active_income": float("nan"), "total_expenses": 10.0})
        assert base == BaseTotals(0.0, 0.0, 10.0, 0.0)


class TestFinancialSummary:
    """Test headline figures."""

    def test_figures(self, sheet, fixed_now):
        s = calculate_financial_summary(sheet, now=fixed_now)

        assert s.total_assets == pytest.approx(325_000.0)
        assert s.total_liabilities == pytest.approx(150_000.0)
        assert s.net_worth == pytest.approx(175_000.0)
        assert s.monthly_income == pytest.approx(4100.0)
        assert s.monthly_asset_income == pytest.approx(ASSET_INCOME)
        assert s.total_monthly_income == pytest.approx(4100.0 + ASSET_INCOME)
        assert s.total_passive_income == pytest.approx(100.0 + ASSET_INCOME)
        assert s.monthly_cash_flow == pytest.approx(4100.0 + ASSET_INCOME - 2500.0)
        assert s.passive_income_coverage == pytest.approx((100.0 + ASSET_INCOME) / 2500.0)
        assert s.debt_to_income_ratio == pytest.approx(800.0 / (4100.0 + ASSET_INCOME))
        assert s.last_updated == fixed_now.isoformat()

    def test_empty_sheet_is_zero(self):
        s = calculate_financial_summary(BalanceSheet())
        assert s.net_worth == 0.0
        assert s.passive_income_coverage == 0.0
        assert s.savings_rate == 0.0

    def test_reads_through_cache(self, sheet):
        store = InMemoryCacheStore()
        cache = IncomeCache(store=store)
        CacheWriter(store).warm(cache, sheet.assets)

        assert cache.total_monthly_from_cache(sheet.assets) is not None
        s = calculate_financial_summary(sheet, cache)
        assert s.monthly_asset_income == pytest.approx(ASSET_INCOME)


class TestSnapshot:
    """Test snapshot construction."""

    def test_snapshot_contents(self, sheet, fixed_now):
        snap = build_snapshot(sheet, now=fixed_now)

        assert sorted(snap.monthly_asset_income) == list(range(1, 13))
        assert snap.monthly_asset_income[1] == pytest.approx(500.0 / 12 + 2500.0)
        assert snap.monthly_asset_income[3] == pytest.approx(300.0 + 500.0 / 12 + 2500.0)
        assert snap.base_totals == compute_base_totals(sheet.incomes, sheet.expenses, sheet.liabilities)
        assert len(snap.positions) == 3
        assert snap.summary.net_worth == pytest.approx(175_000.0)
        assert snap.last_calculated == fixed_now.isoformat()

    def test_positions_carry_categories(self, sheet):
        snap = build_snapshot(sheet)
        by_id = {p.id: p for p in snap.positions}
        assert by_id["bund-1"].category_assignments[0].option_id == "low"

    def test_definitions_by_id(self, sheet):
        assert set(sheet.definitions_by_id) == {"def-acme", "def-bund", "def-flat"}
