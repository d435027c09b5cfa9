"""
Unit tests for income.py, expenses.py, liabilities.py and assets.py.

Tests schedule-bearing entities and holding construction.
"""

import math

import pytest

from balancesheet.assets import (
    AssetType,
    BondAsset,
    DividendInfo,
    StockAsset,
    make_asset,
)
from balancesheet.expenses import Expense, expense_breakdown, total_monthly_expenses
from balancesheet.income import (
    Income,
    IncomeType,
    active_income,
    passive_income,
    total_monthly_income,
)
from balancesheet.liabilities import (
    Liability,
    total_debt,
    total_monthly_liability_payments,
)
from balancesheet.schedules import PaymentSchedule


class TestIncome:
    """Test income streams."""

    def test_totals(self, incomes):
        assert total_monthly_income(incomes) == pytest.approx(4100.0)
        assert active_income(incomes) == pytest.approx(4000.0)
        assert passive_income(incomes) == pytest.approx(100.0)

    def test_type_coerced(self):
        assert Income(id="i", name="I", type="dividend").type is IncomeType.DIVIDEND

    def test_invalid_type_raises(self):
        with pytest.raises(ValueError):
            Income(id="i", name="I", type="lottery")

    def test_without_schedule_is_zero(self):
        assert Income(id="i", name="I").monthly == 0.0


class TestExpenses:
    """Test expenses and category breakdown."""

    def test_total(self, expenses):
        assert total_monthly_expenses(expenses) == pytest.approx(1700.0)

    def test_breakdown(self, expenses):
        rows = expense_breakdown(expenses + [
            Expense(id="x", name="Free", category="other"),
        ])
        assert [r["category"] for r in rows] == ["housing", "insurance"]
        assert sum(r["percentage"] for r in rows) == pytest.approx(100.0)


class TestLiabilities:
    """Test liability payments and debt."""

    def test_totals(self, liabilities):
        assert total_monthly_liability_payments(liabilities) == pytest.approx(800.0)
        assert total_debt(liabilities) == pytest.approx(150_000.0)

    def test_non_finite_balance_counts_zero(self):
        debt = Liability(id="l", name="L", current_balance=math.inf,
                         payment_schedule=PaymentSchedule("monthly", 50.0))
        assert total_debt([debt]) == 0.0
        assert debt.monthly_payment == 50.0


class TestAssets:
    """Test holding variants."""

    def test_make_asset_dispatches_on_type(self):
        asset = make_asset("bond", id="b", name="B", value=100.0, interest_rate=1.0)
        assert isinstance(asset, BondAsset)
        assert asset.type is AssetType.BOND

    def test_make_asset_unknown_type(self):
        with pytest.raises(ValueError):
            make_asset("crypto", id="c", name="C")

    def test_definition_id(self, stock):
        assert stock.asset_definition_id == "def-acme"
        assert StockAsset(id="s", name="S").asset_definition_id is None

    def test_dividend_info_amount_basis_validated(self):
        with pytest.raises(ValueError):
            DividendInfo(amount=1.0, amount_basis="monthly")

    def test_dividend_info_default_payment_months(self):
        assert DividendInfo(amount=1.0).resolved_payment_months == (3, 6, 9, 12)
