"""
Unit tests for schedules.py module.

Tests frequency conversion, payment-month resolution and per-month
amounts of payment schedules.
"""

import logging
import math

import pytest

from balancesheet.exceptions import ScheduleError
from balancesheet.schedules import (
    PaymentFrequency,
    PaymentFrequencyConverter,
    PaymentSchedule,
    amount_for_month,
    annual_amount,
    monthly_amount,
    normalize_custom_amounts,
    resolve_payment_months,
    schedule_monthly_amount,
)


# ============================================================================
# FREQUENCY PARSING
# ============================================================================

class TestPaymentFrequency:
    """Test frequency parsing."""

    def test_parse_known_values(self):
        assert PaymentFrequency.parse("monthly") is PaymentFrequency.MONTHLY
        assert PaymentFrequency.parse(" Quarterly ") is PaymentFrequency.QUARTERLY
        assert PaymentFrequency.parse(PaymentFrequency.CUSTOM) is PaymentFrequency.CUSTOM

    def test_parse_unknown_returns_none(self):
        assert PaymentFrequency.parse("fortnightly") is None
        assert PaymentFrequency.parse(None) is None


# ============================================================================
# CONVERTER
# ============================================================================

class TestPaymentFrequencyConverter:
    """Test monthly/annual conversion rules."""

    @pytest.fixture
    def converter(self):
        return PaymentFrequencyConverter()

    def test_monthly(self, converter):
        assert converter.monthly(250.0, "monthly") == 250.0

    def test_quarterly(self, converter):
        assert converter.monthly(300.0, "quarterly") == pytest.approx(100.0)

    def test_annually(self, converter):
        assert converter.monthly(1200.0, "annually") == pytest.approx(100.0)

    def test_custom_sums_table(self, converter):
        custom = {1: 100.0, 6: 500.0, 12: 600.0}
        assert converter.monthly(None, "custom", custom) == pytest.approx(100.0)

    def test_custom_without_amounts_is_zero(self, converter):
        assert converter.monthly(500.0, "custom") == 0.0

    def test_custom_without_table_uses_payment_months(self, converter):
        """250 paid in April and October: 500 a year."""
        assert converter.monthly(250.0, "custom", payment_months=(4, 10)) == pytest.approx(500.0 / 12)
        assert converter.annual(250.0, "custom", payment_months=(4, 10)) == pytest.approx(500.0)

    def test_none_and_unknown_are_zero(self, converter):
        assert converter.monthly(500.0, "none") == 0.0
        assert converter.monthly(500.0, "biweekly") == 0.0
        assert converter.monthly(500.0, None) == 0.0

    def test_unknown_frequency_logs_warning(self, caplog):
        converter = PaymentFrequencyConverter(logger=logging.getLogger("test.schedules"))
        with caplog.at_level(logging.WARNING, logger="test.schedules"):
            converter.monthly(10.0, "weekly")
        assert "Unrecognized payment frequency" in caplog.text

    @pytest.mark.parametrize("frequency", ["monthly", "quarterly", "annually"])
    @pytest.mark.parametrize("amount", [0.0, 1.0, 99.99, 12_345.67])
    def test_annual_is_twelve_months(self, converter, frequency, amount):
        monthly = converter.monthly(amount, frequency)
        assert converter.annual(amount, frequency) == pytest.approx(monthly * 12)

    def test_custom_yearly_sum_over_twelve(self, converter):
        custom = {m: float(m) for m in range(1, 13)}
        assert converter.monthly(None, "custom", custom) == pytest.approx(sum(custom.values()) / 12)

    @pytest.mark.parametrize("bad", [math.inf, -math.inf, math.nan])
    @pytest.mark.parametrize("frequency", ["monthly", "quarterly", "annually"])
    def test_non_finite_amount_is_zero(self, converter, bad, frequency):
        result = converter.monthly(bad, frequency)
        assert result == 0.0
        assert math.isfinite(result)

    def test_non_finite_custom_entries_ignored(self, converter):
        custom = {1: math.inf, 2: 120.0}
        assert converter.monthly(None, "custom", custom) == pytest.approx(10.0)

    def test_for_month_out_of_range_is_zero(self, converter):
        assert converter.for_month(100.0, "monthly", 13) == 0.0
        assert converter.for_month(100.0, "monthly", 0) == 0.0


# ============================================================================
# PAYMENT MONTHS
# ============================================================================

class TestResolvePaymentMonths:
    """Test payment-month defaults and overrides."""

    def test_defaults(self):
        assert resolve_payment_months("monthly") == tuple(range(1, 13))
        assert resolve_payment_months("quarterly") == (3, 6, 9, 12)
        assert resolve_payment_months("annually") == (12,)
        assert resolve_payment_months("none") == ()

    def test_explicit_months_win(self):
        assert resolve_payment_months("quarterly", payment_months=[11, 2, 5, 8]) == (2, 5, 8, 11)

    def test_legacy_months_used_when_no_payment_months(self):
        assert resolve_payment_months("annually", months=[6]) == (6,)

    def test_invalid_month_raises(self):
        with pytest.raises(ScheduleError):
            resolve_payment_months("quarterly", payment_months=[3, 13])


class TestNormalizeCustomAmounts:
    """Test custom amount key normalization."""

    def test_string_keys_become_ints(self):
        assert normalize_custom_amounts({"1": 10.0, "12": 5.0}) == {1: 10.0, 12: 5.0}

    def test_none_passes_through(self):
        assert normalize_custom_amounts(None) is None

    @pytest.mark.parametrize("key", [0, 13, "x"])
    def test_invalid_key_raises(self, key):
        with pytest.raises(ScheduleError):
            normalize_custom_amounts({key: 1.0})


# ============================================================================
# SCHEDULE
# ============================================================================

class TestPaymentSchedule:
    """Test PaymentSchedule properties and per-month amounts."""

    def test_frequency_normalized(self):
        s = PaymentSchedule(frequency="Quarterly", amount=300.0)
        assert s.frequency is PaymentFrequency.QUARTERLY
        assert s.monthly == pytest.approx(100.0)
        assert s.annual == pytest.approx(1200.0)

    def test_quarterly_pays_in_payment_months(self):
        s = PaymentSchedule(frequency="quarterly", amount=300.0)
        by_month = [amount_for_month(s, m) for m in range(1, 13)]
        assert by_month == [0, 0, 300, 0, 0, 300, 0, 0, 300, 0, 0, 300]
        assert sum(by_month) == pytest.approx(s.annual)

    def test_annual_custom_payment_month(self):
        s = PaymentSchedule(frequency="annually", amount=1200.0, payment_months=(4,))
        assert s.for_month(4) == 1200.0
        assert s.for_month(12) == 0.0

    def test_custom_schedule_per_month(self):
        s = PaymentSchedule(frequency="custom", custom_amounts={"3": 50.0, "9": 70.0})
        assert s.for_month(3) == 50.0
        assert s.for_month(4) == 0.0
        assert s.monthly == pytest.approx(10.0)

    def test_custom_payment_months_without_table(self):
        s = PaymentSchedule(frequency="custom", amount=250.0, payment_months=(4, 10))
        by_month = [s.for_month(m) for m in range(1, 13)]
        assert by_month == [0, 0, 0, 250.0, 0, 0, 0, 0, 0, 250.0, 0, 0]
        assert sum(by_month) == pytest.approx(s.annual)

    def test_table_wins_over_payment_months(self):
        s = PaymentSchedule(frequency="custom", amount=999.0, custom_amounts={6: 60.0},
                            payment_months=(4, 10))
        assert s.for_month(6) == 60.0
        assert s.for_month(4) == 0.0
        assert s.monthly == pytest.approx(5.0)

    def test_custom_without_amounts_warns(self):
        with pytest.warns(UserWarning, match="no custom_amounts"):
            s = PaymentSchedule(frequency="custom")
        assert s.monthly == 0.0

    def test_invalid_day_of_month(self):
        with pytest.raises(ScheduleError):
            PaymentSchedule(frequency="monthly", amount=1.0, day_of_month=32)

    def test_unknown_frequency_kept_and_zero(self):
        s = PaymentSchedule(frequency="weekly", amount=100.0)
        assert s.frequency == "weekly"
        assert s.monthly == 0.0
        assert s.for_month(1) == 0.0


class TestModuleShortcuts:
    """Test module-level conversion helpers."""

    def test_monthly_and_annual_amount(self):
        assert monthly_amount(300.0, "quarterly") == pytest.approx(100.0)
        assert annual_amount(300.0, "quarterly") == pytest.approx(1200.0)

    def test_missing_schedule_is_zero(self):
        assert schedule_monthly_amount(None) == 0.0
        assert amount_for_month(None, 3) == 0.0
