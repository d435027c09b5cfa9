"""
Unit tests for utils.py and log.py modules.
"""

import logging
import math
from datetime import date

import numpy as np
import pandas as pd
import pytest

from balancesheet.log import ROOT_LOGGER_NAME, configure_logging, get_logger
from balancesheet.utils import (
    breakdown_total,
    even_breakdown,
    finite_or_zero,
    month_index,
    safe_percentage,
    safe_ratio,
)


class TestNumericGuards:
    """Test finite_or_zero, safe_ratio and safe_percentage."""

    @pytest.mark.parametrize("value", [None, math.nan, math.inf, -math.inf, "abc"])
    def test_non_finite_is_zero(self, value):
        assert finite_or_zero(value) == 0.0

    def test_finite_passthrough(self):
        assert finite_or_zero(np.float64(2.5)) == 2.5
        assert finite_or_zero("3") == 3.0

    def test_safe_ratio(self):
        assert safe_ratio(1.0, 4.0) == 0.25
        assert safe_ratio(1.0, 0.0) == 0.0
        assert safe_ratio(1.0, -2.0) == 0.0

    def test_safe_percentage(self):
        assert safe_percentage(25.0, 200.0) == pytest.approx(12.5)
        assert safe_percentage(25.0, 0.0) == 0.0


class TestCalendar:
    """Test month helpers."""

    def test_month_index(self):
        idx = month_index(date(2025, 11, 17), 3)
        assert list(idx) == [
            pd.Timestamp("2025-11-01"), pd.Timestamp("2025-12-01"), pd.Timestamp("2026-01-01"),
        ]

    def test_month_index_empty(self):
        assert len(month_index(date(2025, 1, 1), 0)) == 0


class TestBreakdowns:
    """Test 12-slot breakdown helpers."""

    def test_even(self):
        assert even_breakdown(math.nan) == {m: 0.0 for m in range(1, 13)}
        assert set(even_breakdown(5.0).values()) == {5.0}

    def test_breakdown_total(self):
        assert breakdown_total({1: 1.0, 2: math.inf, 3: 2.0}) == 3.0
        assert breakdown_total([]) == 0.0
        assert breakdown_total(x for x in (1.0, None, 4.0)) == 5.0


class TestLogging:
    """Test logger naming and handler setup."""

    def test_get_logger_names(self):
        assert get_logger().name == ROOT_LOGGER_NAME
        assert get_logger("cache").name == "balancesheet.cache"
        assert get_logger("balancesheet.cache").name == "balancesheet.cache"

    def test_configure_logging_is_idempotent(self):
        logger = configure_logging("DEBUG")
        before = len(logger.handlers)
        configure_logging("ERROR")

        assert len(logger.handlers) == before
        assert logger.level == logging.ERROR

    def test_unknown_level_falls_back_to_info(self):
        assert configure_logging("CHATTY").level == logging.INFO
