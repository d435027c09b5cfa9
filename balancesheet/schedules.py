"""
Payment schedules and frequency conversion for balancesheet.

Purpose
-------
Every schedule-bearing entity (income, expense, liability payment,
dividend) describes a recurring sum as an amount plus a frequency. This
module normalizes those schedules into a monthly figure and, where the
calendar matters, into the amount attributable to one specific month.

Key components
--------------
- PaymentFrequency:
    Enumeration of supported frequencies (monthly, quarterly, annually,
    custom, none). Unknown strings parse to ``None`` and convert to zero.

- PaymentSchedule:
    Frozen description of a recurring payment: frequency, amount,
    optional per-month custom amounts, optional payment months and an
    informational day of month.

- PaymentFrequencyConverter:
    Pure conversion of (amount, frequency, custom amounts) to a monthly
    figure, plus the schedule-aware per-month amount. Results are always
    finite: non-finite intermediates collapse to 0.

Conversion rules
----------------
- monthly   → amount
- quarterly → amount * 4 / 12
- annually  → amount / 12
- custom    → sum(custom_amounts) / 12, or amount * len(payment_months) / 12
              without a table (0 with neither)
- none / unknown → 0

The annual figure is always ``monthly * 12``.

Per-month amounts
-----------------
``amount_for_month`` places the payment in the calendar months it is
actually paid: quarterly schedules pay in their payment months
(default March, June, September, December), annual schedules in their
payment month (default December), custom schedules read their
per-month table or, without one, pay ``amount`` in their listed
months. Summing the twelve months gives the annual figure
whenever the payment months match the frequency.

Example
-------
>>> from balancesheet.schedules import PaymentSchedule, amount_for_month, monthly_amount
>>> monthly_amount(300.0, "quarterly")
100.0
>>> s = PaymentSchedule(frequency="quarterly", amount=300.0)
>>> [amount_for_month(s, m) for m in (1, 3)]
[0.0, 300.0]
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from .constants import (
    CALENDAR_MONTHS,
    DEFAULT_ANNUAL_MONTHS,
    DEFAULT_QUARTERLY_MONTHS,
    MONTHS_PER_YEAR,
)
from .exceptions import ScheduleError
from .log import get_logger
from .utils import finite_or_zero

__all__ = [
    "PaymentFrequency",
    "PaymentSchedule",
    "PaymentFrequencyConverter",
    "normalize_custom_amounts",
    "resolve_payment_months",
    "monthly_amount",
    "annual_amount",
    "amount_for_month",
    "schedule_monthly_amount",
]

FrequencyLike = Union["PaymentFrequency", str, None]


# ---------------------------------------------------------------------------
# Frequency
# ---------------------------------------------------------------------------

class PaymentFrequency(str, Enum):
    """Supported payment frequencies."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"
    CUSTOM = "custom"
    NONE = "none"

    @classmethod
    def parse(cls, value: FrequencyLike) -> Optional["PaymentFrequency"]:
        """Return the matching member, or None for missing/unknown values."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


def normalize_custom_amounts(
    custom_amounts: Optional[Mapping[Union[int, str], float]],
) -> Optional[Dict[int, float]]:
    """
    Return custom amounts keyed by int calendar month.

    Accepts the persisted ``{"1": ..., "12": ...}`` form as well as int
    keys. Raises ScheduleError for keys outside 1..12.
    """
    if custom_amounts is None:
        return None
    out: Dict[int, float] = {}
    for key, value in custom_amounts.items():
        try:
            month = int(key)
        except (TypeError, ValueError):
            raise ScheduleError(f"Custom amount key must be a month number, got {key!r}.")
        if month not in CALENDAR_MONTHS:
            raise ScheduleError(f"Custom amount month must be in 1..12, got {month}.")
        out[month] = finite_or_zero(value)
    return out


def _normalize_months(months: Optional[Iterable[int]]) -> Optional[Tuple[int, ...]]:
    if months is None:
        return None
    out = []
    for m in months:
        m = int(m)
        if m not in CALENDAR_MONTHS:
            raise ScheduleError(f"Payment month must be in 1..12, got {m}.")
        if m not in out:
            out.append(m)
    return tuple(sorted(out))


def resolve_payment_months(
    frequency: FrequencyLike,
    payment_months: Optional[Iterable[int]] = None,
    months: Optional[Iterable[int]] = None,
) -> Tuple[int, ...]:
    """
    Calendar months in which a schedule pays.

    Explicit ``payment_months`` win, then the legacy ``months`` list,
    then the frequency default. Custom schedules with a per-month table
    pay in the months of that table; without one they pay in the
    explicit months only.
    """
    freq = PaymentFrequency.parse(frequency)
    explicit = payment_months if payment_months else months
    if explicit:
        return _normalize_months(explicit) or ()
    if freq is PaymentFrequency.MONTHLY:
        return CALENDAR_MONTHS
    if freq is PaymentFrequency.QUARTERLY:
        return DEFAULT_QUARTERLY_MONTHS
    if freq is PaymentFrequency.ANNUALLY:
        return DEFAULT_ANNUAL_MONTHS
    return ()


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PaymentSchedule:
    """
    Recurring payment description.

    Parameters
    ----------
    frequency : PaymentFrequency or str
        One of monthly, quarterly, annually, custom, none. Unknown
        strings are kept as given and convert to zero.
    amount : float
        Amount paid per payment event.
    custom_amounts : dict[int, float], optional
        Per-month amounts for ``custom`` schedules. String month keys are
        accepted and normalized to ints.
    payment_months : tuple[int, ...], optional
        Months in which quarterly/annual payments land.
    day_of_month : int, optional
        Informational payment day; does not affect monthly figures.

    Notes
    -----
    A ``custom`` schedule without custom amounts pays ``amount`` in each
    of its ``payment_months``. With neither it yields zero and a warning
    is emitted at construction time.
    """

    frequency: Union[PaymentFrequency, str] = PaymentFrequency.MONTHLY
    amount: float = 0.0
    custom_amounts: Optional[Dict[int, float]] = None
    payment_months: Optional[Tuple[int, ...]] = None
    day_of_month: Optional[int] = None

    def __post_init__(self) -> None:
        parsed = PaymentFrequency.parse(self.frequency)
        if parsed is not None:
            object.__setattr__(self, "frequency", parsed)
        object.__setattr__(self, "custom_amounts", normalize_custom_amounts(self.custom_amounts))
        object.__setattr__(self, "payment_months", _normalize_months(self.payment_months))
        if self.day_of_month is not None and not 1 <= self.day_of_month <= 31:
            raise ScheduleError(f"day_of_month must be in 1..31, got {self.day_of_month}.")
        if parsed is PaymentFrequency.CUSTOM and not (self.custom_amounts or self.payment_months):
            warnings.warn(
                "Custom payment schedule has no custom_amounts or payment_months; it will yield 0.",
                UserWarning,
                stacklevel=3,
            )

    @property
    def monthly(self) -> float:
        """Normalized monthly figure."""
        return monthly_amount(
            self.amount, self.frequency, self.custom_amounts, payment_months=self.payment_months
        )

    @property
    def annual(self) -> float:
        """Normalized annual figure (monthly * 12)."""
        return self.monthly * MONTHS_PER_YEAR

    def for_month(self, month: int) -> float:
        """Amount paid in calendar *month*."""
        return amount_for_month(self, month)


# ---------------------------------------------------------------------------
# Converter
# ---------------------------------------------------------------------------

class PaymentFrequencyConverter:
    """
    Convert payment schedules to monthly and per-month figures.

    Stateless apart from the injected logger, which receives a warning
    for unrecognized frequencies and non-finite results.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or get_logger(__name__)

    def monthly(
        self,
        amount: Optional[float],
        frequency: FrequencyLike,
        custom_amounts: Optional[Mapping[Union[int, str], float]] = None,
        *,
        payment_months: Optional[Iterable[int]] = None,
    ) -> float:
        """
        Monthly figure for *amount* paid at *frequency*.

        A custom schedule sums its table over the year; without a table
        it pays *amount* once in each of *payment_months*.
        """
        freq = PaymentFrequency.parse(frequency)
        if freq is None:
            if frequency is not None:
                self._logger.warning("Unrecognized payment frequency %r; using 0", frequency)
            return 0.0

        if freq is PaymentFrequency.MONTHLY:
            result = finite_or_zero(amount)
        elif freq is PaymentFrequency.QUARTERLY:
            result = finite_or_zero(amount) * 4 / MONTHS_PER_YEAR
        elif freq is PaymentFrequency.ANNUALLY:
            result = finite_or_zero(amount) / MONTHS_PER_YEAR
        elif freq is PaymentFrequency.CUSTOM:
            if custom_amounts:
                total = sum(finite_or_zero(v) for v in custom_amounts.values())
            else:
                months = _normalize_months(payment_months) or ()
                total = finite_or_zero(amount) * len(months)
            result = total / MONTHS_PER_YEAR
        else:
            return 0.0

        return self._finite(result, amount, freq)

    def annual(
        self,
        amount: Optional[float],
        frequency: FrequencyLike,
        custom_amounts: Optional[Mapping[Union[int, str], float]] = None,
        *,
        payment_months: Optional[Iterable[int]] = None,
    ) -> float:
        """Annual figure, always ``monthly * 12``."""
        monthly = self.monthly(amount, frequency, custom_amounts, payment_months=payment_months)
        return monthly * MONTHS_PER_YEAR

    def for_month(
        self,
        amount: Optional[float],
        frequency: FrequencyLike,
        month: int,
        *,
        custom_amounts: Optional[Mapping[Union[int, str], float]] = None,
        payment_months: Optional[Iterable[int]] = None,
    ) -> float:
        """
        Amount attributable to calendar *month* under the schedule.

        Months outside 1..12 and unknown frequencies yield 0.
        """
        if month not in CALENDAR_MONTHS:
            self._logger.warning("Month %r outside 1..12; using 0", month)
            return 0.0
        freq = PaymentFrequency.parse(frequency)
        if freq is None or freq is PaymentFrequency.NONE:
            return 0.0
        if freq is PaymentFrequency.CUSTOM:
            table = normalize_custom_amounts(custom_amounts)
            if table:
                return finite_or_zero(table.get(month, 0.0))
            if month in (_normalize_months(payment_months) or ()):
                return finite_or_zero(amount)
            return 0.0
        if freq is PaymentFrequency.MONTHLY and not payment_months:
            return finite_or_zero(amount)
        if month in resolve_payment_months(freq, payment_months):
            return finite_or_zero(amount)
        return 0.0

    def _finite(self, value: float, amount, freq: PaymentFrequency) -> float:
        result = finite_or_zero(value)
        if result == 0.0 and value != 0.0:
            self._logger.warning(
                "Non-finite monthly amount for %s schedule (amount=%r); using 0",
                freq.value,
                amount,
            )
        return result


_DEFAULT_CONVERTER = PaymentFrequencyConverter()


def monthly_amount(
    amount: Optional[float],
    frequency: FrequencyLike,
    custom_amounts: Optional[Mapping[Union[int, str], float]] = None,
    *,
    payment_months: Optional[Iterable[int]] = None,
) -> float:
    """Module-level shortcut for :meth:`PaymentFrequencyConverter.monthly`."""
    return _DEFAULT_CONVERTER.monthly(
        amount, frequency, custom_amounts, payment_months=payment_months
    )


def annual_amount(
    amount: Optional[float],
    frequency: FrequencyLike,
    custom_amounts: Optional[Mapping[Union[int, str], float]] = None,
    *,
    payment_months: Optional[Iterable[int]] = None,
) -> float:
    """Module-level shortcut for :meth:`PaymentFrequencyConverter.annual`."""
    return _DEFAULT_CONVERTER.annual(
        amount, frequency, custom_amounts, payment_months=payment_months
    )


def amount_for_month(schedule: Optional[PaymentSchedule], month: int) -> float:
    """Per-month amount of *schedule*; 0 when there is no schedule."""
    if schedule is None:
        return 0.0
    return _DEFAULT_CONVERTER.for_month(
        schedule.amount,
        schedule.frequency,
        month,
        custom_amounts=schedule.custom_amounts,
        payment_months=schedule.payment_months,
    )


def schedule_monthly_amount(schedule: Optional[PaymentSchedule]) -> float:
    """Monthly figure of *schedule*; 0 when there is no schedule."""
    if schedule is None:
        return 0.0
    return schedule.monthly
