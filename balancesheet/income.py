"""
Income entities for balancesheet.

Purpose
-------
Models the recurring income streams recorded on the balance sheet
(salary, rent, dividends received, interest, side income) and reduces
them to monthly figures through their payment schedules.

Key components
--------------
- IncomeType:
    Enumeration of income categories.

- Income:
    Frozen income stream with a PaymentSchedule, a passive flag and an
    optional ``source_id`` pointing at the asset that generates it.

- monthly_income / total_monthly_income / passive_income / active_income:
    Aggregate helpers. An income without a schedule contributes 0.

Design principles
-----------------
- Passive and active income partition the income list: every stream is
  counted in exactly one of them, so ``active + passive == total``.
- Asset-derived income is not part of this module; it is computed from
  holdings by :mod:`balancesheet.asset_income`.

Example
-------
>>> from balancesheet.income import Income, total_monthly_income
>>> from balancesheet.schedules import PaymentSchedule
>>> salary = Income(id="s", name="Salary", type="salary",
...                 payment_schedule=PaymentSchedule("monthly", 4000.0))
>>> total_monthly_income([salary])
4000.0
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union

from .schedules import PaymentSchedule, schedule_monthly_amount

__all__ = [
    "IncomeType",
    "Income",
    "monthly_income",
    "total_monthly_income",
    "passive_income",
    "active_income",
]


class IncomeType(str, Enum):
    """Income categories."""

    SALARY = "salary"
    RENTAL = "rental"
    DIVIDEND = "dividend"
    INTEREST = "interest"
    SIDE_HUSTLE = "side_hustle"
    OTHER = "other"


@dataclass(frozen=True)
class Income:
    """
    Recurring income stream.

    Parameters
    ----------
    id : str
        Entity identifier.
    name : str
        Display label.
    type : IncomeType or str
        Income category.
    payment_schedule : PaymentSchedule, optional
        How the income is paid. Missing schedule means no income.
    is_passive : bool, default False
        Whether the stream counts as passive income.
    source_id : str, optional
        Id of the asset that produces this income, if any. Assets
        referenced here are not counted again in income allocations.
    start_date, end_date : str, optional
        ISO dates kept for reference; projections treat streams as
        ongoing.
    """

    id: str
    name: str
    type: Union[IncomeType, str] = IncomeType.OTHER
    payment_schedule: Optional[PaymentSchedule] = None
    is_passive: bool = False
    source_id: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", IncomeType(self.type))

    @property
    def monthly(self) -> float:
        return monthly_income(self)


def monthly_income(income: Income) -> float:
    """Monthly figure of one income stream."""
    return schedule_monthly_amount(income.payment_schedule)


def total_monthly_income(incomes: Iterable[Income]) -> float:
    """Sum of monthly figures over all income streams."""
    return float(sum(monthly_income(i) for i in incomes))


def passive_income(incomes: Iterable[Income]) -> float:
    """Monthly income of streams flagged passive."""
    return float(sum(monthly_income(i) for i in incomes if i.is_passive))


def active_income(incomes: Iterable[Income]) -> float:
    """Monthly income of streams not flagged passive."""
    return float(sum(monthly_income(i) for i in incomes if not i.is_passive))
