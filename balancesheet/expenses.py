"""
Expense entities for balancesheet.

Purpose
-------
Models recurring household expenses and reduces them to monthly figures
and a per-category breakdown.

Key components
--------------
- ExpenseCategory: enumeration of expense categories.
- Expense: frozen expense with a PaymentSchedule.
- monthly_expense / total_monthly_expenses: monthly figures.
- expense_breakdown: per-category totals with percentages, sorted by
  amount descending.

Example
-------
>>> from balancesheet.expenses import Expense, total_monthly_expenses
>>> from balancesheet.schedules import PaymentSchedule
>>> rent = Expense(id="r", name="Rent", category="housing",
...                payment_schedule=PaymentSchedule("monthly", 1500.0))
>>> total_monthly_expenses([rent])
1500.0
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from .schedules import PaymentSchedule, schedule_monthly_amount
from .types import ExpenseBreakdownDict
from .utils import safe_percentage

__all__ = [
    "ExpenseCategory",
    "Expense",
    "monthly_expense",
    "total_monthly_expenses",
    "expense_breakdown",
]


class ExpenseCategory(str, Enum):
    """Expense categories."""

    HOUSING = "housing"
    TRANSPORTATION = "transportation"
    FOOD = "food"
    UTILITIES = "utilities"
    INSURANCE = "insurance"
    HEALTHCARE = "healthcare"
    ENTERTAINMENT = "entertainment"
    PERSONAL = "personal"
    DEBT_PAYMENTS = "debt_payments"
    EDUCATION = "education"
    SUBSCRIPTIONS = "subscriptions"
    OTHER = "other"


@dataclass(frozen=True)
class Expense:
    """Recurring expense. A missing schedule means no expense."""

    id: str
    name: str
    category: Union[ExpenseCategory, str] = ExpenseCategory.OTHER
    payment_schedule: Optional[PaymentSchedule] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", ExpenseCategory(self.category))

    @property
    def monthly(self) -> float:
        return monthly_expense(self)


def monthly_expense(expense: Expense) -> float:
    """Monthly figure of one expense."""
    return schedule_monthly_amount(expense.payment_schedule)


def total_monthly_expenses(expenses: Iterable[Expense]) -> float:
    """Sum of monthly figures over all expenses."""
    return float(sum(monthly_expense(e) for e in expenses))


def expense_breakdown(expenses: Iterable[Expense]) -> List[ExpenseBreakdownDict]:
    """Monthly expense per category with percentages of the total."""
    totals: Dict[str, float] = defaultdict(float)
    for e in expenses:
        amount = monthly_expense(e)
        if amount > 0:
            totals[e.category.value] += amount
    grand = sum(totals.values())
    rows: List[ExpenseBreakdownDict] = [
        {"category": cat, "amount": amt, "percentage": safe_percentage(amt, grand)}
        for cat, amt in totals.items()
    ]
    return sorted(rows, key=lambda r: r["amount"], reverse=True)
