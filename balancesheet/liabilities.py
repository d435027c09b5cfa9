"""
Liability entities for balancesheet.

Liabilities contribute their scheduled payment to monthly obligations
and their current balance to total debt. The payment schedule is
converted with the same rules as income and expenses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union

from .schedules import PaymentSchedule, schedule_monthly_amount
from .utils import finite_or_zero

__all__ = [
    "LiabilityType",
    "Liability",
    "monthly_liability_payment",
    "total_monthly_liability_payments",
    "total_debt",
]


class LiabilityType(str, Enum):
    MORTGAGE = "mortgage"
    PERSONAL_LOAN = "personal_loan"
    CREDIT_CARD = "credit_card"
    STUDENT_LOAN = "student_loan"
    AUTO_LOAN = "auto_loan"
    OTHER = "other"


@dataclass(frozen=True)
class Liability:
    """Debt with a scheduled repayment; ``interest_rate`` is an annual percent."""

    id: str
    name: str
    type: Union[LiabilityType, str] = LiabilityType.OTHER
    principal_amount: float = 0.0
    current_balance: float = 0.0
    interest_rate: float = 0.0
    payment_schedule: Optional[PaymentSchedule] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", LiabilityType(self.type))

    @property
    def monthly_payment(self) -> float:
        return monthly_liability_payment(self)


def monthly_liability_payment(liability: Liability) -> float:
    """Monthly payment of one liability; 0 without a schedule."""
    return schedule_monthly_amount(liability.payment_schedule)


def total_monthly_liability_payments(liabilities: Iterable[Liability]) -> float:
    return float(sum(monthly_liability_payment(l) for l in liabilities))


def total_debt(liabilities: Iterable[Liability]) -> float:
    """Sum of current balances, non-finite balances counted as 0."""
    return float(sum(finite_or_zero(l.current_balance) for l in liabilities))
