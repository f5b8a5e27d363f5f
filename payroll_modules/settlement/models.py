"""
Settlement Domain Models (``payroll_modules.settlement.models``).

Responsibility
--------------
Semi-monthly payroll periods and the per-employee checks computed for them.

Invariants enforced
-------------------
* One period per (period_start, period_end); one check per (period, employee).
* Period status only moves forward: DRAFT -> APPROVED -> PAID.
* PAID is terminal and cascades to the period's checks and attached bonuses.
* Money fields are ``Decimal`` rounded to two places.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


class PeriodStatus(Enum):
    """Payroll period lifecycle."""
    DRAFT = "draft"
    APPROVED = "approved"
    PAID = "paid"

    @property
    def rank(self) -> int:
        return _PERIOD_RANK[self]


_PERIOD_RANK = {
    PeriodStatus.DRAFT: 0,
    PeriodStatus.APPROVED: 1,
    PeriodStatus.PAID: 2,
}


class CheckStatus(Enum):
    """Payroll check lifecycle."""
    DRAFT = "draft"
    APPROVED = "approved"
    PAID = "paid"


@dataclass(frozen=True)
class PayrollPeriod:
    """A semi-monthly pay period."""
    id: UUID
    period_start: date
    period_end: date
    pay_date: date
    pay_at: datetime
    status: PeriodStatus
    approved_at: datetime | None = None
    approved_by_id: UUID | None = None
    paid_at: datetime | None = None
    paid_by_id: UUID | None = None

    @property
    def period_key(self) -> str:
        """``YYYY-MM-A`` for the first half of a month, ``YYYY-MM-B`` for the second."""
        half = "A" if self.period_start.day == 1 else "B"
        return f"{self.period_start.year:04d}-{self.period_start.month:02d}-{half}"

    @property
    def is_paid(self) -> bool:
        return self.status is PeriodStatus.PAID


@dataclass(frozen=True)
class PayrollCheck:
    """One employee's pay for one period."""
    id: UUID
    period_id: UUID
    employee_id: UUID
    base_amount: Decimal
    monthly_attendance_bonus: Decimal
    deferred_monthly_bonus: Decimal
    quarterly_attendance_bonus: Decimal
    kpi_bonus: Decimal
    total_amount: Decimal
    status: CheckStatus
    snapshot: dict[str, Any] = field(default_factory=dict)
    paid_at: datetime | None = None
    paid_by_id: UUID | None = None
