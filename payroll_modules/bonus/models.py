"""
Bonus Domain Models (``payroll_modules.bonus.models``).

Responsibility
--------------
Frozen value objects for attendance and KPI bonuses.

Invariants enforced
-------------------
* One bonus per (employee, bonus_type, source_month).
* ``quarter_key`` is set only for QUARTERLY_ATTENDANCE bonuses.
* ``payable_date`` derives from the finalization date, not the source month.
* PAID is terminal.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class BonusType(Enum):
    """Bonus categories."""
    MONTHLY_ATTENDANCE = "monthly_attendance"
    QUARTERLY_ATTENDANCE = "quarterly_attendance"
    KPI = "kpi"


class BonusStatus(Enum):
    """Bonus lifecycle states."""
    PENDING = "pending"
    ELIGIBLE = "eligible"
    APPROVED = "approved"
    DENIED = "denied"
    PAID = "paid"


DECISION_STATUSES = frozenset({BonusStatus.APPROVED, BonusStatus.DENIED})


@dataclass(frozen=True)
class PayrollBonus:
    """A bonus candidate or decision."""
    id: UUID
    employee_id: UUID
    bonus_type: BonusType
    status: BonusStatus
    source_month: date
    amount: Decimal
    payable_date: date
    approved_amount: Decimal | None = None
    quarter_key: str | None = None
    attendance_fact_id: UUID | None = None
    payroll_check_id: UUID | None = None
    decision_reason: str | None = None
    decided_at: datetime | None = None
    decision_by_id: UUID | None = None
    paid_at: datetime | None = None

    @property
    def payable_amount(self) -> Decimal:
        """A human-approved amount overrides the configured amount."""
        return self.approved_amount if self.approved_amount is not None else self.amount
