"""
Attendance Fact Models (``payroll_modules.attendance.models``).

Responsibility
--------------
The persisted form of one employee-month of reconciled attendance.  The
fact stores the month totals, the classification and the full per-day
snapshot so that downstream consumers (bonus synchronization, reviewers)
never have to recompute.

Invariants enforced
-------------------
* One fact per (employee, month_start).
* ``status`` is PENDING after a plain recompute and FINALIZED only when
  finalization was requested on the latest recompute.
* ``review_status`` is RESOLVED after a recompute that found the month
  perfect and PENDING otherwise; a reviewer can flip it either way.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


class FactStatus(Enum):
    """Attendance fact lifecycle."""
    PENDING = "pending"
    FINALIZED = "finalized"


class ReviewStatus(Enum):
    """Manual follow-up of an imperfect month."""
    PENDING = "pending"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class AttendanceFact:
    """A persisted monthly attendance computation."""
    id: UUID
    employee_id: UUID
    month_start: date
    range_start: datetime
    range_end: datetime
    assigned_hours: Decimal
    worked_hours: Decimal
    pto_hours: Decimal
    non_pto_absence_hours: Decimal
    make_up_hours: Decimal
    tardy_minutes: int
    matched_make_up_hours: Decimal
    uncovered_absence_hours: Decimal
    is_perfect: bool
    status: FactStatus
    computed_at: datetime
    finalized_at: datetime | None = None
    reasons: tuple[str, ...] = ()
    days: tuple[dict[str, Any], ...] = field(default=())
    review_status: ReviewStatus = ReviewStatus.PENDING
    review_notes: str | None = None
    reviewed_at: datetime | None = None
    reviewed_by_id: UUID | None = None

    @property
    def is_finalized(self) -> bool:
        return self.status is FactStatus.FINALIZED

    @property
    def entity_key(self) -> str:
        """Stable audit identity: ``<employee_id>:<month_start>``."""
        return f"{self.employee_id}:{self.month_start.isoformat()}"
