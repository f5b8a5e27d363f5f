"""
Shared value objects for the attendance engines.

Architecture position:
    Engines -- pure data definitions with ZERO I/O.  Produced by the
    timekeeping sources and the employee config timeline, consumed by the
    allocator, the aggregator and the reconciliation engine.

Invariants enforced:
    * All models are ``frozen=True``.
    * Hours are ``Decimal`` -- NEVER ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from payroll_kernel.domain.quantities import ZERO, round2


class RequestKind(str, Enum):
    """Time-off request categories."""

    PTO = "pto"
    NON_PTO = "non_pto"
    MAKE_UP = "make_up"


@dataclass(frozen=True)
class ScheduleEntry:
    """
    One weekday of a weekly schedule template.

    ``weekday`` is 0 = Sunday .. 6 = Saturday.  Minute offsets count from
    local midnight.
    """

    weekday: int
    is_enabled: bool = False
    start_minutes: int | None = None
    end_minutes: int | None = None
    expected_hours: Decimal | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "weekday": self.weekday,
            "isEnabled": self.is_enabled,
            "startMinutes": self.start_minutes,
            "endMinutes": self.end_minutes,
            "expectedHours": (
                str(self.expected_hours) if self.expected_hours is not None else None
            ),
        }


@dataclass(frozen=True)
class TimeOffRequest:
    """An approved time-off request with an inclusive zoned day span."""

    kind: RequestKind
    start_date: date
    end_date: date
    hours: Decimal
    approved_at: datetime | None = None


@dataclass(frozen=True)
class MinuteSample:
    """One per-minute activity observation."""

    minute_start: datetime
    active: bool


@dataclass(frozen=True)
class Holiday:
    """A calendar holiday."""

    holiday_date: date
    name: str = ""
    is_paid: bool = True


@dataclass(frozen=True)
class DayBucket:
    """Time-off hours allocated to one day."""

    pto: Decimal = ZERO
    non_pto: Decimal = ZERO
    make_up: Decimal = ZERO

    def plus(self, kind: RequestKind, hours: Decimal) -> DayBucket:
        if kind is RequestKind.PTO:
            return DayBucket(self.pto + hours, self.non_pto, self.make_up)
        if kind is RequestKind.NON_PTO:
            return DayBucket(self.pto, self.non_pto + hours, self.make_up)
        return DayBucket(self.pto, self.non_pto, self.make_up + hours)


EMPTY_BUCKET = DayBucket()


@dataclass(frozen=True)
class AttendanceDaySnapshot:
    """One zoned calendar day of one employee's attendance."""

    day: date
    assigned_hours: Decimal
    worked_hours: Decimal
    pto_hours: Decimal
    non_pto_hours: Decimal
    make_up_hours: Decimal
    tardy_minutes: int
    is_holiday: bool
    schedule: ScheduleEntry | None = None
    notes: tuple[str, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe snapshot; hour figures rounded to two places."""
        return {
            "date": self.day.isoformat(),
            "assignedHours": str(round2(self.assigned_hours)),
            "workedHours": str(round2(self.worked_hours)),
            "ptoHours": str(round2(self.pto_hours)),
            "nonPtoHours": str(round2(self.non_pto_hours)),
            "makeUpHours": str(round2(self.make_up_hours)),
            "tardyMinutes": self.tardy_minutes,
            "isHoliday": self.is_holiday,
            "schedule": self.schedule.to_payload() if self.schedule else None,
            "notes": list(self.notes),
        }


@dataclass(frozen=True)
class MonthlyAttendanceComputation:
    """
    One calendar month of one employee's attendance.

    ``non_pto_absence_hours`` holds raw non-PTO leave plus absence not
    explained by work or leave, before make-up matching.
    ``make_up_hours`` is the raw allocated make-up total; only
    ``matched_make_up_hours`` counts against absence.
    """

    month_start: date
    month_end: date
    assigned_hours: Decimal
    worked_hours: Decimal
    pto_hours: Decimal
    non_pto_absence_hours: Decimal
    make_up_hours: Decimal
    tardy_minutes: int
    matched_make_up_hours: Decimal
    uncovered_absence_hours: Decimal
    is_perfect: bool
    reasons: tuple[str, ...]
    days: tuple[AttendanceDaySnapshot, ...]
