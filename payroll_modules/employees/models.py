"""
Employee Domain Models (``payroll_modules.employees.models``).

Frozen value objects for employees and their effective-dated payroll
configuration.  Pure data, ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* Money and hour fields use ``Decimal`` -- NEVER ``float``.
* ``EmployeeConfig.schedule`` always holds seven entries, weekdays 0..6.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from payroll_kernel.domain.quantities import ZERO
from payroll_kernel.domain.zoned_time import weekday_index
from payroll_engines.types import ScheduleEntry

WEEKDAYS = tuple(range(7))


class AccrualMethod(Enum):
    """How leave balances accrue."""
    NONE = "none"
    MANUAL = "manual"
    MONTHLY_HOURS = "monthly_hours"


def normalize_schedule(entries: Iterable[ScheduleEntry]) -> tuple[ScheduleEntry, ...]:
    """Seven entries ordered by weekday; missing weekdays become disabled."""
    by_weekday: dict[int, ScheduleEntry] = {}
    for entry in entries:
        if entry.weekday not in WEEKDAYS:
            raise ValueError(f"weekday must be 0..6, got {entry.weekday}")
        by_weekday[entry.weekday] = entry
    return tuple(by_weekday.get(d, ScheduleEntry(weekday=d)) for d in WEEKDAYS)


@dataclass(frozen=True)
class Employee:
    """An employee subject to attendance reconciliation."""
    id: UUID
    employee_number: str
    display_name: str
    email: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class EmployeeConfig:
    """Payroll terms in force for an employee from ``effective_on``."""
    id: UUID
    employee_id: UUID
    effective_on: date
    base_semi_monthly_salary: Decimal = ZERO
    monthly_attendance_bonus: Decimal = ZERO
    quarterly_attendance_bonus: Decimal = ZERO
    kpi_bonus_default_amount: Decimal = ZERO
    kpi_bonus_enabled: bool = False
    pto_balance_hours: Decimal = ZERO
    non_pto_balance_hours: Decimal = ZERO
    accrual_enabled: bool = False
    accrual_method: AccrualMethod = AccrualMethod.NONE
    accrual_hours_per_month: Decimal | None = None
    notes: str | None = None
    schedule: tuple[ScheduleEntry, ...] = field(
        default_factory=lambda: normalize_schedule(())
    )

    def entry_for(self, day: date) -> ScheduleEntry:
        return self.schedule[weekday_index(day)]
