"""
Pure attendance engines.

Zero I/O and no clock reads: every input arrives as a frozen value object and
every output is one.  Services in ``payroll_modules`` load the data and
persist the results.
"""

from payroll_engines.activity import ActivityAggregator, DayActivity
from payroll_engines.allocation import RequestAllocator
from payroll_engines.reconciliation import (
    NO_RECORDED_WORK_NOTE,
    REASON_TARDY,
    REASON_UNCOVERED_ABSENCE,
    MonthlyReconciliationEngine,
    ScheduleLookup,
)
from payroll_engines.types import (
    AttendanceDaySnapshot,
    DayBucket,
    Holiday,
    MinuteSample,
    MonthlyAttendanceComputation,
    RequestKind,
    ScheduleEntry,
    TimeOffRequest,
)

__all__ = [
    "ActivityAggregator",
    "AttendanceDaySnapshot",
    "DayActivity",
    "DayBucket",
    "Holiday",
    "MinuteSample",
    "MonthlyAttendanceComputation",
    "MonthlyReconciliationEngine",
    "NO_RECORDED_WORK_NOTE",
    "REASON_TARDY",
    "REASON_UNCOVERED_ABSENCE",
    "RequestAllocator",
    "RequestKind",
    "ScheduleEntry",
    "ScheduleLookup",
    "TimeOffRequest",
]
