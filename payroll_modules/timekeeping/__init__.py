"""Timekeeping capture: time-off requests, work sessions, holidays."""

from payroll_modules.timekeeping.models import RequestStatus, WorkSession
from payroll_modules.timekeeping.service import HolidayService, TimekeepingService
from payroll_modules.timekeeping.sources import (
    ActivitySource,
    HolidayCalendar,
    SqlActivitySource,
    SqlHolidayCalendar,
    SqlTimeOffSource,
    TimeOffSource,
)

__all__ = [
    "ActivitySource",
    "HolidayCalendar",
    "HolidayService",
    "RequestStatus",
    "SqlActivitySource",
    "SqlHolidayCalendar",
    "SqlTimeOffSource",
    "TimeOffSource",
    "TimekeepingService",
    "WorkSession",
]
