"""Attendance facts: persisted monthly reconciliation results."""

from payroll_modules.attendance.models import AttendanceFact, FactStatus, ReviewStatus
from payroll_modules.attendance.service import FACT_ENTITY_TYPE, AttendanceService

__all__ = [
    "FACT_ENTITY_TYPE",
    "AttendanceFact",
    "AttendanceService",
    "FactStatus",
    "ReviewStatus",
]
