"""
Employees module.

Employees, their effective-dated payroll configs and weekly schedules.
"""

from payroll_modules.employees.models import (
    AccrualMethod,
    Employee,
    EmployeeConfig,
    normalize_schedule,
)
from payroll_modules.employees.service import EmployeeService
from payroll_modules.employees.timeline import ConfigTimeline

__all__ = [
    "AccrualMethod",
    "ConfigTimeline",
    "Employee",
    "EmployeeConfig",
    "EmployeeService",
    "normalize_schedule",
]
