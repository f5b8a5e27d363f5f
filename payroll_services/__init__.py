"""
Payroll Services -- transaction-owning entry points.

Each public method runs one unit of work: module services flush, these
services commit on success, roll back and re-raise on failure.
"""

from payroll_services.month_close import MonthCloseResult, MonthCloseService
from payroll_services.payroll_run import PayrollRunService, PeriodRunResult

__all__ = [
    "MonthCloseResult",
    "MonthCloseService",
    "PayrollRunService",
    "PeriodRunResult",
]
