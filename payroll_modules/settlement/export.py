"""CSV export of a settled payroll period."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from decimal import Decimal

from payroll_kernel.domain.quantities import round2
from payroll_modules.employees.models import Employee
from payroll_modules.settlement.models import PayrollCheck, PayrollPeriod

CSV_HEADERS = (
    "Employee",
    "Email",
    "Period Start",
    "Period End",
    "Base Amount",
    "Monthly Attendance",
    "Monthly Deferred",
    "Quarterly Attendance",
    "KPI Bonus",
    "Final Amount",
)


def _money(value: Decimal) -> str:
    return f"{round2(value):.2f}"


def render_period_csv(
    period: PayrollPeriod,
    lines: Iterable[tuple[PayrollCheck, Employee]],
) -> str:
    """One header row plus one row per check, newline-terminated."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for check, employee in lines:
        writer.writerow([
            employee.display_name,
            employee.email or "",
            period.period_start.isoformat(),
            period.period_end.isoformat(),
            _money(check.base_amount),
            _money(check.monthly_attendance_bonus),
            _money(check.deferred_monthly_bonus),
            _money(check.quarterly_attendance_bonus),
            _money(check.kpi_bonus),
            _money(check.total_amount),
        ])
    return buffer.getvalue()
