"""
Batch tasks: the two scheduled payroll triggers.

``payroll.month_end_finalization``
    One item per active employee; finalizes the month (default: the month
    before ``as_of`` in the payroll zone) and synchronizes its bonuses.
    Parameters: ``month`` (``YYYY-MM`` or date), ``actor_id``.

``payroll.period_settlement``
    One item; ensures the semi-monthly period holding ``reference_date``
    (default: ``as_of`` in the payroll zone) and recalculates its checks.
    Parameters: ``reference_date`` (ISO date or date), ``auto_approve``,
    ``actor_id``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from payroll_batch.domain.types import BatchItemStatus
from payroll_batch.tasks.base import BatchItemInput, BatchTaskResult
from payroll_config import PayrollSettings, get_active_settings
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.zoned_time import (
    add_months,
    first_of_month,
    month_key,
    parse_month_key,
    to_local_date,
)
from payroll_kernel.exceptions import PayrollKernelError, PayrollPeriodPaidError
from payroll_modules.employees.service import EmployeeService
from payroll_modules.settlement.periods import resolve_period
from payroll_services.month_close import MonthCloseService
from payroll_services.payroll_run import PayrollRunService


def _actor(parameters: dict[str, Any]) -> UUID | None:
    raw = parameters.get("actor_id")
    if raw is None or isinstance(raw, UUID):
        return raw
    return UUID(str(raw))


def _as_date(value: date | str) -> date:
    if isinstance(value, datetime):
        raise ValueError(f"Expected a calendar date, got instant {value!r}")
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


class MonthEndFinalizationTask:
    """Finalize one month for every active employee."""

    def __init__(self, clock: Clock | None = None, settings: PayrollSettings | None = None):
        self._clock = clock or SystemClock()
        self._settings = settings or get_active_settings()

    @property
    def task_type(self) -> str:
        return "payroll.month_end_finalization"

    @property
    def description(self) -> str:
        return "Finalize monthly attendance and synchronize attendance bonuses"

    def target_month(self, parameters: dict[str, Any], as_of: datetime) -> date:
        month = parameters.get("month")
        if month is None:
            local = to_local_date(as_of, self._settings.zone)
            return add_months(first_of_month(local), -1)
        if isinstance(month, date):
            return first_of_month(month)
        return parse_month_key(month)

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]:
        key = month_key(self.target_month(parameters, as_of))
        employees = EmployeeService(session, self._clock).list_active_employees()
        return tuple(
            BatchItemInput(
                item_index=i,
                item_key=str(employee.id),
                payload={
                    "employee_id": str(employee.id),
                    "employee_number": employee.employee_number,
                    "month": key,
                },
            )
            for i, employee in enumerate(employees)
        )

    def execute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult:
        service = MonthCloseService(session, self._clock, self._settings, auto_commit=False)
        try:
            result = service.finalize_month(
                UUID(item.payload["employee_id"]),
                parse_month_key(item.payload["month"]),
                actor_id=_actor(parameters),
            )
        except PayrollKernelError as exc:
            return BatchTaskResult(
                status=BatchItemStatus.FAILED,
                error_code=exc.code,
                error_message=str(exc),
            )
        return BatchTaskResult(
            status=BatchItemStatus.SUCCEEDED,
            result_data={
                "fact_id": str(result.fact.id),
                "month": item.payload["month"],
                "is_perfect": result.fact.is_perfect,
                "monthly_bonus_id": (
                    str(result.monthly_bonus.id) if result.monthly_bonus else None
                ),
                "quarterly_bonus_id": (
                    str(result.quarterly_bonus.id) if result.quarterly_bonus else None
                ),
                "kpi_bonus_id": str(result.kpi_bonus.id) if result.kpi_bonus else None,
            },
        )


class PeriodSettlementTask:
    """Ensure and recalculate the semi-monthly period holding a reference date."""

    def __init__(self, clock: Clock | None = None, settings: PayrollSettings | None = None):
        self._clock = clock or SystemClock()
        self._settings = settings or get_active_settings()

    @property
    def task_type(self) -> str:
        return "payroll.period_settlement"

    @property
    def description(self) -> str:
        return "Generate the semi-monthly payroll period and recalculate its checks"

    def reference_date(self, parameters: dict[str, Any], as_of: datetime) -> date:
        value = parameters.get("reference_date")
        if value is None:
            return to_local_date(as_of, self._settings.zone)
        return _as_date(value)

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]:
        reference = self.reference_date(parameters, as_of)
        window = resolve_period(reference, self._settings.zone)
        return (
            BatchItemInput(
                item_index=0,
                item_key=window.period_start.isoformat(),
                payload={"reference_date": reference.isoformat()},
            ),
        )

    def execute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult:
        service = PayrollRunService(session, self._clock, self._settings, auto_commit=False)
        try:
            run = service.ensure_and_recalc_period(
                date.fromisoformat(item.payload["reference_date"]),
                actor_id=_actor(parameters),
                auto_approve=bool(parameters.get("auto_approve", False)),
            )
        except PayrollPeriodPaidError as exc:
            return BatchTaskResult(
                status=BatchItemStatus.SKIPPED,
                error_code=exc.code,
                error_message=str(exc),
            )
        except PayrollKernelError as exc:
            return BatchTaskResult(
                status=BatchItemStatus.FAILED,
                error_code=exc.code,
                error_message=str(exc),
            )
        return BatchTaskResult(
            status=BatchItemStatus.SUCCEEDED,
            result_data={
                "period_id": str(run.period.id),
                "period_key": run.period.period_key,
                "pay_date": run.period.pay_date.isoformat(),
                "check_count": len(run.checks),
            },
        )
