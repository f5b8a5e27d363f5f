"""
Employee Service (``payroll_modules.employees.service``).

Responsibility
--------------
Registers employees and maintains their effective-dated payroll configs:
replace-or-insert keyed by ``(employee_id, effective_on)``, weekly schedule
replacement, effective-config lookup and the ordered config timeline that
the reconciliation engine consumes as its schedule resolver.

Architecture position
---------------------
**Modules layer** -- flush-only service; the caller owns the transaction.

Audit relevance
---------------
Every config upsert writes one ``CONFIG_UPDATED`` audit row carrying the
effective date and the new terms.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.quantities import ZERO
from payroll_kernel.exceptions import EmployeeAlreadyExistsError, EmployeeNotFoundError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.audit_log import AuditEvent
from payroll_kernel.services.audit_service import AuditService
from payroll_kernel.services.base import BaseService
from payroll_engines.types import ScheduleEntry
from payroll_modules.employees.models import (
    AccrualMethod,
    Employee,
    EmployeeConfig,
    normalize_schedule,
)
from payroll_modules.employees.orm import (
    EmployeeConfigModel,
    EmployeeModel,
    ScheduleEntryModel,
)
from payroll_modules.employees.timeline import ConfigTimeline

logger = get_logger("modules.employees.service")


class EmployeeService(BaseService):
    """
    Employee registry and effective-dated config store.

    Guarantees
    ----------
    * ``upsert_config`` leaves exactly one config per (employee, effective_on)
      with exactly seven schedule entries.
    * ``get_effective_config`` never returns a config dated after the
      reference date.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        audit: AuditService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._audit = audit or AuditService(session, self._clock)

    # -------------------------------------------------------------------------
    # Employees
    # -------------------------------------------------------------------------

    def create_employee(
        self,
        employee_number: str,
        display_name: str,
        email: str | None = None,
        actor_id: UUID | None = None,
    ) -> Employee:
        existing = self.session.execute(
            select(EmployeeModel).where(EmployeeModel.employee_number == employee_number)
        ).scalar_one_or_none()
        if existing is not None:
            raise EmployeeAlreadyExistsError(employee_number)

        model = EmployeeModel(
            employee_number=employee_number,
            display_name=display_name,
            email=email,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(model)
        self.session.flush()
        logger.info(
            "employee_created",
            extra={"employee_id": str(model.id), "employee_number": employee_number},
        )
        return model.to_dto()

    def get_employee(self, employee_id: UUID) -> Employee:
        return self._load_employee(employee_id).to_dto()

    def set_active(self, employee_id: UUID, is_active: bool, actor_id: UUID | None = None) -> Employee:
        model = self._load_employee(employee_id)
        model.is_active = is_active
        model.updated_by_id = actor_id
        self.session.flush()
        logger.info(
            "employee_activation_changed",
            extra={"employee_id": str(employee_id), "is_active": is_active},
        )
        return model.to_dto()

    def list_active_employees(self) -> list[Employee]:
        rows = self.session.execute(
            select(EmployeeModel)
            .where(EmployeeModel.is_active.is_(True))
            .order_by(EmployeeModel.employee_number)
        ).scalars()
        return [row.to_dto() for row in rows]

    def _load_employee(self, employee_id: UUID) -> EmployeeModel:
        model = self.session.get(EmployeeModel, employee_id)
        if model is None:
            raise EmployeeNotFoundError(str(employee_id))
        return model

    # -------------------------------------------------------------------------
    # Configs
    # -------------------------------------------------------------------------

    def upsert_config(
        self,
        employee_id: UUID,
        effective_on: date,
        *,
        base_semi_monthly_salary: Decimal = ZERO,
        monthly_attendance_bonus: Decimal = ZERO,
        quarterly_attendance_bonus: Decimal = ZERO,
        kpi_bonus_default_amount: Decimal = ZERO,
        kpi_bonus_enabled: bool = False,
        pto_balance_hours: Decimal = ZERO,
        non_pto_balance_hours: Decimal = ZERO,
        accrual_enabled: bool = False,
        accrual_method: AccrualMethod = AccrualMethod.NONE,
        accrual_hours_per_month: Decimal | None = None,
        notes: str | None = None,
        schedule: Iterable[ScheduleEntry] = (),
        actor_id: UUID | None = None,
    ) -> EmployeeConfig:
        """Replace-or-insert the config for (employee, effective_on)."""
        self._load_employee(employee_id)
        entries = normalize_schedule(schedule)

        model = self.session.execute(
            select(EmployeeConfigModel)
            .options(selectinload(EmployeeConfigModel.schedule_entries))
            .where(
                EmployeeConfigModel.employee_id == employee_id,
                EmployeeConfigModel.effective_on == effective_on,
            )
        ).scalar_one_or_none()
        created = model is None
        if created:
            model = EmployeeConfigModel(
                employee_id=employee_id,
                effective_on=effective_on,
                created_by_id=actor_id,
            )
            self.session.add(model)
        else:
            model.updated_by_id = actor_id

        model.base_semi_monthly_salary = base_semi_monthly_salary
        model.monthly_attendance_bonus = monthly_attendance_bonus
        model.quarterly_attendance_bonus = quarterly_attendance_bonus
        model.kpi_bonus_default_amount = kpi_bonus_default_amount
        model.kpi_bonus_enabled = kpi_bonus_enabled
        model.pto_balance_hours = pto_balance_hours
        model.non_pto_balance_hours = non_pto_balance_hours
        model.accrual_enabled = accrual_enabled
        model.accrual_method = accrual_method.value
        model.accrual_hours_per_month = accrual_hours_per_month
        model.notes = notes
        self._replace_schedule(model, entries, actor_id)
        self.session.flush()

        dto = model.to_dto()
        self._audit.append(
            AuditEvent.CONFIG_UPDATED,
            entity_type="EmployeeConfig",
            entity_id=dto.id,
            actor_id=actor_id,
            payload={
                "employeeId": employee_id,
                "effectiveOn": effective_on,
                "created": created,
                "baseSemiMonthlySalary": dto.base_semi_monthly_salary,
                "monthlyAttendanceBonus": dto.monthly_attendance_bonus,
                "quarterlyAttendanceBonus": dto.quarterly_attendance_bonus,
                "kpiBonusEnabled": dto.kpi_bonus_enabled,
                "kpiBonusDefaultAmount": dto.kpi_bonus_default_amount,
                "schedule": [e.to_payload() for e in dto.schedule],
            },
        )
        logger.info(
            "employee_config_upserted",
            extra={
                "employee_id": str(employee_id),
                "effective_on": effective_on.isoformat(),
                "config_created": created,
            },
        )
        return dto

    def _replace_schedule(
        self,
        model: EmployeeConfigModel,
        entries: tuple[ScheduleEntry, ...],
        actor_id: UUID | None,
    ) -> None:
        # Updated in place per weekday; delete+insert would trip the unique key.
        existing = {e.weekday: e for e in model.schedule_entries}
        for entry in entries:
            row = existing.get(entry.weekday)
            if row is None:
                model.schedule_entries.append(
                    ScheduleEntryModel.from_dto(entry, created_by_id=actor_id)
                )
                continue
            row.is_enabled = entry.is_enabled
            row.start_minutes = entry.start_minutes
            row.end_minutes = entry.end_minutes
            row.expected_hours = entry.expected_hours
            row.updated_by_id = actor_id

    def load_timeline(self, employee_id: UUID) -> ConfigTimeline:
        """All configs for the employee as an ordered index (one query)."""
        rows = self.session.execute(
            select(EmployeeConfigModel)
            .options(selectinload(EmployeeConfigModel.schedule_entries))
            .where(EmployeeConfigModel.employee_id == employee_id)
            .order_by(EmployeeConfigModel.effective_on)
        ).scalars()
        return ConfigTimeline(row.to_dto() for row in rows)

    def get_effective_config(self, employee_id: UUID, on: date) -> EmployeeConfig | None:
        row = self.session.execute(
            select(EmployeeConfigModel)
            .options(selectinload(EmployeeConfigModel.schedule_entries))
            .where(
                EmployeeConfigModel.employee_id == employee_id,
                EmployeeConfigModel.effective_on <= on,
            )
            .order_by(EmployeeConfigModel.effective_on.desc())
            .limit(1)
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None

    def config_timeline(self, employee_id: UUID) -> tuple[EmployeeConfig, ...]:
        return tuple(self.load_timeline(employee_id))
