"""
Settlement Service (``payroll_modules.settlement.service``).

Responsibility
--------------
Semi-monthly period creation, per-employee check computation and the
period status machine:

* ``ensure_period`` -- idempotent replace-or-insert of the period holding a
  reference date (always created DRAFT).
* ``recalc_period`` -- for each active employee: base salary from the config
  effective at period start plus every APPROVED bonus payable on the pay
  date, grouped by type.  Checks are fully replaced on each run.
* ``mark_period_status`` -- forward-only transitions; PAID cascades to
  checks and attached bonuses.

Architecture position
---------------------
**Modules layer** -- flush-only service.  ``payroll_services.payroll_run``
owns the transaction.

Audit relevance
---------------
Period creation, every recalculation and every status transition write one
``PAYROLL_STATUS_CHANGED`` entry for the period.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_config import PayrollSettings, get_active_settings
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.quantities import ZERO, round2
from payroll_kernel.domain.zoned_time import first_of_month, last_of_month
from payroll_kernel.exceptions import (
    InvalidPeriodTransitionError,
    PayrollPeriodNotFoundError,
    PayrollPeriodPaidError,
)
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.audit_log import AuditEvent
from payroll_kernel.services.audit_service import AuditService
from payroll_kernel.services.base import BaseService
from payroll_modules.bonus.models import BonusType, PayrollBonus
from payroll_modules.bonus.service import BonusService
from payroll_modules.employees.orm import EmployeeModel
from payroll_modules.employees.service import EmployeeService
from payroll_modules.settlement.export import render_period_csv
from payroll_modules.settlement.models import (
    CheckStatus,
    PayrollCheck,
    PayrollPeriod,
    PeriodStatus,
)
from payroll_modules.settlement.orm import PayrollCheckModel, PayrollPeriodModel
from payroll_modules.settlement.periods import is_forward_transition, resolve_period

logger = get_logger("modules.settlement.service")

PERIOD_ENTITY_TYPE = "PayrollPeriod"


class SettlementService(BaseService):
    """
    Payroll period settlement.

    Guarantees:
        - Re-running ``recalc_period`` with unchanged inputs yields identical
          check amounts (full replace, never cumulative).
        - A PAID period is never recalculated.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: PayrollSettings | None = None,
        audit: AuditService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._settings = settings or get_active_settings()
        self._audit = audit or AuditService(session, self._clock)
        self._employees = EmployeeService(session, self._clock, self._audit)
        self._bonuses = BonusService(session, self._clock, self._settings, self._audit)

    # -------------------------------------------------------------------------
    # Periods
    # -------------------------------------------------------------------------

    def ensure_period(
        self,
        reference: date | datetime,
        actor_id: UUID | None = None,
    ) -> PayrollPeriod:
        window = resolve_period(reference, self._settings.zone)
        model = self._find_model(window.period_start, window.period_end)
        if model is not None:
            return model.to_dto()

        model = PayrollPeriodModel(
            period_start=window.period_start,
            period_end=window.period_end,
            pay_date=window.pay_date,
            pay_at=window.pay_at(self._settings.zone, self._settings.pay_hour),
            status=PeriodStatus.DRAFT.value,
            created_by_id=actor_id,
        )
        self.session.add(model)
        self.session.flush()

        period = model.to_dto()
        self._audit.append(
            AuditEvent.PAYROLL_STATUS_CHANGED,
            entity_type=PERIOD_ENTITY_TYPE,
            entity_id=period.id,
            actor_id=actor_id,
            payload={
                "action": "created",
                "status": period.status,
                "payDate": period.pay_date,
                "periodKey": period.period_key,
            },
        )
        logger.info(
            "payroll_period_created",
            extra={
                "period_id": str(period.id),
                "period_key": period.period_key,
                "pay_date": period.pay_date.isoformat(),
            },
        )
        return period

    def get_period(self, period_id: UUID) -> PayrollPeriod:
        return self._load(period_id).to_dto()

    def find_period_for(self, reference: date | datetime) -> PayrollPeriod | None:
        window = resolve_period(reference, self._settings.zone)
        model = self._find_model(window.period_start, window.period_end)
        return model.to_dto() if model is not None else None

    def list_periods(self, status: PeriodStatus | None = None) -> list[PayrollPeriod]:
        stmt = select(PayrollPeriodModel)
        if status is not None:
            stmt = stmt.where(PayrollPeriodModel.status == status.value)
        rows = self.session.execute(stmt.order_by(PayrollPeriodModel.period_start)).scalars()
        return [row.to_dto() for row in rows]

    def is_month_locked(self, month: date) -> bool:
        """True when a PAID period overlaps the calendar month."""
        first, last = first_of_month(month), last_of_month(month)
        hit = self.session.execute(
            select(PayrollPeriodModel.id)
            .where(
                PayrollPeriodModel.status == PeriodStatus.PAID.value,
                PayrollPeriodModel.period_start <= last,
                PayrollPeriodModel.period_end >= first,
            )
            .limit(1)
        ).first()
        return hit is not None

    # -------------------------------------------------------------------------
    # Recalculation
    # -------------------------------------------------------------------------

    def recalc_period(
        self,
        period_id: UUID,
        *,
        actor_id: UUID | None = None,
        auto_approve: bool = False,
    ) -> list[PayrollCheck]:
        model = self._load(period_id)
        period = model.to_dto()
        if period.is_paid:
            raise PayrollPeriodPaidError(str(period_id))

        payable: dict[UUID, list[PayrollBonus]] = defaultdict(list)
        for bonus in self._bonuses.bonuses_payable_on(period.pay_date):
            payable[bonus.employee_id].append(bonus)

        check_status = CheckStatus.APPROVED if auto_approve else CheckStatus.DRAFT
        checks: list[PayrollCheck] = []
        detached = 0

        for employee in self._employees.list_active_employees():
            config = self._employees.get_effective_config(employee.id, period.period_start)
            base = config.base_semi_monthly_salary if config is not None else ZERO
            bonuses = payable.get(employee.id, [])
            amounts = _sum_by_type(bonuses)

            monthly = amounts[BonusType.MONTHLY_ATTENDANCE]
            deferred = ZERO
            quarterly = amounts[BonusType.QUARTERLY_ATTENDANCE]
            kpi = amounts[BonusType.KPI]
            total = round2(base + monthly + deferred + quarterly + kpi)

            check_model = self._find_check(period.id, employee.id)
            if check_model is None:
                check_model = PayrollCheckModel(
                    period_id=period.id,
                    employee_id=employee.id,
                    created_by_id=actor_id,
                )
                self.session.add(check_model)
            else:
                check_model.updated_by_id = actor_id

            check_model.base_amount = round2(base)
            check_model.monthly_attendance_bonus = monthly
            check_model.deferred_monthly_bonus = deferred
            check_model.quarterly_attendance_bonus = quarterly
            check_model.kpi_bonus = kpi
            check_model.total_amount = total
            check_model.status = check_status.value
            check_model.snapshot = {
                "baseAmount": str(round2(base)),
                "monthlyAttendanceBonus": str(monthly),
                "deferredMonthlyBonus": str(round2(deferred)),
                "quarterlyBonus": str(quarterly),
                "kpiBonus": str(kpi),
                "bonusIds": sorted(str(b.id) for b in bonuses),
            }
            self.session.flush()

            bonus_ids = [b.id for b in bonuses]
            detached += self._bonuses.detach_from_check(check_model.id, bonus_ids)
            self._bonuses.attach_to_check(bonus_ids, check_model.id)
            checks.append(check_model.to_dto())

        self._audit.append(
            AuditEvent.PAYROLL_STATUS_CHANGED,
            entity_type=PERIOD_ENTITY_TYPE,
            entity_id=period.id,
            actor_id=actor_id,
            payload={
                "action": "recalc",
                "status": period.status,
                "payDate": period.pay_date,
                "checkCount": len(checks),
                "autoApprove": auto_approve,
            },
        )
        logger.info(
            "payroll_period_recalculated",
            extra={
                "period_id": str(period.id),
                "period_key": period.period_key,
                "check_count": len(checks),
                "bonuses_detached": detached,
                "auto_approve": auto_approve,
            },
        )
        return checks

    # -------------------------------------------------------------------------
    # Status machine
    # -------------------------------------------------------------------------

    def mark_period_status(
        self,
        period_id: UUID,
        status: PeriodStatus,
        actor_id: UUID | None = None,
    ) -> PayrollPeriod:
        """
        Move the period forward.

        Raises:
            InvalidPeriodTransitionError: ``status`` is not ahead of the
                current status (this includes any change away from PAID).
        """
        model = self._load(period_id)
        current = PeriodStatus(model.status)
        if not is_forward_transition(current, status):
            raise InvalidPeriodTransitionError(str(period_id), current.value, status.value)

        now = self._clock.now_utc()
        model.status = status.value
        model.updated_by_id = actor_id
        if status is PeriodStatus.APPROVED:
            model.approved_at = now
            model.approved_by_id = actor_id

        checks_paid = bonuses_paid = 0
        if status is PeriodStatus.PAID:
            model.paid_at = now
            model.paid_by_id = actor_id
            check_rows = self.session.execute(
                select(PayrollCheckModel).where(PayrollCheckModel.period_id == model.id)
            ).scalars().all()
            for check in check_rows:
                check.status = CheckStatus.PAID.value
                check.paid_at = now
                check.paid_by_id = actor_id
            checks_paid = len(check_rows)
            bonuses_paid = self._bonuses.mark_paid([c.id for c in check_rows], now)
        self.session.flush()

        period = model.to_dto()
        self._audit.append(
            AuditEvent.PAYROLL_STATUS_CHANGED,
            entity_type=PERIOD_ENTITY_TYPE,
            entity_id=period.id,
            actor_id=actor_id,
            payload={
                "action": "status",
                "status": status,
                "previousStatus": current,
                "checksPaid": checks_paid,
                "bonusesPaid": bonuses_paid,
            },
        )
        logger.info(
            "payroll_period_status_changed",
            extra={
                "period_id": str(period.id),
                "from_status": current.value,
                "to_status": status.value,
                "checks_paid": checks_paid,
                "bonuses_paid": bonuses_paid,
            },
        )
        return period

    # -------------------------------------------------------------------------
    # Checks and export
    # -------------------------------------------------------------------------

    def list_checks(self, period_id: UUID) -> list[PayrollCheck]:
        return [check for check, _ in self._check_lines(period_id)]

    def get_check(self, period_id: UUID, employee_id: UUID) -> PayrollCheck | None:
        model = self._find_check(period_id, employee_id)
        return model.to_dto() if model is not None else None

    def export_period_csv(self, period_id: UUID) -> str:
        period = self._load(period_id).to_dto()
        return render_period_csv(period, self._check_lines(period_id))

    def _check_lines(self, period_id: UUID):
        self._load(period_id)
        rows = self.session.execute(
            select(PayrollCheckModel, EmployeeModel)
            .join(EmployeeModel, EmployeeModel.id == PayrollCheckModel.employee_id)
            .where(PayrollCheckModel.period_id == period_id)
            .order_by(EmployeeModel.employee_number)
        ).all()
        return [(check.to_dto(), employee.to_dto()) for check, employee in rows]

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _load(self, period_id: UUID) -> PayrollPeriodModel:
        model = self.session.get(PayrollPeriodModel, period_id)
        if model is None:
            raise PayrollPeriodNotFoundError(str(period_id))
        return model

    def _find_model(self, start: date, end: date) -> PayrollPeriodModel | None:
        return self.session.execute(
            select(PayrollPeriodModel).where(
                PayrollPeriodModel.period_start == start,
                PayrollPeriodModel.period_end == end,
            )
        ).scalar_one_or_none()

    def _find_check(self, period_id: UUID, employee_id: UUID) -> PayrollCheckModel | None:
        return self.session.execute(
            select(PayrollCheckModel).where(
                PayrollCheckModel.period_id == period_id,
                PayrollCheckModel.employee_id == employee_id,
            )
        ).scalar_one_or_none()


def _sum_by_type(bonuses: list[PayrollBonus]) -> dict[BonusType, Decimal]:
    totals = {bonus_type: ZERO for bonus_type in BonusType}
    for bonus in bonuses:
        totals[bonus.bonus_type] += bonus.payable_amount
    return {bonus_type: round2(amount) for bonus_type, amount in totals.items()}
