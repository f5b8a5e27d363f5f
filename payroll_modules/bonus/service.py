"""
Bonus Service (``payroll_modules.bonus.service``).

Responsibility
--------------
Bonus eligibility synchronization and bonus administration:

* ``sync_monthly`` / ``sync_quarterly`` -- auto-decide attendance bonuses
  from FINALIZED attendance facts.
* ``ensure_kpi_candidate`` / ``decide_bonus`` -- the KPI path, which
  always waits for a human decision.
* ``attach_to_check`` / ``detach_from_check`` / ``mark_paid`` -- the
  settlement hooks that link consumed bonuses to payroll checks.

Architecture position
---------------------
**Modules layer** -- flush-only service.  ``payroll_services.month_close``
runs the synchronizer in the same transaction as the finalizing recompute.

State machine
-------------
::

    PENDING --decide--> APPROVED | DENIED --settle--> PAID
    (attendance types are created APPROVED or moved to DENIED directly)

PAID is terminal: no sync, ensure or decision touches a PAID row.

Audit relevance
---------------
Every status change and every created row writes one ``BONUS_DECISION``
audit entry carrying type, status and payable date.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_config import PayrollSettings, get_active_settings
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.quantities import ZERO
from payroll_kernel.domain.zoned_time import (
    first_of_month,
    quarter_key,
    quarter_months,
    quarter_start,
    to_local_date,
)
from payroll_kernel.exceptions import (
    AttendanceFactNotFinalizedError,
    AttendanceFactNotFoundError,
    BonusAlreadyPaidError,
    BonusNotFoundError,
    InvalidBonusDecisionError,
)
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.audit_log import AuditEvent
from payroll_kernel.services.audit_service import AuditService
from payroll_kernel.services.base import BaseService
from payroll_modules.attendance.models import AttendanceFact, FactStatus
from payroll_modules.attendance.orm import AttendanceFactModel
from payroll_modules.bonus.models import (
    DECISION_STATUSES,
    BonusStatus,
    BonusType,
    PayrollBonus,
)
from payroll_modules.bonus.orm import PayrollBonusModel
from payroll_modules.bonus.pay_dates import monthly_bonus_pay_date, quarterly_bonus_pay_date
from payroll_modules.employees.service import EmployeeService

logger = get_logger("modules.bonus.service")

BONUS_ENTITY_TYPE = "PayrollBonus"
REASON_MONTH_NOT_PERFECT = "Attendance not perfect"
REASON_QUARTER_NOT_PERFECT = "Quarter not perfect"

_CLOSED = (BonusStatus.DENIED.value, BonusStatus.PAID.value)


class BonusService(BaseService):
    """
    Attendance bonus synchronizer and bonus administration.

    Contract:
        Sync operations accept only FINALIZED facts.  They are idempotent:
        re-running a sync with unchanged inputs leaves every row as it was
        (a repeated upsert rewrites identical values).
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

    # -------------------------------------------------------------------------
    # Attendance synchronization
    # -------------------------------------------------------------------------

    def sync_monthly(self, fact_id: UUID) -> PayrollBonus | None:
        """
        Decide the MONTHLY_ATTENDANCE bonus for a finalized month.

        Returns the approved bonus, or None when the month is not perfect or
        no positive monthly amount is configured.
        """
        fact = self._finalized_fact(fact_id)
        decided_at = fact.finalized_at

        if not fact.is_perfect:
            denied = self._deny(
                select(PayrollBonusModel).where(
                    PayrollBonusModel.attendance_fact_id == fact.id,
                    PayrollBonusModel.bonus_type == BonusType.MONTHLY_ATTENDANCE.value,
                ),
                REASON_MONTH_NOT_PERFECT,
                decided_at,
            )
            logger.info(
                "monthly_bonus_denied",
                extra={
                    "employee_id": str(fact.employee_id),
                    "month_start": fact.month_start.isoformat(),
                    "denied_count": denied,
                },
            )
            return None

        config = self._employees.get_effective_config(fact.employee_id, fact.month_start)
        amount = config.monthly_attendance_bonus if config is not None else ZERO
        if amount <= ZERO:
            logger.info(
                "monthly_bonus_not_configured",
                extra={
                    "employee_id": str(fact.employee_id),
                    "month_start": fact.month_start.isoformat(),
                },
            )
            return None

        pay_date = monthly_bonus_pay_date(
            fact.month_start,
            decided_at,
            self._settings.zone,
            pay_day=self._settings.bonus_pay_day,
            pay_hour=self._settings.pay_hour,
        )
        return self._approve(
            employee_id=fact.employee_id,
            bonus_type=BonusType.MONTHLY_ATTENDANCE,
            source_month=fact.month_start,
            amount=amount,
            payable_date=pay_date,
            fact_id=fact.id,
            decided_at=decided_at,
        )

    def sync_quarterly(self, fact_id: UUID) -> PayrollBonus | None:
        """
        Decide the QUARTERLY_ATTENDANCE bonus for the quarter of a finalized month.

        Qualifies only when all three months of the calendar quarter have a
        FINALIZED, perfect fact.
        """
        fact = self._finalized_fact(fact_id)
        decided_at = fact.finalized_at
        q_start = quarter_start(fact.month_start)
        q_key = quarter_key(q_start)

        rows = self.session.execute(
            select(AttendanceFactModel).where(
                AttendanceFactModel.employee_id == fact.employee_id,
                AttendanceFactModel.month_start.in_(quarter_months(q_start)),
            )
        ).scalars().all()
        qualifies = len(rows) == 3 and all(
            row.is_perfect and row.status == FactStatus.FINALIZED.value for row in rows
        )

        if not qualifies:
            denied = self._deny(
                select(PayrollBonusModel).where(
                    PayrollBonusModel.employee_id == fact.employee_id,
                    PayrollBonusModel.bonus_type == BonusType.QUARTERLY_ATTENDANCE.value,
                    PayrollBonusModel.quarter_key == q_key,
                ),
                REASON_QUARTER_NOT_PERFECT,
                decided_at,
            )
            logger.info(
                "quarterly_bonus_denied",
                extra={
                    "employee_id": str(fact.employee_id),
                    "quarter_key": q_key,
                    "facts_found": len(rows),
                    "denied_count": denied,
                },
            )
            return None

        config = self._employees.get_effective_config(fact.employee_id, q_start)
        amount = config.quarterly_attendance_bonus if config is not None else ZERO
        if amount <= ZERO:
            logger.info(
                "quarterly_bonus_not_configured",
                extra={"employee_id": str(fact.employee_id), "quarter_key": q_key},
            )
            return None

        return self._approve(
            employee_id=fact.employee_id,
            bonus_type=BonusType.QUARTERLY_ATTENDANCE,
            source_month=q_start,
            amount=amount,
            payable_date=quarterly_bonus_pay_date(q_start, self._settings.bonus_pay_day),
            fact_id=fact.id,
            decided_at=decided_at,
            q_key=q_key,
        )

    def _finalized_fact(self, fact_id: UUID) -> AttendanceFact:
        model = self.session.get(AttendanceFactModel, fact_id)
        if model is None:
            raise AttendanceFactNotFoundError(str(fact_id))
        fact = model.to_dto()
        if not fact.is_finalized:
            raise AttendanceFactNotFinalizedError(str(fact_id), fact.status.value)
        return fact

    def _deny(self, stmt, reason: str, decided_at: datetime) -> int:
        """Deny every open row selected by ``stmt``; already denied or paid rows are left alone."""
        rows = self.session.execute(
            stmt.where(PayrollBonusModel.status.not_in(_CLOSED))
        ).scalars().all()
        for row in rows:
            row.status = BonusStatus.DENIED.value
            row.decision_reason = reason
            row.decided_at = decided_at
            self.session.flush()
            self._record_decision(row.to_dto())
        return len(rows)

    def _approve(
        self,
        *,
        employee_id: UUID,
        bonus_type: BonusType,
        source_month: date,
        amount: Decimal,
        payable_date: date,
        fact_id: UUID,
        decided_at: datetime,
        q_key: str | None = None,
    ) -> PayrollBonus:
        model = self._find_by_source(employee_id, bonus_type, source_month)
        if model is not None and model.status == BonusStatus.PAID.value:
            logger.info(
                "bonus_sync_skipped_paid",
                extra={"bonus_id": str(model.id), "bonus_type": bonus_type.value},
            )
            return model.to_dto()

        if model is None:
            model = PayrollBonusModel(
                employee_id=employee_id,
                bonus_type=bonus_type.value,
                source_month=source_month,
            )
            self.session.add(model)

        # approved_amount is a human override and survives re-syncs
        model.status = BonusStatus.APPROVED.value
        model.amount = amount
        model.payable_date = payable_date
        model.attendance_fact_id = fact_id
        model.quarter_key = q_key
        model.decided_at = decided_at
        model.decision_reason = None
        self.session.flush()

        bonus = model.to_dto()
        self._record_decision(bonus)
        logger.info(
            "attendance_bonus_approved",
            extra={
                "bonus_id": str(bonus.id),
                "employee_id": str(employee_id),
                "bonus_type": bonus_type.value,
                "source_month": source_month.isoformat(),
                "amount": str(amount),
                "payable_date": payable_date.isoformat(),
            },
        )
        return bonus

    # -------------------------------------------------------------------------
    # KPI path
    # -------------------------------------------------------------------------

    def ensure_kpi_candidate(self, employee_id: UUID, month: date) -> PayrollBonus | None:
        """
        Upsert a PENDING KPI bonus for the month when KPI bonuses are enabled.

        A bonus that has already been decided is returned untouched.
        """
        month_start = first_of_month(month)
        config = self._employees.get_effective_config(employee_id, month_start)
        if config is None or not config.kpi_bonus_enabled:
            return None

        model = self._find_by_source(employee_id, BonusType.KPI, month_start)
        if model is not None and model.status != BonusStatus.PENDING.value:
            return model.to_dto()

        amount = config.kpi_bonus_default_amount
        changed = model is None or model.amount != amount
        if model is None:
            model = PayrollBonusModel(
                employee_id=employee_id,
                bonus_type=BonusType.KPI.value,
                source_month=month_start,
                status=BonusStatus.PENDING.value,
            )
            self.session.add(model)
        model.amount = amount
        model.payable_date = monthly_bonus_pay_date(
            month_start,
            self._clock.now_utc(),
            self._settings.zone,
            pay_day=self._settings.bonus_pay_day,
            pay_hour=self._settings.pay_hour,
        )
        self.session.flush()

        bonus = model.to_dto()
        if changed:
            self._record_decision(bonus)
        logger.info(
            "kpi_candidate_ensured",
            extra={
                "bonus_id": str(bonus.id),
                "employee_id": str(employee_id),
                "month_start": month_start.isoformat(),
                "amount": str(amount),
                "changed": changed,
            },
        )
        return bonus

    def decide_bonus(
        self,
        bonus_id: UUID,
        status: BonusStatus,
        *,
        amount: Decimal | None = None,
        reason: str | None = None,
        actor_id: UUID | None = None,
    ) -> PayrollBonus:
        """
        Record a human decision.  Re-deciding overwrites the prior decision.

        Raises:
            InvalidBonusDecisionError: status is not APPROVED or DENIED.
            BonusAlreadyPaidError: the bonus is PAID.
        """
        model = self._load(bonus_id)
        if status not in DECISION_STATUSES:
            raise InvalidBonusDecisionError(str(bonus_id), status.value)
        if model.status == BonusStatus.PAID.value:
            raise BonusAlreadyPaidError(str(bonus_id))

        model.status = status.value
        if status is BonusStatus.APPROVED:
            if amount is not None:
                model.approved_amount = amount
        else:
            model.approved_amount = None
        model.decision_reason = reason
        model.decision_by_id = actor_id
        model.decided_at = self._clock.now_utc()
        model.updated_by_id = actor_id
        self.session.flush()

        bonus = model.to_dto()
        self._record_decision(bonus, actor_id=actor_id)
        logger.info(
            "bonus_decided",
            extra={
                "bonus_id": str(bonus_id),
                "status": status.value,
                "approved_amount": (
                    str(bonus.approved_amount) if bonus.approved_amount is not None else None
                ),
            },
        )
        return bonus

    # -------------------------------------------------------------------------
    # Settlement hooks
    # -------------------------------------------------------------------------

    def attach_to_check(self, bonus_ids: list[UUID], check_id: UUID) -> None:
        if not bonus_ids:
            return
        rows = self.session.execute(
            select(PayrollBonusModel).where(PayrollBonusModel.id.in_(bonus_ids))
        ).scalars()
        for row in rows:
            row.payroll_check_id = check_id
        self.session.flush()

    def detach_from_check(self, check_id: UUID, keep_ids: list[UUID]) -> int:
        """Unlink bonuses no longer consumed by the check. Returns the count."""
        stmt = select(PayrollBonusModel).where(PayrollBonusModel.payroll_check_id == check_id)
        if keep_ids:
            stmt = stmt.where(PayrollBonusModel.id.not_in(keep_ids))
        rows = self.session.execute(stmt).scalars().all()
        for row in rows:
            row.payroll_check_id = None
        self.session.flush()
        return len(rows)

    def mark_paid(self, check_ids: list[UUID], paid_at: datetime) -> int:
        """Move every bonus attached to the given checks to PAID."""
        if not check_ids:
            return 0
        rows = self.session.execute(
            select(PayrollBonusModel).where(
                PayrollBonusModel.payroll_check_id.in_(check_ids),
                PayrollBonusModel.status != BonusStatus.PAID.value,
            )
        ).scalars().all()
        for row in rows:
            row.status = BonusStatus.PAID.value
            row.paid_at = paid_at
        self.session.flush()
        return len(rows)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_bonus(self, bonus_id: UUID) -> PayrollBonus:
        return self._load(bonus_id).to_dto()

    def find_bonus(
        self,
        employee_id: UUID,
        bonus_type: BonusType,
        source_month: date,
    ) -> PayrollBonus | None:
        model = self._find_by_source(employee_id, bonus_type, source_month)
        return model.to_dto() if model is not None else None

    def list_bonuses(
        self,
        *,
        employee_id: UUID | None = None,
        status: BonusStatus | None = None,
        bonus_type: BonusType | None = None,
        payable_date: date | None = None,
    ) -> list[PayrollBonus]:
        stmt = select(PayrollBonusModel)
        if employee_id is not None:
            stmt = stmt.where(PayrollBonusModel.employee_id == employee_id)
        if status is not None:
            stmt = stmt.where(PayrollBonusModel.status == status.value)
        if bonus_type is not None:
            stmt = stmt.where(PayrollBonusModel.bonus_type == bonus_type.value)
        if payable_date is not None:
            stmt = stmt.where(PayrollBonusModel.payable_date == payable_date)
        rows = self.session.execute(
            stmt.order_by(
                PayrollBonusModel.payable_date,
                PayrollBonusModel.source_month,
                PayrollBonusModel.bonus_type,
            )
        ).scalars()
        return [row.to_dto() for row in rows]

    def bonuses_payable_on(self, pay_date: date | datetime) -> list[PayrollBonus]:
        """APPROVED bonuses whose payable date is exactly ``pay_date``."""
        if isinstance(pay_date, datetime):
            pay_date = to_local_date(pay_date, self._settings.zone)
        rows = self.session.execute(
            select(PayrollBonusModel)
            .where(
                PayrollBonusModel.payable_date == pay_date,
                PayrollBonusModel.status == BonusStatus.APPROVED.value,
            )
            .order_by(PayrollBonusModel.employee_id, PayrollBonusModel.bonus_type)
        ).scalars()
        return [row.to_dto() for row in rows]

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _load(self, bonus_id: UUID) -> PayrollBonusModel:
        model = self.session.get(PayrollBonusModel, bonus_id)
        if model is None:
            raise BonusNotFoundError(str(bonus_id))
        return model

    def _find_by_source(
        self,
        employee_id: UUID,
        bonus_type: BonusType,
        source_month: date,
    ) -> PayrollBonusModel | None:
        return self.session.execute(
            select(PayrollBonusModel).where(
                PayrollBonusModel.employee_id == employee_id,
                PayrollBonusModel.bonus_type == bonus_type.value,
                PayrollBonusModel.source_month == source_month,
            )
        ).scalar_one_or_none()

    def _record_decision(self, bonus: PayrollBonus, actor_id: UUID | None = None) -> None:
        self._audit.append(
            AuditEvent.BONUS_DECISION,
            entity_type=BONUS_ENTITY_TYPE,
            entity_id=bonus.id,
            actor_id=actor_id,
            payload={
                "type": bonus.bonus_type,
                "status": bonus.status,
                "payableDate": bonus.payable_date,
                "approvedAmount": bonus.approved_amount,
            },
        )
