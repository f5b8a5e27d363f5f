"""
payroll_services.month_close -- month-end finalization and lock-aware recalculation.

Responsibility:
    ``finalize_month`` recomputes an employee-month with finalization, then
    synchronizes the monthly and quarterly attendance bonuses and ensures the
    KPI candidate, all in one transaction.  ``recalc_month`` and
    ``recalc_range`` recompute without finalizing and skip any month covered
    by a PAID payroll period.

Architecture position:
    Services -- owns the Session lifecycle (commit / rollback) around the
    flush-only module services.  Called by the month-end batch task and by
    administrative callers.
    With ``auto_commit=False`` (batch items inside a SAVEPOINT) it only
    flushes and leaves the boundary to the caller.

Failure modes:
    - Any error rolls the whole unit back, is logged as
      ``month_finalization_failed`` / ``attendance_recalc_failed`` with
      ``exc_info`` and re-raised.  Partial writes are never committed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from payroll_config import PayrollSettings, get_active_settings
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.zoned_time import first_of_month, month_keys_between, parse_month_key
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_kernel.services.audit_service import AuditService
from payroll_modules.attendance.models import AttendanceFact
from payroll_modules.attendance.service import AttendanceService
from payroll_modules.bonus.models import PayrollBonus
from payroll_modules.bonus.service import BonusService
from payroll_modules.settlement.service import SettlementService

logger = get_logger("services.month_close")


@dataclass(frozen=True)
class MonthCloseResult:
    """Outcome of finalizing one employee-month."""

    fact: AttendanceFact
    monthly_bonus: PayrollBonus | None = None
    quarterly_bonus: PayrollBonus | None = None
    kpi_bonus: PayrollBonus | None = None


class MonthCloseService:
    """Month-end entry points for one employee at a time."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: PayrollSettings | None = None,
        auto_commit: bool = True,
    ):
        self._session = session
        self._auto_commit = auto_commit
        self._clock = clock or SystemClock()
        self._settings = settings or get_active_settings()
        audit = AuditService(session, self._clock)
        self._attendance = AttendanceService(
            session, self._clock, self._settings, audit,
        )
        self._bonuses = BonusService(session, self._clock, self._settings, audit)
        self._settlement = SettlementService(session, self._clock, self._settings, audit)

    def finalize_month(
        self,
        employee_id: UUID,
        month: date,
        actor_id: UUID | None = None,
    ) -> MonthCloseResult:
        month_start = first_of_month(month)
        with LogContext.bind(employee_id=employee_id, actor_id=actor_id):
            try:
                fact = self._attendance.recalc_month(
                    employee_id, month_start, finalize=True, actor_id=actor_id,
                )
                result = MonthCloseResult(
                    fact=fact,
                    monthly_bonus=self._bonuses.sync_monthly(fact.id),
                    quarterly_bonus=self._bonuses.sync_quarterly(fact.id),
                    kpi_bonus=self._bonuses.ensure_kpi_candidate(employee_id, month_start),
                )
                self._commit()
            except Exception:
                self._rollback()
                logger.error(
                    "month_finalization_failed",
                    extra={"month_start": month_start.isoformat()},
                    exc_info=True,
                )
                raise

            logger.info(
                "month_finalized",
                extra={
                    "month_start": month_start.isoformat(),
                    "is_perfect": fact.is_perfect,
                    "monthly_bonus": result.monthly_bonus is not None,
                    "quarterly_bonus": result.quarterly_bonus is not None,
                    "kpi_bonus": result.kpi_bonus is not None,
                },
            )
            return result

    def recalc_month(
        self,
        employee_id: UUID,
        month: date,
        actor_id: UUID | None = None,
    ) -> AttendanceFact | None:
        """Recompute without finalizing. Returns None when the month is locked."""
        month_start = first_of_month(month)
        with LogContext.bind(employee_id=employee_id, actor_id=actor_id):
            try:
                fact = self._recalc_unlocked(employee_id, month_start, actor_id)
                self._commit()
            except Exception:
                self._rollback()
                logger.error(
                    "attendance_recalc_failed",
                    extra={"month_start": month_start.isoformat()},
                    exc_info=True,
                )
                raise
            return fact

    def recalc_range(
        self,
        employee_id: UUID,
        start: date,
        end: date,
        actor_id: UUID | None = None,
    ) -> list[AttendanceFact]:
        """Recompute every unlocked month touched by [start, end] in one transaction."""
        facts: list[AttendanceFact] = []
        with LogContext.bind(employee_id=employee_id, actor_id=actor_id):
            try:
                for key in month_keys_between(start, end):
                    fact = self._recalc_unlocked(employee_id, parse_month_key(key), actor_id)
                    if fact is not None:
                        facts.append(fact)
                self._commit()
            except Exception:
                self._rollback()
                logger.error(
                    "attendance_recalc_failed",
                    extra={"range_start": start.isoformat(), "range_end": end.isoformat()},
                    exc_info=True,
                )
                raise
        return facts

    def _recalc_unlocked(
        self,
        employee_id: UUID,
        month_start: date,
        actor_id: UUID | None,
    ) -> AttendanceFact | None:
        if self._settlement.is_month_locked(month_start):
            logger.info(
                "attendance_recalc_skipped",
                extra={"month_start": month_start.isoformat(), "reason": "month_locked"},
            )
            return None
        return self._attendance.recalc_month(
            employee_id, month_start, finalize=False, actor_id=actor_id,
        )

    def _commit(self) -> None:
        if self._auto_commit:
            self._session.commit()
        else:
            self._session.flush()

    def _rollback(self) -> None:
        if self._auto_commit:
            self._session.rollback()
