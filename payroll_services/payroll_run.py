"""
payroll_services.payroll_run -- period settlement entry points.

Responsibility:
    ``ensure_and_recalc_period`` resolves (creating if needed) the
    semi-monthly period holding a reference date and recalculates its
    checks.  ``approve_period`` and ``mark_period_paid`` drive the status
    machine; ``export_csv`` renders the period for payment processing.

Architecture position:
    Services -- owns the Session lifecycle around ``SettlementService``.
    ``auto_commit=False`` flushes only, for callers that own the boundary.

Failure modes:
    - ``PayrollPeriodPaidError`` when recalculating a PAID period.
    - ``InvalidPeriodTransitionError`` on a non-forward status change.
    - Every failure rolls back, is logged ``*_failed`` and re-raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from sqlalchemy.orm import Session

from payroll_config import PayrollSettings, get_active_settings
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_modules.settlement.models import PayrollCheck, PayrollPeriod, PeriodStatus
from payroll_modules.settlement.service import SettlementService

logger = get_logger("services.payroll_run")


@dataclass(frozen=True)
class PeriodRunResult:
    """A period and the checks computed for it."""

    period: PayrollPeriod
    checks: tuple[PayrollCheck, ...]


class PayrollRunService:
    """Transactional settlement operations."""

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
        self._settlement = SettlementService(session, self._clock, self._settings)

    def ensure_and_recalc_period(
        self,
        reference: date | datetime,
        actor_id: UUID | None = None,
        auto_approve: bool = False,
    ) -> PeriodRunResult:
        with LogContext.bind(actor_id=actor_id):
            try:
                period = self._settlement.ensure_period(reference, actor_id)
                with LogContext.bind(period_id=period.id):
                    checks = self._settlement.recalc_period(
                        period.id, actor_id=actor_id, auto_approve=auto_approve,
                    )
                self._commit()
            except Exception:
                self._rollback()
                logger.error(
                    "payroll_period_recalc_failed",
                    extra={"reference": str(reference)},
                    exc_info=True,
                )
                raise
        return PeriodRunResult(period=period, checks=tuple(checks))

    def approve_period(self, period_id: UUID, actor_id: UUID | None = None) -> PayrollPeriod:
        return self._transition(period_id, PeriodStatus.APPROVED, actor_id)

    def mark_period_paid(self, period_id: UUID, actor_id: UUID | None = None) -> PayrollPeriod:
        return self._transition(period_id, PeriodStatus.PAID, actor_id)

    def export_csv(self, period_id: UUID) -> str:
        return self._settlement.export_period_csv(period_id)

    def _transition(
        self,
        period_id: UUID,
        status: PeriodStatus,
        actor_id: UUID | None,
    ) -> PayrollPeriod:
        with LogContext.bind(period_id=period_id, actor_id=actor_id):
            try:
                period = self._settlement.mark_period_status(period_id, status, actor_id)
                self._commit()
            except Exception:
                self._rollback()
                logger.error(
                    "payroll_period_transition_failed",
                    extra={"to_status": status.value},
                    exc_info=True,
                )
                raise
        return period

    def _commit(self) -> None:
        if self._auto_commit:
            self._session.commit()
        else:
            self._session.flush()

    def _rollback(self) -> None:
        if self._auto_commit:
            self._session.rollback()
