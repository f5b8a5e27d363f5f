"""
Attendance Service (``payroll_modules.attendance.service``).

Responsibility
--------------
Loads every reconciliation input for one employee-month in a single pass
(config timeline, approved requests, minute samples, session starts,
holidays), runs ``MonthlyReconciliationEngine`` and persists the result as
the month's attendance fact.

Architecture position
---------------------
**Modules layer** -- flush-only service.  ``payroll_services.month_close``
owns the transaction around ``recalc_month`` and the bonus sync that
follows it.

Invariants enforced
-------------------
* Replace-or-insert keyed by ``(employee_id, month_start)``.
* ``finalize=True`` sets FINALIZED and stamps ``finalized_at``; any other
  recompute resets the fact to PENDING and clears ``finalized_at``.
* Exactly one ``ATTENDANCE_RECALC`` audit row per recompute.
* ``update_review_status`` writes one ``ATTENDANCE_REVIEW`` audit row;
  resolving stamps the reviewer and ``reviewed_at``, reopening clears both.

Failure modes
-------------
* ``EmployeeNotFoundError`` for an unknown employee.
* ``AttendanceFactNotFoundError`` from ``get_fact`` for an unknown id.
* Persistence errors propagate uncaught.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from payroll_config import PayrollSettings, get_active_settings
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.zoned_time import first_of_month, month_range
from payroll_kernel.exceptions import (
    AttendanceFactNotFoundError,
    EmployeeNotFoundError,
    InvalidAttendanceReviewError,
)
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.audit_log import AuditEvent
from payroll_kernel.services.audit_service import AuditService
from payroll_kernel.services.base import BaseService
from payroll_engines.reconciliation import MonthlyReconciliationEngine
from payroll_engines.types import MonthlyAttendanceComputation
from payroll_modules.attendance.models import AttendanceFact, FactStatus, ReviewStatus
from payroll_modules.attendance.orm import AttendanceFactModel
from payroll_modules.employees.orm import EmployeeModel
from payroll_modules.employees.service import EmployeeService
from payroll_modules.timekeeping.sources import (
    ActivitySource,
    HolidayCalendar,
    SqlActivitySource,
    SqlHolidayCalendar,
    SqlTimeOffSource,
    TimeOffSource,
)

logger = get_logger("modules.attendance.service")

FACT_ENTITY_TYPE = "PayrollAttendanceFact"
MAX_REVIEW_NOTES_LENGTH = 500


class AttendanceService(BaseService):
    """
    Monthly attendance computation and fact persistence.

    Collaborator sources default to the SQL-backed implementations over the
    same session; tests and other callers may pass their own.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: PayrollSettings | None = None,
        audit: AuditService | None = None,
        time_off: TimeOffSource | None = None,
        activity: ActivitySource | None = None,
        holidays: HolidayCalendar | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._settings = settings or get_active_settings()
        self._audit = audit or AuditService(session, self._clock)
        self._employees = EmployeeService(session, self._clock, self._audit)
        self._time_off = time_off or SqlTimeOffSource(session)
        self._activity = activity or SqlActivitySource(session)
        self._holidays = holidays or SqlHolidayCalendar(session)
        self._engine = MonthlyReconciliationEngine(
            zone=self._settings.zone,
            claim_window_days=self._settings.make_up_claim_window_days,
            make_up_cap_hours=self._settings.monthly_make_up_cap_hours,
            tardy_threshold_minutes=self._settings.tardy_minutes_threshold,
        )

    # -------------------------------------------------------------------------
    # Computation
    # -------------------------------------------------------------------------

    def compute_month(
        self,
        employee_id: UUID,
        reference: date | datetime,
    ) -> MonthlyAttendanceComputation:
        """Pure recompute of the zoned month containing ``reference``. No writes."""
        if self.session.get(EmployeeModel, employee_id) is None:
            raise EmployeeNotFoundError(str(employee_id))

        span = month_range(reference, self._settings.zone)
        return self._engine.reconcile(
            reference=span.start_date,
            schedules=self._employees.load_timeline(employee_id),
            requests=self._time_off.approved_requests(employee_id, span),
            samples=self._activity.minute_samples(employee_id, span),
            session_starts=self._activity.session_starts(employee_id, span),
            holidays=self._holidays.holidays(span),
        )

    def recalc_month(
        self,
        employee_id: UUID,
        reference: date | datetime,
        *,
        finalize: bool = False,
        actor_id: UUID | None = None,
    ) -> AttendanceFact:
        """Recompute and replace-or-insert the month's fact."""
        result = self.compute_month(employee_id, reference)
        span = month_range(result.month_start, self._settings.zone)
        now = self._clock.now_utc()

        model = self._find_model(employee_id, result.month_start)
        if model is None:
            model = AttendanceFactModel(
                employee_id=employee_id,
                month_start=result.month_start,
                created_by_id=actor_id,
            )
            self.session.add(model)
        else:
            model.updated_by_id = actor_id

        model.range_start = span.start
        model.range_end = span.end
        model.assigned_hours = result.assigned_hours
        model.worked_hours = result.worked_hours
        model.pto_hours = result.pto_hours
        model.non_pto_absence_hours = result.non_pto_absence_hours
        model.make_up_hours = result.make_up_hours
        model.tardy_minutes = result.tardy_minutes
        model.matched_make_up_hours = result.matched_make_up_hours
        model.uncovered_absence_hours = result.uncovered_absence_hours
        model.is_perfect = result.is_perfect
        model.reasons = list(result.reasons)
        model.snapshot = [day.to_payload() for day in result.days]
        model.computed_at = now
        if finalize:
            model.status = FactStatus.FINALIZED.value
            model.finalized_at = now
        else:
            model.status = FactStatus.PENDING.value
            model.finalized_at = None
        # a perfect month needs no review; an imperfect one reopens it but keeps the notes
        if result.is_perfect:
            model.review_status = ReviewStatus.RESOLVED.value
            model.review_notes = None
        else:
            model.review_status = ReviewStatus.PENDING.value
        model.reviewed_at = None
        model.reviewed_by_id = None
        self.session.flush()

        fact = model.to_dto()
        self._audit.append(
            AuditEvent.ATTENDANCE_RECALC,
            entity_type=FACT_ENTITY_TYPE,
            entity_id=fact.entity_key,
            actor_id=actor_id,
            payload={
                "status": fact.status,
                "isPerfect": result.is_perfect,
                "tardyMinutes": result.tardy_minutes,
                "matchedMakeUpHours": result.matched_make_up_hours,
                "reviewStatus": fact.review_status,
            },
        )
        logger.info(
            "attendance_recalculated",
            extra={
                "employee_id": str(employee_id),
                "month_start": result.month_start.isoformat(),
                "status": fact.status.value,
                "is_perfect": result.is_perfect,
                "tardy_minutes": result.tardy_minutes,
                "uncovered_absence_hours": str(result.uncovered_absence_hours),
            },
        )
        return fact

    # -------------------------------------------------------------------------
    # Review
    # -------------------------------------------------------------------------

    def update_review_status(
        self,
        employee_id: UUID,
        month: date,
        status: ReviewStatus,
        notes: str | None,
        reviewer_id: UUID,
    ) -> AttendanceFact:
        """
        Record a reviewer's verdict on the month's fact.

        Notes are trimmed; ``None`` clears them.  Resolving stamps
        ``reviewed_at`` and the reviewer, reopening (PENDING) clears them.

        Raises:
            AttendanceFactNotFoundError: no fact for the month.
            InvalidAttendanceReviewError: blank or oversized notes.
        """
        month_start = first_of_month(month)
        model = self._find_model(employee_id, month_start)
        if model is None:
            raise AttendanceFactNotFoundError(f"{employee_id}:{month_start.isoformat()}")

        if notes is not None:
            notes = notes.strip()
            if not notes:
                raise InvalidAttendanceReviewError(str(model.id), "notes must not be empty")
            if len(notes) > MAX_REVIEW_NOTES_LENGTH:
                raise InvalidAttendanceReviewError(
                    str(model.id), f"notes longer than {MAX_REVIEW_NOTES_LENGTH} characters",
                )

        resolved = status is ReviewStatus.RESOLVED
        model.review_status = status.value
        model.review_notes = notes
        model.reviewed_at = self._clock.now_utc() if resolved else None
        model.reviewed_by_id = reviewer_id if resolved else None
        model.updated_by_id = reviewer_id
        self.session.flush()

        fact = model.to_dto()
        self._audit.append(
            AuditEvent.ATTENDANCE_REVIEW,
            entity_type=FACT_ENTITY_TYPE,
            entity_id=fact.entity_key,
            actor_id=reviewer_id,
            payload={"reviewStatus": fact.review_status, "reviewNotes": fact.review_notes},
        )
        logger.info(
            "attendance_review_updated",
            extra={
                "employee_id": str(employee_id),
                "month_start": month_start.isoformat(),
                "review_status": status.value,
            },
        )
        return fact

    def count_pending_reviews(self, month: date) -> int:
        """Facts of the month still waiting for review."""
        return self.session.execute(
            select(func.count())
            .select_from(AttendanceFactModel)
            .where(
                AttendanceFactModel.month_start == first_of_month(month),
                AttendanceFactModel.review_status == ReviewStatus.PENDING.value,
            )
        ).scalar_one()

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _find_model(self, employee_id: UUID, month_start: date) -> AttendanceFactModel | None:
        return self.session.execute(
            select(AttendanceFactModel).where(
                AttendanceFactModel.employee_id == employee_id,
                AttendanceFactModel.month_start == month_start,
            )
        ).scalar_one_or_none()

    def get_fact(self, fact_id: UUID) -> AttendanceFact:
        model = self.session.get(AttendanceFactModel, fact_id)
        if model is None:
            raise AttendanceFactNotFoundError(str(fact_id))
        return model.to_dto()

    def find_fact(self, employee_id: UUID, month_start: date) -> AttendanceFact | None:
        model = self._find_model(employee_id, month_start)
        return model.to_dto() if model is not None else None

    def facts_for_months(
        self,
        employee_id: UUID,
        month_starts: Iterable[date],
    ) -> list[AttendanceFact]:
        """Facts for the given months (missing months are simply absent), oldest first."""
        rows = self.session.execute(
            select(AttendanceFactModel)
            .where(
                AttendanceFactModel.employee_id == employee_id,
                AttendanceFactModel.month_start.in_(list(month_starts)),
            )
            .order_by(AttendanceFactModel.month_start)
        ).scalars()
        return [row.to_dto() for row in rows]
