"""
Timekeeping Services (``payroll_modules.timekeeping.service``).

Responsibility
--------------
``TimekeepingService`` captures the raw reconciliation inputs (time-off
requests, work sessions and their per-minute samples).  ``HolidayService``
maintains the holiday calendar and audits each change.

Architecture position
---------------------
**Modules layer** -- flush-only services; the caller owns the transaction.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.exceptions import HolidayNotFoundError, TimeOffRequestNotFoundError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.audit_log import AuditEvent
from payroll_kernel.services.audit_service import AuditService
from payroll_kernel.services.base import BaseService
from payroll_engines.types import Holiday, RequestKind
from payroll_modules.timekeeping.models import RequestStatus, WorkSession
from payroll_modules.timekeeping.orm import (
    HolidayModel,
    MinuteSampleModel,
    TimeOffRequestModel,
    WorkSessionModel,
)

logger = get_logger("modules.timekeeping.service")


class TimekeepingService(BaseService):
    """Records time-off requests, sessions and activity samples."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def record_time_off(
        self,
        employee_id: UUID,
        kind: RequestKind,
        start_date: date,
        end_date: date,
        hours: Decimal,
        *,
        status: RequestStatus = RequestStatus.PENDING,
        approved_at: datetime | None = None,
        reason: str | None = None,
        actor_id: UUID | None = None,
    ) -> UUID:
        model = TimeOffRequestModel(
            employee_id=employee_id,
            kind=kind.value,
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            status=status.value,
            approved_at=approved_at,
            approved_by_id=actor_id if approved_at else None,
            reason=reason,
            created_by_id=actor_id,
        )
        self.session.add(model)
        self.session.flush()
        logger.info(
            "time_off_recorded",
            extra={
                "request_id": str(model.id),
                "employee_id": str(employee_id),
                "kind": kind.value,
                "status": status.value,
                "hours": str(hours),
            },
        )
        return model.id

    def review_time_off(
        self,
        request_id: UUID,
        status: RequestStatus,
        actor_id: UUID | None = None,
    ) -> None:
        """Approve or deny a request; approval stamps ``approved_at`` from the clock."""
        model = self.session.get(TimeOffRequestModel, request_id)
        if model is None:
            raise TimeOffRequestNotFoundError(str(request_id))
        model.status = status.value
        if status is RequestStatus.APPROVED:
            model.approved_at = self._clock.now_utc()
            model.approved_by_id = actor_id
        model.updated_by_id = actor_id
        self.session.flush()
        logger.info(
            "time_off_reviewed",
            extra={"request_id": str(request_id), "status": status.value},
        )

    def record_session(
        self,
        employee_id: UUID,
        started_at: datetime,
        ended_at: datetime | None = None,
        minutes: Iterable[tuple[datetime, bool]] = (),
        actor_id: UUID | None = None,
    ) -> WorkSession:
        """Persist a session and its (minute_start, active) samples."""
        session_row = WorkSessionModel(
            employee_id=employee_id,
            started_at=started_at,
            ended_at=ended_at,
            created_by_id=actor_id,
        )
        self.session.add(session_row)
        self.session.flush()

        count = 0
        for minute_start, active in minutes:
            self.session.add(
                MinuteSampleModel(
                    session_id=session_row.id,
                    employee_id=employee_id,
                    minute_start=minute_start,
                    active=active,
                    created_by_id=actor_id,
                )
            )
            count += 1
        self.session.flush()

        logger.info(
            "work_session_recorded",
            extra={
                "session_id": str(session_row.id),
                "employee_id": str(employee_id),
                "sample_count": count,
            },
        )
        return WorkSession(
            id=session_row.id,
            employee_id=employee_id,
            started_at=started_at,
            ended_at=ended_at,
            sample_count=count,
        )


class HolidayService(BaseService):
    """
    Holiday calendar maintenance.

    Guarantees
    ----------
    * At most one holiday per date (replace-or-insert).
    * Each upsert or delete writes one ``HOLIDAY_UPDATED`` audit row.
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

    def _find(self, holiday_date: date) -> HolidayModel | None:
        return self.session.execute(
            select(HolidayModel).where(HolidayModel.holiday_date == holiday_date)
        ).scalar_one_or_none()

    def upsert_holiday(
        self,
        holiday_date: date,
        name: str,
        is_paid: bool = True,
        actor_id: UUID | None = None,
    ) -> Holiday:
        model = self._find(holiday_date)
        created = model is None
        if created:
            model = HolidayModel(holiday_date=holiday_date, created_by_id=actor_id)
            self.session.add(model)
        else:
            model.updated_by_id = actor_id
        model.name = name
        model.is_paid = is_paid
        self.session.flush()

        self._audit.append(
            AuditEvent.HOLIDAY_UPDATED,
            entity_type="Holiday",
            entity_id=holiday_date.isoformat(),
            actor_id=actor_id,
            payload={
                "action": "created" if created else "updated",
                "name": name,
                "isPaid": is_paid,
            },
        )
        return model.to_dto()

    def delete_holiday(self, holiday_date: date, actor_id: UUID | None = None) -> None:
        model = self._find(holiday_date)
        if model is None:
            raise HolidayNotFoundError(holiday_date.isoformat())
        name = model.name
        self.session.delete(model)
        self.session.flush()
        self._audit.append(
            AuditEvent.HOLIDAY_UPDATED,
            entity_type="Holiday",
            entity_id=holiday_date.isoformat(),
            actor_id=actor_id,
            payload={"action": "deleted", "name": name},
        )

    def list_holidays(self, start: date, end: date) -> list[Holiday]:
        rows = self.session.execute(
            select(HolidayModel)
            .where(HolidayModel.holiday_date >= start, HolidayModel.holiday_date <= end)
            .order_by(HolidayModel.holiday_date)
        ).scalars()
        return [row.to_dto() for row in rows]
