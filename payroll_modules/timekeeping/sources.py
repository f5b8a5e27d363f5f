"""
Collaborator sources for reconciliation (``payroll_modules.timekeeping.sources``).

Responsibility
--------------
The attendance service depends on three narrow read interfaces -- time-off
requests, activity, holidays -- declared here as Protocols, with SQL-backed
implementations over the timekeeping tables.  Each call loads an entire
month range in a single query so reconciliation never fetches day by day.

Range semantics: ``ZonedRange`` bounds; instants are matched with
``start <= t < end_exclusive`` and dates with overlap on the inclusive span.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_kernel.domain.zoned_time import ZonedRange
from payroll_engines.types import Holiday, MinuteSample, TimeOffRequest
from payroll_modules.timekeeping.models import RequestStatus
from payroll_modules.timekeeping.orm import (
    HolidayModel,
    MinuteSampleModel,
    TimeOffRequestModel,
    WorkSessionModel,
)


class TimeOffSource(Protocol):
    def approved_requests(self, employee_id: UUID, span: ZonedRange) -> Sequence[TimeOffRequest]: ...


class ActivitySource(Protocol):
    def minute_samples(self, employee_id: UUID, span: ZonedRange) -> Sequence[MinuteSample]: ...

    def session_starts(self, employee_id: UUID, span: ZonedRange) -> Sequence[datetime]: ...


class HolidayCalendar(Protocol):
    def holidays(self, span: ZonedRange) -> Sequence[Holiday]: ...


class SqlTimeOffSource:
    """Approved requests overlapping the span."""

    def __init__(self, session: Session):
        self._session = session

    def approved_requests(self, employee_id: UUID, span: ZonedRange) -> list[TimeOffRequest]:
        rows = self._session.execute(
            select(TimeOffRequestModel)
            .where(
                TimeOffRequestModel.employee_id == employee_id,
                TimeOffRequestModel.status == RequestStatus.APPROVED.value,
                TimeOffRequestModel.start_date <= span.end_date,
                TimeOffRequestModel.end_date >= span.start_date,
            )
            .order_by(TimeOffRequestModel.start_date, TimeOffRequestModel.id)
        ).scalars()
        return [row.to_dto() for row in rows]


class SqlActivitySource:
    """Minute samples and session starts inside the span."""

    def __init__(self, session: Session):
        self._session = session

    def minute_samples(self, employee_id: UUID, span: ZonedRange) -> list[MinuteSample]:
        rows = self._session.execute(
            select(MinuteSampleModel)
            .where(
                MinuteSampleModel.employee_id == employee_id,
                MinuteSampleModel.minute_start >= span.start,
                MinuteSampleModel.minute_start < span.end_exclusive,
            )
            .order_by(MinuteSampleModel.minute_start)
        ).scalars()
        return [row.to_dto() for row in rows]

    def session_starts(self, employee_id: UUID, span: ZonedRange) -> list[datetime]:
        return list(
            self._session.execute(
                select(WorkSessionModel.started_at)
                .where(
                    WorkSessionModel.employee_id == employee_id,
                    WorkSessionModel.started_at >= span.start,
                    WorkSessionModel.started_at < span.end_exclusive,
                )
                .order_by(WorkSessionModel.started_at)
            ).scalars()
        )


class SqlHolidayCalendar:
    """Holidays whose date falls inside the span."""

    def __init__(self, session: Session):
        self._session = session

    def holidays(self, span: ZonedRange) -> list[Holiday]:
        rows = self._session.execute(
            select(HolidayModel)
            .where(
                HolidayModel.holiday_date >= span.start_date,
                HolidayModel.holiday_date <= span.end_date,
            )
            .order_by(HolidayModel.holiday_date)
        ).scalars()
        return [row.to_dto() for row in rows]
