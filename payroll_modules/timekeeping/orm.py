"""
Timekeeping ORM Persistence Models (``payroll_modules.timekeeping.orm``).

Responsibility:
    Storage for the raw inputs of attendance reconciliation: time-off
    requests, work sessions, per-minute activity samples and the holiday
    calendar.

Invariants enforced:
    - Request kinds and statuses store enum ``.value`` strings.
    - One sample per (session, minute).
    - One holiday per calendar date.
    - ``employee_id`` is denormalized onto samples so a whole month loads
      in one indexed query.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase


class TimeOffRequestModel(TrackedBase):
    """A PTO, non-PTO or make-up request with an inclusive day span."""

    __tablename__ = "payroll_time_off_requests"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False,
    )
    kind: Mapped[str] = mapped_column(String(50), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    hours: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending")
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        Index(
            "idx_payroll_time_off_employee_span",
            "employee_id", "status", "start_date", "end_date",
        ),
    )

    def to_dto(self):
        from payroll_engines.types import RequestKind, TimeOffRequest
        return TimeOffRequest(
            kind=RequestKind(self.kind),
            start_date=self.start_date,
            end_date=self.end_date,
            hours=self.hours,
            approved_at=self.approved_at,
        )


class WorkSessionModel(TrackedBase):
    """A tracked work session."""

    __tablename__ = "payroll_work_sessions"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False,
    )
    started_at: Mapped[datetime] = mapped_column(nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        Index("idx_payroll_session_employee_start", "employee_id", "started_at"),
    )


class MinuteSampleModel(TrackedBase):
    """One minute of a session, flagged active or idle."""

    __tablename__ = "payroll_minute_samples"

    session_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_work_sessions.id"), nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False,
    )
    minute_start: Mapped[datetime] = mapped_column(nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False)

    __table_args__ = (
        UniqueConstraint("session_id", "minute_start", name="uq_payroll_sample_minute"),
        Index("idx_payroll_sample_employee_minute", "employee_id", "minute_start"),
    )

    def to_dto(self):
        from payroll_engines.types import MinuteSample
        return MinuteSample(minute_start=self.minute_start, active=self.active)


class HolidayModel(TrackedBase):
    """A calendar holiday."""

    __tablename__ = "payroll_holidays"

    holiday_date: Mapped[date] = mapped_column(Date, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("holiday_date", name="uq_payroll_holiday_date"),
    )

    def to_dto(self):
        from payroll_engines.types import Holiday
        return Holiday(holiday_date=self.holiday_date, name=self.name, is_paid=self.is_paid)
