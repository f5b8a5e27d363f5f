"""
Attendance ORM Persistence Model (``payroll_modules.attendance.orm``).

Responsibility:
    Persists ``AttendanceFact``.  The per-day snapshot and the reasons are
    stored as JSON; totals are stored as Decimal columns so they can be
    queried directly.

Invariants enforced:
    - One fact per (employee_id, month_start) (uq_payroll_attendance_month).
    - ``status`` stores the ``FactStatus`` value string.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase


class AttendanceFactModel(TrackedBase):
    """ORM model for ``AttendanceFact``."""

    __tablename__ = "payroll_attendance_facts"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False,
    )
    month_start: Mapped[date] = mapped_column(Date, nullable=False)
    range_start: Mapped[datetime] = mapped_column(nullable=False)
    range_end: Mapped[datetime] = mapped_column(nullable=False)
    assigned_hours: Mapped[Decimal] = mapped_column(nullable=False)
    worked_hours: Mapped[Decimal] = mapped_column(nullable=False)
    pto_hours: Mapped[Decimal] = mapped_column(nullable=False)
    non_pto_absence_hours: Mapped[Decimal] = mapped_column(nullable=False)
    make_up_hours: Mapped[Decimal] = mapped_column(nullable=False)
    tardy_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    matched_make_up_hours: Mapped[Decimal] = mapped_column(nullable=False)
    uncovered_absence_hours: Mapped[Decimal] = mapped_column(nullable=False)
    is_perfect: Mapped[bool] = mapped_column(Boolean, nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending")
    reasons: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    snapshot: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    computed_at: Mapped[datetime] = mapped_column(nullable=False)
    finalized_at: Mapped[datetime | None] = mapped_column(nullable=True)
    review_status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending")
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    reviewed_by_id: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "month_start", name="uq_payroll_attendance_month"),
        Index("idx_payroll_attendance_status", "status"),
        Index("idx_payroll_attendance_review", "month_start", "review_status"),
    )

    def to_dto(self):
        from payroll_modules.attendance.models import AttendanceFact, FactStatus, ReviewStatus
        return AttendanceFact(
            id=self.id,
            employee_id=self.employee_id,
            month_start=self.month_start,
            range_start=self.range_start,
            range_end=self.range_end,
            assigned_hours=self.assigned_hours,
            worked_hours=self.worked_hours,
            pto_hours=self.pto_hours,
            non_pto_absence_hours=self.non_pto_absence_hours,
            make_up_hours=self.make_up_hours,
            tardy_minutes=self.tardy_minutes,
            matched_make_up_hours=self.matched_make_up_hours,
            uncovered_absence_hours=self.uncovered_absence_hours,
            is_perfect=self.is_perfect,
            status=FactStatus(self.status),
            computed_at=self.computed_at,
            finalized_at=self.finalized_at,
            reasons=tuple(self.reasons or ()),
            days=tuple(self.snapshot or ()),
            review_status=ReviewStatus(self.review_status),
            review_notes=self.review_notes,
            reviewed_at=self.reviewed_at,
            reviewed_by_id=self.reviewed_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<AttendanceFactModel {self.employee_id} "
            f"{self.month_start.isoformat()} ({self.status})>"
        )
