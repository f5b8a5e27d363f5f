"""
Settlement ORM Persistence Models (``payroll_modules.settlement.orm``).

Invariants enforced:
    - One period per (period_start, period_end) (uq_payroll_period_span).
    - One check per (period_id, employee_id) (uq_payroll_check_employee).
    - Statuses store enum ``.value`` strings.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import TrackedBase


class PayrollPeriodModel(TrackedBase):
    """ORM model for ``PayrollPeriod``."""

    __tablename__ = "payroll_periods"

    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    pay_date: Mapped[date] = mapped_column(Date, nullable=False)
    pay_at: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_by_id: Mapped[UUID | None] = mapped_column(nullable=True)

    checks: Mapped[list["PayrollCheckModel"]] = relationship(back_populates="period")

    __table_args__ = (
        UniqueConstraint("period_start", "period_end", name="uq_payroll_period_span"),
        Index("idx_payroll_period_status", "status"),
        Index("idx_payroll_period_pay_date", "pay_date"),
    )

    def to_dto(self):
        from payroll_modules.settlement.models import PayrollPeriod, PeriodStatus
        return PayrollPeriod(
            id=self.id,
            period_start=self.period_start,
            period_end=self.period_end,
            pay_date=self.pay_date,
            pay_at=self.pay_at,
            status=PeriodStatus(self.status),
            approved_at=self.approved_at,
            approved_by_id=self.approved_by_id,
            paid_at=self.paid_at,
            paid_by_id=self.paid_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<PayrollPeriodModel {self.period_start.isoformat()}.."
            f"{self.period_end.isoformat()} ({self.status})>"
        )


class PayrollCheckModel(TrackedBase):
    """ORM model for ``PayrollCheck``."""

    __tablename__ = "payroll_checks"

    period_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_periods.id"), nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False,
    )
    base_amount: Mapped[Decimal] = mapped_column(nullable=False)
    monthly_attendance_bonus: Mapped[Decimal] = mapped_column(nullable=False)
    deferred_monthly_bonus: Mapped[Decimal] = mapped_column(nullable=False)
    quarterly_attendance_bonus: Mapped[Decimal] = mapped_column(nullable=False)
    kpi_bonus: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    snapshot: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_by_id: Mapped[UUID | None] = mapped_column(nullable=True)

    period: Mapped[PayrollPeriodModel] = relationship(back_populates="checks")

    __table_args__ = (
        UniqueConstraint("period_id", "employee_id", name="uq_payroll_check_employee"),
        Index("idx_payroll_check_employee", "employee_id"),
    )

    def to_dto(self):
        from payroll_modules.settlement.models import CheckStatus, PayrollCheck
        return PayrollCheck(
            id=self.id,
            period_id=self.period_id,
            employee_id=self.employee_id,
            base_amount=self.base_amount,
            monthly_attendance_bonus=self.monthly_attendance_bonus,
            deferred_monthly_bonus=self.deferred_monthly_bonus,
            quarterly_attendance_bonus=self.quarterly_attendance_bonus,
            kpi_bonus=self.kpi_bonus,
            total_amount=self.total_amount,
            status=CheckStatus(self.status),
            snapshot=dict(self.snapshot or {}),
            paid_at=self.paid_at,
            paid_by_id=self.paid_by_id,
        )
