"""
Bonus ORM Persistence Model (``payroll_modules.bonus.orm``).

Invariants enforced:
    - One row per (employee_id, bonus_type, source_month)
      (uq_payroll_bonus_source).
    - ``bonus_type`` and ``status`` store enum ``.value`` strings.
    - ``payroll_check_id`` links a consumed bonus to the check that paid it.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase


class PayrollBonusModel(TrackedBase):
    """ORM model for ``PayrollBonus``."""

    __tablename__ = "payroll_bonuses"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False,
    )
    bonus_type: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending")
    source_month: Mapped[date] = mapped_column(Date, nullable=False)
    quarter_key: Mapped[str | None] = mapped_column(String(10), nullable=True)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    approved_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    payable_date: Mapped[date] = mapped_column(Date, nullable=False)
    attendance_fact_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_attendance_facts.id"), nullable=True,
    )
    payroll_check_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_checks.id"), nullable=True,
    )
    decision_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(nullable=True)
    decision_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "bonus_type", "source_month", name="uq_payroll_bonus_source",
        ),
        Index("idx_payroll_bonus_payable", "payable_date", "status"),
        Index("idx_payroll_bonus_quarter", "employee_id", "bonus_type", "quarter_key"),
        Index("idx_payroll_bonus_check", "payroll_check_id"),
    )

    def to_dto(self):
        from payroll_modules.bonus.models import BonusStatus, BonusType, PayrollBonus
        return PayrollBonus(
            id=self.id,
            employee_id=self.employee_id,
            bonus_type=BonusType(self.bonus_type),
            status=BonusStatus(self.status),
            source_month=self.source_month,
            amount=self.amount,
            payable_date=self.payable_date,
            approved_amount=self.approved_amount,
            quarter_key=self.quarter_key,
            attendance_fact_id=self.attendance_fact_id,
            payroll_check_id=self.payroll_check_id,
            decision_reason=self.decision_reason,
            decided_at=self.decided_at,
            decision_by_id=self.decision_by_id,
            paid_at=self.paid_at,
        )

    def __repr__(self) -> str:
        return (
            f"<PayrollBonusModel {self.bonus_type} {self.employee_id} "
            f"{self.source_month.isoformat()} ({self.status})>"
        )
