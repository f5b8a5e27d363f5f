"""
Employee ORM Persistence Models (``payroll_modules.employees.orm``).

Responsibility:
    SQLAlchemy models persisting employees, their effective-dated configs
    and each config's weekly schedule.  ``to_dto()`` converts to the frozen
    models in ``payroll_modules.employees.models``.

Invariants enforced:
    - ``employee_number`` is unique.
    - One config per (employee, effective_on).
    - One schedule entry per (config, weekday); entries are owned by their
      config and replaced wholesale on upsert.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import TrackedBase


class EmployeeModel(TrackedBase):
    """ORM model for ``Employee``."""

    __tablename__ = "payroll_employees"

    employee_number: Mapped[str] = mapped_column(String(50), nullable=False)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_number", name="uq_payroll_employee_number"),
        Index("idx_payroll_employee_active", "is_active"),
    )

    def to_dto(self):
        from payroll_modules.employees.models import Employee
        return Employee(
            id=self.id,
            employee_number=self.employee_number,
            display_name=self.display_name,
            email=self.email,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<EmployeeModel {self.employee_number}: {self.display_name}>"


class EmployeeConfigModel(TrackedBase):
    """ORM model for ``EmployeeConfig``."""

    __tablename__ = "payroll_employee_configs"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False,
    )
    effective_on: Mapped[date] = mapped_column(Date, nullable=False)
    base_semi_monthly_salary: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    monthly_attendance_bonus: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    quarterly_attendance_bonus: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    kpi_bonus_default_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    kpi_bonus_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    pto_balance_hours: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    non_pto_balance_hours: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    accrual_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    accrual_method: Mapped[str] = mapped_column(String(50), default="none")
    accrual_hours_per_month: Mapped[Decimal | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    schedule_entries: Mapped[list["ScheduleEntryModel"]] = relationship(
        back_populates="config",
        cascade="all, delete-orphan",
        order_by="ScheduleEntryModel.weekday",
    )

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "effective_on", name="uq_payroll_config_employee_effective",
        ),
        Index("idx_payroll_config_employee", "employee_id"),
    )

    def to_dto(self):
        from payroll_modules.employees.models import (
            AccrualMethod,
            EmployeeConfig,
            normalize_schedule,
        )
        return EmployeeConfig(
            id=self.id,
            employee_id=self.employee_id,
            effective_on=self.effective_on,
            base_semi_monthly_salary=self.base_semi_monthly_salary,
            monthly_attendance_bonus=self.monthly_attendance_bonus,
            quarterly_attendance_bonus=self.quarterly_attendance_bonus,
            kpi_bonus_default_amount=self.kpi_bonus_default_amount,
            kpi_bonus_enabled=self.kpi_bonus_enabled,
            pto_balance_hours=self.pto_balance_hours,
            non_pto_balance_hours=self.non_pto_balance_hours,
            accrual_enabled=self.accrual_enabled,
            accrual_method=AccrualMethod(self.accrual_method),
            accrual_hours_per_month=self.accrual_hours_per_month,
            notes=self.notes,
            schedule=normalize_schedule(e.to_dto() for e in self.schedule_entries),
        )


class ScheduleEntryModel(TrackedBase):
    """ORM model for one weekday of a config's schedule."""

    __tablename__ = "payroll_schedule_entries"

    config_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employee_configs.id"), nullable=False,
    )
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    start_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    end_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    expected_hours: Mapped[Decimal | None] = mapped_column(nullable=True)

    config: Mapped[EmployeeConfigModel] = relationship(back_populates="schedule_entries")

    __table_args__ = (
        UniqueConstraint("config_id", "weekday", name="uq_payroll_schedule_weekday"),
    )

    def to_dto(self):
        from payroll_engines.types import ScheduleEntry
        return ScheduleEntry(
            weekday=self.weekday,
            is_enabled=self.is_enabled,
            start_minutes=self.start_minutes,
            end_minutes=self.end_minutes,
            expected_hours=self.expected_hours,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "ScheduleEntryModel":
        return cls(
            weekday=dto.weekday,
            is_enabled=dto.is_enabled,
            start_minutes=dto.start_minutes,
            end_minutes=dto.end_minutes,
            expected_hours=dto.expected_hours,
            created_by_id=created_by_id,
        )
