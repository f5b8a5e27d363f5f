"""
PayrollSequenceCounter -- one row per named sequence.

The row is the only source of the next value; callers lock it with
``SELECT ... FOR UPDATE`` through ``SequenceService``.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import Base


class PayrollSequenceCounter(Base):
    """Last value handed out for one sequence."""

    __tablename__ = "payroll_sequence_counters"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    current_value: Mapped[int] = mapped_column(nullable=False, default=0)
