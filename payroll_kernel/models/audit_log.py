"""
PayrollAuditLog -- append-only decision trail.

Every mutating decision in attendance, bonus and settlement processing writes
exactly one row here in the same transaction as the mutation itself.  Rows are
never updated or deleted (see ``payroll_kernel.db.immutability``).

``entity_id`` is a string because some entities are identified by a natural
key rather than a UUID (attendance facts use ``<employee_id>:<month-start>``).
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import Base


class AuditEvent(str, Enum):
    """Kinds of audited decisions."""

    CONFIG_UPDATED = "config_updated"
    HOLIDAY_UPDATED = "holiday_updated"
    ATTENDANCE_RECALC = "attendance_recalc"
    ATTENDANCE_REVIEW = "attendance_review"
    BONUS_DECISION = "bonus_decision"
    PAYROLL_STATUS_CHANGED = "payroll_status_changed"


@dataclass(frozen=True)
class AuditEntry:
    """Immutable view of one audit row."""

    id: UUID
    actor_id: UUID | None
    entity_type: str
    entity_id: str
    event: AuditEvent
    payload: dict[str, Any]
    recorded_at: datetime
    seq: int


class PayrollAuditLog(Base):
    """ORM row for one audited decision."""

    __tablename__ = "payroll_audit_logs"

    actor_id: Mapped[UUID | None] = mapped_column(nullable=True)
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(100), nullable=False)
    event: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    recorded_at: Mapped[datetime] = mapped_column(nullable=False)
    # Allocated from the "audit_entry" counter; orders entries that share a timestamp.
    seq: Mapped[int] = mapped_column(nullable=False, unique=True)

    __table_args__ = (
        Index("idx_payroll_audit_entity", "entity_type", "entity_id"),
        Index("idx_payroll_audit_event", "event"),
        Index("idx_payroll_audit_recorded_at", "recorded_at"),
    )

    def to_dto(self) -> AuditEntry:
        return AuditEntry(
            id=self.id,
            actor_id=self.actor_id,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            event=AuditEvent(self.event),
            payload=dict(self.payload or {}),
            recorded_at=self.recorded_at,
            seq=self.seq,
        )

    def __repr__(self) -> str:
        return f"<PayrollAuditLog {self.event} {self.entity_type}:{self.entity_id}>"
