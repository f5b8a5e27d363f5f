"""
AuditService -- append-only audit log sink.

Responsibility:
    Writes one ``PayrollAuditLog`` row per mutating decision and reads the
    trail back for review.  Payloads are normalized to JSON-safe primitives
    (Decimal -> str, date/datetime -> ISO string, UUID -> str, Enum -> value)
    so that what is stored is exactly what a reviewer later reads.

Architecture position:
    Kernel > Services.  Called by every module service that mutates state,
    inside the caller's transaction (flush only).

Audit relevance:
    This IS the audit trail.  The immutability listeners make rows
    append-only at the ORM level.
"""

from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.audit_log import AuditEntry, AuditEvent, PayrollAuditLog
from payroll_kernel.services.base import BaseService
from payroll_kernel.services.sequence_service import SequenceService

logger = get_logger("services.audit")


def to_json_safe(value: Any) -> Any:
    """Recursively convert a payload into JSON-serializable primitives."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_safe(v) for v in value]
    return value


class AuditService(BaseService):
    """
    Append-only audit sink.

    Guarantees:
        - ``append()`` adds exactly one row and flushes it.
        - Rows are returned in recording order.
        - ``seq`` comes from the locked "audit_entry" counter, so two
          concurrent writers never share a value.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequences = SequenceService(session)

    def append(
        self,
        event: AuditEvent,
        entity_type: str,
        entity_id: str | UUID,
        payload: Mapping[str, Any] | None = None,
        actor_id: UUID | None = None,
    ) -> AuditEntry:
        row = PayrollAuditLog(
            actor_id=actor_id,
            entity_type=entity_type,
            entity_id=str(entity_id),
            event=event.value,
            payload=to_json_safe(dict(payload or {})),
            recorded_at=self._clock.now_utc(),
            seq=self._sequences.next_value(SequenceService.AUDIT_ENTRY),
        )
        self.session.add(row)
        self.session.flush()

        logger.info(
            "audit_entry_appended",
            extra={
                "audit_event": event.value,
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "actor_id": str(actor_id) if actor_id else None,
            },
        )
        return row.to_dto()

    def entries_for(self, entity_type: str, entity_id: str | UUID) -> list[AuditEntry]:
        """All entries for one entity, oldest first."""
        rows = self.session.execute(
            select(PayrollAuditLog)
            .where(
                PayrollAuditLog.entity_type == entity_type,
                PayrollAuditLog.entity_id == str(entity_id),
            )
            .order_by(PayrollAuditLog.seq)
        ).scalars()
        return [row.to_dto() for row in rows]

    def list_entries(self, event: AuditEvent | None = None) -> list[AuditEntry]:
        """All entries, optionally filtered by event kind, oldest first."""
        stmt = select(PayrollAuditLog)
        if event is not None:
            stmt = stmt.where(PayrollAuditLog.event == event.value)
        rows = self.session.execute(
            stmt.order_by(PayrollAuditLog.seq)
        ).scalars()
        return [row.to_dto() for row in rows]
