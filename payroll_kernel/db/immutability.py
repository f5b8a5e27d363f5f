"""
ORM-level append-only enforcement for the payroll audit log.

SQLAlchemy fires ``before_update`` / ``before_delete`` mapper events before
the SQL reaches the database.  The listeners registered here reject any
attempt to modify or remove a ``PayrollAuditLog`` row, so the audit trail
can only grow.

    session.flush()
         |
         v
    [before_update] --> _check_audit_log_update() --> AuditLogImmutableError
    [before_delete] --> _check_audit_log_delete() --> AuditLogImmutableError
"""

from sqlalchemy import event

from payroll_kernel.exceptions import AuditLogImmutableError
from payroll_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _check_audit_log_update(mapper, connection, target):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "PayrollAuditLog",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise AuditLogImmutableError(str(target.id), "UPDATE")


def _check_audit_log_delete(mapper, connection, target):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "PayrollAuditLog",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise AuditLogImmutableError(str(target.id), "DELETE")


def register_immutability_listeners() -> None:
    """Register the audit log listeners (idempotent)."""
    from payroll_kernel.models.audit_log import PayrollAuditLog

    if not event.contains(PayrollAuditLog, "before_update", _check_audit_log_update):
        event.listen(PayrollAuditLog, "before_update", _check_audit_log_update)
    if not event.contains(PayrollAuditLog, "before_delete", _check_audit_log_delete):
        event.listen(PayrollAuditLog, "before_delete", _check_audit_log_delete)


def unregister_immutability_listeners() -> None:
    """Remove the audit log listeners. FOR TESTING ONLY."""
    from payroll_kernel.models.audit_log import PayrollAuditLog

    for name, fn in (
        ("before_update", _check_audit_log_update),
        ("before_delete", _check_audit_log_delete),
    ):
        if event.contains(PayrollAuditLog, name, fn):
            event.remove(PayrollAuditLog, name, fn)
