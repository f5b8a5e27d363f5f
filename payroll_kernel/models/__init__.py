"""Kernel ORM models."""

from payroll_kernel.models.audit_log import AuditEntry, AuditEvent, PayrollAuditLog
from payroll_kernel.models.sequence_counter import PayrollSequenceCounter

__all__ = ["AuditEntry", "AuditEvent", "PayrollAuditLog", "PayrollSequenceCounter"]
