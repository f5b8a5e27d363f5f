"""Kernel services."""

from payroll_kernel.services.audit_service import AuditService
from payroll_kernel.services.base import BaseService
from payroll_kernel.services.sequence_service import SequenceService

__all__ = ["AuditService", "BaseService", "SequenceService"]
