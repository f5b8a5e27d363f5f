"""Timekeeping domain values (``payroll_modules.timekeeping.models``)."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class RequestStatus(Enum):
    """Time-off request review states. Only APPROVED requests reach the engine."""
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


@dataclass(frozen=True)
class WorkSession:
    """A recorded work session."""
    id: UUID
    employee_id: UUID
    started_at: datetime
    ended_at: datetime | None
    sample_count: int = 0
