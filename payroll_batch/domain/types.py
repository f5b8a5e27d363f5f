"""
Outcome records for scheduled payroll triggers.

A run is summarized from its item results: the counts and the run status
are derived, never stored separately, so they cannot disagree.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class BatchItemStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class BatchRunStatus(str, Enum):
    COMPLETED = "completed"
    PARTIALLY_COMPLETED = "partially_completed"
    FAILED = "failed"


@dataclass(frozen=True)
class BatchItemResult:
    """One employee (month-end) or one period (settlement)."""

    item_index: int
    item_key: str
    status: BatchItemStatus
    error_code: str | None = None
    error_message: str | None = None
    result_data: dict[str, Any] | None = None
    duration_ms: int = 0


@dataclass(frozen=True)
class BatchRunResult:
    run_id: UUID
    task_type: str
    item_results: tuple[BatchItemResult, ...]
    started_at: datetime
    completed_at: datetime
    duration_ms: int = 0

    def _count(self, status: BatchItemStatus) -> int:
        return sum(1 for r in self.item_results if r.status is status)

    @property
    def total_items(self) -> int:
        return len(self.item_results)

    @property
    def succeeded(self) -> int:
        return self._count(BatchItemStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(BatchItemStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(BatchItemStatus.SKIPPED)

    @property
    def status(self) -> BatchRunStatus:
        """FAILED only when nothing succeeded or was skipped; any failure makes it partial."""
        if not self.failed:
            return BatchRunStatus.COMPLETED
        if self.failed == self.total_items:
            return BatchRunStatus.FAILED
        return BatchRunStatus.PARTIALLY_COMPLETED

    @property
    def failed_keys(self) -> tuple[str, ...]:
        return tuple(
            r.item_key for r in self.item_results if r.status is BatchItemStatus.FAILED
        )
