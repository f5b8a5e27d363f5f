"""
Scheduled payroll triggers.

``payroll.month_end_finalization`` closes the previous month for every active
employee; ``payroll.period_settlement`` recalculates the open pay period.
Both run through ``BatchExecutor``.
"""

from payroll_batch.domain.types import (
    BatchItemResult,
    BatchItemStatus,
    BatchRunResult,
    BatchRunStatus,
)
from payroll_batch.services.executor import BatchExecutor
from payroll_batch.tasks import default_task_registry
from payroll_batch.tasks.base import BatchItemInput, BatchTask, BatchTaskResult, TaskRegistry

__all__ = [
    "BatchExecutor",
    "BatchItemInput",
    "BatchItemResult",
    "BatchItemStatus",
    "BatchRunResult",
    "BatchRunStatus",
    "BatchTask",
    "BatchTaskResult",
    "TaskRegistry",
    "default_task_registry",
]
