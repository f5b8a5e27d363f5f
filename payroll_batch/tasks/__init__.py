"""Batch task registry."""

from __future__ import annotations

from payroll_batch.tasks.base import TaskRegistry
from payroll_batch.tasks.payroll_tasks import MonthEndFinalizationTask, PeriodSettlementTask
from payroll_config import PayrollSettings
from payroll_kernel.domain.clock import Clock


def default_task_registry(
    clock: Clock | None = None,
    settings: PayrollSettings | None = None,
) -> TaskRegistry:
    """A fresh registry holding both payroll triggers."""
    registry = TaskRegistry()
    registry.register(MonthEndFinalizationTask(clock, settings))
    registry.register(PeriodSettlementTask(clock, settings))
    return registry


__all__ = [
    "MonthEndFinalizationTask",
    "PeriodSettlementTask",
    "default_task_registry",
]
