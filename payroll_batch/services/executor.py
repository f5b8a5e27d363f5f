"""
Runs one payroll trigger with a SAVEPOINT around every item.

A failing employee (or period) is rolled back to its own SAVEPOINT and
reported; the other items keep their writes.  Skipped items are rolled back
too, since a skip means "nothing should change".  The executor flushes
through the caller's session and never commits; runs are returned and
logged, not stored.  Re-running a trigger is the retry mechanism, which works
because every payroll item is idempotent.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from payroll_batch.domain.types import BatchItemResult, BatchItemStatus, BatchRunResult
from payroll_batch.tasks.base import BatchItemInput, BatchTask, BatchTaskResult, TaskRegistry
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.exceptions import TaskNotRegisteredError
from payroll_kernel.logging_config import LogContext, get_logger

logger = get_logger("batch.executor")

UNHANDLED = "UNHANDLED_EXCEPTION"


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class BatchExecutor:

    def __init__(
        self,
        session: Session,
        task_registry: TaskRegistry,
        clock: Clock | None = None,
    ):
        self._session = session
        self._task_registry = task_registry
        self._clock = clock or SystemClock()

    def run(
        self,
        task_type: str,
        parameters: dict[str, Any] | None = None,
        actor_id: UUID | None = None,
    ) -> BatchRunResult:
        """
        Prepare and execute every item of ``task_type``.

        Raises:
            TaskNotRegisteredError: unknown trigger name.
            Whatever ``prepare_items`` raises; nothing has been written then.
        """
        if task_type not in self._task_registry:
            raise TaskNotRegisteredError(task_type, list(self._task_registry.list_tasks()))
        task = self._task_registry.get(task_type)

        params = dict(parameters or {})
        if actor_id is not None:
            params.setdefault("actor_id", str(actor_id))

        run_id = uuid4()
        as_of = self._clock.now_utc()
        started = time.monotonic()

        with LogContext.bind(job_id=run_id, actor_id=actor_id):
            items = task.prepare_items(parameters=params, session=self._session, as_of=as_of)
            logger.info("batch_run_started", extra={"task_type": task_type, "total_items": len(items)})

            result = BatchRunResult(
                run_id=run_id,
                task_type=task_type,
                item_results=tuple(self._run_item(task, item, params, as_of) for item in items),
                started_at=as_of,
                completed_at=self._clock.now_utc(),
                duration_ms=_elapsed_ms(started),
            )
            logger.info(
                "batch_run_completed",
                extra={
                    "task_type": task_type,
                    "status": result.status.value,
                    "succeeded": result.succeeded,
                    "failed": result.failed,
                    "skipped": result.skipped,
                    "duration_ms": result.duration_ms,
                },
            )
        return result

    def _run_item(
        self,
        task: BatchTask,
        item: BatchItemInput,
        parameters: dict[str, Any],
        as_of: datetime,
    ) -> BatchItemResult:
        started = time.monotonic()
        savepoint = self._session.begin_nested()
        try:
            outcome = task.execute_item(
                item=item, parameters=parameters, session=self._session, as_of=as_of,
            )
        except Exception as exc:
            savepoint.rollback()
            logger.error(
                "batch_item_failed",
                extra={"item_key": item.item_key, "error_code": UNHANDLED, "error_message": str(exc)},
                exc_info=True,
            )
            outcome = BatchTaskResult(
                status=BatchItemStatus.FAILED, error_code=UNHANDLED, error_message=str(exc),
            )
        else:
            if outcome.status is BatchItemStatus.SUCCEEDED:
                savepoint.commit()
            else:
                savepoint.rollback()
                failed = outcome.status is BatchItemStatus.FAILED
                (logger.warning if failed else logger.info)(
                    "batch_item_failed" if failed else "batch_item_skipped",
                    extra={
                        "item_key": item.item_key,
                        "error_code": outcome.error_code,
                        "error_message": outcome.error_message,
                    },
                )

        return BatchItemResult(
            item_index=item.item_index,
            item_key=item.item_key,
            status=outcome.status,
            error_code=outcome.error_code,
            error_message=outcome.error_message,
            result_data=outcome.result_data,
            duration_ms=_elapsed_ms(started),
        )
