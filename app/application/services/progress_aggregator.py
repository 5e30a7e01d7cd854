"""Progress aggregator: derives a task's progress and status from its live subtasks.

Subscribed to the progress channel. Every signal triggers a full re-read of
the task's subtask counts (never a delta), so duplicate, stale or reordered
signals converge on the same state. Recomputation for one task id is
serialized in-process with an asyncio.Lock and across processes by the row
lock taken when the task is loaded.
"""

from __future__ import annotations

import asyncio
import logging
import weakref

from app.application.dtos.progress import ProgressUpdateSignal
from app.application.dtos.task import TaskResult
from app.application.interfaces.services import UnitOfWorkFactory
from app.domain.enums import TaskStatus
from app.domain.progress import derive_progress
from app.shared.telemetry.tracing import add_span_attributes, traced
from app.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class ProgressAggregator:
    """Recomputes parent task progress/status on ProgressUpdateSignal."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory
        # Entries disappear once no recomputation holds or waits on the lock.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, task_id: str) -> asyncio.Lock:
        lock = self._locks.get(task_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[task_id] = lock
        return lock

    async def handle(self, signal: ProgressUpdateSignal) -> None:
        """Channel handler. Never raises: failures are logged, the emitter is long gone."""
        try:
            await self.recompute(signal.task_id, reason=signal.reason)
        except Exception:
            logger.exception(
                "Progress recomputation failed for task %s (%s)", signal.task_id, signal.reason
            )

    @traced("progress.recompute")
    async def recompute(self, task_id: str, reason: str = "manual") -> TaskResult | None:
        """Re-derive progress/status for task_id from its live subtasks.

        Returns the task after recomputation, or None when the task no longer
        exists (stale signal). Leaves the task untouched when it has no live
        subtasks or is already consistent.

        Raises:
            PersistenceException: Storage failed while reading or writing.
        """
        lock = self._lock_for(task_id)
        async with lock:
            async with self._uow_factory() as uow:
                task = await uow.tasks.get_live(task_id, for_update=True)
                if task is None:
                    logger.info("Ignoring progress signal for missing task %s (%s)", task_id, reason)
                    return None
                counts = await uow.subtasks.count_progress(task_id)
                derived = derive_progress(task.progress, task.status, counts.completed, counts.total)
                add_span_attributes(
                    subtasks_total=counts.total,
                    subtasks_completed=counts.completed,
                    progress=derived.progress,
                )
                if not derived.differs_from(task.progress, task.status):
                    return task
                values: dict[str, object] = {
                    "progress": derived.progress,
                    "status": derived.status,
                }
                if derived.status != task.status:
                    if derived.status == TaskStatus.COMPLETED:
                        values["completed_at"] = utc_now()
                    elif task.status == TaskStatus.COMPLETED:
                        values["completed_at"] = None
                updated = await uow.tasks.update(task_id, **values)
            logger.info(
                "Task %s progress %d%% -> %d%%, status %s -> %s (%s)",
                task_id,
                task.progress,
                updated.progress,
                task.status.value,
                updated.status.value,
                reason,
            )
            return updated
