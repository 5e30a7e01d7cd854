"""Bulk task operations: one change applied to many tasks with per-item isolation.

Each task id runs in its own unit of work through TaskService.mutate, so an
item's change, its reconcile signal and its audit entry either all happen or
none do, and one item's failure never aborts the rest of the batch.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from app.application.dtos.bulk import BulkItemFailure, BulkOperationResult
from app.application.dtos.task import TaskResult
from app.application.use_cases.tasks.task_operations import (
    TaskMutation,
    TaskMutationFn,
    archival,
    assignment,
    priority_change,
    progress_change,
    reparenting,
    soft_deletion,
    status_change,
    type_conversion,
    validate_progress_value,
)
from app.domain.enums import TaskPriority, TaskStatus, TaskType
from app.domain.exceptions import TaskTrackerException, ValidationException
from app.shared.enums import EntityType
from app.shared.telemetry.tracing import add_span_attributes, traced
from app.shared.utils.serialization import to_snapshot

if TYPE_CHECKING:
    from app.application.services.activity_recorder import ActivityRecorder
    from app.application.use_cases.tasks.task_operations import TaskService

logger = logging.getLogger(__name__)


def _unique_ids(task_ids: Iterable[str]) -> list[str]:
    """Drop duplicates keeping first-seen order; reject an empty request."""
    ids = list(dict.fromkeys(task_ids or []))
    if not ids:
        raise ValidationException("At least one task id is required", field="task_ids")
    return ids


class TaskBulkOperationService:
    """Bulk operation coordinator. Results list applied tasks and per-item failures."""

    def __init__(
        self,
        task_service: TaskService,
        activity_recorder: ActivityRecorder | None = None,
    ) -> None:
        self.task_service = task_service
        self.activity_recorder = activity_recorder

    async def _run(
        self,
        operation: str,
        task_ids: Iterable[str],
        user_id: str,
        apply: TaskMutationFn,
    ) -> BulkOperationResult:
        ids = _unique_ids(task_ids)
        succeeded: list[TaskResult] = []
        failed: list[BulkItemFailure] = []
        for task_id in ids:
            try:
                mutation = await self.task_service.mutate(task_id, user_id, operation, apply)
            except TaskTrackerException as e:
                failed.append(
                    BulkItemFailure(
                        task_id=task_id,
                        error_code=e.error_code,
                        message=e.message,
                        details=dict(e.details),
                    )
                )
                continue
            except Exception:
                logger.exception("%s failed unexpectedly for task %s", operation, task_id)
                failed.append(
                    BulkItemFailure(
                        task_id=task_id,
                        error_code="INTERNAL_ERROR",
                        message="An unexpected error occurred",
                    )
                )
                continue
            succeeded.append(mutation.after)
            await self._record(operation, user_id, mutation)
        add_span_attributes(succeeded=len(succeeded), failed=len(failed))
        logger.info(
            "%s by %s: %d succeeded, %d failed",
            operation,
            user_id,
            len(succeeded),
            len(failed),
        )
        return BulkOperationResult(succeeded=succeeded, failed=failed)

    async def _record(self, operation: str, user_id: str, mutation: TaskMutation) -> None:
        if self.activity_recorder is None:
            return
        await self.activity_recorder.record_action(
            operation,
            entity_type=EntityType.TASK,
            entity_id=mutation.after.id,
            actor_id=user_id,
            task_id=mutation.after.id,
            workspace_id=mutation.after.workspace_id,
            old_values=to_snapshot(mutation.before),
            new_values=to_snapshot(mutation.after),
        )

    @traced("tasks.bulk.update_status")
    async def update_multiple_tasks_status(
        self, task_ids: list[str], user_id: str, status: TaskStatus
    ) -> BulkOperationResult:
        return await self._run(
            "update_multiple_tasks_status", task_ids, user_id, status_change(status)
        )

    @traced("tasks.bulk.update_progress")
    async def update_multiple_tasks_progress(
        self, task_ids: list[str], user_id: str, progress: int
    ) -> BulkOperationResult:
        validate_progress_value(progress)
        return await self._run(
            "update_multiple_tasks_progress", task_ids, user_id, progress_change(progress)
        )

    @traced("tasks.bulk.assign")
    async def assign_multiple_tasks(
        self, task_ids: list[str], user_id: str, assignee_id: str | None
    ) -> BulkOperationResult:
        return await self._run("assign_multiple_tasks", task_ids, user_id, assignment(assignee_id))

    @traced("tasks.bulk.update_priority")
    async def update_multiple_tasks_priority(
        self, task_ids: list[str], user_id: str, priority: TaskPriority
    ) -> BulkOperationResult:
        return await self._run(
            "update_multiple_tasks_priority", task_ids, user_id, priority_change(priority)
        )

    @traced("tasks.bulk.soft_delete")
    async def soft_delete_multiple_tasks(
        self, task_ids: list[str], user_id: str
    ) -> BulkOperationResult:
        """Soft-delete each task; succeeded lists the tasks as they were before deletion."""
        return await self._run("soft_delete_multiple_tasks", task_ids, user_id, soft_deletion())

    @traced("tasks.bulk.archive")
    async def archive_multiple_tasks(
        self, task_ids: list[str], user_id: str
    ) -> BulkOperationResult:
        return await self._run("archive_multiple_tasks", task_ids, user_id, archival())

    @traced("tasks.bulk.move")
    async def move_multiple_tasks_to_parent(
        self, task_ids: list[str], user_id: str, new_parent_id: str | None
    ) -> BulkOperationResult:
        """Re-parent each task; a task that would become its own ancestor fails alone."""
        return await self._run(
            "move_multiple_tasks_to_parent", task_ids, user_id, reparenting(new_parent_id)
        )

    @traced("tasks.bulk.convert_type")
    async def convert_multiple_tasks_type(
        self, task_ids: list[str], user_id: str, target_type: TaskType
    ) -> BulkOperationResult:
        return await self._run(
            "convert_multiple_tasks_type", task_ids, user_id, type_conversion(target_type)
        )
