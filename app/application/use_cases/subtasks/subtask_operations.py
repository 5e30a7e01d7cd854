"""Subtask operations: create, update, toggle, reorder, delete.

Every change to a subtask's existence or completion publishes exactly one
ProgressUpdateSignal for the owning task, after the unit of work commits.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.application.dtos.progress import ProgressUpdateSignal
from app.application.dtos.subtask import SubtaskResult
from app.application.dtos.task import TaskResult
from app.application.services.activity_recorder import tracked
from app.domain.exceptions import ResourceNotFoundException, ValidationException
from app.domain.hierarchy import ensure_exact_permutation
from app.shared.enums import EntityType
from app.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from app.application.interfaces.services import (
        IProgressSignalPublisher,
        IUnitOfWork,
        UnitOfWorkFactory,
    )
    from app.application.services.activity_recorder import ActivityRecorder

logger = logging.getLogger(__name__)


def _require_title(title: str, field: str = "title") -> str:
    if title is None or not title.strip():
        raise ValidationException("Title must not be blank", field=field)
    return title.strip()


async def _require_task(uow: IUnitOfWork, task_id: str) -> TaskResult:
    # Row lock serializes sibling ordering changes for this task.
    task = await uow.tasks.get_live(task_id, for_update=True)
    if task is None:
        raise ResourceNotFoundException("task", task_id)
    return task


async def _require_subtask(uow: IUnitOfWork, subtask_id: str) -> SubtaskResult:
    subtask = await uow.subtasks.get_live(subtask_id)
    if subtask is None:
        raise ResourceNotFoundException("subtask", subtask_id)
    return subtask


class SubtaskService:
    """Task hierarchy manager for subtasks. Publishes progress signals; never calls the aggregator."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        publisher: IProgressSignalPublisher,
        activity_recorder: ActivityRecorder | None = None,
    ) -> None:
        self.uow_factory = uow_factory
        self.publisher = publisher
        self.activity_recorder = activity_recorder

    def _signal(self, task_id: str, reason: str) -> None:
        accepted = self.publisher.publish(ProgressUpdateSignal(task_id=task_id, reason=reason))
        if not accepted:
            logger.warning("Progress signal for task %s not accepted (%s)", task_id, reason)

    @tracked(EntityType.SUBTASK)
    async def create_subtask(
        self,
        task_id: str,
        title: str,
        description: str | None = None,
        sort_order: int | None = None,
    ) -> SubtaskResult:
        """Create a subtask at the end of the task's list, or at sort_order (0..n) shifting later ones.

        Raises:
            ResourceNotFoundException: Task is missing or soft-deleted.
            ValidationException: Blank title or sort_order outside 0..n.
        """
        clean_title = _require_title(title)
        async with self.uow_factory() as uow:
            await _require_task(uow, task_id)
            if sort_order is None:
                position = await uow.subtasks.next_sort_order(task_id)
            else:
                siblings = await uow.subtasks.list_live(task_id)
                if not 0 <= sort_order <= len(siblings):
                    raise ValidationException(
                        f"sort_order must be between 0 and {len(siblings)}",
                        field="sort_order",
                    )
                await uow.subtasks.shift_sort_orders(task_id, sort_order, 1)
                position = sort_order
            subtask = await uow.subtasks.create(task_id, clean_title, description, position)
        self._signal(task_id, "subtask_created")
        return subtask

    @tracked(EntityType.TASK)
    async def add_subtasks(self, task_id: str, titles: list[str]) -> list[SubtaskResult]:
        """Append several subtasks in one transaction; one signal for the batch."""
        if not titles:
            return []
        clean_titles = [_require_title(t, field="titles") for t in titles]
        created: list[SubtaskResult] = []
        async with self.uow_factory() as uow:
            await _require_task(uow, task_id)
            position = await uow.subtasks.next_sort_order(task_id)
            for offset, clean_title in enumerate(clean_titles):
                created.append(
                    await uow.subtasks.create(task_id, clean_title, None, position + offset)
                )
        self._signal(task_id, "subtasks_added")
        return created

    @tracked(EntityType.SUBTASK)
    async def update_subtask(
        self,
        subtask_id: str,
        title: str | None = None,
        description: str | None = None,
        is_completed: bool | None = None,
    ) -> SubtaskResult:
        """Partial update. Position changes go through reorder_subtasks.

        Publishes a signal only when the completion flag actually changes.
        """
        values: dict[str, object] = {}
        if title is not None:
            values["title"] = _require_title(title)
        if description is not None:
            values["description"] = description
        async with self.uow_factory() as uow:
            current = await _require_subtask(uow, subtask_id)
            completion_changed = is_completed is not None and is_completed != current.is_completed
            if completion_changed:
                values["is_completed"] = is_completed
                values["completed_at"] = utc_now() if is_completed else None
            if not values:
                return current
            updated = await uow.subtasks.update(subtask_id, **values)
        if completion_changed:
            self._signal(updated.task_id, "subtask_updated")
        return updated

    @tracked(EntityType.SUBTASK)
    async def toggle_subtask_completion(self, subtask_id: str) -> SubtaskResult:
        """Flip is_completed (maintaining completed_at) and publish a signal."""
        async with self.uow_factory() as uow:
            current = await _require_subtask(uow, subtask_id)
            completed = not current.is_completed
            updated = await uow.subtasks.update(
                subtask_id,
                is_completed=completed,
                completed_at=utc_now() if completed else None,
            )
        self._signal(updated.task_id, "subtask_toggled")
        return updated

    async def list_subtasks(self, task_id: str) -> list[SubtaskResult]:
        """Live subtasks ordered by sort position."""
        async with self.uow_factory() as uow:
            task = await uow.tasks.get_live(task_id)
            if task is None:
                raise ResourceNotFoundException("task", task_id)
            return await uow.subtasks.list_live(task_id)

    @tracked(EntityType.TASK)
    async def reorder_subtasks(self, task_id: str, ordered_ids: list[str]) -> list[SubtaskResult]:
        """Assign positions 0..n-1 in the given order.

        ordered_ids must be exactly the task's live subtask ids (no duplicates,
        omissions or foreign ids); otherwise nothing changes.

        Raises:
            ResourceNotFoundException: Task is missing or soft-deleted.
            ValidationException: Id set does not match.
        """
        async with self.uow_factory() as uow:
            await _require_task(uow, task_id)
            current = await uow.subtasks.list_live(task_id)
            ensure_exact_permutation([s.id for s in current], ordered_ids)
            await uow.subtasks.set_sort_orders(
                {subtask_id: position for position, subtask_id in enumerate(ordered_ids)}
            )
            return await uow.subtasks.list_live(task_id)

    @tracked(EntityType.SUBTASK)
    async def delete_subtask(self, subtask_id: str) -> None:
        """Soft-delete, close the gap in sibling positions, publish a signal."""
        async with self.uow_factory() as uow:
            current = await _require_subtask(uow, subtask_id)
            await _require_task(uow, current.task_id)
            await uow.subtasks.update(subtask_id, deleted_at=utc_now())
            remaining = await uow.subtasks.list_live(current.task_id)
            await uow.subtasks.set_sort_orders(
                {s.id: position for position, s in enumerate(remaining) if s.sort_order != position}
            )
        self._signal(current.task_id, "subtask_deleted")
