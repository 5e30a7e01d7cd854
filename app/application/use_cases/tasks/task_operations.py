"""Task operations: create, update, status/progress/priority, assignment, lifecycle, hierarchy.

Each mutation runs in its own unit of work: load the task with a row lock,
check that the acting user may modify it (owner or assignee), apply the
change, commit. Changes that can disagree with subtask-derived progress
publish a reconcile signal after the commit.

The apply_* functions hold the per-operation rules and are shared with the
bulk coordinator, which runs them once per task id.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from app.application.dtos.progress import ProgressUpdateSignal
from app.application.dtos.task import TaskCreate, TaskResult, TaskUpdate
from app.application.services.activity_recorder import tracked
from app.domain.enums import TaskPriority, TaskStatus, TaskType
from app.domain.exceptions import (
    AuthorizationException,
    BusinessRuleException,
    ResourceNotFoundException,
    ValidationException,
)
from app.domain.hierarchy import (
    ensure_no_cycle,
    ensure_parent_can_contain,
    ensure_type_conversion,
)
from app.domain.progress import leaf_status_for_progress
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


@dataclass(frozen=True)
class TaskMutation:
    """Before/after state of one applied task change."""

    before: TaskResult
    after: TaskResult
    # True when subtask-derived progress must be recomputed after commit.
    reconcile: bool = False


TaskMutationFn = Callable[["IUnitOfWork", TaskResult], Awaitable[TaskMutation]]


def ensure_can_modify(task: TaskResult, user_id: str, action: str) -> None:
    """Only the task's owner or its assignee may modify it."""
    if not user_id:
        raise ValidationException("Acting user id is required", field="user_id")
    if user_id not in (task.owner_id, task.assignee_id):
        raise AuthorizationException(resource="task", action=action)


def validate_progress_value(progress: int) -> int:
    if isinstance(progress, bool) or not isinstance(progress, int) or not 0 <= progress <= 100:
        raise ValidationException(
            "Progress must be an integer between 0 and 100",
            field="progress",
            details={"value": progress},
        )
    return progress


def _require_title(title: str | None) -> str:
    if title is None or not title.strip():
        raise ValidationException("Title must not be blank", field="title")
    return title.strip()


def _completion_fields(before: TaskStatus, after: TaskStatus) -> dict[str, Any]:
    if after == TaskStatus.COMPLETED and before != TaskStatus.COMPLETED:
        return {"completed_at": utc_now()}
    if after != TaskStatus.COMPLETED and before == TaskStatus.COMPLETED:
        return {"completed_at": None}
    return {}


async def _has_live_subtasks(uow: IUnitOfWork, task_id: str) -> bool:
    counts = await uow.subtasks.count_progress(task_id)
    return counts.total > 0


async def _require_live_parent(uow: IUnitOfWork, parent_id: str, workspace_id: str) -> TaskResult:
    parent = await uow.tasks.get_live(parent_id)
    if parent is None:
        raise ResourceNotFoundException("task", parent_id)
    if parent.workspace_id != workspace_id:
        raise ValidationException(
            "Parent task must belong to the same workspace",
            field="parent_id",
            details={"parent_id": parent_id, "workspace_id": workspace_id},
        )
    return parent


def status_change(status: TaskStatus) -> TaskMutationFn:
    """COMPLETED on a leaf task also sets progress to 100; leaving COMPLETED clears completed_at."""

    async def apply(uow: IUnitOfWork, task: TaskResult) -> TaskMutation:
        has_subtasks = await _has_live_subtasks(uow, task.id)
        values: dict[str, Any] = {"status": status, **_completion_fields(task.status, status)}
        if status == TaskStatus.COMPLETED and not has_subtasks:
            values["progress"] = 100
        after = await uow.tasks.update(task.id, **values)
        return TaskMutation(before=task, after=after, reconcile=has_subtasks)

    return apply


def progress_change(progress: int) -> TaskMutationFn:
    """Manual progress, leaf tasks only; status follows the leaf rules."""

    async def apply(uow: IUnitOfWork, task: TaskResult) -> TaskMutation:
        if await _has_live_subtasks(uow, task.id):
            raise BusinessRuleException(
                "Progress is derived from subtasks and cannot be set directly",
                rule="progress_derived_from_subtasks",
                details={"task_id": task.id},
            )
        status = leaf_status_for_progress(progress, task.status)
        after = await uow.tasks.update(
            task.id,
            progress=progress,
            status=status,
            **_completion_fields(task.status, status),
        )
        return TaskMutation(before=task, after=after)

    return apply


def priority_change(priority: TaskPriority) -> TaskMutationFn:
    async def apply(uow: IUnitOfWork, task: TaskResult) -> TaskMutation:
        after = await uow.tasks.update(task.id, priority=priority)
        return TaskMutation(before=task, after=after)

    return apply


def assignment(assignee_id: str | None) -> TaskMutationFn:
    """Assign to an existing user, or unassign with None."""

    async def apply(uow: IUnitOfWork, task: TaskResult) -> TaskMutation:
        if assignee_id is not None and not await uow.users.exists(assignee_id):
            raise ResourceNotFoundException("user", assignee_id)
        after = await uow.tasks.update(task.id, assignee_id=assignee_id)
        return TaskMutation(before=task, after=after)

    return apply


def soft_deletion() -> TaskMutationFn:
    """Mark deleted; its subtasks stop being live with it."""

    async def apply(uow: IUnitOfWork, task: TaskResult) -> TaskMutation:
        await uow.tasks.update(task.id, deleted_at=utc_now())
        return TaskMutation(before=task, after=task)

    return apply


def archival() -> TaskMutationFn:
    async def apply(uow: IUnitOfWork, task: TaskResult) -> TaskMutation:
        if task.is_archived:
            raise ValidationException(
                "Task is already archived", field="archived_at", details={"task_id": task.id}
            )
        after = await uow.tasks.update(task.id, archived_at=utc_now())
        return TaskMutation(before=task, after=after)

    return apply


def reparenting(new_parent_id: str | None) -> TaskMutationFn:
    """Move under new_parent_id (or to the top level with None), appended after its new siblings.

    The parent must be live, in the same workspace, not the task itself or one
    of its descendants, and of a type that can contain the task's type.
    """

    async def apply(uow: IUnitOfWork, task: TaskResult) -> TaskMutation:
        if new_parent_id is not None:
            parent = await _require_live_parent(uow, new_parent_id, task.workspace_id)
            ancestors = await uow.tasks.get_ancestor_ids(new_parent_id)
            ensure_no_cycle(task.id, new_parent_id, ancestors)
            ensure_parent_can_contain(parent.task_type, task.task_type)
        if task.parent_id == new_parent_id:
            return TaskMutation(before=task, after=task)
        sort_order = await uow.tasks.next_child_sort_order(new_parent_id, task.workspace_id)
        after = await uow.tasks.update(task.id, parent_id=new_parent_id, sort_order=sort_order)
        return TaskMutation(before=task, after=after)

    return apply


def type_conversion(target_type: TaskType) -> TaskMutationFn:
    """The current parent must accept target_type and target_type must accept every live child."""

    async def apply(uow: IUnitOfWork, task: TaskResult) -> TaskMutation:
        parent_type: TaskType | None = None
        if task.parent_id is not None:
            parent = await uow.tasks.get_live(task.parent_id)
            parent_type = parent.task_type if parent is not None else None
        children = await uow.tasks.list_live_children(task.id)
        ensure_type_conversion(target_type, parent_type, [c.task_type for c in children])
        if task.task_type == target_type:
            return TaskMutation(before=task, after=task)
        after = await uow.tasks.update(task.id, task_type=target_type)
        return TaskMutation(before=task, after=after)

    return apply


class TaskService:
    """Task hierarchy manager for tasks. Every mutation is authorized and audited."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        publisher: IProgressSignalPublisher,
        activity_recorder: ActivityRecorder | None = None,
    ) -> None:
        self.uow_factory = uow_factory
        self.publisher = publisher
        self.activity_recorder = activity_recorder

    async def mutate(
        self,
        task_id: str,
        user_id: str,
        action: str,
        apply: TaskMutationFn,
    ) -> TaskMutation:
        """Run one task change in its own unit of work; publish a reconcile signal after commit.

        Raises:
            ResourceNotFoundException: Task is missing or soft-deleted.
            AuthorizationException: user_id is neither owner nor assignee.
            ValidationException, BusinessRuleException: From apply.
            PersistenceException: Storage failed.
        """
        async with self.uow_factory() as uow:
            task = await uow.tasks.get_live(task_id, for_update=True)
            if task is None:
                raise ResourceNotFoundException("task", task_id)
            ensure_can_modify(task, user_id, action)
            mutation = await apply(uow, task)
        if mutation.reconcile:
            accepted = self.publisher.publish(ProgressUpdateSignal(task_id=task_id, reason=action))
            if not accepted:
                logger.warning("Progress signal for task %s not accepted (%s)", task_id, action)
        return mutation

    @tracked(EntityType.TASK)
    async def create_task(self, user_id: str, data: TaskCreate) -> TaskResult:
        """Create a task owned by user_id, appended after its siblings.

        Raises:
            ValidationException: Blank title, parent in another workspace or of a type
                that cannot contain data.task_type.
            ResourceNotFoundException: Owner, parent or assignee does not exist.
        """
        title = _require_title(data.title)
        async with self.uow_factory() as uow:
            if not await uow.users.exists(user_id):
                raise ResourceNotFoundException("user", user_id)
            if data.parent_id is not None:
                parent = await _require_live_parent(uow, data.parent_id, data.workspace_id)
                ensure_parent_can_contain(parent.task_type, data.task_type)
            if data.assignee_id is not None and not await uow.users.exists(data.assignee_id):
                raise ResourceNotFoundException("user", data.assignee_id)
            sort_order = await uow.tasks.next_child_sort_order(data.parent_id, data.workspace_id)
            created = await uow.tasks.create(
                replace(data, title=title), user_id, sort_order
            )
            if created.status == TaskStatus.COMPLETED:
                created = await uow.tasks.update(
                    created.id, progress=100, completed_at=utc_now()
                )
        logger.info("Task %s created by %s", created.id, user_id)
        return created

    async def get_task(self, task_id: str) -> TaskResult:
        """Return the live task or raise ResourceNotFoundException."""
        async with self.uow_factory() as uow:
            task = await uow.tasks.get_live(task_id)
        if task is None:
            raise ResourceNotFoundException("task", task_id)
        return task

    @tracked(EntityType.TASK)
    async def update_task(self, task_id: str, user_id: str, changes: TaskUpdate) -> TaskResult:
        """Update descriptive fields (title, description, due date, recurrence)."""
        values = changes.changes()
        if "title" in values:
            values["title"] = _require_title(values["title"])

        async def apply(uow: IUnitOfWork, task: TaskResult) -> TaskMutation:
            if not values:
                return TaskMutation(before=task, after=task)
            return TaskMutation(before=task, after=await uow.tasks.update(task.id, **values))

        return (await self.mutate(task_id, user_id, "update_task", apply)).after

    @tracked(EntityType.TASK)
    async def update_progress(self, task_id: str, user_id: str, progress: int) -> TaskResult:
        """Set progress on a task without live subtasks (BusinessRuleException otherwise)."""
        validate_progress_value(progress)
        mutation = await self.mutate(task_id, user_id, "update_progress", progress_change(progress))
        return mutation.after

    @tracked(EntityType.TASK)
    async def change_status(self, task_id: str, user_id: str, status: TaskStatus) -> TaskResult:
        mutation = await self.mutate(task_id, user_id, "change_status", status_change(status))
        return mutation.after

    @tracked(EntityType.TASK)
    async def change_priority(
        self, task_id: str, user_id: str, priority: TaskPriority
    ) -> TaskResult:
        mutation = await self.mutate(task_id, user_id, "change_priority", priority_change(priority))
        return mutation.after

    @tracked(EntityType.TASK)
    async def assign_task(self, task_id: str, user_id: str, assignee_id: str | None) -> TaskResult:
        mutation = await self.mutate(task_id, user_id, "assign_task", assignment(assignee_id))
        return mutation.after

    @tracked(EntityType.TASK)
    async def soft_delete_task(self, task_id: str, user_id: str) -> TaskResult:
        """Soft-delete; returns the task as it was before deletion."""
        mutation = await self.mutate(task_id, user_id, "soft_delete_task", soft_deletion())
        return mutation.after

    @tracked(EntityType.TASK)
    async def archive_task(self, task_id: str, user_id: str) -> TaskResult:
        mutation = await self.mutate(task_id, user_id, "archive_task", archival())
        return mutation.after

    @tracked(EntityType.TASK)
    async def move_task(self, task_id: str, user_id: str, new_parent_id: str | None) -> TaskResult:
        mutation = await self.mutate(task_id, user_id, "move_task", reparenting(new_parent_id))
        return mutation.after

    @tracked(EntityType.TASK)
    async def convert_task_type(
        self, task_id: str, user_id: str, target_type: TaskType
    ) -> TaskResult:
        mutation = await self.mutate(
            task_id, user_id, "convert_task_type", type_conversion(target_type)
        )
        return mutation.after
