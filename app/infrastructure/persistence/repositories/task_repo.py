"""Task repository. Live tasks are those with deleted_at IS NULL."""

from __future__ import annotations

from enum import Enum
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.task import TaskCreate, TaskResult
from app.domain.enums import TaskPriority, TaskStatus, TaskType
from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.persistence.models.task import Task
from app.shared.utils.datetime import ensure_utc


def _to_result(t: Task) -> TaskResult:
    """Map Task ORM to TaskResult DTO."""
    return TaskResult(
        id=t.id,
        title=t.title,
        description=t.description,
        status=TaskStatus(t.status),
        priority=TaskPriority(t.priority),
        task_type=TaskType(t.task_type),
        progress=t.progress,
        parent_id=t.parent_id,
        workspace_id=t.workspace_id,
        owner_id=t.owner_id,
        assignee_id=t.assignee_id,
        sort_order=t.sort_order,
        due_date=ensure_utc(t.due_date),
        completed_at=ensure_utc(t.completed_at),
        is_recurring=t.is_recurring,
        recurrence_pattern=t.recurrence_pattern,
        archived_at=ensure_utc(t.archived_at),
        created_at=ensure_utc(t.created_at),
        updated_at=ensure_utc(t.updated_at),
    )


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class TaskRepository:
    """Task repository. Implements ITaskRepository."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get_live_row(self, task_id: str, *, for_update: bool = False) -> Task | None:
        stmt = select(Task).where(Task.id == task_id, Task.live())
        if for_update:
            # Row lock until commit; SQLite ignores FOR UPDATE (writes are serialized there).
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_live(self, task_id: str, *, for_update: bool = False) -> TaskResult | None:
        """Return the live task or None."""
        row = await self._get_live_row(task_id, for_update=for_update)
        return _to_result(row) if row is not None else None

    async def create(self, data: TaskCreate, owner_id: str, sort_order: int) -> TaskResult:
        """Create a task and return the result DTO."""
        task = Task(
            title=data.title,
            description=data.description,
            status=data.status.value,
            priority=data.priority.value,
            task_type=data.task_type.value,
            progress=0,
            parent_id=data.parent_id,
            workspace_id=data.workspace_id,
            owner_id=owner_id,
            assignee_id=data.assignee_id,
            sort_order=sort_order,
            due_date=data.due_date,
            is_recurring=data.is_recurring,
            recurrence_pattern=data.recurrence_pattern,
        )
        self.db.add(task)
        await self.db.flush()
        await self.db.refresh(task)
        return _to_result(task)

    async def update(self, task_id: str, **values: Any) -> TaskResult:
        """Set the given columns on a live task and return the updated DTO."""
        task = await self._get_live_row(task_id)
        if task is None:
            raise ResourceNotFoundException("task", task_id)
        for key, value in values.items():
            setattr(task, key, _column_value(value))
        await self.db.flush()
        await self.db.refresh(task)
        return _to_result(task)

    async def get_ancestor_ids(self, task_id: str) -> list[str]:
        """Walk parent_id links upward; nearest ancestor first. Stops on a repeated id."""
        ancestors: list[str] = []
        seen = {task_id}
        current: str | None = task_id
        while current is not None:
            result = await self.db.execute(select(Task.parent_id).where(Task.id == current))
            parent_id = result.scalar_one_or_none()
            if parent_id is None or parent_id in seen:
                break
            ancestors.append(parent_id)
            seen.add(parent_id)
            current = parent_id
        return ancestors

    async def list_live_children(self, parent_id: str) -> list[TaskResult]:
        """Live child tasks of parent_id ordered by sort_order."""
        stmt = (
            select(Task)
            .where(Task.parent_id == parent_id, Task.live())
            .order_by(Task.sort_order, Task.created_at)
        )
        result = await self.db.execute(stmt)
        return [_to_result(t) for t in result.scalars().all()]

    async def next_child_sort_order(self, parent_id: str | None, workspace_id: str) -> int:
        """Position after the last live sibling (top-level siblings share the workspace)."""
        conditions = [Task.live()]
        if parent_id is None:
            conditions += [Task.parent_id.is_(None), Task.workspace_id == workspace_id]
        else:
            conditions.append(Task.parent_id == parent_id)
        result = await self.db.execute(select(func.max(Task.sort_order)).where(*conditions))
        current_max = result.scalar_one_or_none()
        return 0 if current_max is None else current_max + 1
