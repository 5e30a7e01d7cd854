"""DTOs for tasks (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.domain.enums import TaskPriority, TaskStatus, TaskType


@dataclass(frozen=True)
class TaskResult:
    """Task read-model returned by repositories and task services."""

    id: str
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    task_type: TaskType
    progress: int
    parent_id: str | None
    workspace_id: str
    owner_id: str
    assignee_id: str | None
    sort_order: int
    due_date: datetime | None
    completed_at: datetime | None
    is_recurring: bool
    recurrence_pattern: dict[str, Any] | None
    archived_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None


@dataclass(frozen=True)
class TaskCreate:
    """Input for creating a task."""

    title: str
    workspace_id: str
    description: str | None = None
    status: TaskStatus = TaskStatus.NOT_STARTED
    priority: TaskPriority = TaskPriority.MEDIUM
    task_type: TaskType = TaskType.TASK
    parent_id: str | None = None
    assignee_id: str | None = None
    due_date: datetime | None = None
    is_recurring: bool = False
    recurrence_pattern: dict[str, Any] | None = None


@dataclass(frozen=True)
class TaskUpdate:
    """Partial update of descriptive task fields. None means 'leave unchanged'.

    Status, priority, progress, assignee, parent and type have dedicated
    operations with their own rules.
    """

    title: str | None = None
    description: str | None = None
    due_date: datetime | None = None
    is_recurring: bool | None = None
    recurrence_pattern: dict[str, Any] | None = None

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were provided."""
        return {k: v for k, v in self.__dict__.items() if v is not None}

