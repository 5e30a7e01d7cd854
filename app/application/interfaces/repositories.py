"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.application.dtos.activity_log import (
        ActivityLogEntryCreate,
        ActivityLogResult,
    )
    from app.application.dtos.subtask import SubtaskProgressCounts, SubtaskResult
    from app.application.dtos.task import TaskCreate, TaskResult


# Task repository interface
class ITaskRepository(Protocol):
    """Protocol for task persistence. 'Live' means not soft-deleted."""

    async def get_live(self, task_id: str, *, for_update: bool = False) -> TaskResult | None:
        """Return the live task, or None. for_update locks the row until commit."""

    async def create(self, data: TaskCreate, owner_id: str, sort_order: int) -> TaskResult:
        """Insert a task owned by owner_id at the given sibling position."""

    async def update(self, task_id: str, **values: Any) -> TaskResult:
        """Write the given column values and return the updated task."""

    async def get_ancestor_ids(self, task_id: str) -> list[str]:
        """Return parent, grandparent, ... ids of task_id (nearest first)."""

    async def list_live_children(self, parent_id: str) -> list[TaskResult]:
        """Return live child tasks of parent_id ordered by sort_order."""

    async def next_child_sort_order(self, parent_id: str | None, workspace_id: str) -> int:
        """Return the position after the last live sibling under parent_id (0 if none)."""


# Subtask repository interface
class ISubtaskRepository(Protocol):
    """Protocol for subtask persistence. A subtask is live if it and its task are not soft-deleted."""

    async def get_live(self, subtask_id: str) -> SubtaskResult | None:
        """Return the live subtask, or None."""

    async def list_live(self, task_id: str) -> list[SubtaskResult]:
        """Return live subtasks of task_id ordered by sort_order."""

    async def create(
        self,
        task_id: str,
        title: str,
        description: str | None,
        sort_order: int,
    ) -> SubtaskResult:
        """Insert a subtask (not completed) at sort_order."""

    async def update(self, subtask_id: str, **values: Any) -> SubtaskResult:
        """Write the given column values and return the updated subtask."""

    async def set_sort_orders(self, positions: dict[str, int]) -> None:
        """Assign sort_order per subtask id."""

    async def shift_sort_orders(self, task_id: str, from_position: int, delta: int) -> None:
        """Add delta to sort_order of live subtasks of task_id at or after from_position."""

    async def next_sort_order(self, task_id: str) -> int:
        """Return max live sort_order + 1 for task_id (0 if none)."""

    async def count_progress(self, task_id: str) -> SubtaskProgressCounts:
        """Return live subtask total and completed count for task_id."""


# Activity log repository interface
class IActivityLogRepository(Protocol):
    """Protocol for the append-only activity log."""

    async def create(self, entry: ActivityLogEntryCreate) -> ActivityLogResult:
        """Append one entry."""

    async def list_for_task(
        self, task_id: str, skip: int = 0, limit: int = 100
    ) -> list[ActivityLogResult]:
        """Return live entries referencing task_id, newest first."""

    async def soft_delete(self, log_id: str) -> bool:
        """Mark an entry deleted. Returns False if it does not exist or is already deleted."""


# User repository interface
class IUserRepository(Protocol):
    """Protocol for the user lookups the task services need."""

    async def exists(self, user_id: str) -> bool:
        """Return True if a user with this id exists."""
