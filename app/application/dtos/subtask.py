"""DTOs for subtasks (no dependency on ORM)."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SubtaskResult:
    """Subtask read-model."""

    id: str
    task_id: str
    title: str
    description: str | None
    is_completed: bool
    completed_at: datetime | None
    sort_order: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class SubtaskProgressCounts:
    """Live subtask totals for one task, as read by the progress aggregator."""

    total: int
    completed: int
