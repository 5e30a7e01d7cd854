"""DTOs for bulk task operations (per-item success/failure)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from app.application.dtos.task import TaskResult


@dataclass(frozen=True)
class BulkItemFailure:
    """Why one task id in a bulk request was not applied."""

    task_id: str
    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BulkOperationResult:
    """Outcome of a bulk operation: updated tasks plus per-item failures.

    `succeeded` holds the task state after the operation for every applied id;
    `failed` holds one entry per id that was not applied.
    """

    succeeded: list[TaskResult]
    failed: list[BulkItemFailure]

    @property
    def succeeded_ids(self) -> list[str]:
        return [task.id for task in self.succeeded]

    @property
    def failed_ids(self) -> list[str]:
        return [failure.task_id for failure in self.failed]

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    def failure_for(self, task_id: str) -> BulkItemFailure | None:
        """Return the failure recorded for task_id, if any."""
        return next((f for f in self.failed if f.task_id == task_id), None)
