"""Derived progress and status of a task from its live subtasks.

Pure functions: given the counts read from storage and the task's current
state, return the state it should have. Recomputing from counts (never from
deltas) is what makes duplicate or reordered signals converge.
"""

from dataclasses import dataclass

from app.domain.enums import TaskStatus

# Statuses a person chose explicitly; aggregation never turns them into IN_PROGRESS.
MANUAL_HOLD_STATUSES = frozenset({TaskStatus.CANCELLED, TaskStatus.ON_HOLD})


@dataclass(frozen=True)
class DerivedProgress:
    """Target progress/status for a task after aggregation."""

    progress: int
    status: TaskStatus

    def differs_from(self, progress: int, status: TaskStatus) -> bool:
        """True if applying this result would change the task."""
        return self.progress != progress or self.status != status


def completion_percentage(completed: int, total: int) -> int:
    """round(100 * completed / total), halves rounded up, in integer arithmetic.

    Raises:
        ValueError: If total is not positive or completed is outside 0..total.
    """
    if total <= 0:
        raise ValueError("total must be positive")
    if not 0 <= completed <= total:
        raise ValueError("completed must be between 0 and total")
    return (200 * completed + total) // (2 * total)


def derive_progress(
    current_progress: int,
    current_status: TaskStatus,
    completed: int,
    total: int,
) -> DerivedProgress:
    """Return the progress and status a task should have given its subtask counts.

    - No live subtasks: progress and status are left as they are (manual values).
    - All live subtasks completed: COMPLETED.
    - Some completed: IN_PROGRESS, unless the task is CANCELLED or ON_HOLD.
    - None completed: status unchanged.
    """
    if total == 0:
        return DerivedProgress(progress=current_progress, status=current_status)
    progress = completion_percentage(completed, total)
    status = current_status
    if completed == total:
        status = TaskStatus.COMPLETED
    elif completed > 0 and current_status not in MANUAL_HOLD_STATUSES:
        status = TaskStatus.IN_PROGRESS
    return DerivedProgress(progress=progress, status=status)


def leaf_status_for_progress(progress: int, current_status: TaskStatus) -> TaskStatus:
    """Status implied by a manual progress edit on a task without subtasks.

    100 completes the task; any progress on a NOT_STARTED task starts it.
    """
    if progress == 100:
        return TaskStatus.COMPLETED
    if progress > 0 and current_status == TaskStatus.NOT_STARTED:
        return TaskStatus.IN_PROGRESS
    if progress < 100 and current_status == TaskStatus.COMPLETED:
        return TaskStatus.IN_PROGRESS
    return current_status
