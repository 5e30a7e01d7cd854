"""Domain enumerations for tasks.

Enums represent fixed sets of domain values (status, priority, hierarchy type).
"""

from enum import Enum


class TaskStatus(str, Enum):
    """Task lifecycle status.

    CANCELLED and ON_HOLD are set by people only; progress aggregation never
    moves a task out of them into IN_PROGRESS.
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid status values as strings."""
        return [status.value for status in cls]


class TaskPriority(str, Enum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid priority values as strings."""
        return [priority.value for priority in cls]


class TaskType(str, Enum):
    """Position of a task in the EPIC > STORY > TASK hierarchy."""

    EPIC = "epic"
    STORY = "story"
    TASK = "task"

    @property
    def level(self) -> int:
        """0 for EPIC, 1 for STORY, 2 for TASK (lower = higher in the tree)."""
        return _TASK_TYPE_LEVELS[self]

    def can_contain(self, child: "TaskType") -> bool:
        """True if a task of this type may be the parent of a task of type child."""
        return self.level < child.level

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid type values as strings."""
        return [task_type.value for task_type in cls]


_TASK_TYPE_LEVELS = {TaskType.EPIC: 0, TaskType.STORY: 1, TaskType.TASK: 2}
