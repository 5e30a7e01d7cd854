"""Application DTOs: data transfer objects for use cases and repositories.

Frozen dataclasses; no ORM types cross the application boundary.
"""

from app.application.dtos.activity_log import ActivityLogEntryCreate, ActivityLogResult
from app.application.dtos.bulk import BulkItemFailure, BulkOperationResult
from app.application.dtos.progress import ProgressUpdateSignal
from app.application.dtos.subtask import SubtaskProgressCounts, SubtaskResult
from app.application.dtos.task import TaskCreate, TaskResult, TaskUpdate

__all__ = [
    "ActivityLogEntryCreate",
    "ActivityLogResult",
    "BulkItemFailure",
    "BulkOperationResult",
    "ProgressUpdateSignal",
    "SubtaskProgressCounts",
    "SubtaskResult",
    "TaskCreate",
    "TaskResult",
    "TaskUpdate",
]
