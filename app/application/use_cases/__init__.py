"""Application use cases: one entry point per workflow."""

from app.application.use_cases.subtasks import SubtaskService
from app.application.use_cases.tasks import TaskBulkOperationService, TaskService

__all__ = [
    "SubtaskService",
    "TaskBulkOperationService",
    "TaskService",
]
