"""Task use cases: single-task operations and bulk operations."""

from app.application.use_cases.tasks.bulk_operations import TaskBulkOperationService
from app.application.use_cases.tasks.task_operations import TaskMutation, TaskService

__all__ = ["TaskBulkOperationService", "TaskMutation", "TaskService"]
