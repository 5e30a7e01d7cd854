"""Subtask use cases."""

from app.application.use_cases.subtasks.subtask_operations import SubtaskService

__all__ = ["SubtaskService"]
