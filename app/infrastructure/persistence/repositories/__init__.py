"""Persistence repositories: SQLAlchemy implementations of the application ports."""

from app.infrastructure.persistence.repositories.activity_log_repo import (
    ActivityLogRepository,
)
from app.infrastructure.persistence.repositories.subtask_repo import SubtaskRepository
from app.infrastructure.persistence.repositories.task_repo import TaskRepository
from app.infrastructure.persistence.repositories.user_repo import UserRepository

__all__ = [
    "ActivityLogRepository",
    "SubtaskRepository",
    "TaskRepository",
    "UserRepository",
]
