"""Persistence models: ORM entities and mixins."""

from app.infrastructure.persistence.models.activity_log import ActivityLog
from app.infrastructure.persistence.models.mixins import (
    CuidMixin,
    SoftDeleteMixin,
    SoftDeleteModel,
    TimestampMixin,
)
from app.infrastructure.persistence.models.subtask import Subtask
from app.infrastructure.persistence.models.task import Task
from app.infrastructure.persistence.models.user import User
from app.infrastructure.persistence.models.workspace import Workspace

__all__ = [
    "ActivityLog",
    "User",
    "Workspace",
    "Task",
    "Subtask",
    "CuidMixin",
    "TimestampMixin",
    "SoftDeleteMixin",
    "SoftDeleteModel",
]
