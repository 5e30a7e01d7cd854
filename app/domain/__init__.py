"""Domain layer: enums, exceptions, and pure task rules.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.enums import TaskPriority, TaskStatus, TaskType
from app.domain.exceptions import (
    AuthorizationException,
    BusinessRuleException,
    PersistenceException,
    ResourceNotFoundException,
    TaskTrackerException,
    ValidationException,
)
from app.domain.progress import DerivedProgress, completion_percentage, derive_progress

__all__ = [
    # Enums
    "TaskPriority",
    "TaskStatus",
    "TaskType",
    # Exceptions
    "AuthorizationException",
    "BusinessRuleException",
    "PersistenceException",
    "ResourceNotFoundException",
    "TaskTrackerException",
    "ValidationException",
    # Progress rules
    "DerivedProgress",
    "completion_percentage",
    "derive_progress",
]
