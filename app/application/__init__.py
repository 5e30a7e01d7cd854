"""Application layer: interfaces, services, use cases.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repositories, unit of work, channel).
"""

from app.application.interfaces import (
    IActivityLogRepository,
    ICurrentActorProvider,
    IProgressSignalChannel,
    IProgressSignalPublisher,
    ISubtaskRepository,
    ITaskRepository,
    IUnitOfWork,
    IUserRepository,
)
from app.application.services import ActivityRecorder, ProgressAggregator
from app.application.use_cases import SubtaskService, TaskBulkOperationService, TaskService

__all__ = [
    "ActivityRecorder",
    "IActivityLogRepository",
    "ICurrentActorProvider",
    "IProgressSignalChannel",
    "IProgressSignalPublisher",
    "ISubtaskRepository",
    "ITaskRepository",
    "IUnitOfWork",
    "IUserRepository",
    "ProgressAggregator",
    "SubtaskService",
    "TaskBulkOperationService",
    "TaskService",
]
