"""Application interfaces (ports): repositories and collaborator services."""

from app.application.interfaces.repositories import (
    IActivityLogRepository,
    ISubtaskRepository,
    ITaskRepository,
    IUserRepository,
)
from app.application.interfaces.services import (
    ICurrentActorProvider,
    IProgressSignalChannel,
    IProgressSignalPublisher,
    IUnitOfWork,
    ProgressSignalHandler,
    UnitOfWorkFactory,
)

__all__ = [
    "IActivityLogRepository",
    "ICurrentActorProvider",
    "IProgressSignalChannel",
    "IProgressSignalPublisher",
    "ISubtaskRepository",
    "ITaskRepository",
    "IUnitOfWork",
    "IUserRepository",
    "ProgressSignalHandler",
    "UnitOfWorkFactory",
]
