"""Service interfaces (ports) for the application layer.

Protocols define contracts for collaborators the task services consume:
transactions, the progress signal channel and the identity provider.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.application.dtos.progress import ProgressUpdateSignal
    from app.application.interfaces.repositories import (
        IActivityLogRepository,
        ISubtaskRepository,
        ITaskRepository,
        IUserRepository,
    )


class IUnitOfWork(Protocol):
    """One transaction over the repositories.

    Commits when the `async with` block exits normally, rolls back otherwise.
    Anything that must only happen after a durable write (signals, audit)
    runs after the block.
    """

    tasks: ITaskRepository
    subtasks: ISubtaskRepository
    users: IUserRepository
    activity_logs: IActivityLogRepository

    async def __aenter__(self) -> IUnitOfWork: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...


UnitOfWorkFactory = Callable[[], IUnitOfWork]

ProgressSignalHandler = Callable[["ProgressUpdateSignal"], Awaitable[None]]


class IProgressSignalPublisher(Protocol):
    """Publishing side of the progress channel (used by the hierarchy manager)."""

    def publish(self, signal: ProgressUpdateSignal) -> bool:
        """Queue a signal without waiting for it to be handled. False if it was dropped."""


class IProgressSignalChannel(IProgressSignalPublisher, Protocol):
    """Full channel: publish plus handler registration (used at wiring time)."""

    def subscribe(self, handler: ProgressSignalHandler) -> None:
        """Register a coroutine handler called for every delivered signal."""


class ICurrentActorProvider(Protocol):
    """Identity collaborator: who is performing the current request."""

    def get_current_actor_id(self) -> str | None:
        """Return the authenticated user id, or None."""
