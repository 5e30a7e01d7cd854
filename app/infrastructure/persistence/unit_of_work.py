"""SQLAlchemy unit of work: one session and one transaction per logical operation.

Commits on clean exit and rolls back otherwise. Driver errors are logged and
re-raised as PersistenceException so callers never see storage internals.
"""

from __future__ import annotations

import logging
from types import TracebackType

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.exceptions import PersistenceException
from app.infrastructure.persistence.repositories.activity_log_repo import (
    ActivityLogRepository,
)
from app.infrastructure.persistence.repositories.subtask_repo import SubtaskRepository
from app.infrastructure.persistence.repositories.task_repo import TaskRepository
from app.infrastructure.persistence.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork:
    """Implements IUnitOfWork. Not reentrant; create one per operation.

    Usage:
        async with SqlAlchemyUnitOfWork(session_factory) as uow:
            task = await uow.tasks.get_live(task_id, for_update=True)
            ...
        # committed here; publish signals / record audit after this point
    """

    tasks: TaskRepository
    subtasks: SubtaskRepository
    users: UserRepository
    activity_logs: ActivityLogRepository

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("Unit of work is not active; use 'async with'.")
        return self._session

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise RuntimeError("Unit of work is already active.")
        session = self._session_factory()
        self._session = session
        self.tasks = TaskRepository(session)
        self.subtasks = SubtaskRepository(session)
        self.users = UserRepository(session)
        self.activity_logs = ActivityLogRepository(session)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        session = self.session
        try:
            if exc_type is None:
                await session.commit()
            else:
                await session.rollback()
        except SQLAlchemyError as err:
            logger.error("Transaction failed at %s: %s", "commit" if exc is None else "rollback", err)
            raise PersistenceException() from err
        finally:
            await session.close()
            self._session = None
        if isinstance(exc, SQLAlchemyError):
            logger.error("Storage error inside unit of work: %s", exc)
            raise PersistenceException() from exc


def sqlalchemy_uow_factory(session_factory: async_sessionmaker[AsyncSession]):
    """Return a zero-argument UnitOfWorkFactory bound to session_factory."""

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory)

    return factory
