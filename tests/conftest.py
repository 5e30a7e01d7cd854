"""Pytest configuration and fixtures for tasktrack.

Uses app.main:app for HTTP tests, a SQLite (aiosqlite) file database under
tmp_path for integration fixtures, and in-memory fakes for unit tests.
All imports use app.*.
"""

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from types import TracebackType
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.application.dtos.subtask import SubtaskResult
from app.application.dtos.task import TaskResult
from app.core.composition import TaskTrackerServices, build_services
from app.core.config import Settings
from app.domain.enums import TaskPriority, TaskStatus, TaskType
from app.infrastructure.persistence.database import (
    Base,
    create_engine_for_url,
    create_session_factory,
)
from app.infrastructure.persistence.models import User, Workspace
from app.infrastructure.persistence.unit_of_work import sqlalchemy_uow_factory
from app.main import app
from app.shared.context import RequestMetadata

_NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)


def make_task(**overrides) -> TaskResult:
    """TaskResult with sensible defaults for unit tests."""
    task = TaskResult(
        id="task-1",
        title="Write report",
        description=None,
        status=TaskStatus.NOT_STARTED,
        priority=TaskPriority.MEDIUM,
        task_type=TaskType.TASK,
        progress=0,
        parent_id=None,
        workspace_id="ws-1",
        owner_id="owner-1",
        assignee_id=None,
        sort_order=0,
        due_date=None,
        completed_at=None,
        is_recurring=False,
        recurrence_pattern=None,
        archived_at=None,
        created_at=_NOW,
        updated_at=_NOW,
    )
    return replace(task, **overrides)


def make_subtask(**overrides) -> SubtaskResult:
    """SubtaskResult with sensible defaults for unit tests."""
    subtask = SubtaskResult(
        id="sub-1",
        task_id="task-1",
        title="Draft outline",
        description=None,
        is_completed=False,
        completed_at=None,
        sort_order=0,
        created_at=_NOW,
        updated_at=_NOW,
    )
    return replace(subtask, **overrides)


def make_metadata(trace_id: str = "trace-1") -> RequestMetadata:
    return RequestMetadata(ip_address="10.0.0.1", user_agent="pytest", trace_id=trace_id)


class FakeUnitOfWork:
    """In-memory IUnitOfWork: AsyncMock repositories, records commit/rollback in `events`."""

    def __init__(self, events: list[str]) -> None:
        self.events = events
        self.tasks = AsyncMock()
        self.subtasks = AsyncMock()
        self.users = AsyncMock()
        self.activity_logs = AsyncMock()

    async def __aenter__(self) -> "FakeUnitOfWork":
        self.events.append("begin")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.events.append("commit" if exc_type is None else "rollback")


@pytest.fixture
def events() -> list[str]:
    """Ordered log of unit-of-work and publish events for ordering assertions."""
    return []


@pytest.fixture
def fake_uow(events: list[str]) -> FakeUnitOfWork:
    """One shared fake unit of work (every factory call returns it)."""
    return FakeUnitOfWork(events)


@pytest.fixture
def uow_factory_mock(fake_uow: FakeUnitOfWork):
    return lambda: fake_uow


@pytest.fixture
def publisher(events: list[str]) -> MagicMock:
    """Progress publisher mock that appends 'publish:<task_id>' to events."""
    mock = MagicMock()

    def _publish(signal) -> bool:
        events.append(f"publish:{signal.task_id}")
        return True

    mock.publish.side_effect = _publish
    return mock


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def engine(tmp_path):
    """SQLite engine on a file in tmp_path with all tables created."""
    db_engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'tasktrack.db'}")
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def uow_factory(session_factory):
    return sqlalchemy_uow_factory(session_factory)


@dataclass(frozen=True)
class SeedData:
    owner_id: str
    assignee_id: str
    outsider_id: str
    workspace_id: str
    other_workspace_id: str


@pytest.fixture
async def seed(session_factory) -> SeedData:
    """Three users and two workspaces owned by the first user."""
    async with session_factory() as session:
        owner = User(username="owner", email="owner@example.com")
        assignee = User(username="assignee", email="assignee@example.com")
        outsider = User(username="outsider", email="outsider@example.com")
        session.add_all([owner, assignee, outsider])
        await session.flush()
        workspace = Workspace(name="Main", owner_id=owner.id)
        other = Workspace(name="Side project", owner_id=owner.id)
        session.add_all([workspace, other])
        await session.commit()
        return SeedData(
            owner_id=owner.id,
            assignee_id=assignee.id,
            outsider_id=outsider.id,
            workspace_id=workspace.id,
            other_workspace_id=other.id,
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite://",
        progress_queue_maxsize=100,
        progress_workers=2,
    )


@pytest.fixture
async def services(settings: Settings, session_factory) -> TaskTrackerServices:
    """Fully wired services over the SQLite database with progress workers running."""
    wired = build_services(settings, session_factory)
    wired.channel.start()
    yield wired
    await wired.channel.stop()
