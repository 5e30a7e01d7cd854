"""Activity log storage: append-only rows, soft delete only, newest-first listing."""

import pytest

from app.application.dtos.activity_log import ActivityLogEntryCreate
from app.application.dtos.task import TaskCreate
from app.domain.exceptions import PersistenceException
from app.infrastructure.persistence.models import ActivityLog
from app.shared.enums import ActionType


def _entry(seed, task_id: str | None, action: ActionType = ActionType.UPDATE) -> ActivityLogEntryCreate:
    return ActivityLogEntryCreate(
        user_id=seed.owner_id,
        action=action,
        entity_type="task",
        entity_id=task_id,
        task_id=task_id,
        workspace_id=seed.workspace_id,
        old_values={"status": "not_started"},
        new_values={"status": "in_progress"},
        ip_address="10.0.0.1",
        user_agent="pytest",
        trace_id="trace-1",
    )


@pytest.fixture
async def task_id(uow_factory, seed) -> str:
    async with uow_factory() as uow:
        task = await uow.tasks.create(
            TaskCreate(title="Audited", workspace_id=seed.workspace_id), seed.owner_id, 0
        )
    return task.id


async def test_list_for_task_newest_first(uow_factory, seed, task_id) -> None:
    async with uow_factory() as uow:
        first = await uow.activity_logs.create(_entry(seed, task_id, ActionType.CREATE))
        second = await uow.activity_logs.create(_entry(seed, task_id, ActionType.UPDATE))
        await uow.activity_logs.create(_entry(seed, None))
    async with uow_factory() as uow:
        entries = await uow.activity_logs.list_for_task(task_id)
        page = await uow.activity_logs.list_for_task(task_id, skip=1, limit=1)
    assert [e.id for e in entries] == [second.id, first.id]
    assert [e.id for e in page] == [first.id]
    assert entries[0].new_values == {"status": "in_progress"}
    assert entries[0].action == ActionType.UPDATE


async def test_soft_delete_hides_entry(uow_factory, seed, task_id) -> None:
    async with uow_factory() as uow:
        entry = await uow.activity_logs.create(_entry(seed, task_id))
    async with uow_factory() as uow:
        assert await uow.activity_logs.soft_delete(entry.id)
    async with uow_factory() as uow:
        assert not await uow.activity_logs.soft_delete(entry.id)
        assert await uow.activity_logs.list_for_task(task_id) == []


async def test_entries_cannot_be_modified(session_factory, uow_factory, seed, task_id) -> None:
    async with uow_factory() as uow:
        entry = await uow.activity_logs.create(_entry(seed, task_id))
    async with session_factory() as session:
        row = await session.get(ActivityLog, entry.id)
        row.action = ActionType.DELETE.value
        with pytest.raises(ValueError, match="immutable"):
            await session.flush()
        await session.rollback()


async def test_entries_cannot_be_deleted(session_factory, uow_factory, seed, task_id) -> None:
    async with uow_factory() as uow:
        entry = await uow.activity_logs.create(_entry(seed, task_id))
    async with session_factory() as session:
        row = await session.get(ActivityLog, entry.id)
        await session.delete(row)
        with pytest.raises(ValueError, match="cannot be deleted"):
            await session.flush()
        await session.rollback()


async def test_unknown_actor_is_a_persistence_error(uow_factory, seed, task_id) -> None:
    entry = _entry(seed, task_id)
    with pytest.raises(PersistenceException):
        async with uow_factory() as uow:
            await uow.activity_logs.create(
                ActivityLogEntryCreate(**{**entry.__dict__, "user_id": "no-such-user"})
            )
