"""Repository integration tests against a SQLite database (one file per test)."""

import pytest
from sqlalchemy.exc import InvalidRequestError

from app.application.dtos.task import TaskCreate
from app.domain.enums import TaskStatus, TaskType
from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.persistence.models import Subtask, Task
from app.shared.utils.datetime import utc_now


async def _create_task(uow, seed, title="Task", parent_id=None, task_type=TaskType.TASK, order=0):
    data = TaskCreate(
        title=title, workspace_id=seed.workspace_id, parent_id=parent_id, task_type=task_type
    )
    return await uow.tasks.create(data, seed.owner_id, order)


async def test_create_and_get_live_task(uow_factory, seed) -> None:
    async with uow_factory() as uow:
        created = await _create_task(uow, seed, title="Write report")
    async with uow_factory() as uow:
        found = await uow.tasks.get_live(created.id, for_update=True)
    assert found is not None
    assert found.title == "Write report"
    assert found.status == TaskStatus.NOT_STARTED
    assert found.owner_id == seed.owner_id
    assert found.created_at.tzinfo is not None


async def test_soft_deleted_task_is_not_live(uow_factory, seed) -> None:
    async with uow_factory() as uow:
        task = await _create_task(uow, seed)
        await uow.tasks.update(task.id, deleted_at=utc_now())
    async with uow_factory() as uow:
        assert await uow.tasks.get_live(task.id) is None
        with pytest.raises(ResourceNotFoundException):
            await uow.tasks.update(task.id, title="revived")


async def test_update_stores_enum_values(uow_factory, seed) -> None:
    async with uow_factory() as uow:
        task = await _create_task(uow, seed)
        updated = await uow.tasks.update(task.id, status=TaskStatus.ON_HOLD, progress=10)
    assert updated.status == TaskStatus.ON_HOLD
    assert updated.progress == 10


async def test_ancestors_and_children(uow_factory, seed) -> None:
    async with uow_factory() as uow:
        epic = await _create_task(uow, seed, "Epic", task_type=TaskType.EPIC)
        story = await _create_task(uow, seed, "Story", epic.id, TaskType.STORY)
        leaf = await _create_task(uow, seed, "Leaf", story.id)
        assert await uow.tasks.get_ancestor_ids(leaf.id) == [story.id, epic.id]
        assert await uow.tasks.get_ancestor_ids(epic.id) == []
        children = await uow.tasks.list_live_children(epic.id)
        assert [c.id for c in children] == [story.id]
        assert await uow.tasks.next_child_sort_order(story.id, seed.workspace_id) == 1
        assert await uow.tasks.next_child_sort_order(None, seed.workspace_id) == 1
        assert await uow.tasks.next_child_sort_order(None, seed.other_workspace_id) == 0


async def test_subtask_counts_exclude_soft_deleted(uow_factory, seed) -> None:
    async with uow_factory() as uow:
        task = await _create_task(uow, seed)
        a = await uow.subtasks.create(task.id, "a", None, 0)
        b = await uow.subtasks.create(task.id, "b", None, 1)
        c = await uow.subtasks.create(task.id, "c", None, 2)
        await uow.subtasks.update(a.id, is_completed=True, completed_at=utc_now())
        await uow.subtasks.update(b.id, is_completed=True, completed_at=utc_now())
        await uow.subtasks.update(b.id, deleted_at=utc_now())
    async with uow_factory() as uow:
        counts = await uow.subtasks.count_progress(task.id)
        live = await uow.subtasks.list_live(task.id)
        assert await uow.subtasks.get_live(b.id) is None
    assert (counts.total, counts.completed) == (2, 1)
    assert [s.id for s in live] == [a.id, c.id]


async def test_subtasks_of_deleted_task_are_not_live(uow_factory, seed) -> None:
    async with uow_factory() as uow:
        task = await _create_task(uow, seed)
        sub = await uow.subtasks.create(task.id, "a", None, 0)
        await uow.tasks.update(task.id, deleted_at=utc_now())
    async with uow_factory() as uow:
        assert await uow.subtasks.get_live(sub.id) is None
        assert await uow.subtasks.list_live(task.id) == []


async def test_sort_order_helpers(uow_factory, seed) -> None:
    async with uow_factory() as uow:
        task = await _create_task(uow, seed)
        assert await uow.subtasks.next_sort_order(task.id) == 0
        a = await uow.subtasks.create(task.id, "a", None, 0)
        b = await uow.subtasks.create(task.id, "b", None, 1)
        await uow.subtasks.shift_sort_orders(task.id, 1, 1)
        await uow.subtasks.set_sort_orders({a.id: 5})
    async with uow_factory() as uow:
        positions = {s.id: s.sort_order for s in await uow.subtasks.list_live(task.id)}
        assert await uow.subtasks.next_sort_order(task.id) == 6
    assert positions == {a.id: 5, b.id: 2}


async def test_user_exists(uow_factory, seed) -> None:
    async with uow_factory() as uow:
        assert await uow.users.exists(seed.assignee_id)
        assert not await uow.users.exists("missing-user")


async def test_unit_of_work_rolls_back_on_error(uow_factory, seed) -> None:
    with pytest.raises(RuntimeError):
        async with uow_factory() as uow:
            task = await _create_task(uow, seed, "Discarded")
            raise RuntimeError("abort")
    async with uow_factory() as uow:
        assert await uow.tasks.get_live(task.id) is None


async def test_task_subtask_relationships_never_lazy_load(uow_factory, session_factory, seed) -> None:
    async with uow_factory() as uow:
        task = await _create_task(uow, seed)
        sub = await uow.subtasks.create(task.id, "child", None, 0)
    async with session_factory() as session:
        row = await session.get(Task, task.id)
        child = await session.get(Subtask, sub.id)
        with pytest.raises(InvalidRequestError):
            row.subtasks
        with pytest.raises(InvalidRequestError):
            child.task
