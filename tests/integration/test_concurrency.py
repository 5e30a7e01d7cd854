"""Concurrent subtask mutations converge on the correct parent progress."""

import asyncio

from app.application.dtos.task import TaskCreate
from app.domain.enums import TaskStatus


async def test_concurrent_toggles_are_all_reflected(services, seed) -> None:
    task = await services.tasks.create_task(
        seed.owner_id, TaskCreate(title="Busy", workspace_id=seed.workspace_id)
    )
    subs = await services.subtasks.add_subtasks(task.id, ["a", "b", "c", "d"])
    await services.channel.drain()

    await asyncio.gather(
        services.subtasks.toggle_subtask_completion(subs[0].id),
        services.subtasks.toggle_subtask_completion(subs[1].id),
    )
    await services.channel.drain()
    current = await services.tasks.get_task(task.id)
    assert (current.progress, current.status) == (50, TaskStatus.IN_PROGRESS)

    await asyncio.gather(
        *(services.subtasks.toggle_subtask_completion(s.id) for s in subs[2:]),
        services.aggregator.recompute(task.id, reason="manual"),
    )
    await services.channel.drain()
    current = await services.tasks.get_task(task.id)
    assert (current.progress, current.status) == (100, TaskStatus.COMPLETED)


async def test_concurrent_recomputes_of_one_task_agree(services, seed) -> None:
    task = await services.tasks.create_task(
        seed.owner_id, TaskCreate(title="Hot", workspace_id=seed.workspace_id)
    )
    subs = await services.subtasks.add_subtasks(task.id, ["a", "b", "c"])
    await services.subtasks.toggle_subtask_completion(subs[0].id)
    await services.channel.drain()

    results = await asyncio.gather(
        *(services.aggregator.recompute(task.id, reason=f"replay-{i}") for i in range(5))
    )
    assert {(r.progress, r.status) for r in results} == {(33, TaskStatus.IN_PROGRESS)}
