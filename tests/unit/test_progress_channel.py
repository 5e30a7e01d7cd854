"""InProcessProgressChannel: coalescing, backpressure, worker resilience."""

import asyncio

import pytest

from app.application.dtos.progress import ProgressUpdateSignal
from app.infrastructure.messaging import InProcessProgressChannel


def _signal(task_id: str = "t1", reason: str = "subtask_toggled") -> ProgressUpdateSignal:
    return ProgressUpdateSignal(task_id=task_id, reason=reason)


def test_invalid_sizes_rejected() -> None:
    with pytest.raises(ValueError):
        InProcessProgressChannel(maxsize=0)
    with pytest.raises(ValueError):
        InProcessProgressChannel(workers=0)


async def test_delivers_to_every_handler() -> None:
    channel = InProcessProgressChannel(maxsize=10, workers=1)
    first: list[str] = []
    second: list[str] = []

    async def handler_a(signal: ProgressUpdateSignal) -> None:
        first.append(signal.task_id)

    async def handler_b(signal: ProgressUpdateSignal) -> None:
        second.append(signal.task_id)

    channel.subscribe(handler_a)
    channel.subscribe(handler_b)
    channel.start()
    assert channel.publish(_signal("t1"))
    assert channel.publish(_signal("t2"))
    await channel.drain()
    await channel.stop()
    assert first == ["t1", "t2"]
    assert second == ["t1", "t2"]


def test_pending_signals_for_same_task_are_coalesced() -> None:
    channel = InProcessProgressChannel(maxsize=10)
    assert channel.publish(_signal("t1", "subtask_created"))
    assert channel.publish(_signal("t1", "subtask_toggled"))
    assert channel.publish(_signal("t2"))
    assert channel.pending_count == 2
    assert channel.dropped_count == 0


def test_full_queue_drops_and_counts() -> None:
    channel = InProcessProgressChannel(maxsize=1)
    assert channel.publish(_signal("t1"))
    assert channel.publish(_signal("t2")) is False
    assert channel.dropped_count == 1
    assert channel.pending_count == 1


async def test_signal_after_pickup_is_queued_again() -> None:
    channel = InProcessProgressChannel(maxsize=10, workers=1)
    handled: list[str] = []
    release = asyncio.Event()

    async def slow_handler(signal: ProgressUpdateSignal) -> None:
        handled.append(signal.reason)
        if signal.reason == "first":
            await release.wait()

    channel.subscribe(slow_handler)
    channel.start()
    channel.publish(_signal("t1", "first"))
    while not handled:
        await asyncio.sleep(0)
    # the first signal is being handled, not pending: a new one must not be coalesced
    channel.publish(_signal("t1", "second"))
    assert channel.pending_count == 1
    release.set()
    await channel.drain()
    await channel.stop()
    assert handled == ["first", "second"]


async def test_failing_handler_does_not_stop_worker() -> None:
    channel = InProcessProgressChannel(maxsize=10, workers=1)
    handled: list[str] = []

    async def flaky(signal: ProgressUpdateSignal) -> None:
        if signal.task_id == "boom":
            raise RuntimeError("handler failed")
        handled.append(signal.task_id)

    channel.subscribe(flaky)
    channel.start()
    channel.publish(_signal("boom"))
    channel.publish(_signal("t1"))
    await channel.drain()
    assert handled == ["t1"]
    assert channel.is_running
    await channel.stop()
    assert not channel.is_running


async def test_stop_drains_by_default() -> None:
    channel = InProcessProgressChannel(maxsize=10, workers=2)
    handled: list[str] = []

    async def handler(signal: ProgressUpdateSignal) -> None:
        await asyncio.sleep(0)
        handled.append(signal.task_id)

    channel.subscribe(handler)
    channel.start()
    channel.start()
    for i in range(5):
        channel.publish(_signal(f"t{i}"))
    await channel.stop()
    assert sorted(handled) == [f"t{i}" for i in range(5)]


async def test_drain_requires_running_workers() -> None:
    channel = InProcessProgressChannel()
    with pytest.raises(RuntimeError):
        await channel.drain()
