"""In-process progress signal channel (bounded asyncio.Queue + consumer tasks).

Connects subtask mutations to the progress aggregator without either side
holding a reference to the other. Delivery is at-least-once and asynchronous:
publish() never waits for a handler. Consumers must be idempotent.

Backpressure: the queue is bounded. A signal for a task that is already
waiting in the queue is coalesced (the queued one will re-read current state);
when the queue is full the signal is dropped with a warning.
"""

from __future__ import annotations

import asyncio
import logging

from app.application.dtos.progress import ProgressUpdateSignal
from app.application.interfaces.services import ProgressSignalHandler

logger = logging.getLogger(__name__)


class InProcessProgressChannel:
    """Implements IProgressSignalChannel with an asyncio.Queue and N worker tasks."""

    def __init__(self, maxsize: int = 1000, workers: int = 2) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be positive")
        if workers < 1:
            raise ValueError("workers must be positive")
        self._queue: asyncio.Queue[ProgressUpdateSignal] = asyncio.Queue(maxsize=maxsize)
        self._worker_count = workers
        self._handlers: list[ProgressSignalHandler] = []
        # task ids currently waiting in the queue (not yet picked up by a worker)
        self._pending: set[str] = set()
        self._workers: list[asyncio.Task[None]] = []
        self.dropped_count = 0

    @property
    def is_running(self) -> bool:
        return bool(self._workers)

    @property
    def pending_count(self) -> int:
        """Signals queued and not yet picked up."""
        return self._queue.qsize()

    def subscribe(self, handler: ProgressSignalHandler) -> None:
        """Register a coroutine handler; every delivered signal is passed to every handler."""
        self._handlers.append(handler)

    def publish(self, signal: ProgressUpdateSignal) -> bool:
        """Enqueue a signal without waiting. Returns False if it was dropped (queue full)."""
        if signal.task_id in self._pending:
            logger.debug(
                "Coalesced progress signal for task %s (%s)", signal.task_id, signal.reason
            )
            return True
        try:
            self._queue.put_nowait(signal)
        except asyncio.QueueFull:
            self.dropped_count += 1
            logger.warning(
                "Progress queue full (%d); dropped signal for task %s (%s)",
                self._queue.maxsize,
                signal.task_id,
                signal.reason,
            )
            return False
        self._pending.add(signal.task_id)
        return True

    def start(self) -> None:
        """Start consumer tasks on the running event loop. Idempotent."""
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._consume(), name=f"progress-worker-{i}")
            for i in range(self._worker_count)
        ]
        logger.info("Progress channel started with %d worker(s)", self._worker_count)

    async def drain(self) -> None:
        """Wait until every queued signal has been handled (workers must be running)."""
        if not self._workers:
            raise RuntimeError("Progress channel is not running; call start() first.")
        await self._queue.join()

    async def stop(self, *, drain: bool = True) -> None:
        """Stop consumer tasks, by default after handling what is already queued."""
        if not self._workers:
            return
        if drain:
            await self._queue.join()
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("Progress channel stopped (%d signal(s) dropped)", self.dropped_count)

    async def _consume(self) -> None:
        while True:
            signal = await self._queue.get()
            # Later signals for this task must queue again: this one may already
            # have read the state they describe.
            self._pending.discard(signal.task_id)
            try:
                await self._dispatch(signal)
            finally:
                self._queue.task_done()

    async def _dispatch(self, signal: ProgressUpdateSignal) -> None:
        logger.debug(
            "Handling progress signal for task %s (%s) after %.1f ms",
            signal.task_id,
            signal.reason,
            signal.age_ms(),
        )
        for handler in self._handlers:
            try:
                await handler(signal)
            except Exception:
                logger.exception(
                    "Progress handler failed for task %s (%s)", signal.task_id, signal.reason
                )
