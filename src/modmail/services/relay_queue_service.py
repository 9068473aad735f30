"""
Relay Queue Service.

One asyncio.Queue and one worker task per conversation key. Events that share
a key (every DM from one member, every message in one thread) are processed
strictly in arrival order; events with different keys run concurrently.
The listener cogs only call ``enqueue()``. Moderator commands that act on a
member's conversation go through ``run_exclusive()`` under the member's key,
so they run between that member's relay events and never in the middle of one.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, TypeVar, Union

from modmail.datatypes.relay_events import RelayEvent
from modmail.errors import RelayError
from modmail.util.logger import get_logger

logger = get_logger("relay_queue_service")

EventProcessor = Callable[[RelayEvent], Awaitable[object]]

T = TypeVar("T")


@dataclass
class _ExclusiveOperation:
    """Work submitted through ``run_exclusive``; its outcome goes to ``future``."""
    operation: Callable[[], Awaitable[Any]]
    future: asyncio.Future


QueueItem = Union[RelayEvent, _ExclusiveOperation]


class RelayQueueService:
    """
    Per-conversation queues feeding the relay router.

    Design notes
    ------------
    * Workers are started lazily on the first item for a key.
    * A worker that has been idle for ``idle_seconds`` removes itself and its
      queue; the next item for that key starts a fresh one.
    * If a worker task dies, the next item for that key restarts it.
    * Relay event failures are logged. Exclusive operation failures are
      raised to the caller of ``run_exclusive`` instead.
    """

    def __init__(self, processor: EventProcessor, *, idle_seconds: float = 300.0) -> None:
        self._processor = processor
        self._idle_seconds = idle_seconds
        self._queues: Dict[str, asyncio.Queue[QueueItem]] = {}
        self._workers: Dict[str, asyncio.Task] = {}

    # ------------------------------------------------------
    # Public API
    # ------------------------------------------------------

    async def enqueue(self, event: RelayEvent) -> None:
        """Place an event on its conversation queue, starting a worker if needed."""
        self._put(event.queue_key, event)

    async def run_exclusive(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``operation`` on the worker for ``key`` and return its result.

        The operation waits for every item already queued under ``key`` and
        holds back everything queued after it until it finishes.
        """
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._put(key, _ExclusiveOperation(operation, future))
        return await future

    async def drain(self) -> None:
        """Wait until every item enqueued so far has been processed."""
        await asyncio.gather(*(queue.join() for queue in list(self._queues.values())))

    @property
    def active_workers(self) -> int:
        return sum(1 for task in self._workers.values() if not task.done())

    async def shutdown(self) -> None:
        """Cancel all worker tasks during bot shutdown."""
        for task in self._workers.values():
            if not task.done():
                task.cancel()
        if self._workers:
            await asyncio.gather(*self._workers.values(), return_exceptions=True)

        # Nobody will run what is still queued; release anyone waiting on it
        for queue in self._queues.values():
            while not queue.empty():
                item = queue.get_nowait()
                if isinstance(item, _ExclusiveOperation):
                    item.future.cancel()

        self._workers.clear()
        self._queues.clear()
        logger.info("[RELAY QUEUE] All conversation workers shut down.")

    # -------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------

    def _put(self, key: str, item: QueueItem) -> None:
        queue = self._queues.get(key)
        if queue is None:
            queue = self._queues[key] = asyncio.Queue()
        queue.put_nowait(item)

        worker = self._workers.get(key)
        if worker is None or worker.done():
            self._workers[key] = asyncio.create_task(
                self._conversation_worker(key, queue),
                name=f"relay-worker-{key}",
            )
            logger.debug("[RELAY QUEUE] Started worker for %s", key)

    async def _conversation_worker(self, key: str, queue: asyncio.Queue[QueueItem]) -> None:
        while True:
            try:
                item = await asyncio.wait_for(queue.get(), timeout=self._idle_seconds)
            except asyncio.TimeoutError:
                if queue.empty():
                    # No await between the check and the removal, so _put() cannot interleave
                    if self._queues.get(key) is queue:
                        del self._queues[key]
                    if self._workers.get(key) is asyncio.current_task():
                        del self._workers[key]
                    logger.debug("[RELAY QUEUE] Worker for %s idle, exiting", key)
                    return
                continue
            except asyncio.CancelledError:
                logger.debug("[RELAY QUEUE] Worker for %s cancelled", key)
                return

            try:
                if isinstance(item, _ExclusiveOperation):
                    await self._run_operation(item)
                else:
                    await self._processor(item)
            except asyncio.CancelledError:
                queue.task_done()
                return
            except RelayError as exc:
                logger.error("[RELAY QUEUE] %s for %s: %s", type(exc).__name__, key, exc)
            except Exception:
                logger.exception("[RELAY QUEUE] Unexpected error processing %s", key)
            queue.task_done()

    @staticmethod
    async def _run_operation(item: _ExclusiveOperation) -> None:
        if item.future.done():
            # The caller stopped waiting before its turn came
            return
        try:
            result = await item.operation()
        except asyncio.CancelledError:
            item.future.cancel()
            raise
        except Exception as exc:
            if not item.future.done():
                item.future.set_exception(exc)
            return
        if not item.future.done():
            item.future.set_result(result)
