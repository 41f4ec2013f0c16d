"""
RequestQueue - serialises refresh cycles and account checks against Meteoblue.

This is a pure asyncio concurrency primitive with no HA or network dependencies.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from .const import REQUEST_DELAY

_LOGGER = logging.getLogger(__name__)


class RequestQueue:
    """
    Runs jobs one at a time with REQUEST_DELAY between them.

    A job whose job_type is already queued or running is coalesced: the
    caller gets a pre-resolved Future(None) and nothing is scheduled. This
    keeps overlapping refresh triggers from running cycles in parallel.
    """

    def __init__(self, delay: float = REQUEST_DELAY) -> None:
        self._delay = delay
        # asyncio.Queue of (job_type, coro_factory, Future) triples
        self._queue: asyncio.Queue | None = None
        self._worker_task: asyncio.Task | None = None
        self._running: str | None = None
        # Future of the job currently running
        self._current: asyncio.Future | None = None
        self._queued_types: set[str] = set()
        self._closed = False

    async def enqueue(self, job_type: str, coro_factory: Callable[[], Any]) -> asyncio.Future:
        """
        Schedule coro_factory() on the queue.

        Returns a Future resolved with the job's result (or exception). If the
        queue is shut down, or a job of the same type is already pending,
        the returned Future is already resolved with None.
        """
        loop = asyncio.get_running_loop()
        if self._closed or self.is_pending(job_type):
            _LOGGER.debug("Not scheduling %s job (closed=%s)", job_type, self._closed)
            fut: asyncio.Future = loop.create_future()
            fut.set_result(None)
            return fut

        self._ensure_worker()
        fut = loop.create_future()
        self._queued_types.add(job_type)
        await self._queue.put((job_type, coro_factory, fut))
        return fut

    def is_pending(self, job_type: str) -> bool:
        return job_type in self._queued_types or self._running == job_type

    async def shutdown(self) -> None:
        """
        Stop accepting jobs, cancel the queued ones and stop the worker.

        A job that is already running is allowed to finish first.
        """
        self._closed = True
        if self._queue is not None:
            while not self._queue.empty():
                _job_type, _factory, fut = self._queue.get_nowait()
                if not fut.done():
                    fut.cancel()
        if self._current is not None and not self._current.done():
            await asyncio.wait([self._current])
        if self._worker_task is not None:
            self._worker_task.cancel()
            results = await asyncio.gather(self._worker_task, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception) and not isinstance(result, asyncio.CancelledError):
                    _LOGGER.debug("RequestQueue worker error during shutdown: %s", result)
        self._worker_task = None
        self._queue = None
        self._current = None
        self._running = None
        self._queued_types.clear()

    def _ensure_worker(self) -> None:
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._worker_task is None or self._worker_task.done():
            self._worker_task = asyncio.ensure_future(self._worker())

    async def _worker(self) -> None:
        """Consume jobs indefinitely."""
        while True:
            job_type, coro_factory, fut = await self._queue.get()
            self._running = job_type
            self._current = fut
            self._queued_types.discard(job_type)
            try:
                result = await coro_factory()
                if not fut.done():
                    fut.set_result(result)
            except Exception as exc:  # noqa: BLE001
                if not fut.done():
                    fut.set_exception(exc)
            finally:
                self._running = None
                self._current = None
                self._queue.task_done()
                await asyncio.sleep(self._delay)
