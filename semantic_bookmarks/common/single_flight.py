"""Collapse concurrent calls for the same key into one in-flight task."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight:
    """Deduplicates concurrent async work by key.

    The first caller for a key starts the work as an ``asyncio.Task``.
    Callers arriving while it runs await the same task and receive the
    same result or exception. Once the task finishes the key is released,
    so the next call starts fresh work.

    Example:
        flight = SingleFlight()
        items = await flight.run(owner_id, lambda: service.index(owner_id, text))
    """

    def __init__(self) -> None:
        self._inflight: dict[Hashable, asyncio.Task[Any]] = {}

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        """Run ``factory()`` unless work for ``key`` is already in flight.

        Args:
            key: Deduplication key.
            factory: Zero-argument callable returning the awaitable to run.

        Returns:
            The result of the shared task.
        """
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda done, k=key: self._release(k, done))
        else:
            logger.debug(f"Joining in-flight operation for {key!r}")
        # shield: one cancelled waiter must not cancel the shared work
        return await asyncio.shield(task)

    def in_flight(self, key: Hashable) -> bool:
        """True while work for ``key`` is running."""
        return key in self._inflight

    def _release(self, key: Hashable, task: asyncio.Task[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the exception retrieved when every waiter was cancelled
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"In-flight operation for {key!r} failed: {task.exception()}")
