"""Single-flight TTL cache for the station snapshot."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class FeedCache(Generic[T]):
    """Single-value TTL cache with coalesced refreshes.

    Holds one value together with the time it was stored. At most one refresh
    runs at a time: callers that find the value expired while a refresh is in
    flight wait for that refresh instead of starting another. The last stored
    value stays reachable through peek() after it expires so callers can fall
    back to it when a refresh fails.
    """

    def __init__(self, ttl: float = 60.0, clock: Callable[[], float] = time.monotonic):
        """Initialize the cache.

        Args:
            ttl: Time-to-live in seconds for cached values.
            clock: Monotonic time source, in seconds.
        """
        self._ttl = ttl
        self._clock = clock
        self._value: T | None = None
        self._stored_at: float | None = None
        self._lock = asyncio.Lock()
        self._refresh_task: asyncio.Task[T] | None = None

    def get(self) -> T | None:
        """Get the cached value if it hasn't expired.

        Returns:
            The cached value if valid, None if expired or not set.
        """
        if self._value is not None and self._clock() - self._stored_at < self._ttl:
            return self._value
        return None

    def peek(self) -> T | None:
        """Get the last stored value, expired or not."""
        return self._value

    def age(self) -> float | None:
        """Seconds since the current value was stored, None if empty."""
        if self._stored_at is None:
            return None
        return self._clock() - self._stored_at

    def set(self, value: T) -> None:
        """Set a value in the cache with TTL.

        Args:
            value: The value to cache.
        """
        self._value = value
        self._stored_at = self._clock()

    def clear(self) -> None:
        """Clear the cached value."""
        self._value = None
        self._stored_at = None

    @property
    def refreshing(self) -> bool:
        """True while a refresh task is in flight."""
        return self._refresh_task is not None and not self._refresh_task.done()

    async def get_or_refresh(self, refresh: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value, or the result of a (possibly shared) refresh.

        The refresh runs as its own task: cancelling one waiting caller leaves
        it running for the others, and its result is stored before any waiter
        resumes. Exceptions raised by the refresh propagate to every waiter and
        leave the previously stored value untouched.

        Args:
            refresh: Coroutine function producing a fresh value.

        Returns:
            A value that is fresh at the time of the call.
        """
        cached = self.get()
        if cached is not None:
            return cached

        async with self._lock:
            # Double-check cache after acquiring lock
            cached = self.get()
            if cached is not None:
                return cached

            if not self.refreshing:
                self._refresh_task = asyncio.create_task(self._run_refresh(refresh))
                self._refresh_task.add_done_callback(_consume_exception)
            task = self._refresh_task

        return await asyncio.shield(task)

    async def _run_refresh(self, refresh: Callable[[], Awaitable[T]]) -> T:
        value = await refresh()
        self.set(value)
        return value


def _consume_exception(task: asyncio.Task) -> None:
    # every waiter may have been cancelled; retrieve the error so asyncio doesn't warn
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f"Refresh task failed: {task.exception()!r}")
