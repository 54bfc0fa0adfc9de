"""TTL cache with in-flight request de-duplication.

One ``FetchCoordinator`` exists per upstream provider. It guarantees at most
one concurrent network fetch per cache key: the pending task is registered
before the first suspension point, so every caller that arrives while it is
running awaits the same task instead of starting a duplicate.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic
from typing import TypeVar

from quotabar.errors import classify_exception

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Upper bound for a single fetch attempt, in seconds
API_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A successfully fetched value and when it was fetched."""

    data: T
    fetched_at: float

    def is_valid(self, now: float, ttl_seconds: float) -> bool:
        """Check whether the entry is younger than ``ttl_seconds``."""
        return now - self.fetched_at < ttl_seconds


class FetchCoordinator(Generic[T]):
    """Caches fetch results per key and shares in-flight fetches.

    Args:
        name: Label used in log messages (usually the provider id)
        timeout: Seconds before a fetch is abandoned as failed
        clock: Monotonic clock, injectable for tests
    """

    def __init__(
        self,
        name: str,
        timeout: float = API_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.timeout = timeout
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._pending: dict[str, asyncio.Task[T | None]] = {}
        self._generation = 0

    async def fetch(
        self,
        key: str,
        ttl_seconds: float,
        fetcher: Callable[[], Awaitable[T | None]],
    ) -> T | None:
        """Return cached data for ``key`` or fetch it.

        Never raises for fetch failures; returns None instead and leaves any
        previous cache entry untouched.
        """
        entry = self._entries.get(key)
        if entry is not None and entry.is_valid(self._clock(), ttl_seconds):
            logger.debug("%s: cache hit", self.name)
            return entry.data

        task = self._pending.get(key)
        if task is None:
            # Registered before any await so concurrent callers observe it
            task = asyncio.ensure_future(self._run(key, fetcher, self._generation))
            self._pending[key] = task
            task.add_done_callback(lambda t: self._unregister(key, t))
        else:
            logger.debug("%s: joining in-flight request", self.name)

        # Shielded: a caller giving up must not cancel a shared fetch
        return await asyncio.shield(task)

    async def _run(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T | None]],
        generation: int,
    ) -> T | None:
        try:
            data = await asyncio.wait_for(fetcher(), timeout=self.timeout)
        except Exception as e:
            logger.debug("%s: fetch failed (%s): %s", self.name, classify_exception(e), e)
            return None

        if data is None:
            logger.debug("%s: fetch returned no data", self.name)
            return None

        if generation != self._generation:
            logger.debug("%s: discarding result fetched before reset", self.name)
            return data

        self._entries[key] = CacheEntry(data=data, fetched_at=self._clock())
        return data

    def _unregister(self, key: str, task: asyncio.Task[T | None]) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]

    def peek(self, key: str) -> CacheEntry[T] | None:
        """Return the cache entry for ``key`` regardless of age."""
        return self._entries.get(key)

    def is_pending(self, key: str) -> bool:
        """Check whether a fetch for ``key`` is in flight."""
        return key in self._pending

    def reset(self) -> None:
        """Drop all cached entries and forget in-flight requests."""
        self._generation += 1
        self._entries.clear()
        self._pending.clear()
