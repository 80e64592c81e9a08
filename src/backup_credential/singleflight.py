"""
Fetch coalescing (Singleflight) implementation.

When several callers ask for the same credential key concurrently, only one
fetch actually runs - the others wait on it and receive the same token or
the same error.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .events import EventSource
from .stores.memory import MemorySingleflightStore
from .types import CredentialEventType, InFlightFetch, SingleflightResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Singleflight(EventSource):
    """
    Singleflight - coalescing for concurrent fetches of the same key.

    The shared fetch runs in its own task and every caller awaits it through
    ``asyncio.shield``. A caller that times out or is cancelled therefore
    leaves the fetch running for everyone else, and the fetch finishes even
    if nobody is left waiting.

    Example:
        sf = Singleflight()

        # These 50 concurrent calls result in only 1 actual handshake
        results = await asyncio.gather(
            *[sf.do("did:elastos:node-b", fetcher.fetch) for _ in range(50)]
        )

        print(results[0].shared)  # False (the leader)
        print(results[1].shared)  # True (joined existing)
    """

    def __init__(self, store: Optional[MemorySingleflightStore] = None) -> None:
        super().__init__()
        self._store = store or MemorySingleflightStore()

    async def do(
        self,
        key: str,
        fn: Callable[[], Awaitable[T]],
    ) -> SingleflightResult[T]:
        """
        Run ``fn`` for ``key`` unless a run is already in flight, in which
        case wait for that run and share its outcome.
        """
        existing = self._store.get(key)
        if existing is not None:
            existing.subscribers += 1
            self._emit(
                CredentialEventType.SINGLEFLIGHT_JOIN,
                key,
                {"subscribers": existing.subscribers},
            )
            value = await asyncio.shield(existing.task)
            return SingleflightResult(
                value=value,
                shared=True,
                subscribers=existing.subscribers,
            )

        task = asyncio.ensure_future(fn())
        in_flight = InFlightFetch(task=task, subscribers=1, started_at=time.time())
        self._store.set(key, in_flight)
        task.add_done_callback(lambda t: self._finish(key, in_flight, t))

        self._emit(CredentialEventType.SINGLEFLIGHT_LEAD, key)

        value = await asyncio.shield(task)
        return SingleflightResult(
            value=value,
            shared=False,
            subscribers=in_flight.subscribers,
        )

    def _finish(self, key: str, in_flight: InFlightFetch, task: "asyncio.Task[Any]") -> None:
        """Unregister a finished fetch and mark its error as retrieved."""
        self._store.delete(key, in_flight)
        if task.cancelled():
            return
        error = task.exception()
        duration = time.time() - in_flight.started_at
        if error is not None:
            logger.debug(
                f"Singleflight._finish: fetch for '{key}' failed after "
                f"{duration:.3f}s ({in_flight.subscribers} subscribers): {error}"
            )
        else:
            logger.debug(
                f"Singleflight._finish: fetch for '{key}' completed in "
                f"{duration:.3f}s ({in_flight.subscribers} subscribers)"
            )

    def is_in_flight(self, key: str) -> bool:
        """Check if a fetch is currently in-flight for a key."""
        return self._store.has(key)

    def get_subscribers(self, key: str) -> int:
        """Get the number of subscribers for an in-flight fetch."""
        existing = self._store.get(key)
        return existing.subscribers if existing else 0

    def forget(self, key: str) -> bool:
        """
        Stop sharing the in-flight fetch for a key.

        Callers already waiting still receive its outcome; the next ``do``
        starts a new fetch.
        """
        return self._store.delete(key)

    def get_stats(self) -> dict:
        """Get statistics about in-flight fetches."""
        return {"in_flight": self._store.size()}

    def clear(self) -> None:
        """Clear all in-flight fetches (use with caution)."""
        self._store.clear()

    def close(self) -> None:
        """Close and release resources."""
        self._store.clear()
        self._listeners.clear()


def create_singleflight(store: Optional[MemorySingleflightStore] = None) -> Singleflight:
    """Create a singleflight instance."""
    return Singleflight(store)
