"""
Memory store implementations for backup_credential.
"""
from typing import Dict, Optional

from ..types import CredentialStore, InFlightFetch


class MemoryCredentialStore(CredentialStore):
    """
    In-memory credential store.

    Does not survive a restart; intended for tests and short-lived processes.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._tokens: Dict[str, str] = dict(initial or {})

    async def load(self, key: str) -> Optional[str]:
        """Return the cached token for a key."""
        return self._tokens.get(key)

    async def store(self, key: str, token: str) -> None:
        """Persist a token under a key."""
        self._tokens[key] = token

    async def remove(self, key: str) -> None:
        """Remove the entry for a key."""
        self._tokens.pop(key, None)

    async def close(self) -> None:
        """Drop every cached token."""
        self._tokens.clear()

    def size(self) -> int:
        """Get current number of cached tokens."""
        return len(self._tokens)


class MemorySingleflightStore:
    """
    In-memory registry of in-flight fetches, keyed by logical credential key.
    """

    def __init__(self) -> None:
        self._in_flight: Dict[str, InFlightFetch] = {}

    def get(self, key: str) -> Optional[InFlightFetch]:
        """Get an in-flight fetch by key."""
        return self._in_flight.get(key)

    def set(self, key: str, fetch: InFlightFetch) -> None:
        """Register an in-flight fetch."""
        self._in_flight[key] = fetch

    def delete(self, key: str, fetch: Optional[InFlightFetch] = None) -> bool:
        """
        Remove an in-flight fetch.

        When ``fetch`` is given, the entry is only removed if it is still the
        registered one, so a finished task cannot evict its replacement.
        """
        current = self._in_flight.get(key)
        if current is None:
            return False
        if fetch is not None and current is not fetch:
            return False
        del self._in_flight[key]
        return True

    def has(self, key: str) -> bool:
        """Check if a fetch is in-flight."""
        return key in self._in_flight

    def size(self) -> int:
        """Get current number of in-flight fetches."""
        return len(self._in_flight)

    def clear(self) -> None:
        """Clear all in-flight fetches."""
        self._in_flight.clear()


def create_memory_store(initial: Optional[Dict[str, str]] = None) -> MemoryCredentialStore:
    """Create a memory credential store."""
    return MemoryCredentialStore(initial)


def create_memory_singleflight_store() -> MemorySingleflightStore:
    """Create a memory singleflight store."""
    return MemorySingleflightStore()
