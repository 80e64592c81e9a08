"""
Read-through, write-through caching tier backed by a CredentialStore.
"""
import logging

from ..errors import CredentialStorageError
from ..events import EventSource
from ..types import CodeFetcher, CredentialEventType, CredentialStore

logger = logging.getLogger(__name__)


class LocalCachingFetcher(EventSource, CodeFetcher):
    """
    Decorates exactly one inner CodeFetcher with a persistent cache.

    Storage problems never turn into authorization failures: a failed read
    falls through to the inner fetcher, and a failed write still hands the
    freshly fetched token back to the caller.
    """

    def __init__(self, store: CredentialStore, key: str, inner: CodeFetcher) -> None:
        super().__init__()
        if not key:
            raise ValueError("key must be a non-empty string")
        self._store = store
        self._key = key
        self._inner = inner

    @property
    def key(self) -> str:
        return self._key

    @property
    def inner(self) -> CodeFetcher:
        return self._inner

    @property
    def store(self) -> CredentialStore:
        return self._store

    async def fetch(self) -> str:
        try:
            cached = await self._store.load(self._key)
        except CredentialStorageError as e:
            logger.warning(
                f"LocalCachingFetcher.fetch: Store read failed for '{self._key}', "
                f"falling through: {e}"
            )
            self._emit(CredentialEventType.STORE_ERROR, self._key, {"operation": "load", "error": str(e)})
            cached = None
        else:
            if cached is not None:
                logger.debug(f"LocalCachingFetcher.fetch: Store hit for '{self._key}'")
                self._emit(CredentialEventType.STORE_HIT, self._key)
                return cached
            self._emit(CredentialEventType.STORE_MISS, self._key)

        token = await self._inner.fetch()

        try:
            await self._store.store(self._key, token)
        except CredentialStorageError as e:
            logger.warning(
                f"LocalCachingFetcher.fetch: Store write failed for '{self._key}': {e}"
            )
            self._emit(CredentialEventType.STORE_ERROR, self._key, {"operation": "store", "error": str(e)})
        else:
            self._emit(CredentialEventType.STORE_WRITE, self._key)
        return token

    async def invalidate(self) -> None:
        try:
            await self._store.remove(self._key)
        except CredentialStorageError as e:
            logger.warning(
                f"LocalCachingFetcher.invalidate: Could not remove '{self._key}': {e}"
            )
            self._emit(CredentialEventType.STORE_ERROR, self._key, {"operation": "remove", "error": str(e)})
        await self._inner.invalidate()
