"""
Top-level credential resolver for cross-node backups.

The resolver owns the in-memory token for one target node and sits in front
of a CodeFetcher chain (persistent cache tiers over the network handshake).
It is what outbound request builders await before every cross-node call.
"""
import logging
from typing import Optional

from .errors import CredentialAuthorizationError
from .events import EventSource
from .fetchers.remote import FAILURE_MESSAGE
from .singleflight import Singleflight
from .types import CodeFetcher, CredentialEvent, CredentialEventType, CredentialState
from .utils import mask_sensitive

logger = logging.getLogger(__name__)


class CredentialResolver(EventSource):
    """
    Resolves the bearer token one vault node presents to another.

    State per key is EMPTY until a ``get_token()`` succeeds, then CACHED
    until ``invalidate_token()`` is called. Concurrent ``get_token()`` calls
    on an EMPTY resolver share a single fetch through the chain.

    Example:
        resolver = create_credential_resolver(context, identity, exchange, store)
        token = await resolver.get_token()
        ...
        # the REST layer saw a 401 for this token
        await resolver.invalidate_token(token)
    """

    def __init__(
        self,
        key: str,
        fetcher: CodeFetcher,
        singleflight: Optional[Singleflight] = None,
    ) -> None:
        super().__init__()
        if not key:
            raise ValueError("key must be a non-empty string")
        self._key = key
        self._fetcher = fetcher
        self._singleflight = singleflight or Singleflight()
        self._token: Optional[str] = None
        self._generation = 0
        self._attach_tier_events()

    def _attach_tier_events(self) -> None:
        """Re-emit events from every event-producing tier of the chain."""
        fetcher: Optional[CodeFetcher] = self._fetcher
        while fetcher is not None:
            if isinstance(fetcher, EventSource):
                fetcher.on(self._forward)
            fetcher = getattr(fetcher, "inner", None)

    def _forward(self, event: CredentialEvent) -> None:
        self._emit(event.type, event.key, event.metadata)

    @property
    def key(self) -> str:
        return self._key

    @property
    def fetcher(self) -> CodeFetcher:
        return self._fetcher

    @property
    def state(self) -> CredentialState:
        return CredentialState.CACHED if self._token is not None else CredentialState.EMPTY

    def has_token(self) -> bool:
        return self._token is not None

    async def get_token(self) -> str:
        """
        Return the token for this resolver's target node.

        Returns:
            The cached in-memory token, or one produced by the fetcher chain

        Raises:
            CredentialAuthorizationError: If no tier can produce a token
        """
        if self._token is not None:
            self._emit(CredentialEventType.MEMORY_HIT, self._key)
            return self._token

        self._emit(CredentialEventType.MEMORY_MISS, self._key)
        generation = self._generation
        result = await self._singleflight.do(
            self._key, lambda: self._fetch_and_populate(generation)
        )
        return result.value

    async def _fetch_and_populate(self, generation: int) -> str:
        """Shared fetch; populates memory even if every waiter has gone away."""
        self._emit(CredentialEventType.REMOTE_FETCH, self._key)
        try:
            token = await self._fetcher.fetch()
        except CredentialAuthorizationError as e:
            logger.warning(f"CredentialResolver.get_token: No token for '{self._key}': {e}")
            self._emit(CredentialEventType.REMOTE_ERROR, self._key, {"error": str(e)})
            raise
        except Exception as e:
            logger.warning(f"CredentialResolver.get_token: Chain failed for '{self._key}': {e}")
            self._emit(CredentialEventType.REMOTE_ERROR, self._key, {"error": str(e)})
            raise CredentialAuthorizationError(FAILURE_MESSAGE, cause=e) from e

        if generation == self._generation:
            self._token = token
            logger.debug(
                f"CredentialResolver.get_token: Cached token for '{self._key}' "
                f"({mask_sensitive(token)})"
            )
        else:
            logger.debug(
                f"CredentialResolver.get_token: Invalidated while fetching '{self._key}', "
                "not caching result"
            )
        return token

    async def invalidate_token(self, rejected_token: Optional[str] = None) -> bool:
        """
        Drop the token everywhere in the chain.

        Called by the REST layer when the target rejected a token obtained
        from ``get_token()``. The next ``get_token()`` runs the full chain.

        Args:
            rejected_token: The token the rejected request carried. When
                given, nothing is dropped unless it is still the token held
                in memory, so a late rejection of an already replaced token
                leaves the current one alone.

        Returns:
            True if the chain was invalidated
        """
        if rejected_token is not None and rejected_token != self._token:
            logger.debug(
                f"CredentialResolver.invalidate_token: Ignoring rejection of a replaced "
                f"token for '{self._key}' ({mask_sensitive(rejected_token)})"
            )
            return False

        logger.info(f"CredentialResolver.invalidate_token: Invalidating '{self._key}'")
        self._token = None
        self._generation += 1
        self._singleflight.forget(self._key)
        self._emit(CredentialEventType.INVALIDATE, self._key)
        await self._fetcher.invalidate()
        return True
