"""
Factory functions wiring a CredentialResolver for one (local node, target node) pair.
"""
import logging
from typing import Optional, Sequence

import httpx

from .config import CredentialSettings, create_store, load_settings
from .fetchers.chain import FetcherTier, caching_tier, compose_fetchers
from .fetchers.remote import RemoteCredentialFetcher
from .resolver import CredentialResolver
from .singleflight import Singleflight
from .stores.redis import RedisClientProtocol
from .transport import HttpAuthorizationExchange
from .types import AuthorizationContext, AuthorizationExchange, CredentialStore, IdentityResolver

logger = logging.getLogger(__name__)


def create_credential_resolver(
    context: AuthorizationContext,
    identity_resolver: IdentityResolver,
    exchange: AuthorizationExchange,
    store: Optional[CredentialStore] = None,
    extra_tiers: Sequence[FetcherTier] = (),
    singleflight: Optional[Singleflight] = None,
) -> CredentialResolver:
    """
    Create a resolver for ``context``.

    The chain is: persistent ``store`` (when given), then ``extra_tiers`` in
    order, then the network handshake.

    Args:
        context: Target node identifiers and address
        identity_resolver: Resolves the local service DID
        exchange: Network authorization exchange
        store: Persistent credential store
        extra_tiers: Additional tiers between the store and the network
        singleflight: Shared in-flight registry

    Returns:
        CredentialResolver instance
    """
    tiers = []
    if store is not None:
        tiers.append(caching_tier(store, context.key))
    tiers.extend(extra_tiers)

    terminal = RemoteCredentialFetcher(identity_resolver, exchange, context)
    fetcher = compose_fetchers(terminal, tiers)
    logger.debug(
        f"create_credential_resolver: key='{context.key}', tiers={len(tiers)}, "
        f"target_address={context.target_address}"
    )
    return CredentialResolver(context.key, fetcher, singleflight)


def create_credential_resolver_from_settings(
    context: AuthorizationContext,
    identity_resolver: IdentityResolver,
    settings: Optional[CredentialSettings] = None,
    client: Optional[httpx.AsyncClient] = None,
    redis_client: Optional[RedisClientProtocol] = None,
) -> CredentialResolver:
    """Create a resolver using the HTTP exchange and the configured store backend."""
    settings = settings or load_settings()
    exchange = HttpAuthorizationExchange(
        client=client,
        authorization_path=settings.authorization_path,
        timeout_seconds=settings.timeout_seconds,
        user_did=context.user_did,
    )
    store = create_store(settings, redis_client)
    return create_credential_resolver(context, identity_resolver, exchange, store)
