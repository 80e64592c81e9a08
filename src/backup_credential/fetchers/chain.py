"""
Composition of CodeFetcher tiers.

A tier is any callable that wraps a CodeFetcher in another one. Chains are
assembled from an ordered list of tiers over a terminal fetcher, so a new
tier (a shared cache, an audit wrapper) slots in without touching the others.
"""
from typing import Callable, Iterable, Sequence

from ..types import (
    AuthorizationContext,
    AuthorizationExchange,
    CodeFetcher,
    CredentialStore,
    IdentityResolver,
)
from .local import LocalCachingFetcher
from .remote import RemoteCredentialFetcher

FetcherTier = Callable[[CodeFetcher], CodeFetcher]


def caching_tier(store: CredentialStore, key: str) -> FetcherTier:
    """Tier that caches its inner fetcher's tokens in ``store`` under ``key``."""

    def wrap(inner: CodeFetcher) -> CodeFetcher:
        return LocalCachingFetcher(store, key, inner)

    return wrap


def compose_fetchers(terminal: CodeFetcher, tiers: Iterable[FetcherTier]) -> CodeFetcher:
    """
    Wrap ``terminal`` in ``tiers``.

    ``tiers[0]`` ends up outermost, so it is consulted first on fetch and
    invalidated first on invalidate.
    """
    fetcher = terminal
    for tier in reversed(list(tiers)):
        fetcher = tier(fetcher)
    return fetcher


def create_fetcher_chain(
    context: AuthorizationContext,
    identity_resolver: IdentityResolver,
    exchange: AuthorizationExchange,
    stores: Sequence[CredentialStore] = (),
) -> CodeFetcher:
    """Standard chain: one caching tier per store, in order, over the network fetcher."""
    terminal = RemoteCredentialFetcher(identity_resolver, exchange, context)
    return compose_fetchers(terminal, [caching_tier(store, context.key) for store in stores])
