"""
CodeFetcher implementations and chain composition.
"""
from .chain import FetcherTier, caching_tier, compose_fetchers, create_fetcher_chain
from .local import LocalCachingFetcher
from .remote import RemoteCredentialFetcher

__all__ = [
    "FetcherTier",
    "LocalCachingFetcher",
    "RemoteCredentialFetcher",
    "caching_tier",
    "compose_fetchers",
    "create_fetcher_chain",
]
