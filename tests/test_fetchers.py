"""
Tests for RemoteCredentialFetcher, LocalCachingFetcher and chain composition.
"""
import logging
from typing import List

import pytest

from backup_credential import (
    AuthorizationRejectedError,
    CodeFetcher,
    CredentialAuthorizationError,
    CredentialEvent,
    CredentialEventType,
    LocalCachingFetcher,
    MemoryCredentialStore,
    RemoteCredentialFetcher,
    caching_tier,
    compose_fetchers,
    create_fetcher_chain,
)

from .conftest import SERVICE_DID, TARGET_ADDRESS, TARGET_DID, FailingStore, FakeExchange, FakeIdentityResolver


class RecordingFetcher(CodeFetcher):
    """Inner fetcher double recording calls."""

    def __init__(self, token: str = "T1", error: Exception = None) -> None:
        self.token = token
        self.error = error
        self.fetch_calls = 0
        self.invalidate_calls = 0

    async def fetch(self) -> str:
        self.fetch_calls += 1
        if self.error is not None:
            raise self.error
        return self.token

    async def invalidate(self) -> None:
        self.invalidate_calls += 1


class TestRemoteCredentialFetcher:
    """Tests for RemoteCredentialFetcher."""

    async def test_fetch_runs_handshake(self, context, identity, exchange) -> None:
        fetcher = RemoteCredentialFetcher(identity, exchange, context)

        assert await fetcher.fetch() == "T1"
        assert exchange.calls == [(SERVICE_DID, TARGET_DID, TARGET_ADDRESS)]

    async def test_fetch_always_goes_to_network(self, context, identity, exchange) -> None:
        fetcher = RemoteCredentialFetcher(identity, exchange, context)

        await fetcher.fetch()
        await fetcher.fetch()

        assert len(exchange.calls) == 2
        assert identity.calls == 2

    async def test_identity_failure_wrapped(self, context, exchange) -> None:
        identity = FakeIdentityResolver(error=LookupError("no DID document"))
        fetcher = RemoteCredentialFetcher(identity, exchange, context)

        with pytest.raises(CredentialAuthorizationError) as exc_info:
            await fetcher.fetch()

        assert str(exc_info.value) == "Failed to create backup credential."
        assert isinstance(exc_info.value.cause, LookupError)
        assert exc_info.value.__cause__ is exc_info.value.cause
        assert exchange.calls == []

    async def test_rejection_wrapped(self, context, identity) -> None:
        exchange = FakeExchange(error=AuthorizationRejectedError("refused", status_code=403))
        fetcher = RemoteCredentialFetcher(identity, exchange, context)

        with pytest.raises(CredentialAuthorizationError) as exc_info:
            await fetcher.fetch()

        assert isinstance(exc_info.value.cause, AuthorizationRejectedError)
        assert len(exchange.calls) == 1

    async def test_empty_token_is_a_failure(self, context, identity) -> None:
        fetcher = RemoteCredentialFetcher(identity, FakeExchange(tokens=[""]), context)

        with pytest.raises(CredentialAuthorizationError):
            await fetcher.fetch()

    async def test_invalidate_is_noop(self, context, identity, exchange) -> None:
        fetcher = RemoteCredentialFetcher(identity, exchange, context)

        await fetcher.invalidate()
        await fetcher.invalidate()

        assert exchange.calls == []


class TestLocalCachingFetcher:
    """Tests for LocalCachingFetcher."""

    async def test_hit_skips_inner(self) -> None:
        inner = RecordingFetcher()
        fetcher = LocalCachingFetcher(MemoryCredentialStore({"k": "cached"}), "k", inner)

        assert await fetcher.fetch() == "cached"
        assert inner.fetch_calls == 0

    async def test_miss_delegates_and_writes_through(self) -> None:
        store = MemoryCredentialStore()
        inner = RecordingFetcher()
        fetcher = LocalCachingFetcher(store, "k", inner)

        assert await fetcher.fetch() == "T1"
        assert inner.fetch_calls == 1
        assert await store.load("k") == "T1"

    async def test_inner_failure_propagates_and_nothing_stored(self) -> None:
        store = MemoryCredentialStore()
        inner = RecordingFetcher(error=CredentialAuthorizationError("no"))
        fetcher = LocalCachingFetcher(store, "k", inner)

        with pytest.raises(CredentialAuthorizationError):
            await fetcher.fetch()
        assert await store.load("k") is None

    async def test_read_failure_falls_through(self, caplog) -> None:
        inner = RecordingFetcher()
        fetcher = LocalCachingFetcher(FailingStore(fail_load=True), "k", inner)

        with caplog.at_level(logging.WARNING):
            assert await fetcher.fetch() == "T1"

        assert inner.fetch_calls == 1
        assert "Store read failed" in caplog.text

    async def test_write_failure_still_returns_token(self, caplog) -> None:
        inner = RecordingFetcher()
        fetcher = LocalCachingFetcher(FailingStore(fail_store=True), "k", inner)
        events: List[CredentialEvent] = []
        fetcher.on(events.append)

        with caplog.at_level(logging.WARNING):
            assert await fetcher.fetch() == "T1"

        assert "Store write failed" in caplog.text
        assert events[-1].type == CredentialEventType.STORE_ERROR
        assert events[-1].metadata["operation"] == "store"

    async def test_invalidate_removes_and_forwards(self) -> None:
        store = MemoryCredentialStore({"k": "cached"})
        inner = RecordingFetcher()
        fetcher = LocalCachingFetcher(store, "k", inner)

        await fetcher.invalidate()

        assert await store.load("k") is None
        assert inner.invalidate_calls == 1

    async def test_invalidate_remove_failure_still_forwards(self, caplog) -> None:
        inner = RecordingFetcher()
        fetcher = LocalCachingFetcher(FailingStore(fail_remove=True), "k", inner)

        with caplog.at_level(logging.WARNING):
            await fetcher.invalidate()

        assert inner.invalidate_calls == 1
        assert "Could not remove" in caplog.text

    async def test_invalidate_is_idempotent(self) -> None:
        inner = RecordingFetcher()
        fetcher = LocalCachingFetcher(MemoryCredentialStore(), "k", inner)

        await fetcher.invalidate()
        await fetcher.invalidate()

        assert inner.invalidate_calls == 2

    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            LocalCachingFetcher(MemoryCredentialStore(), "", RecordingFetcher())


class TestChainComposition:
    """Tests for compose_fetchers and create_fetcher_chain."""

    async def test_first_tier_is_outermost(self) -> None:
        outer = MemoryCredentialStore()
        inner_store = MemoryCredentialStore({"k": "from-inner"})
        terminal = RecordingFetcher()

        chain = compose_fetchers(terminal, [caching_tier(outer, "k"), caching_tier(inner_store, "k")])

        assert isinstance(chain, LocalCachingFetcher)
        assert chain.store is outer
        assert await chain.fetch() == "from-inner"
        assert await outer.load("k") == "from-inner"
        assert terminal.fetch_calls == 0

    async def test_no_tiers_returns_terminal(self) -> None:
        terminal = RecordingFetcher()
        assert compose_fetchers(terminal, []) is terminal

    async def test_invalidate_propagates_through_every_tier(self) -> None:
        first = MemoryCredentialStore({"k": "a"})
        second = MemoryCredentialStore({"k": "b"})
        terminal = RecordingFetcher()
        chain = compose_fetchers(terminal, [caching_tier(first, "k"), caching_tier(second, "k")])

        await chain.invalidate()

        assert await first.load("k") is None
        assert await second.load("k") is None
        assert terminal.invalidate_calls == 1

    async def test_create_fetcher_chain(self, context, identity, exchange) -> None:
        store = MemoryCredentialStore()
        chain = create_fetcher_chain(context, identity, exchange, [store])

        assert isinstance(chain, LocalCachingFetcher)
        assert isinstance(chain.inner, RemoteCredentialFetcher)
        assert await chain.fetch() == "T1"
        assert await store.load(TARGET_DID) == "T1"
