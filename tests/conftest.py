"""Pytest configuration and fixtures for backup_credential tests."""
import asyncio
from typing import List, Optional

import pytest

from backup_credential import (
    AuthorizationContext,
    AuthorizationExchange,
    CredentialStorageError,
    CredentialStore,
    IdentityResolver,
    MemoryCredentialStore,
    create_credential_resolver,
)

SERVICE_DID = "did:elastos:node-a-service"
TARGET_DID = "vault-backup-nodeB"
TARGET_ADDRESS = "https://node-b.example.com"


class FakeIdentityResolver(IdentityResolver):
    """Identity resolver returning a fixed DID or raising."""

    def __init__(self, did: str = SERVICE_DID, error: Optional[Exception] = None) -> None:
        self.did = did
        self.error = error
        self.calls = 0

    async def resolve_own_service_identity(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.did


class FakeExchange(AuthorizationExchange):
    """
    Authorization exchange returning queued tokens.

    When ``gate`` is set, each call blocks until the gate is opened so tests
    can hold a fetch in flight.
    """

    def __init__(self, tokens: Optional[List[str]] = None, error: Optional[Exception] = None) -> None:
        self.tokens = list(tokens or ["T1"])
        self.error = error
        self.calls: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None

    async def request_authorization(
        self, caller_did: str, target_did: str, target_address: str
    ) -> str:
        self.calls.append((caller_did, target_did, target_address))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if len(self.tokens) > 1:
            return self.tokens.pop(0)
        return self.tokens[0]


class FailingStore(CredentialStore):
    """Store whose selected operations raise CredentialStorageError."""

    def __init__(
        self,
        fail_load: bool = False,
        fail_store: bool = False,
        fail_remove: bool = False,
        initial: Optional[dict] = None,
    ) -> None:
        self.fail_load = fail_load
        self.fail_store = fail_store
        self.fail_remove = fail_remove
        self.data = dict(initial or {})

    async def load(self, key: str) -> Optional[str]:
        if self.fail_load:
            raise CredentialStorageError("disk unreadable", key=key)
        return self.data.get(key)

    async def store(self, key: str, token: str) -> None:
        if self.fail_store:
            raise CredentialStorageError("disk full", key=key)
        self.data[key] = token

    async def remove(self, key: str) -> None:
        if self.fail_remove:
            raise CredentialStorageError("disk read-only", key=key)
        self.data.pop(key, None)


@pytest.fixture
def context() -> AuthorizationContext:
    """Authorization context for node B."""
    return AuthorizationContext(target_service_did=TARGET_DID, target_address=TARGET_ADDRESS)


@pytest.fixture
def identity() -> FakeIdentityResolver:
    return FakeIdentityResolver()


@pytest.fixture
def exchange() -> FakeExchange:
    return FakeExchange()


@pytest.fixture
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture
def resolver(context, identity, exchange, store):
    """Resolver with the standard memory -> store -> network chain."""
    return create_credential_resolver(context, identity, exchange, store)
