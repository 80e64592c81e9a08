"""
Types for backup_credential package.
"""
import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Generic, Mapping, Optional, TypeVar

T = TypeVar("T")

TARGET_SERVICE_DID = "targetServiceDid"
TARGET_ADDRESS = "targetAddress"


@dataclass(frozen=True)
class AuthorizationContext:
    """
    Everything needed to run the authorization handshake against a target node.

    Immutable for the lifetime of the resolver that owns it, so it can be
    shared freely between fetchers.
    """

    target_service_did: str
    """DID of the target vault node's service instance."""

    target_address: str
    """Base URL of the target vault node."""

    user_did: Optional[str] = None
    """The caller's own verifiable identity, when the exchange needs it."""

    parameters: Mapping[str, str] = field(default_factory=dict)
    """Extra named parameters supplied by the backup context."""

    def __post_init__(self) -> None:
        if not self.target_service_did:
            raise ValueError("target_service_did must be a non-empty string")
        if not self.target_address:
            raise ValueError("target_address must be a non-empty string")
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    @property
    def key(self) -> str:
        """Logical credential key this context is scoped to."""
        return self.target_service_did

    def get_parameter(self, name: str) -> Optional[str]:
        """Look up a named backup parameter."""
        if name == TARGET_SERVICE_DID:
            return self.target_service_did
        if name == TARGET_ADDRESS:
            return self.target_address
        return self.parameters.get(name)


@dataclass
class StoredCredential:
    """Persisted (key -> token) record."""

    key: str
    token: str
    stored_at: float
    """When the token was written (Unix timestamp). Informational only."""


@dataclass
class InFlightFetch(Generic[T]):
    """In-flight fetch tracker for singleflight."""

    task: "asyncio.Task[T]"
    """Task running the shared fetch."""

    subscribers: int = 1
    """Number of callers waiting on this fetch."""

    started_at: float = 0
    """When the fetch was started (Unix timestamp)."""


@dataclass
class SingleflightResult(Generic[T]):
    """Result of a singleflight operation."""

    value: T
    shared: bool
    """Whether this caller joined a fetch started by someone else."""

    subscribers: int


class CredentialState(str, Enum):
    """In-memory state of a resolver's single logical key."""

    EMPTY = "empty"
    CACHED = "cached"


class CredentialEventType(str, Enum):
    """Event types emitted along the credential chain."""

    MEMORY_HIT = "memory:hit"
    MEMORY_MISS = "memory:miss"
    STORE_HIT = "store:hit"
    STORE_MISS = "store:miss"
    STORE_WRITE = "store:write"
    STORE_ERROR = "store:error"
    REMOTE_FETCH = "remote:fetch"
    REMOTE_ERROR = "remote:error"
    SINGLEFLIGHT_LEAD = "singleflight:lead"
    SINGLEFLIGHT_JOIN = "singleflight:join"
    INVALIDATE = "invalidate"


@dataclass
class CredentialEvent:
    """Credential chain event."""

    type: CredentialEventType
    key: str
    timestamp: float
    metadata: Optional[Dict[str, Any]] = None


CredentialEventListener = Callable[[CredentialEvent], None]
"""Event listener type."""


class CredentialStore(ABC):
    """
    Durable key-value store mapping a target service DID to a cached token.

    Implementations report I/O problems as ``CredentialStorageError`` and
    never as a missing entry.
    """

    @abstractmethod
    async def load(self, key: str) -> Optional[str]:
        """Return the cached token for a key, or None when absent."""
        pass

    @abstractmethod
    async def store(self, key: str, token: str) -> None:
        """Persist a token under a key, replacing any previous value."""
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove the entry for a key. Removing a missing key is a no-op."""
        pass

    async def close(self) -> None:
        """Release resources held by the store."""
        return None


class CodeFetcher(ABC):
    """Capability to obtain a token for one logical key and to drop cached state."""

    @abstractmethod
    async def fetch(self) -> str:
        """Produce a token, raising CredentialAuthorizationError on failure."""
        pass

    @abstractmethod
    async def invalidate(self) -> None:
        """Clear cached state held by this fetcher and its delegates."""
        pass


class IdentityResolver(ABC):
    """Resolves the local node's own service identity."""

    @abstractmethod
    async def resolve_own_service_identity(self) -> str:
        """Return the DID of the local service instance."""
        pass


class AuthorizationExchange(ABC):
    """Network exchange that asks a target node to issue a backup token."""

    @abstractmethod
    async def request_authorization(
        self, caller_did: str, target_did: str, target_address: str
    ) -> str:
        """Return a token scoped to the (caller, target) pair."""
        pass
