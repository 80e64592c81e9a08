"""
Credential resolution and caching chain for cross-node vault backups.
"""
from .config import CredentialSettings, create_store, load_settings
from .errors import (
    AuthorizationRejectedError,
    BackupCredentialError,
    CredentialAuthorizationError,
    CredentialStorageError,
)
from .factory import create_credential_resolver, create_credential_resolver_from_settings
from .fetchers import (
    FetcherTier,
    LocalCachingFetcher,
    RemoteCredentialFetcher,
    caching_tier,
    compose_fetchers,
    create_fetcher_chain,
)
from .resolver import CredentialResolver
from .singleflight import Singleflight, create_singleflight
from .stores import (
    FileCredentialStore,
    MemoryCredentialStore,
    MemorySingleflightStore,
    RedisCredentialStore,
    create_file_store,
    create_memory_singleflight_store,
    create_memory_store,
    create_redis_store,
)
from .transport import CredentialAuth, HttpAuthorizationExchange
from .types import (
    AuthorizationContext,
    AuthorizationExchange,
    CodeFetcher,
    CredentialEvent,
    CredentialEventListener,
    CredentialEventType,
    CredentialState,
    CredentialStore,
    IdentityResolver,
    InFlightFetch,
    SingleflightResult,
    StoredCredential,
)
from .utils import mask_sensitive


__all__ = [
    # Types
    "AuthorizationContext",
    "AuthorizationExchange",
    "CodeFetcher",
    "CredentialEvent",
    "CredentialEventListener",
    "CredentialEventType",
    "CredentialState",
    "CredentialStore",
    "IdentityResolver",
    "InFlightFetch",
    "SingleflightResult",
    "StoredCredential",
    # Errors
    "AuthorizationRejectedError",
    "BackupCredentialError",
    "CredentialAuthorizationError",
    "CredentialStorageError",
    # Fetchers
    "FetcherTier",
    "LocalCachingFetcher",
    "RemoteCredentialFetcher",
    "caching_tier",
    "compose_fetchers",
    "create_fetcher_chain",
    # Resolver
    "CredentialResolver",
    "create_credential_resolver",
    "create_credential_resolver_from_settings",
    # Singleflight
    "Singleflight",
    "create_singleflight",
    # Stores
    "FileCredentialStore",
    "MemoryCredentialStore",
    "MemorySingleflightStore",
    "RedisCredentialStore",
    "create_file_store",
    "create_memory_singleflight_store",
    "create_memory_store",
    "create_redis_store",
    # HTTP
    "CredentialAuth",
    "HttpAuthorizationExchange",
    # Config
    "CredentialSettings",
    "create_store",
    "load_settings",
    # Utils
    "mask_sensitive",
]

__version__ = "1.0.0"
