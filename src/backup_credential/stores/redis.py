"""
Redis credential store implementation
Suitable for sharing cached credentials between processes
"""
from typing import Any, Optional, Protocol

from ..errors import CredentialStorageError
from ..types import CredentialStore


class RedisClientProtocol(Protocol):
    """Protocol for Redis client (compatible with redis-py async)"""

    async def get(self, name: str) -> Any:
        ...

    async def set(self, name: str, value: Any) -> Any:
        ...

    async def delete(self, *names: str) -> int:
        ...

    async def close(self) -> None:
        ...


class RedisCredentialStore(CredentialStore):
    """
    Redis implementation of CredentialStore.
    Entries carry no TTL; staleness is discovered through rejection.
    """

    def __init__(
        self, client: RedisClientProtocol, key_prefix: str = "backup_credential:"
    ) -> None:
        """
        Create a new RedisCredentialStore.

        Args:
            client: Redis client (async redis-py instance)
            key_prefix: Prefix for all keys. Default: 'backup_credential:'
        """
        self._client = client
        self._key_prefix = key_prefix

    def _get_key(self, key: str) -> str:
        """Get the full key with prefix"""
        return f"{self._key_prefix}{key}"

    async def load(self, key: str) -> Optional[str]:
        """Get the cached token for a key"""
        try:
            value = await self._client.get(self._get_key(key))
        except Exception as e:
            raise CredentialStorageError(f"Redis read failed for '{key}': {e}", key=key) from e
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def store(self, key: str, token: str) -> None:
        """Persist a token for a key"""
        try:
            await self._client.set(self._get_key(key), token)
        except Exception as e:
            raise CredentialStorageError(f"Redis write failed for '{key}': {e}", key=key) from e

    async def remove(self, key: str) -> None:
        """Remove the token for a key"""
        try:
            await self._client.delete(self._get_key(key))
        except Exception as e:
            raise CredentialStorageError(f"Redis delete failed for '{key}': {e}", key=key) from e

    async def close(self) -> None:
        """Close the store and cleanup resources"""
        await self._client.close()


def create_redis_store(
    client: RedisClientProtocol, key_prefix: str = "backup_credential:"
) -> RedisCredentialStore:
    """
    Create a new RedisCredentialStore instance.

    Args:
        client: Redis client (async redis-py instance)
        key_prefix: Prefix for all keys

    Returns:
        RedisCredentialStore instance
    """
    return RedisCredentialStore(client, key_prefix)
