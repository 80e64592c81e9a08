"""
Store implementations for backup_credential.
"""
from .file import FileCredentialStore, create_file_store
from .memory import (
    MemoryCredentialStore,
    MemorySingleflightStore,
    create_memory_singleflight_store,
    create_memory_store,
)
from .redis import RedisClientProtocol, RedisCredentialStore, create_redis_store

__all__ = [
    "FileCredentialStore",
    "MemoryCredentialStore",
    "MemorySingleflightStore",
    "RedisClientProtocol",
    "RedisCredentialStore",
    "create_file_store",
    "create_memory_singleflight_store",
    "create_memory_store",
    "create_redis_store",
]
