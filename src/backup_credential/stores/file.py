"""
File-backed credential store.

Each key is written to its own JSON document under a cache directory, so
entries for different target nodes never contend with each other and survive
process restarts.
"""
import asyncio
import hashlib
import json
import logging
import os
import tempfile
import time
from dataclasses import asdict
from pathlib import Path
from typing import Callable, Dict, Optional, TypeVar, Union

from ..errors import CredentialStorageError
from ..types import CredentialStore, StoredCredential

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CACHE_DIR = Path.home() / ".backup_credential"


class FileCredentialStore(CredentialStore):
    """
    JSON-file implementation of CredentialStore.

    Blocking file access runs in the default executor. Operations on the same
    key are serialised by a per-key lock; different keys run concurrently.
    """

    def __init__(self, directory: Union[str, Path, None] = None) -> None:
        self._directory = Path(directory) if directory else DEFAULT_CACHE_DIR
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """Path of the document holding a key."""
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._directory / f"{digest}.json"

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def _run(self, fn: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn)

    def _read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CredentialStorageError(
                f"Failed to read credential file {path}: {e}", key=key
            ) from e
        except UnicodeDecodeError as e:
            raise CredentialStorageError(
                f"Corrupted credential file {path}: {e}", key=key
            ) from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CredentialStorageError(
                f"Corrupted credential file {path}: {e}", key=key
            ) from e

        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise CredentialStorageError(
                f"Corrupted credential file {path}: missing token", key=key
            )
        if data.get("key") != key:
            raise CredentialStorageError(
                f"Corrupted credential file {path}: key mismatch", key=key
            )
        return token

    def _write(self, key: str, token: str) -> None:
        path = self.path_for(key)
        record = StoredCredential(key=key, token=token, stored_at=time.time())
        tmp_name = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._directory,
                prefix=".tmp-",
                suffix=".json",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                json.dump(asdict(record), tmp)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise CredentialStorageError(
                f"Failed to write credential file {path}: {e}", key=key
            ) from e

    def _delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise CredentialStorageError(
                f"Failed to remove credential file {path}: {e}", key=key
            ) from e

    async def load(self, key: str) -> Optional[str]:
        """Return the cached token for a key."""
        async with self._lock_for(key):
            token = await self._run(lambda: self._read(key))
        logger.debug(f"FileCredentialStore.load: key='{key}' found={token is not None}")
        return token

    async def store(self, key: str, token: str) -> None:
        """Persist a token under a key."""
        async with self._lock_for(key):
            await self._run(lambda: self._write(key, token))
        logger.debug(f"FileCredentialStore.store: key='{key}' written")

    async def remove(self, key: str) -> None:
        """Remove the entry for a key."""
        async with self._lock_for(key):
            await self._run(lambda: self._delete(key))
        logger.debug(f"FileCredentialStore.remove: key='{key}' removed")


def create_file_store(directory: Union[str, Path, None] = None) -> FileCredentialStore:
    """Create a file credential store."""
    return FileCredentialStore(directory)
