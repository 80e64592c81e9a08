"""
Settings for the credential chain, loaded from YAML with env overrides.
"""
import logging
import os
from pathlib import Path
from typing import Any, Literal, Optional, Tuple, Type, Union

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .stores.file import DEFAULT_CACHE_DIR, FileCredentialStore
from .stores.memory import MemoryCredentialStore
from .stores.redis import RedisClientProtocol, RedisCredentialStore
from .transport import DEFAULT_AUTHORIZATION_PATH, DEFAULT_TIMEOUT_SECONDS
from .types import CredentialStore

logger = logging.getLogger(__name__)

ENV_PREFIX = "BACKUP_CREDENTIAL_"
CONFIG_ENV_VAR = f"{ENV_PREFIX}CONFIG"
DEFAULT_CONFIG_FILE = "backup_credential.yaml"

StoreBackend = Literal["memory", "file", "redis"]


class CredentialSettings(BaseSettings):
    """
    Credential chain settings.

    Every field can be set from a ``BACKUP_CREDENTIAL_<FIELD>`` env variable,
    e.g. ``BACKUP_CREDENTIAL_STORE_BACKEND``. Env variables take priority
    over keyword arguments, so they also win over values read from YAML.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, env_file=None, extra="ignore")

    store_backend: StoreBackend = "file"
    cache_dir: str = str(DEFAULT_CACHE_DIR)
    redis_key_prefix: str = "backup_credential:"
    authorization_path: str = DEFAULT_AUTHORIZATION_PATH
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def load_settings(path: Union[str, Path, None] = None) -> CredentialSettings:
    """
    Load settings from a YAML file.

    Args:
        path: Optional path to the settings file. Falls back to the
            BACKUP_CREDENTIAL_CONFIG env variable or 'backup_credential.yaml'
            in the current directory. A missing file yields defaults.
    """
    config_path = Path(path or os.getenv(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE))
    data: dict[str, Any] = {}
    if config_path.exists():
        logger.debug(f"load_settings: Parsing {config_path}")
        data = yaml.safe_load(config_path.read_text()) or {}
    else:
        logger.debug(f"load_settings: {config_path} not found, using defaults")

    return CredentialSettings(**data)


def create_store(
    settings: CredentialSettings,
    redis_client: Optional[RedisClientProtocol] = None,
) -> CredentialStore:
    """Create the credential store selected by ``settings.store_backend``."""
    if settings.store_backend == "memory":
        return MemoryCredentialStore()
    if settings.store_backend == "file":
        return FileCredentialStore(settings.cache_dir)
    if redis_client is None:
        raise ValueError("redis store backend requires a redis client")
    return RedisCredentialStore(redis_client, settings.redis_key_prefix)
