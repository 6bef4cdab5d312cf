"""
Status store selection.

Builds the store named by the ``status_store.backend`` config key and
keeps one connected global instance, the same way the other storage
backends are shared.
"""

import logging
import os

from opstatus.core.config.loader import get_config
from opstatus.core.storage.base import BaseStatusStore, StatusStoreConfig
from opstatus.core.storage.exceptions import ConfigurationError
from opstatus.core.storage.memory import MemoryStatusStore
from opstatus.core.storage.postgres import Database, load_database_config
from opstatus.core.storage.redis_cache import Cache, load_cache_config
from opstatus.core.storage.redis_store import RedisStatusStore

logger = logging.getLogger(__name__)

BACKENDS = ("memory", "postgres", "redis")


def load_status_store_config() -> StatusStoreConfig:
    """
    Load status store configuration.

    STATUS_STORE_BACKEND in the environment takes precedence over the
    config file.
    """
    config = get_config()
    store_config = config.get("status_store", {}) or {}

    return StatusStoreConfig(
        backend=os.environ.get(
            "STATUS_STORE_BACKEND", store_config.get("backend", "memory")
        ).lower(),
        key_prefix=store_config.get("key_prefix", "opstatus:"),
    )


def create_status_store(config: StatusStoreConfig) -> BaseStatusStore:
    """Build an unconnected store for the configured backend."""
    if config.backend == "memory":
        return MemoryStatusStore()
    if config.backend == "postgres":
        # Deferred: the ORM models import this package.
        from opstatus.core.storage.postgres_store import PostgresStatusStore

        return PostgresStatusStore(Database(load_database_config()))
    if config.backend == "redis":
        return RedisStatusStore(Cache(load_cache_config()), key_prefix=config.key_prefix)

    raise ConfigurationError(
        f"Unknown status store backend: {config.backend!r} (expected one of {BACKENDS})"
    )


# Global status store instance
_store_instance: BaseStatusStore | None = None


async def get_status_store() -> BaseStatusStore:
    """
    Get the global status store instance.

    Creates and connects the instance on first call.
    Subsequent calls return the same instance.

    Returns:
        Connected status store.
    """
    global _store_instance

    if _store_instance is None:
        config = load_status_store_config()
        store = create_status_store(config)
        await store.connect()
        _store_instance = store
        logger.info(f"Status store ready: {config.backend}")

    return _store_instance


async def close_status_store() -> None:
    """Close the global status store instance."""
    global _store_instance

    if _store_instance is not None:
        await _store_instance.disconnect()
        _store_instance = None
