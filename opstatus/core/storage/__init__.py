"""
Storage module.

Provides the status record stores and the backends they run on:
- In-process dicts (MemoryStatusStore)
- PostgreSQL tables (PostgresStatusStore)
- Redis JSON documents (RedisStatusStore)

Usage:
    from opstatus.core.storage import get_status_store

    store = await get_status_store()
    await store.create("_JobStatus", {"object_id": "abc", "status": "running"})
    records = await store.find("_JobStatus", {"object_id": "abc"})
"""

# Base classes and types
from opstatus.core.storage.base import (
    BaseCache,
    BaseDatabase,
    BaseStatusStore,
    CacheConfig,
    DatabaseConfig,
    Filter,
    Record,
    StatusStoreConfig,
)
from opstatus.core.storage.collections import (
    INSTALLATION_COLLECTION,
    JOB_STATUS_COLLECTION,
    PUSH_STATUS_COLLECTION,
)

# Exceptions
from opstatus.core.storage.exceptions import (
    ConfigurationError,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    StorageError,
    UnknownCollectionError,
)

# Store selection
from opstatus.core.storage.factory import (
    close_status_store,
    create_status_store,
    get_status_store,
    load_status_store_config,
)
from opstatus.core.storage.memory import MemoryStatusStore

# PostgreSQL
from opstatus.core.storage.postgres import Base, Database

# Redis
from opstatus.core.storage.redis_cache import Cache
from opstatus.core.storage.redis_store import RedisStatusStore

__all__ = [
    # Base classes
    "BaseDatabase",
    "BaseCache",
    "BaseStatusStore",
    # Config types
    "DatabaseConfig",
    "CacheConfig",
    "StatusStoreConfig",
    # Data types
    "Record",
    "Filter",
    # Collections
    "PUSH_STATUS_COLLECTION",
    "JOB_STATUS_COLLECTION",
    "INSTALLATION_COLLECTION",
    # Exceptions
    "StorageError",
    "ConnectionError",
    "NotFoundError",
    "DuplicateError",
    "ConfigurationError",
    "UnknownCollectionError",
    # Stores
    "MemoryStatusStore",
    "RedisStatusStore",
    "get_status_store",
    "close_status_store",
    "create_status_store",
    "load_status_store_config",
    # Backends
    "Database",
    "Base",
    "Cache",
]
