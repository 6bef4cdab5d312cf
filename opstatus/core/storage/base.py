"""
Base interfaces for storage components.

All storage implementations must follow these interfaces.
This ensures trackers can run on any backend without changing tracker code.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

Record = dict[str, Any]
Filter = Mapping[str, Any]


def matches(record: Mapping[str, Any], where: Filter) -> bool:
    """Return True if every key in ``where`` equals the record's value."""
    return all(key in record and record[key] == value for key, value in where.items())


# =============================================================================
# PostgreSQL Base
# =============================================================================


@dataclass
class DatabaseConfig:
    """Configuration for PostgreSQL database."""

    host: str = "localhost"
    port: int = 5432
    database: str = "opstatus"
    user: str = "opstatus"
    password: str = "opstatus"
    pool_size: int = 5
    pool_max_overflow: int = 10
    echo: bool = False


class BaseDatabase(ABC):
    """
    Abstract base class for database operations.

    Usage:
        db = SomeDatabase(config)
        await db.connect()

        async with db.session() as session:
            result = await session.execute(query)

        await db.disconnect()
    """

    def __init__(self, config: DatabaseConfig):
        """Initialize with configuration."""
        self.config = config

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the database."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close all database connections."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if database is reachable."""
        pass

    @abstractmethod
    def session(self) -> Any:
        """Return a session context manager."""
        pass


# =============================================================================
# Redis Cache Base
# =============================================================================


@dataclass
class CacheConfig:
    """Configuration for Redis cache."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str = ""
    default_ttl: int = 0
    max_connections: int = 10


class BaseCache(ABC):
    """
    Abstract base class for cache operations.

    Usage:
        cache = SomeCache(config)
        await cache.connect()

        await cache.set_if_absent("key", "value")
        await cache.add_to_set("index", "key")

        await cache.disconnect()
    """

    def __init__(self, config: CacheConfig):
        """Initialize with configuration."""
        self.config = config

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to cache service."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close all cache connections."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if cache service is reachable."""
        pass

    @abstractmethod
    async def get_many(self, keys: list[str]) -> list[str | None]:
        """Get several values at once, None for missing keys."""
        pass

    @abstractmethod
    async def set_if_absent(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Set value only if the key does not exist. Returns True if set."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete key. Returns True if key existed."""
        pass

    @abstractmethod
    async def update_json(
        self,
        key: str,
        mutate: Callable[[dict[str, Any]], dict[str, Any] | None],
    ) -> dict[str, Any] | None:
        """Atomically replace a JSON document with mutate(document)."""
        pass

    @abstractmethod
    async def add_to_set(self, key: str, *members: str) -> int:
        """Add members to a set index."""
        pass

    @abstractmethod
    async def remove_from_set(self, key: str, *members: str) -> int:
        """Remove members from a set index."""
        pass

    @abstractmethod
    async def set_members(self, key: str) -> set[str]:
        """Get all members of a set index."""
        pass


# =============================================================================
# Status Store Base
# =============================================================================


@dataclass
class StatusStoreConfig:
    """Configuration for the status record store."""

    backend: str = "memory"
    key_prefix: str = "opstatus:"


class BaseStatusStore(ABC):
    """
    Abstract base class for status record storage.

    Records are plain dicts keyed by ``object_id`` and grouped into named
    collections (``_PushStatus``, ``_JobStatus``, ``_Installation``).
    Filters are equality matches on record fields; a filter may carry a
    status guard such as ``{"object_id": "abc", "status": "pending"}``.

    Each call is atomic for a single record. Ordering across calls is the
    caller's responsibility (see MutationQueue).

    Usage:
        store = SomeStatusStore(...)
        await store.connect()

        await store.create("_JobStatus", {"object_id": "abc", "status": "running"})
        await store.update("_JobStatus", {"object_id": "abc"}, {"message": "50%"})
        records = await store.find("_JobStatus", {"object_id": "abc"})

        await store.disconnect()
    """

    async def connect(self) -> None:
        """Establish connection to the backend."""
        pass

    async def disconnect(self) -> None:
        """Close connection to the backend."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the backend is reachable."""
        pass

    @abstractmethod
    async def create(self, collection: str, record: Record) -> None:
        """Insert a new record. Raises DuplicateError if object_id exists."""
        pass

    @abstractmethod
    async def update(self, collection: str, where: Filter, fields: Record) -> int:
        """Merge fields into matching records. Returns the number matched."""
        pass

    @abstractmethod
    async def find(self, collection: str, where: Filter) -> list[Record]:
        """Return matching records (possibly empty)."""
        pass

    @abstractmethod
    async def destroy(self, collection: str, where: Filter) -> int:
        """Delete matching records. Returns the number deleted."""
        pass
