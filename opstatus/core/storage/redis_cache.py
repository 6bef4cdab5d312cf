"""
Redis cache implementation.

Provides string/JSON storage, set indexes and optimistic JSON updates.
Uses redis-py with async support.
"""

import json
import logging
from collections.abc import Callable
from typing import Any

import redis.asyncio as redis
from redis.exceptions import WatchError

from opstatus.core.config.loader import get_config
from opstatus.core.storage.base import BaseCache, CacheConfig
from opstatus.core.storage.exceptions import ConfigurationError, ConnectionError

logger = logging.getLogger(__name__)


class Cache(BaseCache):
    """
    Redis cache implementation.

    Usage:
        cache = Cache(config)
        await cache.connect()

        await cache.set_if_absent("status:abc", json.dumps({"status": "pending"}))
        await cache.update_json("status:abc", lambda doc: {**doc, "status": "running"})
        [raw] = await cache.get_many(["status:abc"])

        await cache.disconnect()
    """

    def __init__(self, config: CacheConfig):
        """Initialize cache with configuration."""
        super().__init__(config)
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Establish connection to Redis."""
        if self._client is not None:
            return

        try:
            self._client = redis.Redis(
                host=self.config.host,
                port=self.config.port,
                db=self.config.db,
                password=self.config.password if self.config.password else None,
                max_connections=self.config.max_connections,
                decode_responses=True,
            )
            # Test connection
            await self._client.ping()
            logger.info(f"Connected to Redis at {self.config.host}:{self.config.port}")
        except Exception as e:
            self._client = None
            raise ConnectionError(f"Failed to connect to Redis: {e}") from e

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Disconnected from Redis")

    async def health_check(self) -> bool:
        """Check if Redis is reachable."""
        if self._client is None:
            return False

        try:
            await self._client.ping()
            return True
        except Exception as e:
            logger.warning(f"Redis health check failed: {e}")
            return False

    def _get_client(self) -> redis.Redis:
        """Get Redis client, raising if not connected."""
        if self._client is None:
            raise ConnectionError("Cache not connected. Call connect() first.")
        return self._client

    def _ttl(self, ttl: int | None) -> int | None:
        """Resolve TTL; 0 or None in config means keys never expire."""
        ttl = ttl or self.config.default_ttl
        return ttl if ttl else None

    async def get_many(self, keys: list[str]) -> list[str | None]:
        """Get several string values at once, None for missing keys."""
        if not keys:
            return []
        client = self._get_client()
        return await client.mget(keys)

    async def set_if_absent(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Set value only if the key does not exist. Returns True if set."""
        client = self._get_client()
        result = await client.set(key, value, ex=self._ttl(ttl), nx=True)
        return bool(result)

    async def delete(self, key: str) -> bool:
        """Delete key. Returns True if key existed."""
        client = self._get_client()
        result = await client.delete(key)
        return result > 0

    async def update_json(
        self,
        key: str,
        mutate: Callable[[dict[str, Any]], dict[str, Any] | None],
    ) -> dict[str, Any] | None:
        """
        Apply ``mutate`` to a JSON document under WATCH/MULTI.

        Retries when another client changes the key concurrently.

        Args:
            key: Key of the JSON document.
            mutate: Receives the current document and returns the new one,
                or None to leave it unchanged.

        Returns:
            The written document, or None if the key is missing or mutate
            returned None.
        """
        client = self._get_client()
        async with client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    if raw is None:
                        await pipe.unwatch()
                        return None

                    updated = mutate(json.loads(raw))
                    if updated is None:
                        await pipe.unwatch()
                        return None

                    pipe.multi()
                    pipe.set(key, json.dumps(updated), keepttl=True)
                    await pipe.execute()
                    return updated
                except WatchError:
                    logger.debug(f"Concurrent write on {key}, retrying")
                    continue

    async def add_to_set(self, key: str, *members: str) -> int:
        """Add members to a set. Returns the number newly added."""
        client = self._get_client()
        return await client.sadd(key, *members)

    async def remove_from_set(self, key: str, *members: str) -> int:
        """Remove members from a set. Returns the number removed."""
        if not members:
            return 0
        client = self._get_client()
        return await client.srem(key, *members)

    async def set_members(self, key: str) -> set[str]:
        """Get all members of a set."""
        client = self._get_client()
        return await client.smembers(key)

    async def flush_db(self) -> None:
        """Delete all keys in current database. Use with caution."""
        client = self._get_client()
        await client.flushdb()
        logger.warning("Redis database flushed")


def load_cache_config() -> CacheConfig:
    """Load cache configuration from config files."""
    config = get_config()
    redis_config = config.get("redis", {})

    if not redis_config:
        raise ConfigurationError("Redis configuration not found")

    return CacheConfig(
        host=redis_config.get("host", "localhost"),
        port=int(redis_config.get("port", 6379)),
        db=int(redis_config.get("db", 0)),
        password=redis_config.get("password", "") or "",
        default_ttl=int(redis_config.get("default_ttl", 0)),
        max_connections=int(redis_config.get("max_connections", 10)),
    )
