"""
Test fixtures for storage tests.

Provides connected Postgres and Redis status stores.
Requires docker-compose services to be running; tests using these
fixtures are skipped when a service cannot be reached.
"""

import os

import pytest
import pytest_asyncio

from opstatus.core.storage.base import CacheConfig, DatabaseConfig
from opstatus.core.storage.exceptions import ConnectionError
from opstatus.core.storage.postgres import Database
from opstatus.core.storage.redis_cache import Cache
from opstatus.core.storage.redis_store import RedisStatusStore

# Use test databases to avoid polluting real data
TEST_DB = "opstatus_test"
TEST_REDIS_DB = 15
TEST_KEY_PREFIX = "opstatus-test:"


@pytest.fixture
def database_config() -> DatabaseConfig:
    """Database configuration for tests."""
    return DatabaseConfig(
        host=os.getenv("POSTGRES_HOST", "localhost"),
        port=int(os.getenv("POSTGRES_PORT", "5432")),
        database=os.getenv("POSTGRES_TEST_DB", TEST_DB),
        user=os.getenv("POSTGRES_USER", "opstatus"),
        password=os.getenv("POSTGRES_PASSWORD", "opstatus"),
        pool_size=2,
        pool_max_overflow=2,
        echo=False,
    )


@pytest.fixture
def cache_config() -> CacheConfig:
    """Redis cache configuration for tests."""
    return CacheConfig(
        host=os.getenv("REDIS_HOST", "localhost"),
        port=int(os.getenv("REDIS_PORT", "6379")),
        db=TEST_REDIS_DB,
        password=os.getenv("REDIS_PASSWORD", ""),
        default_ttl=0,
        max_connections=5,
    )


@pytest_asyncio.fixture
async def postgres_store(database_config: DatabaseConfig):
    """
    Provide a PostgresStatusStore with fresh tables.

    Creates tables at setup and drops them at teardown.
    """
    from opstatus.core.storage.postgres_store import PostgresStatusStore

    store = PostgresStatusStore(Database(database_config))
    await store.connect()
    if not await store.health_check():
        await store.disconnect()
        pytest.skip("PostgreSQL not available")

    await store.drop_tables()
    await store.create_tables()

    yield store

    await store.drop_tables()
    await store.disconnect()


@pytest_asyncio.fixture
async def redis_store(cache_config: CacheConfig):
    """Provide a RedisStatusStore on a flushed test database."""
    cache = Cache(cache_config)
    try:
        await cache.connect()
    except ConnectionError:
        pytest.skip("Redis not available")

    await cache.flush_db()
    yield RedisStatusStore(cache, key_prefix=TEST_KEY_PREFIX)
    await cache.flush_db()
    await cache.disconnect()
