"""
PostgreSQL connection handling for the status store.

Database owns the async engine and hands out transactional sessions;
PostgresStatusStore issues its statements through it.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from opstatus.core.config.loader import get_config
from opstatus.core.storage.base import BaseDatabase, DatabaseConfig
from opstatus.core.storage.exceptions import ConfigurationError, ConnectionError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for the status tables."""

    pass


class Database(BaseDatabase):
    """
    Async SQLAlchemy engine plus session factory.

    The engine is created on connect(); sessions opened before that raise
    ConnectionError.

    Usage:
        db = Database(load_database_config())
        await db.connect()

        async with db.session() as session:
            await session.execute(update(JobStatus).values(message="50%"))

        await db.disconnect()
    """

    def __init__(self, config: DatabaseConfig):
        super().__init__(config)
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @property
    def url(self) -> str:
        """asyncpg connection URL built from the config."""
        cfg = self.config
        return f"postgresql+asyncpg://{cfg.user}:{cfg.password}@{cfg.host}:{cfg.port}/{cfg.database}"

    @property
    def engine(self) -> AsyncEngine:
        """The connected engine. Raises ConnectionError before connect()."""
        if self._engine is None:
            raise ConnectionError("Database not connected. Call connect() first.")
        return self._engine

    async def connect(self) -> None:
        """Create the engine and pool. Calling it twice is a no-op."""
        if self._engine is not None:
            return

        try:
            self._engine = create_async_engine(
                self.url,
                pool_size=self.config.pool_size,
                max_overflow=self.config.pool_max_overflow,
                echo=self.config.echo,
            )
        except Exception as e:
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}") from e

        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)
        logger.info(f"Status store using PostgreSQL at {self.config.host}:{self.config.port}")

    async def disconnect(self) -> None:
        """Dispose of the pool."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None
        logger.info("Disconnected from PostgreSQL")

    async def health_check(self) -> bool:
        """Run SELECT 1; False when not connected or unreachable."""
        if self._engine is None:
            return False

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning(f"PostgreSQL health check failed: {e}")
            return False
        return True

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session that commits on normal exit and rolls back on error."""
        if self._sessions is None:
            raise ConnectionError("Database not connected. Call connect() first.")

        async with self._sessions() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


def load_database_config() -> DatabaseConfig:
    """Build DatabaseConfig from the ``postgres`` config section."""
    section = get_config().get("postgres") or {}
    if not section:
        raise ConfigurationError("PostgreSQL configuration not found")

    defaults = DatabaseConfig()
    return DatabaseConfig(
        host=section.get("host", defaults.host),
        port=int(section.get("port", defaults.port)),
        database=section.get("database", defaults.database),
        user=section.get("user", defaults.user),
        password=section.get("password", defaults.password),
        pool_size=int(section.get("pool_size", defaults.pool_size)),
        pool_max_overflow=int(section.get("pool_max_overflow", defaults.pool_max_overflow)),
        echo=bool(section.get("echo", defaults.echo)),
    )
