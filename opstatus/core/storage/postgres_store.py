"""
PostgreSQL status store.

Maps status collections onto the SQLAlchemy models in
opstatus.core.models and runs equality-filtered insert/update/select/delete
statements through the shared async Database.
"""

import logging
from typing import Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError

from opstatus.core.models.status import Installation, JobStatus, PushStatus
from opstatus.core.storage.base import BaseStatusStore, Filter, Record
from opstatus.core.storage.collections import (
    INSTALLATION_COLLECTION,
    JOB_STATUS_COLLECTION,
    PUSH_STATUS_COLLECTION,
)
from opstatus.core.storage.exceptions import (
    DuplicateError,
    StorageError,
    UnknownCollectionError,
)
from opstatus.core.storage.postgres import Base, Database

logger = logging.getLogger(__name__)

COLLECTION_MODELS: dict[str, type[Base]] = {
    PUSH_STATUS_COLLECTION: PushStatus,
    JOB_STATUS_COLLECTION: JobStatus,
    INSTALLATION_COLLECTION: Installation,
}


class PostgresStatusStore(BaseStatusStore):
    """
    Status store backed by PostgreSQL tables.

    Usage:
        store = PostgresStatusStore(database)
        await store.connect()
        await store.create("_JobStatus", {"object_id": "abc", ...})
    """

    def __init__(self, database: Database):
        """Initialize with a Database instance (connected lazily)."""
        self._db = database

    async def connect(self) -> None:
        """Connect the underlying database."""
        await self._db.connect()

    async def disconnect(self) -> None:
        """Disconnect the underlying database."""
        await self._db.disconnect()

    async def health_check(self) -> bool:
        """Check if PostgreSQL is reachable."""
        return await self._db.health_check()

    async def create_tables(self) -> None:
        """Create missing status tables. Deployed databases are migrated with Alembic."""
        tables = [model.__table__ for model in COLLECTION_MODELS.values()]
        async with self._db.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, tables=tables)

    async def drop_tables(self) -> None:
        """Drop the status tables."""
        tables = [model.__table__ for model in COLLECTION_MODELS.values()]
        async with self._db.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all, tables=tables)
        logger.warning("Status tables dropped")

    def _model(self, collection: str) -> type[Base]:
        model = COLLECTION_MODELS.get(collection)
        if model is None:
            raise UnknownCollectionError(collection)
        return model

    def _conditions(self, model: type[Base], where: Filter) -> list[Any]:
        columns = model.__table__.columns
        conditions = []
        for key, value in where.items():
            if key not in columns:
                raise StorageError(f"Unknown field for {model.__tablename__}: {key}")
            conditions.append(columns[key] == value)
        return conditions

    def _check_fields(self, model: type[Base], fields: Record) -> None:
        unknown = [key for key in fields if key not in model.__table__.columns]
        if unknown:
            raise StorageError(f"Unknown fields for {model.__tablename__}: {unknown}")

    @staticmethod
    def _to_record(obj: Base) -> Record:
        return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}

    async def create(self, collection: str, record: Record) -> None:
        """Insert a new row."""
        model = self._model(collection)
        self._check_fields(model, record)

        try:
            async with self._db.session() as session:
                await session.execute(insert(model).values(**record))
        except IntegrityError as e:
            raise DuplicateError(
                f"{collection} record already exists: {record.get('object_id')}"
            ) from e

    async def update(self, collection: str, where: Filter, fields: Record) -> int:
        """Merge fields into matching rows."""
        model = self._model(collection)
        self._check_fields(model, fields)

        stmt = update(model).where(*self._conditions(model, where)).values(**fields)
        async with self._db.session() as session:
            result = await session.execute(stmt)
            return result.rowcount

    async def find(self, collection: str, where: Filter) -> list[Record]:
        """Return matching rows as dicts."""
        model = self._model(collection)

        stmt = select(model).where(*self._conditions(model, where))
        async with self._db.session() as session:
            result = await session.execute(stmt)
            return [self._to_record(obj) for obj in result.scalars().all()]

    async def destroy(self, collection: str, where: Filter) -> int:
        """Delete matching rows."""
        model = self._model(collection)

        stmt = delete(model).where(*self._conditions(model, where))
        async with self._db.session() as session:
            result = await session.execute(stmt)
            deleted = result.rowcount

        logger.debug(f"Deleted {deleted} {collection} rows matching {dict(where)}")
        return deleted
