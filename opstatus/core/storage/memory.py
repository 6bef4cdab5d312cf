"""
In-process status store.

Keeps records in dicts guarded by an asyncio.Lock. Used for tests, local
development and single-process deployments where records do not need to
outlive the process.
"""

import asyncio
import copy
import logging

from opstatus.core.storage.base import BaseStatusStore, Filter, Record, matches
from opstatus.core.storage.exceptions import DuplicateError

logger = logging.getLogger(__name__)


class MemoryStatusStore(BaseStatusStore):
    """
    Status store backed by plain dicts.

    Records are deep-copied on the way in and out so callers never share
    mutable state with the store.

    Usage:
        store = MemoryStatusStore()
        await store.create("_PushStatus", {"object_id": "abc", "num_sent": 0})
        records = await store.find("_PushStatus", {"object_id": "abc"})
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._collections: dict[str, dict[str, Record]] = {}
        self._lock = asyncio.Lock()

    async def health_check(self) -> bool:
        """Memory store is always reachable."""
        return True

    def _records(self, collection: str) -> dict[str, Record]:
        return self._collections.setdefault(collection, {})

    async def create(self, collection: str, record: Record) -> None:
        """Insert a new record keyed by its object_id."""
        object_id = record.get("object_id")
        if not object_id:
            raise ValueError("Record has no object_id")

        async with self._lock:
            records = self._records(collection)
            if object_id in records:
                raise DuplicateError(f"{collection} record already exists: {object_id}")
            records[object_id] = copy.deepcopy(record)

        logger.debug(f"Created {collection} record {object_id}")

    async def update(self, collection: str, where: Filter, fields: Record) -> int:
        """Merge fields into every record matching ``where``."""
        async with self._lock:
            matched = [r for r in self._records(collection).values() if matches(r, where)]
            for record in matched:
                record.update(copy.deepcopy(fields))

        return len(matched)

    async def find(self, collection: str, where: Filter) -> list[Record]:
        """Return copies of the records matching ``where``."""
        async with self._lock:
            return [
                copy.deepcopy(r)
                for r in self._records(collection).values()
                if matches(r, where)
            ]

    async def destroy(self, collection: str, where: Filter) -> int:
        """Delete every record matching ``where``."""
        async with self._lock:
            records = self._records(collection)
            doomed = [key for key, r in records.items() if matches(r, where)]
            for key in doomed:
                del records[key]

        return len(doomed)

    def clear(self) -> None:
        """Drop all collections (for test teardown)."""
        self._collections.clear()
