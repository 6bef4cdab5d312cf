"""
Redis status store.

Each record is one JSON document under ``{prefix}{collection}:{object_id}``;
a set ``{prefix}{collection}:ids`` indexes the ids of a collection so
filters on other fields can be evaluated client-side. Datetimes are stored
as ISO 8601 strings and come back as strings.
"""

import json
import logging
from datetime import datetime
from typing import Any

from opstatus.core.storage.base import BaseStatusStore, Filter, Record, matches
from opstatus.core.storage.exceptions import DuplicateError
from opstatus.core.storage.redis_cache import Cache
from opstatus.core.utils.time import to_iso

logger = logging.getLogger(__name__)


def _encode(value: Any) -> Any:
    """Make a record JSON-safe."""
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


class RedisStatusStore(BaseStatusStore):
    """
    Status store backed by Redis JSON documents.

    Usage:
        store = RedisStatusStore(cache, key_prefix="opstatus:")
        await store.connect()
        await store.create("_PushStatus", {"object_id": "abc", ...})
    """

    def __init__(self, cache: Cache, key_prefix: str = "opstatus:"):
        """Initialize with a Cache instance and key prefix."""
        self._cache = cache
        self._prefix = key_prefix

    async def connect(self) -> None:
        """Connect the underlying cache."""
        await self._cache.connect()

    async def disconnect(self) -> None:
        """Disconnect the underlying cache."""
        await self._cache.disconnect()

    async def health_check(self) -> bool:
        """Check if Redis is reachable."""
        return await self._cache.health_check()

    def _key(self, collection: str, object_id: str) -> str:
        return f"{self._prefix}{collection}:{object_id}"

    def _index_key(self, collection: str) -> str:
        return f"{self._prefix}{collection}:ids"

    async def _candidate_ids(self, collection: str, where: Filter) -> list[str]:
        if "object_id" in where:
            return [str(where["object_id"])]
        return sorted(await self._cache.set_members(self._index_key(collection)))

    async def create(self, collection: str, record: Record) -> None:
        """Store a new document and index its id."""
        object_id = record.get("object_id")
        if not object_id:
            raise ValueError("Record has no object_id")

        created = await self._cache.set_if_absent(
            self._key(collection, object_id), json.dumps(_encode(record))
        )
        if not created:
            raise DuplicateError(f"{collection} record already exists: {object_id}")

        await self._cache.add_to_set(self._index_key(collection), object_id)

    async def update(self, collection: str, where: Filter, fields: Record) -> int:
        """Merge fields into every matching document."""
        encoded = _encode(fields)
        matched = 0

        def mutate(doc: dict[str, Any]) -> dict[str, Any] | None:
            if not matches(doc, where):
                return None
            return {**doc, **encoded}

        for object_id in await self._candidate_ids(collection, where):
            if await self._cache.update_json(self._key(collection, object_id), mutate):
                matched += 1

        return matched

    async def find(self, collection: str, where: Filter) -> list[Record]:
        """Return matching documents."""
        ids = await self._candidate_ids(collection, where)
        raw_docs = await self._cache.get_many([self._key(collection, i) for i in ids])

        records = []
        for raw in raw_docs:
            if raw is None:
                continue
            doc = json.loads(raw)
            if matches(doc, where):
                records.append(doc)
        return records

    async def destroy(self, collection: str, where: Filter) -> int:
        """Delete matching documents and drop them from the index."""
        doomed = [doc["object_id"] for doc in await self.find(collection, where)]

        for object_id in doomed:
            await self._cache.delete(self._key(collection, object_id))
        await self._cache.remove_from_set(self._index_key(collection), *doomed)

        if doomed:
            logger.debug(f"Deleted {len(doomed)} {collection} documents")
        return len(doomed)
