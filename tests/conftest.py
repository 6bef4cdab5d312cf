"""
Shared test fixtures.

RecordingStore wraps the in-memory store and logs every call so tests can
assert on the exact sequence of storage operations, optionally slowing
individual calls down to provoke reordering.
"""

import asyncio
from collections.abc import Callable

import pytest

from opstatus.core.config.loader import get_config
from opstatus.core.storage.base import Filter, Record
from opstatus.core.storage.memory import MemoryStatusStore


class RecordingStore(MemoryStatusStore):
    """
    MemoryStatusStore that records calls.

    ``calls`` holds (method, collection, args) tuples in the order calls
    started; ``events`` holds ("start"|"end", method) pairs so overlapping
    calls can be detected. ``delay`` returns seconds to sleep for a call.
    """

    def __init__(self, delay: Callable[[str, tuple], float] | None = None):
        super().__init__()
        self.calls: list[tuple[str, str, tuple]] = []
        self.events: list[tuple[str, str]] = []
        self._delay = delay or (lambda method, args: 0)
        self.fail_on: set[str] = set()

    async def _record(self, method: str, collection: str, *args):
        self.calls.append((method, collection, args))
        self.events.append(("start", method))
        try:
            delay = self._delay(method, args)
            if delay:
                await asyncio.sleep(delay)
            if method in self.fail_on:
                raise RuntimeError(f"{method} failed")
            return await getattr(super(), method)(collection, *args)
        finally:
            self.events.append(("end", method))

    async def create(self, collection: str, record: Record) -> None:
        return await self._record("create", collection, record)

    async def update(self, collection: str, where: Filter, fields: Record) -> int:
        return await self._record("update", collection, where, fields)

    async def find(self, collection: str, where: Filter) -> list[Record]:
        return await self._record("find", collection, where)

    async def destroy(self, collection: str, where: Filter) -> int:
        return await self._record("destroy", collection, where)

    def methods(self) -> list[str]:
        return [method for method, _, _ in self.calls]


@pytest.fixture
def store() -> MemoryStatusStore:
    """Provide an empty in-memory status store."""
    return MemoryStatusStore()


@pytest.fixture
def recording_store() -> RecordingStore:
    """Provide a recording store with no delays."""
    return RecordingStore()


@pytest.fixture(autouse=True)
def _clear_config_cache():
    """Clear the config lru_cache around every test."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()
