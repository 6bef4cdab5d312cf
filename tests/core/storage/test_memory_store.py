"""Tests for MemoryStatusStore."""

import pytest

from opstatus.core.storage.exceptions import DuplicateError
from opstatus.core.storage.memory import MemoryStatusStore

COLLECTION = "_PushStatus"


@pytest.mark.asyncio
async def test_health_check(store: MemoryStatusStore) -> None:
    """Memory store is always healthy."""
    assert await store.health_check() is True


@pytest.mark.asyncio
async def test_create_and_find(store: MemoryStatusStore) -> None:
    """A created record is found by id."""
    await store.create(COLLECTION, {"object_id": "a1", "status": "pending"})

    assert await store.find(COLLECTION, {"object_id": "a1"}) == [
        {"object_id": "a1", "status": "pending"}
    ]
    assert await store.find(COLLECTION, {"object_id": "zz"}) == []
    assert await store.find("_Other", {"object_id": "a1"}) == []


@pytest.mark.asyncio
async def test_create_duplicate(store: MemoryStatusStore) -> None:
    """Creating the same id twice raises DuplicateError."""
    await store.create(COLLECTION, {"object_id": "a1"})

    with pytest.raises(DuplicateError):
        await store.create(COLLECTION, {"object_id": "a1"})


@pytest.mark.asyncio
async def test_create_requires_object_id(store: MemoryStatusStore) -> None:
    """Records without an id are rejected."""
    with pytest.raises(ValueError):
        await store.create(COLLECTION, {"status": "pending"})


@pytest.mark.asyncio
async def test_update_merges_fields(store: MemoryStatusStore) -> None:
    """update() merges fields and leaves the rest alone."""
    await store.create(COLLECTION, {"object_id": "a1", "status": "pending", "num_sent": 0})

    matched = await store.update(COLLECTION, {"object_id": "a1"}, {"num_sent": 4})

    assert matched == 1
    record = (await store.find(COLLECTION, {"object_id": "a1"}))[0]
    assert record == {"object_id": "a1", "status": "pending", "num_sent": 4}


@pytest.mark.asyncio
async def test_update_with_status_guard(store: MemoryStatusStore) -> None:
    """A guard that does not match leaves the record unchanged."""
    await store.create(COLLECTION, {"object_id": "a1", "status": "running"})

    matched = await store.update(
        COLLECTION, {"object_id": "a1", "status": "pending"}, {"status": "running!"}
    )

    assert matched == 0
    assert (await store.find(COLLECTION, {"object_id": "a1"}))[0]["status"] == "running"


@pytest.mark.asyncio
async def test_records_are_copied(store: MemoryStatusStore) -> None:
    """Mutating a returned or passed-in record does not change the store."""
    record = {"object_id": "a1", "sent_per_type": {"ios": 1}}
    await store.create(COLLECTION, record)
    record["sent_per_type"]["ios"] = 99

    found = (await store.find(COLLECTION, {"object_id": "a1"}))[0]
    found["sent_per_type"]["ios"] = 50

    again = (await store.find(COLLECTION, {"object_id": "a1"}))[0]
    assert again["sent_per_type"] == {"ios": 1}


@pytest.mark.asyncio
async def test_destroy(store: MemoryStatusStore) -> None:
    """destroy() removes every matching record."""
    await store.create("_Installation", {"object_id": "i1", "device_token": "t"})
    await store.create("_Installation", {"object_id": "i2", "device_token": "t"})
    await store.create("_Installation", {"object_id": "i3", "device_token": "u"})

    assert await store.destroy("_Installation", {"device_token": "t"}) == 2
    assert await store.destroy("_Installation", {"device_token": "t"}) == 0
    remaining = await store.find("_Installation", {})
    assert [r["object_id"] for r in remaining] == ["i3"]


@pytest.mark.asyncio
async def test_clear(store: MemoryStatusStore) -> None:
    """clear() drops all records."""
    await store.create(COLLECTION, {"object_id": "a1"})
    store.clear()

    assert await store.find(COLLECTION, {}) == []
