"""Tests for MutationQueue ordering and failure handling."""

import asyncio
import gc

import pytest

from opstatus.core.status.queue import MutationQueue, resolved
from tests.conftest import RecordingStore

COLLECTION = "_JobStatus"


def _assert_not_overlapping(events: list[tuple[str, str]]) -> None:
    """Every storage call must end before the next one starts."""
    kinds = [kind for kind, _ in events]
    assert kinds == ["start", "end"] * (len(kinds) // 2)


class TestOrdering:
    """Operations reach the store in enqueue order, one at a time."""

    @pytest.mark.asyncio
    async def test_operations_applied_in_enqueue_order(self) -> None:
        """A slow first write does not let later writes overtake it."""
        delays = {"create": 0.05, "update": 0.0, "find": 0.01}
        store = RecordingStore(delay=lambda method, args: delays[method])
        queue = MutationQueue(store, COLLECTION)

        created = queue.create({"object_id": "a1", "status": "running"})
        first = queue.update({"object_id": "a1"}, {"message": "one"})
        read = queue.get("a1")
        second = queue.update({"object_id": "a1"}, {"message": "two"})

        await asyncio.gather(created, first, read, second)

        assert store.methods() == ["create", "update", "find", "update"]
        _assert_not_overlapping(store.events)
        assert (await read)[0]["message"] == "one"
        records = await store.find(COLLECTION, {"object_id": "a1"})
        assert records[0]["message"] == "two"

    @pytest.mark.asyncio
    async def test_concurrent_call_sites_keep_invocation_order(self) -> None:
        """Calls from different tasks are ordered by when they were made."""
        store = RecordingStore(delay=lambda method, args: 0.02 if method == "create" else 0)
        queue = MutationQueue(store, COLLECTION)
        futures = []

        async def starter():
            futures.append(queue.create({"object_id": "a1", "status": "running"}))
            await asyncio.sleep(0)

        async def reporter(text: str):
            await asyncio.sleep(0)
            futures.append(queue.update({"object_id": "a1"}, {"message": text}))

        await asyncio.gather(starter(), reporter("first"), reporter("second"))
        await asyncio.gather(*futures)

        messages = [args[1]["message"] for method, _, args in store.calls if method == "update"]
        assert store.methods()[0] == "create"
        assert messages == ["first", "second"]
        _assert_not_overlapping(store.events)

    @pytest.mark.asyncio
    async def test_many_operations_never_interleave(self) -> None:
        """N delayed updates are observed exactly in order O1..ON."""
        store = RecordingStore(delay=lambda method, args: 0.001 * (5 - len(store.calls) % 5))
        queue = MutationQueue(store, COLLECTION)
        await queue.create({"object_id": "a1", "n": 0})

        futures = [queue.update({"object_id": "a1"}, {"n": i}) for i in range(1, 21)]
        await asyncio.gather(*futures)

        observed = [args[1]["n"] for method, _, args in store.calls if method == "update"]
        assert observed == list(range(1, 21))
        _assert_not_overlapping(store.events)


class TestResults:
    """Each future carries its own operation's result."""

    @pytest.mark.asyncio
    async def test_enqueue_returns_immediately(self, recording_store) -> None:
        """enqueue() hands back a pending future without touching storage."""
        queue = MutationQueue(recording_store, COLLECTION)

        future = queue.create({"object_id": "a1"})

        assert isinstance(future, asyncio.Future)
        assert not future.done()
        assert recording_store.calls == []
        assert queue.pending == 1

        assert await future == {"object_id": "a1"}
        assert queue.pending == 0

    @pytest.mark.asyncio
    async def test_operation_results(self, recording_store) -> None:
        """create, update, get and delete_related resolve to their results."""
        queue = MutationQueue(recording_store, COLLECTION)
        await recording_store.create("_Installation", {"object_id": "i1", "device_token": "t"})

        assert await queue.create({"object_id": "a1", "status": "running"}) == {
            "object_id": "a1",
            "status": "running",
        }
        assert await queue.update({"object_id": "a1"}, {"status": "failed"}) == 1
        assert await queue.update({"object_id": "zz"}, {"status": "failed"}) == 0
        records = await queue.get("a1")
        assert records[0]["status"] == "failed"
        assert await queue.delete_related("_Installation", {"device_token": "t"}) == 1
        assert queue.last_result == 1

    @pytest.mark.asyncio
    async def test_custom_operation(self, recording_store) -> None:
        """Arbitrary async callables run in sequence with the typed operations."""
        queue = MutationQueue(recording_store, COLLECTION)
        seen = []

        async def note(value):
            seen.append((value, list(recording_store.methods())))
            return value * 2

        queue.create({"object_id": "a1"})
        doubled = queue.enqueue(note, 21)

        assert await doubled == 42
        assert seen == [(21, ["create"])]

    @pytest.mark.asyncio
    async def test_resolved_future(self) -> None:
        """resolved() returns a completed future."""
        future = resolved("x")
        assert future.done()
        assert await future == "x"


class TestFailures:
    """A failed operation rejects its own future only."""

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_queue(self, recording_store) -> None:
        """Later operations still run after a storage error."""
        queue = MutationQueue(recording_store, COLLECTION)
        created = queue.create({"object_id": "a1"})
        recording_store.fail_on.add("update")
        failed = queue.update({"object_id": "a1"}, {"message": "lost"})
        read = queue.get("a1")

        await created
        with pytest.raises(RuntimeError, match="update failed"):
            await failed
        records = await read

        assert records == [{"object_id": "a1"}]
        assert recording_store.methods() == ["create", "update", "find"]

    @pytest.mark.asyncio
    async def test_duplicate_create_rejected(self, recording_store) -> None:
        """A second create for the same id fails; the first record stays."""
        from opstatus.core.storage.exceptions import DuplicateError

        queue = MutationQueue(recording_store, COLLECTION)
        first = queue.create({"object_id": "a1", "n": 1})
        second = queue.create({"object_id": "a1", "n": 2})

        await first
        with pytest.raises(DuplicateError):
            await second
        assert (await queue.get("a1"))[0]["n"] == 1

    @pytest.mark.asyncio
    async def test_consumer_restarts_after_idle(self, recording_store) -> None:
        """Enqueuing after the queue went idle starts a new consumer."""
        queue = MutationQueue(recording_store, COLLECTION)
        await queue.create({"object_id": "a1"})
        await asyncio.sleep(0)

        assert await queue.update({"object_id": "a1"}, {"n": 1}) == 1

    @pytest.mark.asyncio
    async def test_drain_waits_for_backlog(self) -> None:
        """drain() returns only when every queued operation has been applied."""
        store = RecordingStore(delay=lambda method, args: 0.01)
        queue = MutationQueue(store, COLLECTION)
        queue.create({"object_id": "a1"})
        for i in range(3):
            queue.update({"object_id": "a1"}, {"n": i})

        await queue.drain()

        assert queue.pending == 0
        assert len(store.calls) == 4

    @pytest.mark.asyncio
    async def test_dropped_failure_is_logged_not_reported(self, recording_store, caplog) -> None:
        """A failed write whose future nobody awaits is logged, not reported as unretrieved."""
        loop = asyncio.get_running_loop()
        reported = []
        loop.set_exception_handler(lambda _loop, context: reported.append(context))
        try:
            queue = MutationQueue(recording_store, COLLECTION)
            recording_store.fail_on.add("update")
            queue.update({"object_id": "a1"}, {"n": 1})
            await queue.drain()
            gc.collect()
        finally:
            loop.set_exception_handler(None)

        assert reported == []
        assert "update failed" in caplog.text
