"""
Ordered mutation queue for one status record.

Trackers are called from several places at once (the sender loop, progress
callbacks, error handlers). MutationQueue makes sure the storage calls they
issue reach the store one at a time, in the order the calls were made, and
hands each caller a future for its own call's result.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from opstatus.core.storage.base import BaseStatusStore, Filter, Record

logger = logging.getLogger(__name__)

Operation = Callable[..., Awaitable[Any]]


def _mark_retrieved(future: asyncio.Future) -> None:
    # The consumer already logged the failure; callers may drop the future.
    if not future.cancelled():
        future.exception()


class MutationQueue:
    """
    Single-consumer FIFO of storage operations for one record.

    enqueue() appends an operation and returns a future straight away. One
    consumer task applies operations in order; an operation starts only
    after the previous one has finished. A failed operation fails its own
    future and the consumer moves on to the next one.

    The consumer starts on the first enqueue() and exits once the queue is
    empty. The backlog is unbounded: a caller that enqueues faster than the
    store can absorb grows it without limit.

    Usage:
        queue = MutationQueue(store, "_JobStatus")
        created = queue.create({"object_id": "abc", "status": "running"})
        updated = queue.update({"object_id": "abc"}, {"message": "halfway"})
        await updated
    """

    def __init__(self, store: BaseStatusStore, collection: str):
        """Bind the queue to a store and the collection its record lives in."""
        self._store = store
        self._collection = collection
        self._pending: asyncio.Queue[tuple[Operation, tuple, asyncio.Future]] = asyncio.Queue()
        self._consumer: asyncio.Task | None = None
        self._last_result: Any = None

    @property
    def collection(self) -> str:
        return self._collection

    @property
    def pending(self) -> int:
        """Number of operations enqueued but not yet applied."""
        return self._pending.qsize()

    @property
    def last_result(self) -> Any:
        """Result of the most recent operation that succeeded."""
        return self._last_result

    def enqueue(self, operation: Operation, *args: Any) -> asyncio.Future:
        """
        Append an operation to the queue.

        Must be called with a running event loop. Returns immediately.

        Args:
            operation: Async callable applied to storage.
            *args: Arguments passed to the operation.

        Returns:
            Future resolving to the operation's return value, or failing
            with the exception it raised.
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        future.add_done_callback(_mark_retrieved)
        self._pending.put_nowait((operation, args, future))

        if self._consumer is None or self._consumer.done():
            self._consumer = loop.create_task(self._consume())

        return future

    async def _consume(self) -> None:
        while True:
            try:
                operation, args, future = self._pending.get_nowait()
            except asyncio.QueueEmpty:
                return

            try:
                result = await operation(*args)
            except asyncio.CancelledError:
                future.cancel()
                raise
            except Exception as e:
                logger.warning(
                    f"{self._collection} operation {getattr(operation, '__name__', operation)} "
                    f"failed: {e}"
                )
                if not future.done():
                    future.set_exception(e)
            else:
                self._last_result = result
                if not future.done():
                    future.set_result(result)
            finally:
                self._pending.task_done()

    async def drain(self) -> None:
        """Wait until everything enqueued so far has been applied."""
        await self._pending.join()

    # Typed operations

    def create(self, record: Record) -> asyncio.Future:
        """Enqueue creation of the record. Resolves to the record."""
        return self.enqueue(self._create, record)

    def update(self, where: Filter, fields: Record) -> asyncio.Future:
        """Enqueue a merge update. Resolves to the number of records matched."""
        return self.enqueue(self._update, where, fields)

    def get(self, object_id: str) -> asyncio.Future:
        """Enqueue a read of the record. Resolves to the matching records."""
        return self.enqueue(self._get, object_id)

    def delete_related(self, collection: str, where: Filter) -> asyncio.Future:
        """Enqueue deletion of records in another collection matching ``where``."""
        return self.enqueue(self._delete_related, collection, where)

    async def _create(self, record: Record) -> Record:
        await self._store.create(self._collection, record)
        return record

    async def _update(self, where: Filter, fields: Record) -> int:
        return await self._store.update(self._collection, where, fields)

    async def _get(self, object_id: str) -> list[Record]:
        return await self._store.find(self._collection, {"object_id": object_id})

    async def _delete_related(self, collection: str, where: Filter) -> int:
        return await self._store.destroy(collection, where)


def resolved(value: Any = None) -> asyncio.Future:
    """Return an already-completed future, for operations that write nothing."""
    future = asyncio.get_running_loop().create_future()
    future.set_result(value)
    return future
