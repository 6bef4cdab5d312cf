"""
Push notification status tracking.

Records the lifecycle of one push batch in the _PushStatus collection:

    pending  -> set_initial() creates the record
    running  -> set_running() once installations have been resolved
    succeeded / failed -> complete() aggregates delivery results, or fail()

complete() reads the stored record, adds the batch's per-installation
results to its counters and writes them back as one queued operation, so
counts from several complete() calls accumulate and no other write on the
record can land in between. Results reporting a stale device token also
remove that installation.

A record that reached "failed" is final. A "succeeded" record can still
take further complete() calls but is never moved to "failed".
"""

import asyncio
import logging
from collections.abc import Mapping, Sized
from dataclasses import dataclass, field
from typing import Any

from opstatus.core.status.alert import Alert
from opstatus.core.status.constants import (
    COMPLETABLE_STATUSES,
    DEFAULT_PUSH_SOURCE,
    NO_PUBLIC_ACCESS,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_RUNNING,
    STATUS_SUCCEEDED,
    TERMINAL_STATUSES,
)
from opstatus.core.status.queue import MutationQueue
from opstatus.core.status.results import DEFAULT_MAX_DEPTH, DeliveryOutcome, flatten_results
from opstatus.core.status.settings import load_tracking_config
from opstatus.core.storage.base import BaseStatusStore, Record
from opstatus.core.storage.collections import INSTALLATION_COLLECTION, PUSH_STATUS_COLLECTION
from opstatus.core.storage.factory import get_status_store
from opstatus.core.utils.crypto import new_object_id
from opstatus.core.utils.serialization import serialize_error, to_json
from opstatus.core.utils.time import to_iso, utcnow

logger = logging.getLogger(__name__)


@dataclass
class DeliveryCounters:
    """Cumulative sent/failed counts for a push batch."""

    num_sent: int = 0
    num_failed: int = 0
    sent_per_type: dict[str, int] = field(default_factory=dict)
    failed_per_type: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "DeliveryCounters":
        """Start from the counters stored on a record (missing ones are zero)."""
        return cls(
            num_sent=int(record.get("num_sent") or 0),
            num_failed=int(record.get("num_failed") or 0),
            sent_per_type=dict(record.get("sent_per_type") or {}),
            failed_per_type=dict(record.get("failed_per_type") or {}),
        )

    def add(self, outcome: DeliveryOutcome) -> None:
        """Count one delivery outcome."""
        if outcome.transmitted:
            self.num_sent += 1
            per_type = self.sent_per_type
        else:
            self.num_failed += 1
            per_type = self.failed_per_type
        per_type[outcome.device_type] = per_type.get(outcome.device_type, 0) + 1

    def as_fields(self) -> Record:
        return {
            "num_sent": self.num_sent,
            "num_failed": self.num_failed,
            "sent_per_type": self.sent_per_type,
            "failed_per_type": self.failed_per_type,
        }


class PushStatusTracker:
    """
    Tracks one push notification batch.

    All methods return immediately with a future; writes are applied in
    call order.

    Usage:
        tracker = PushStatusTracker({"data": {"alert": "Hi"}}, store)
        await tracker.set_initial({"channels": "news"})
        tracker.set_running(installations)
        await tracker.complete(results)
    """

    __slots__ = (
        "_object_id",
        "_store",
        "_queue",
        "_body",
        "_data",
        "_push_hash",
        "_max_result_depth",
    )

    def __init__(
        self,
        body: Mapping[str, Any],
        store: BaseStatusStore,
        max_result_depth: int = DEFAULT_MAX_DEPTH,
    ):
        """
        Assign the record id, compute the push hash and bind to a store.

        Args:
            body: Notification body, ``{"data": {"alert": ...}, "expiration_time": ...}``.
            store: Status store the record lives in.
            max_result_depth: Deepest nesting of results complete() flattens.
        """
        self._object_id = new_object_id()
        self._store = store
        self._queue = MutationQueue(store, PUSH_STATUS_COLLECTION)
        self._body = body
        self._data = body.get("data") or {}
        self._push_hash = Alert.from_data(self._data).hash()
        self._max_result_depth = max_result_depth

    @property
    def object_id(self) -> str:
        return self._object_id

    @property
    def push_hash(self) -> str:
        return self._push_hash

    def set_initial(
        self,
        where: Any,
        source: str = DEFAULT_PUSH_SOURCE,
        title: str | None = None,
    ) -> asyncio.Future:
        """
        Create the push record with status "pending" and zeroed counters.

        Args:
            where: Installation query the push targets.
            source: Where the push came from (e.g. "rest", "dashboard").
            title: Optional human-readable title.

        Returns:
            Future resolving to ``{"object_id": ...}``.
        """
        now = utcnow()
        record = {
            "object_id": self._object_id,
            "created_at": now,
            "push_time": to_iso(now),
            "query": to_json(where),
            "payload": to_json(self._data),
            "source": source,
            "title": title,
            "expiry": self._body.get("expiration_time"),
            "failed_per_type": {},
            "sent_per_type": {},
            "status": STATUS_PENDING,
            "num_sent": 0,
            "num_opened": 0,
            "num_failed": 0,
            "push_hash": self._push_hash,
            "acl": dict(NO_PUBLIC_ACCESS),
        }
        return self._queue.enqueue(self._create, record)

    async def _create(self, record: Record) -> dict[str, str]:
        await self._store.create(PUSH_STATUS_COLLECTION, record)
        logger.info(f"Push status created: {self._object_id}")
        return {"object_id": self._object_id}

    def set_running(self, installations: int | Sized) -> asyncio.Future:
        """
        Move the record from "pending" to "running".

        Records not in "pending" (already running, finished) are left alone;
        the future then resolves to 0 matched records.

        Args:
            installations: Number of targeted installations, or the
                installations themselves.
        """
        count = installations if isinstance(installations, int) else len(installations)
        logger.info(f"Sending push to {count} installations")

        where = {"object_id": self._object_id, "status": STATUS_PENDING}
        return self._queue.update(where, {"status": STATUS_RUNNING, "updated_at": utcnow()})

    def complete(self, results: Any) -> asyncio.Future:
        """
        Aggregate delivery results into the record and mark it succeeded.

        Counters are read from the stored record and the new results are
        added on top, all within one queued operation. Only a "running" or
        "succeeded" record is completed; otherwise nothing is written.
        Entries that cannot be attributed to a device type are skipped.

        Args:
            results: List of per-installation results, possibly nested one
                level per provider.

        Returns:
            Future resolving to the number of records updated.
        """
        return self._queue.enqueue(self._aggregate, results)

    async def _aggregate(self, results: Any) -> int:
        record = await self._current()
        if record is None:
            logger.warning(f"Push status {self._object_id} not found, nothing to complete")
            return 0
        status = record.get("status")
        if status not in COMPLETABLE_STATUSES:
            logger.warning(f"Push status {self._object_id} is {status}, not completing")
            return 0

        counters = DeliveryCounters.from_record(record)
        stale_tokens = []
        skipped = 0
        for result in flatten_results(results, self._max_result_depth):
            outcome = DeliveryOutcome.from_result(result)
            if outcome is None:
                skipped += 1
                continue
            if outcome.stale_token and outcome.device_token:
                stale_tokens.append(outcome.device_token)
            counters.add(outcome)

        for device_token in stale_tokens:
            await self._remove_installation(device_token)

        if skipped:
            logger.debug(f"Skipped {skipped} unattributable results for {self._object_id}")
        logger.info(
            f"Sent push {self._object_id}: "
            f"{counters.num_sent} success, {counters.num_failed} failures"
        )

        fields = {"status": STATUS_SUCCEEDED, "updated_at": utcnow(), **counters.as_fields()}
        return await self._store.update(
            PUSH_STATUS_COLLECTION, {"object_id": self._object_id, "status": status}, fields
        )

    async def _remove_installation(self, device_token: str) -> None:
        try:
            await self._store.destroy(INSTALLATION_COLLECTION, {"device_token": device_token})
        except Exception as e:
            logger.warning(f"Failed to remove stale installation: {e}")

    def fail(self, error: Any) -> asyncio.Future:
        """
        Mark the push failed and store a serialized form of ``error``.

        A record that already succeeded or failed is left alone and the
        future resolves to 0. Never raises on unserializable errors.
        """
        message = serialize_error(error)
        logger.warning(f"Error while sending push {self._object_id}: {message}")
        return self._queue.enqueue(self._fail, message)

    async def _fail(self, message: str) -> int:
        record = await self._current()
        if record is None:
            return 0
        status = record.get("status")
        if status in TERMINAL_STATUSES:
            logger.info(f"Push status {self._object_id} already {status}, not marking failed")
            return 0

        fields = {"status": STATUS_FAILED, "error_message": message, "updated_at": utcnow()}
        return await self._store.update(
            PUSH_STATUS_COLLECTION, {"object_id": self._object_id, "status": status}, fields
        )

    async def _current(self) -> Record | None:
        records = await self._store.find(PUSH_STATUS_COLLECTION, {"object_id": self._object_id})
        return records[0] if records else None

    async def drain(self) -> None:
        """Wait until every write issued so far has been applied."""
        await self._queue.drain()


async def push_status_tracker(
    body: Mapping[str, Any],
    store: BaseStatusStore | None = None,
) -> PushStatusTracker:
    """Create a PushStatusTracker on the given store, or on the configured one."""
    if store is None:
        store = await get_status_store()
    return PushStatusTracker(body, store, max_result_depth=load_tracking_config().max_result_depth)
