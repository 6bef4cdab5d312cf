"""
Job status tracking.

Records the lifecycle of one background job (running, then succeeded or
failed) in the _JobStatus collection, with an optional progress message.
"""

import asyncio
import logging
from typing import Any

from opstatus.core.status.constants import (
    JOB_SOURCE,
    NO_PUBLIC_ACCESS,
    STATUS_FAILED,
    STATUS_RUNNING,
    STATUS_SUCCEEDED,
)
from opstatus.core.status.queue import MutationQueue, resolved
from opstatus.core.storage.base import BaseStatusStore
from opstatus.core.storage.collections import JOB_STATUS_COLLECTION
from opstatus.core.storage.factory import get_status_store
from opstatus.core.utils.crypto import new_object_id
from opstatus.core.utils.time import utcnow

logger = logging.getLogger(__name__)


def _is_message(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


class JobStatusTracker:
    """
    Tracks one background job run.

    set_running() must be called first: it creates the record that every
    later call updates. All methods return immediately with a future;
    writes are applied in call order.

    Usage:
        tracker = JobStatusTracker(store)
        tracker.set_running("reindex", {"full": True})
        tracker.set_message("halfway there")
        await tracker.set_succeeded("done")
    """

    __slots__ = ("_object_id", "_queue")

    def __init__(self, store: BaseStatusStore):
        """Assign the record id and bind the tracker to a store."""
        self._object_id = new_object_id()
        self._queue = MutationQueue(store, JOB_STATUS_COLLECTION)

    @property
    def object_id(self) -> str:
        return self._object_id

    def set_running(self, job_name: str, params: Any = None) -> asyncio.Future:
        """
        Create the job record with status "running".

        Args:
            job_name: Name of the job.
            params: JSON-serializable job parameters.

        Returns:
            Future resolving to the created record.
        """
        record = {
            "object_id": self._object_id,
            "job_name": job_name,
            "params": params,
            "status": STATUS_RUNNING,
            "source": JOB_SOURCE,
            "created_at": utcnow(),
            "acl": dict(NO_PUBLIC_ACCESS),
        }
        logger.info(f"Job started: {job_name} ({self._object_id})")
        return self._queue.create(record)

    def set_message(self, message: Any) -> asyncio.Future:
        """Store a progress message. Anything but a non-empty string is ignored."""
        if not _is_message(message):
            return resolved()
        return self._queue.update({"object_id": self._object_id}, {"message": message})

    def set_succeeded(self, message: str | None = None) -> asyncio.Future:
        """Mark the job succeeded."""
        return self._set_final_status(STATUS_SUCCEEDED, message)

    def set_failed(self, message: str | None = None) -> asyncio.Future:
        """Mark the job failed."""
        return self._set_final_status(STATUS_FAILED, message)

    def _set_final_status(self, status: str, message: str | None) -> asyncio.Future:
        fields: dict[str, Any] = {"status": status, "finished_at": utcnow()}
        if _is_message(message):
            fields["message"] = message

        logger.info(f"Job {self._object_id} -> {status}")
        # Only a running job can finish; a terminal record is left as is.
        where = {"object_id": self._object_id, "status": STATUS_RUNNING}
        return self._queue.update(where, fields)

    async def drain(self) -> None:
        """Wait until every write issued so far has been applied."""
        await self._queue.drain()


async def job_status_tracker(store: BaseStatusStore | None = None) -> JobStatusTracker:
    """Create a JobStatusTracker on the given store, or on the configured one."""
    if store is None:
        store = await get_status_store()
    return JobStatusTracker(store)
