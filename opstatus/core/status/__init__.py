"""
Status tracking for push batches and background jobs.

Usage:
    from opstatus.core.status import job_status_tracker, push_status_tracker

    job = await job_status_tracker()
    job.set_running("reindex", {"full": True})
    await job.set_succeeded()

    push = await push_status_tracker({"data": {"alert": "Hello"}})
    await push.set_initial({"channels": "news"})
    push.set_running(installations)
    await push.complete(results)
"""

from opstatus.core.status.alert import Alert, AlertKind
from opstatus.core.status.constants import (
    NO_PUBLIC_ACCESS,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_RUNNING,
    STATUS_SUCCEEDED,
)
from opstatus.core.status.job import JobStatusTracker, job_status_tracker
from opstatus.core.status.push import (
    DeliveryCounters,
    PushStatusTracker,
    push_status_tracker,
)
from opstatus.core.status.queue import MutationQueue
from opstatus.core.status.results import DeliveryOutcome, flatten_results
from opstatus.core.status.settings import (
    TrackingConfig,
    load_tracking_config,
    setup_logging,
)

__all__ = [
    "MutationQueue",
    "JobStatusTracker",
    "job_status_tracker",
    "PushStatusTracker",
    "push_status_tracker",
    "DeliveryCounters",
    "DeliveryOutcome",
    "flatten_results",
    "Alert",
    "AlertKind",
    "TrackingConfig",
    "load_tracking_config",
    "setup_logging",
    "NO_PUBLIC_ACCESS",
    "STATUS_PENDING",
    "STATUS_RUNNING",
    "STATUS_SUCCEEDED",
    "STATUS_FAILED",
]
