"""Status values and fixed record fields shared by the trackers."""

from types import MappingProxyType

STATUS_PENDING = "pending"
STATUS_RUNNING = "running"
STATUS_SUCCEEDED = "succeeded"
STATUS_FAILED = "failed"

TERMINAL_STATUSES = frozenset({STATUS_SUCCEEDED, STATUS_FAILED})

# A push can be completed again after succeeding; results then accumulate.
COMPLETABLE_STATUSES = frozenset({STATUS_RUNNING, STATUS_SUCCEEDED})

# Access policy stored on every status record: no client may read or
# write it directly, only the trackers through the store.
NO_PUBLIC_ACCESS = MappingProxyType({})

JOB_SOURCE = "api"
DEFAULT_PUSH_SOURCE = "rest"
