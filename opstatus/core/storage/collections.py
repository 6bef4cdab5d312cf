"""Names of the collections status records are stored in."""

PUSH_STATUS_COLLECTION = "_PushStatus"
JOB_STATUS_COLLECTION = "_JobStatus"
INSTALLATION_COLLECTION = "_Installation"
