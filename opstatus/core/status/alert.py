"""
Notification alert shapes and the deduplication hash.

An alert is either plain text, a structured (JSON) object, or absent.
The hash lets callers recognise repeated notification content; it is not
a security hash.
"""

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from opstatus.core.utils.crypto import md5_hash
from opstatus.core.utils.serialization import canonical_json

EMPTY_HASH = md5_hash("")


class AlertKind(enum.Enum):
    """Which shape an alert has."""

    TEXT = "text"
    STRUCTURED = "structured"
    NONE = "none"


@dataclass(frozen=True)
class Alert:
    """A notification alert tagged with its kind."""

    kind: AlertKind
    value: Any = None

    @classmethod
    def from_data(cls, data: Mapping[str, Any] | None) -> "Alert":
        """Classify the ``alert`` entry of a notification's data."""
        alert = (data or {}).get("alert")
        if isinstance(alert, str):
            return cls(AlertKind.TEXT, alert)
        if isinstance(alert, (dict, list)):
            return cls(AlertKind.STRUCTURED, alert)
        return cls(AlertKind.NONE)

    def hash(self) -> str:
        """Return the MD5 hex digest used to deduplicate pushes."""
        if self.kind is AlertKind.TEXT:
            return md5_hash(self.value)
        if self.kind is AlertKind.STRUCTURED:
            return md5_hash(canonical_json(self.value))
        return EMPTY_HASH
