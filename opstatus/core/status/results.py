"""
Per-installation delivery outcomes.

Push providers report results as nested lists (one list per provider,
sometimes one per batch within a provider). flatten_results() turns that
into a flat list, and DeliveryOutcome.from_result() extracts the fields
aggregation needs, or None when an entry cannot be attributed to a device.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 16


def flatten_results(results: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> list[Any]:
    """
    Flatten nested lists/tuples of results into one list.

    Order is preserved. Entries nested deeper than ``max_depth`` levels are
    dropped with a warning instead of recursing further.

    Args:
        results: A list of results, possibly containing lists of results.
        max_depth: Deepest nesting level that is still flattened.

    Returns:
        The leaf entries in order.
    """
    flat: list[Any] = []
    dropped = 0

    def walk(items: list | tuple, depth: int) -> None:
        nonlocal dropped
        for item in items:
            if isinstance(item, (list, tuple)):
                if depth >= max_depth:
                    dropped += 1
                    continue
                walk(item, depth + 1)
            else:
                flat.append(item)

    if isinstance(results, (list, tuple)):
        walk(results, 1)

    if dropped:
        logger.warning(f"Dropped {dropped} result groups nested deeper than {max_depth}")
    return flat


def _get(mapping: Mapping[str, Any], *keys: str) -> Any:
    """Return the first present key's value (provider and snake_case spellings)."""
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


@dataclass(frozen=True)
class DeliveryOutcome:
    """The attributable part of one delivery result."""

    device_type: str
    device_token: str | None
    transmitted: bool
    stale_token: bool

    @classmethod
    def from_result(cls, result: Any) -> "DeliveryOutcome | None":
        """
        Parse a raw result mapping.

        Expected shape::

            {
                "device": {"deviceType": "ios", "deviceToken": "..."},
                "transmitted": True,
                "response": {"registration_id": "..."},
            }

        Returns:
            The outcome, or None when the entry is not a mapping or has no
            device type.
        """
        if not isinstance(result, Mapping):
            return None

        device = result.get("device")
        if not isinstance(device, Mapping):
            return None

        device_type = _get(device, "deviceType", "device_type")
        if not device_type:
            return None

        response = result.get("response")
        stale = isinstance(response, Mapping) and bool(response.get("registration_id"))

        return cls(
            device_type=str(device_type),
            device_token=_get(device, "deviceToken", "device_token") or None,
            transmitted=bool(result.get("transmitted")),
            stale_token=stale,
        )
