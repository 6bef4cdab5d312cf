"""
JSON helpers for status records.

canonical_json() produces a stable text form used for hashing, and
serialize_error() turns arbitrary error values into a string that can be
stored in a status record without ever raising.
"""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

UNSERIALIZABLE_ERROR = "<unserializable error>"


def canonical_json(value: Any) -> str:
    """Serialize a JSON value with sorted keys and compact separators."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def to_json(value: Any) -> str:
    """Serialize a value the way it is stored in query/payload fields."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def serialize_error(error: Any) -> str:
    """
    Serialize an error value for the error_message field.

    Exceptions are stored as {"type": ..., "message": ...}. Other values are
    JSON-encoded, with str() used for anything JSON does not know. Circular
    or otherwise unencodable values fall back to repr().

    Args:
        error: Exception, mapping, string or any other value.

    Returns:
        A string; this function does not raise.
    """
    try:
        if isinstance(error, BaseException):
            error = {"type": type(error).__name__, "message": str(error)}
        return json.dumps(error, ensure_ascii=False, default=str)
    except Exception as e:
        logger.debug(f"Falling back to repr() for error value: {e}")

    try:
        return repr(error)
    except Exception:
        return UNSERIALIZABLE_ERROR
