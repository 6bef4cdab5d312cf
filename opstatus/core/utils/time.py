"""Time utilities for consistent timezone handling."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """
    Get current UTC time as a timezone-aware datetime.

    All status timestamps (created_at, updated_at, finished_at) are taken
    from this function so that every backend stores the same kind of value.

    Returns:
        datetime: Current UTC time with timezone information.

    Example:
        >>> now = utcnow()
        >>> now.tzinfo == UTC
        True
    """
    return datetime.now(UTC)


def utcnow_naive() -> datetime:
    """
    Get current UTC time as a naive datetime (no timezone info).

    Used as the column default for SQLAlchemy DateTime columns that don't
    have timezone=True.

    Returns:
        datetime: Current UTC time without timezone information.
    """
    return datetime.now(UTC).replace(tzinfo=None)


def to_iso(value: datetime) -> str:
    """Format a datetime as an ISO 8601 string with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
