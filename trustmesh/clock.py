"""Timestamp helpers."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_millis(moment: datetime) -> int:
    """Epoch milliseconds for a datetime."""
    return int(moment.timestamp() * 1000)
