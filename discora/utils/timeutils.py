"""
Discora - Time Utilities
========================

UTC helpers for the ISO-8601 timestamps stored in the database.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """Serialize a datetime as UTC ISO-8601 with millisecond precision."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp, returning None when absent or malformed."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def day_key(dt: datetime) -> str:
    """Calendar date key (YYYY-MM-DD) in UTC."""
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d")
