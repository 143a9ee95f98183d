"""
Stats - Utility Functions
=========================

Date-keyed message buckets.

Buckets are ``{"date": "YYYY-MM-DD", "count": n}``, kept sorted newest
first and bounded in length.
"""

from typing import Any, Dict, List

from discora.core.constants import STATS_HISTORY_LIMIT, STATS_WEEKLY_WINDOW
from discora.services.database import decode_json

Bucket = Dict[str, Any]


def parse_weekly(raw: Any) -> List[Bucket]:
    """
    Decode a stored ``messagesWeekly`` field.

    Entries without a string ``date`` (including the legacy day-of-week
    shape) are dropped.
    """
    buckets = []
    for item in decode_json(raw, []):
        if isinstance(item, dict) and isinstance(item.get("date"), str):
            count = item.get("count")
            buckets.append({
                "date": item["date"],
                "count": count if isinstance(count, int) and not isinstance(count, bool) else 0,
            })
    return buckets


def prune_weekly(buckets: List[Bucket], keep: int = STATS_HISTORY_LIMIT) -> List[Bucket]:
    """Sort newest first and keep the most recent ``keep`` buckets."""
    return sorted(buckets, key=lambda b: b["date"], reverse=True)[:keep]


def bump_weekly(buckets: List[Bucket], day: str, keep: int = STATS_WEEKLY_WINDOW) -> List[Bucket]:
    """Increment ``day``'s bucket (creating it at 1) and prune to ``keep``."""
    updated = [dict(b) for b in buckets]
    for bucket in updated:
        if bucket["date"] == day:
            bucket["count"] += 1
            break
    else:
        updated.append({"date": day, "count": 1})
    return prune_weekly(updated, keep)
