"""
XP System - Utility Functions
=============================

Level calculations, XP formulas, and the message cooldown tracker.
"""

from typing import Dict, Hashable, Optional, Tuple

from discora.core.constants import XP_COOLDOWN_CACHE_MAX_SIZE, XP_COOLDOWN_SWEEP_FACTOR


def xp_for_level(level: int) -> int:
    """
    Total XP threshold for a level.

    Formula: 5 * level^2 + 50 * level + 100

    Examples:
        Level 0: 100 XP
        Level 1: 155 XP
        Level 2: 220 XP
        Level 3: 295 XP
    """
    return 5 * level * level + 50 * level + 100


def apply_xp(xp: int, level: int, amount: int) -> Tuple[int, int]:
    """
    Add XP and advance the level past every threshold crossed.

    A single award may cross several thresholds; the level never
    decreases.

    Returns:
        Tuple of (new_xp, new_level)
    """
    new_xp = max(0, xp) + max(0, amount)
    new_level = max(0, level)
    while new_xp >= xp_for_level(new_level + 1):
        new_level += 1
    return new_xp, new_level


def xp_progress(xp: int, level: int) -> Tuple[int, int]:
    """XP remaining to the next level and that level's threshold."""
    next_threshold = xp_for_level(level + 1)
    return max(0, next_threshold - xp), next_threshold


def format_xp(xp: int) -> str:
    """Format XP with thousands separators."""
    return f"{xp:,}"


# =============================================================================
# Cooldowns
# =============================================================================

class CooldownTracker:
    """
    Last-award timestamps keyed by (guild_id, user_id).

    Entries older than ``XP_COOLDOWN_SWEEP_FACTOR`` times the largest
    window in use are swept, and a hard size limit evicts the oldest
    entries, so the map stays bounded however many users are seen.
    """

    def __init__(self, max_size: int = XP_COOLDOWN_CACHE_MAX_SIZE) -> None:
        self._last: Dict[Hashable, float] = {}
        self._max_size = max_size
        self._max_window = 0.0

    def __len__(self) -> int:
        return len(self._last)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._last

    def check_and_mark(self, key: Hashable, window: float, now: float) -> bool:
        """
        Return True and record ``now`` if ``key`` is off cooldown.

        Concurrent messages for the same key resolve last-write-wins; the
        check and the write happen without an await in between.
        """
        self._max_window = max(self._max_window, window)
        last = self._last.get(key)
        if last is not None and now - last <= window:
            return False
        self._last[key] = now
        if len(self._last) > self._max_size:
            self._enforce_limit()
        return True

    def sweep(self, now: float, max_age: Optional[float] = None) -> int:
        """
        Drop entries that can no longer block an award.

        Returns:
            Number of entries removed.
        """
        if max_age is None:
            max_age = self._max_window * XP_COOLDOWN_SWEEP_FACTOR
        cutoff = now - max_age
        before = len(self._last)
        self._last = {k: ts for k, ts in self._last.items() if ts > cutoff}
        return before - len(self._last)

    def _enforce_limit(self) -> None:
        """Keep the newest 90% of ``max_size`` entries."""
        keep = max(1, self._max_size * 9 // 10)
        newest = sorted(self._last.items(), key=lambda item: item[1], reverse=True)[:keep]
        self._last = dict(newest)

    def clear(self) -> None:
        self._last.clear()
