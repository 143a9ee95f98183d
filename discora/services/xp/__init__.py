"""
XP System Package
=================

Message XP, level thresholds, and role rewards.
"""

from .service import XPAward, XPService
from .utils import CooldownTracker, apply_xp, format_xp, xp_for_level, xp_progress

__all__ = [
    "CooldownTracker",
    "XPAward",
    "XPService",
    "apply_xp",
    "format_xp",
    "xp_for_level",
    "xp_progress",
]
