"""
Moderation Package
==================

Rule-based filters and AI classification of messages.
"""

from .ai import GeminiModerator
from .filters import FilterHit, check_message, find_banned_word
from .service import AutoModService

__all__ = [
    "AutoModService",
    "FilterHit",
    "GeminiModerator",
    "check_message",
    "find_banned_word",
]
