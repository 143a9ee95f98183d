"""
Discora - Colors Module
=======================

Embed colors and parsing of dashboard-entered color strings.
"""

from typing import Any

import discord


# =============================================================================
# Base Color Values (Hex)
# =============================================================================

COLOR_BRAND = 0x5865F2      # Blurple, used when a guild sets no color

COLOR_SUCCESS = 0x43B581
COLOR_ERROR = 0xF04747
COLOR_WARNING = 0xFAA61A


# =============================================================================
# Feature Colors
# =============================================================================

COLOR_GIVEAWAY = 0xE91E63       # Running giveaway
COLOR_GIVEAWAY_WON = COLOR_SUCCESS
COLOR_GIVEAWAY_EMPTY = COLOR_ERROR
COLOR_REACTION_ROLES = COLOR_BRAND
COLOR_LEADERBOARD = 0xF1C40F    # Gold


# =============================================================================
# Parsing
# =============================================================================

def parse_color(value: Any, default: int) -> discord.Colour:
    """Parse a ``#RRGGBB`` (or ``0x``) color string, falling back to ``default``."""
    if isinstance(value, str) and value:
        try:
            return discord.Colour.from_str(value)
        except ValueError:
            pass
    return discord.Colour(default)


__all__ = [
    "COLOR_BRAND",
    "COLOR_SUCCESS",
    "COLOR_ERROR",
    "COLOR_WARNING",
    "COLOR_GIVEAWAY",
    "COLOR_GIVEAWAY_WON",
    "COLOR_GIVEAWAY_EMPTY",
    "COLOR_REACTION_ROLES",
    "COLOR_LEADERBOARD",
    "parse_color",
]
