"""
Config Cache Package
====================

Settings models and the periodically refreshed config cache.
"""

from .models import (
    AutoModSettings,
    AutoRoleSettings,
    CustomCommand,
    GoodbyeSettings,
    GuildSettings,
    LevelingSettings,
    RoleReward,
    WelcomeSettings,
)
from .service import CacheSnapshot, ConfigCache

__all__ = [
    "AutoModSettings",
    "AutoRoleSettings",
    "CacheSnapshot",
    "ConfigCache",
    "CustomCommand",
    "GoodbyeSettings",
    "GuildSettings",
    "LevelingSettings",
    "RoleReward",
    "WelcomeSettings",
]
