"""
Discora - Settings Models
=========================

Typed guild settings parsed from the serialized fields of a
``server_settings`` document. Every field has a default, so a missing or
malformed category degrades to "disabled" instead of failing the guild.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from discora.core.constants import (
    DEFAULT_GOODBYE_MESSAGE,
    DEFAULT_LEVEL_UP_MESSAGE,
    DEFAULT_MENTION_SPAM_LIMIT,
    DEFAULT_WELCOME_MESSAGE,
    XP_DEFAULT_COOLDOWN,
    XP_DEFAULT_MAX,
    XP_DEFAULT_MIN,
)
from discora.services.database import decode_json


# =============================================================================
# Field Coercion
# =============================================================================

def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_positive_int(value: Any, default: int) -> int:
    """Zero or negative means the dashboard left the field unset."""
    number = _as_int(value, default)
    return number if number > 0 else default


def _as_id(value: Any) -> Optional[int]:
    """Snowflake ids arrive as strings; empty means unset."""
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_str(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value else default


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


# =============================================================================
# Categories
# =============================================================================

@dataclass(frozen=True)
class WelcomeSettings:
    enabled: bool = False
    channel_id: Optional[int] = None
    message: str = DEFAULT_WELCOME_MESSAGE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WelcomeSettings":
        return cls(
            enabled=bool(data.get("enabled", False)),
            channel_id=_as_id(data.get("channelId")),
            message=_as_str(data.get("message"), DEFAULT_WELCOME_MESSAGE),
        )


@dataclass(frozen=True)
class GoodbyeSettings:
    enabled: bool = False
    channel_id: Optional[int] = None
    message: str = DEFAULT_GOODBYE_MESSAGE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GoodbyeSettings":
        return cls(
            enabled=bool(data.get("enabled", False)),
            channel_id=_as_id(data.get("channelId")),
            message=_as_str(data.get("message"), DEFAULT_GOODBYE_MESSAGE),
        )


@dataclass(frozen=True)
class AutoRoleSettings:
    enabled: bool = False
    role_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AutoRoleSettings":
        return cls(
            enabled=bool(data.get("enabled", False)),
            role_id=_as_id(data.get("roleId")),
        )


@dataclass(frozen=True)
class RoleReward:
    level: int
    role_id: int


@dataclass(frozen=True)
class LevelingSettings:
    enabled: bool = False
    channel_id: Optional[int] = None
    message: str = DEFAULT_LEVEL_UP_MESSAGE
    cooldown_seconds: int = XP_DEFAULT_COOLDOWN
    xp_min: int = XP_DEFAULT_MIN
    xp_max: int = XP_DEFAULT_MAX
    blacklisted_channels: FrozenSet[int] = field(default_factory=frozenset)
    role_rewards: Tuple[RoleReward, ...] = ()

    def reward_for(self, level: int) -> Optional[RoleReward]:
        """The role reward configured for exactly ``level``, if any."""
        for reward in self.role_rewards:
            if reward.level == level:
                return reward
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LevelingSettings":
        xp_min = _as_positive_int(data.get("xpPerMessageMin"), XP_DEFAULT_MIN)
        xp_max = _as_positive_int(data.get("xpPerMessageMax"), XP_DEFAULT_MAX)
        if xp_min > xp_max:
            xp_min, xp_max = xp_max, xp_min

        rewards = []
        for item in _as_list(data.get("roleRewards")):
            if not isinstance(item, dict):
                continue
            level = _as_int(item.get("level"), -1)
            role_id = _as_id(item.get("roleId"))
            if level >= 0 and role_id:
                rewards.append(RoleReward(level=level, role_id=role_id))

        return cls(
            enabled=bool(data.get("enabled", False)),
            channel_id=_as_id(data.get("channelId")),
            message=_as_str(data.get("message"), DEFAULT_LEVEL_UP_MESSAGE),
            cooldown_seconds=_as_positive_int(data.get("cooldownSeconds"), XP_DEFAULT_COOLDOWN),
            xp_min=xp_min,
            xp_max=xp_max,
            blacklisted_channels=frozenset(
                cid for cid in (_as_id(c) for c in _as_list(data.get("blacklistedChannels"))) if cid
            ),
            role_rewards=tuple(rewards),
        )


@dataclass(frozen=True)
class AutoModSettings:
    word_filter_enabled: bool = False
    word_blacklist: Tuple[str, ...] = ()
    invite_filter_enabled: bool = False
    link_filter_enabled: bool = False
    mention_spam_enabled: bool = False
    mention_spam_limit: int = DEFAULT_MENTION_SPAM_LIMIT
    ai_enabled: bool = False
    ignore_admins: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AutoModSettings":
        return cls(
            word_filter_enabled=bool(data.get("wordFilterEnabled", False)),
            word_blacklist=tuple(
                w.strip() for w in _as_list(data.get("wordBlacklist")) if isinstance(w, str) and w.strip()
            ),
            invite_filter_enabled=bool(data.get("inviteFilterEnabled", False)),
            link_filter_enabled=bool(data.get("linkFilterEnabled", False)),
            mention_spam_enabled=bool(data.get("mentionSpamEnabled", False)),
            mention_spam_limit=_as_positive_int(data.get("mentionSpamLimit"), DEFAULT_MENTION_SPAM_LIMIT),
            ai_enabled=bool(data.get("aiEnabled", False)),
            ignore_admins=bool(data.get("ignoreAdmins", False)),
        )


# =============================================================================
# Guild Aggregate
# =============================================================================

@dataclass(frozen=True)
class GuildSettings:
    """All settings for one guild."""

    document_id: str
    guild_id: int
    welcome: WelcomeSettings = field(default_factory=WelcomeSettings)
    goodbye: GoodbyeSettings = field(default_factory=GoodbyeSettings)
    auto_role: AutoRoleSettings = field(default_factory=AutoRoleSettings)
    leveling: LevelingSettings = field(default_factory=LevelingSettings)
    auto_mod: AutoModSettings = field(default_factory=AutoModSettings)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> Optional["GuildSettings"]:
        """Parse a settings document; None when it has no usable guild id."""
        guild_id = _as_id(doc.get("guildId"))
        if guild_id is None:
            return None
        return cls(
            document_id=str(doc.get("$id", "")),
            guild_id=guild_id,
            welcome=WelcomeSettings.from_dict(decode_json(doc.get("welcomeSettings"), {})),
            goodbye=GoodbyeSettings.from_dict(decode_json(doc.get("goodbyeSettings"), {})),
            auto_role=AutoRoleSettings.from_dict(decode_json(doc.get("autoRoleSettings"), {})),
            leveling=LevelingSettings.from_dict(decode_json(doc.get("levelingSettings"), {})),
            auto_mod=AutoModSettings.from_dict(decode_json(doc.get("autoModSettings"), {})),
        )


@dataclass(frozen=True)
class CustomCommand:
    """A guild-defined prefix command."""

    guild_id: int
    name: str
    response: str = ""
    is_embed: bool = False
    embed_content: str = ""

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> Optional["CustomCommand"]:
        guild_id = _as_id(doc.get("guildId"))
        name = doc.get("command")
        if guild_id is None or not isinstance(name, str) or not name.strip():
            return None
        return cls(
            guild_id=guild_id,
            name=name.strip().lower(),
            response=doc.get("response") or "",
            is_embed=bool(doc.get("isEmbed", False)),
            embed_content=doc.get("embedContent") or "",
        )
