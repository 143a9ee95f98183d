"""
Discora - Configuration
=======================

Central configuration from environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple


ROOT_DIR = Path(__file__).parent.parent.parent
LOGS_DIR = ROOT_DIR / "logs"

LOGS_DIR.mkdir(exist_ok=True)

# Values shipped in .env.example that must be replaced before running
PLACEHOLDER_PREFIXES = ("your_", "YOUR_", "<")


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int with default."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_env_str(key: str, default: str = "") -> str:
    """Get environment variable as a stripped string."""
    return os.getenv(key, default).strip()


def _is_placeholder(value: str) -> bool:
    return not value or value.startswith(PLACEHOLDER_PREFIXES)


@dataclass(frozen=True)
class Collections:
    """Appwrite collection IDs."""

    SERVERS: str = _get_env_str("APPWRITE_SERVERS_COLLECTION_ID", "servers")
    SETTINGS: str = _get_env_str("APPWRITE_SETTINGS_COLLECTION_ID", "server_settings")
    YOUTUBE_SUBSCRIPTIONS: str = _get_env_str("APPWRITE_YOUTUBE_COLLECTION_ID", "youtube_subscriptions")
    CUSTOM_COMMANDS: str = _get_env_str("APPWRITE_CUSTOM_COMMANDS_COLLECTION_ID", "custom_commands")
    COMMAND_LOGS: str = _get_env_str("APPWRITE_COMMAND_LOGS_COLLECTION_ID", "command_logs")
    AUDIT_LOGS: str = _get_env_str("APPWRITE_AUDIT_LOGS_COLLECTION_ID", "audit_logs")
    SERVER_STATS: str = _get_env_str("APPWRITE_SERVER_STATS_COLLECTION_ID", "server_stats")
    BOT_INFO: str = _get_env_str("APPWRITE_BOT_INFO_COLLECTION_ID", "bot_info")
    SYSTEM_STATUS: str = _get_env_str("APPWRITE_SYSTEM_STATUS_COLLECTION_ID", "system_status")
    USER_LEVELS: str = _get_env_str("APPWRITE_USER_LEVELS_COLLECTION_ID", "user_levels")
    MODERATION_QUEUE: str = _get_env_str("APPWRITE_MODERATION_QUEUE_COLLECTION_ID", "moderation_queue")
    MEMBERS: str = _get_env_str("APPWRITE_MEMBERS_COLLECTION_ID", "members")
    SERVER_METADATA: str = _get_env_str("APPWRITE_SERVER_METADATA_COLLECTION_ID", "server_metadata")
    REACTION_ROLES: str = _get_env_str("APPWRITE_REACTION_ROLES_COLLECTION_ID", "reaction_roles")
    SCHEDULED_MESSAGES: str = _get_env_str("APPWRITE_SCHEDULED_MESSAGES_COLLECTION_ID", "scheduled_messages")
    GIVEAWAYS: str = _get_env_str("APPWRITE_GIVEAWAYS_COLLECTION_ID", "giveaways")
    REACTION_ROLE_QUEUE: str = _get_env_str("APPWRITE_REACTION_ROLE_QUEUE_COLLECTION_ID", "reaction_role_queue")
    GIVEAWAY_QUEUE: str = _get_env_str("APPWRITE_GIVEAWAY_QUEUE_COLLECTION_ID", "giveaway_queue")


@dataclass(frozen=True)
class Config:
    """Bot configuration from environment variables."""

    # Bot settings
    TOKEN: str = _get_env_str("DISCORD_BOT_TOKEN")
    COMMAND_PREFIX: str = _get_env_str("COMMAND_PREFIX", "!")
    LOG_TIMEZONE: str = _get_env_str("LOG_TIMEZONE", "UTC")

    # Appwrite
    APPWRITE_ENDPOINT: str = _get_env_str("APPWRITE_ENDPOINT").rstrip("/")
    APPWRITE_PROJECT_ID: str = _get_env_str("APPWRITE_PROJECT_ID")
    APPWRITE_API_KEY: str = _get_env_str("APPWRITE_API_KEY")
    APPWRITE_DATABASE_ID: str = _get_env_str("APPWRITE_DATABASE_ID")
    COLLECTIONS: Collections = field(default_factory=Collections)

    # AI moderation (optional)
    GEMINI_API_KEY: str = _get_env_str("GEMINI_API_KEY")
    GEMINI_MODEL: str = _get_env_str("GEMINI_MODEL", "gemini-2.5-flash")

    # Job intervals
    CACHE_REFRESH_INTERVAL: int = _get_env_int("CACHE_REFRESH_INTERVAL", 15)  # seconds
    YOUTUBE_CHECK_INTERVAL: int = _get_env_int("YOUTUBE_CHECK_INTERVAL", 60)  # seconds

    # Max in-flight items per background job
    WORKER_CONCURRENCY: int = _get_env_int("WORKER_CONCURRENCY", 5)

    @property
    def ai_enabled(self) -> bool:
        """True when a usable Gemini key is configured."""
        return not _is_placeholder(self.GEMINI_API_KEY)

    def missing_keys(self) -> List[str]:
        """Return the required environment variables that are unset or placeholders."""
        required: List[Tuple[str, str]] = [
            ("DISCORD_BOT_TOKEN", self.TOKEN),
            ("APPWRITE_ENDPOINT", self.APPWRITE_ENDPOINT),
            ("APPWRITE_PROJECT_ID", self.APPWRITE_PROJECT_ID),
            ("APPWRITE_API_KEY", self.APPWRITE_API_KEY),
            ("APPWRITE_DATABASE_ID", self.APPWRITE_DATABASE_ID),
        ]
        return [key for key, value in required if _is_placeholder(value)]


config = Config()
