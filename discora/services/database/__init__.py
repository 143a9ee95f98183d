"""
Discora - Database Module
=========================

Appwrite document store for all bot features.

Structure:
    - core.py: REST client, queries, serialized-field helpers
    - settings.py: Guild settings and custom commands
    - xp.py: XP/Leveling system
    - stats.py: Server-level statistics
    - queues.py: Work queues and reaction-role panels
    - giveaways.py: Giveaways
    - scheduled.py: Scheduled messages
    - youtube.py: YouTube subscriptions
    - logs.py: Audit and command logs
    - sync.py: Dashboard mirrors (servers, members, metadata, heartbeat)
"""

from discora.core.config import config
from .core import (
    DatabaseCore,
    DatabaseError,
    DocumentNotFoundError,
    Query,
    decode_json,
    encode_json,
)
from .settings import SettingsMixin
from .xp import XPMixin
from .stats import StatsMixin
from .queues import QueuesMixin
from .giveaways import GiveawaysMixin
from .scheduled import ScheduledMessagesMixin
from .youtube import YouTubeMixin
from .logs import LogsMixin
from .sync import SyncMixin


class Database(
    SettingsMixin,
    XPMixin,
    StatsMixin,
    QueuesMixin,
    GiveawaysMixin,
    ScheduledMessagesMixin,
    YouTubeMixin,
    LogsMixin,
    SyncMixin,
    DatabaseCore,
):
    """
    Complete database class combining all mixins.

    Inherits from all feature mixins and the core database class.
    The order matters - DatabaseCore must be last so its __init__ runs.
    """
    pass


def create_database() -> Database:
    """Build the database client from the environment configuration."""
    return Database(
        endpoint=config.APPWRITE_ENDPOINT,
        project_id=config.APPWRITE_PROJECT_ID,
        api_key=config.APPWRITE_API_KEY,
        database_id=config.APPWRITE_DATABASE_ID,
        collections=config.COLLECTIONS,
    )


__all__ = [
    "Database",
    "DatabaseError",
    "DocumentNotFoundError",
    "Query",
    "create_database",
    "decode_json",
    "encode_json",
]
