"""
Discora - Main Bot
==================

Community bot driven by a dashboard-managed document store.
"""

from typing import List, Optional

import discord
from discord.ext import commands

from discora.core.config import config
from discora.core.logger import logger
from discora.services.cache import ConfigCache
from discora.services.database import Database, create_database
from discora.services.giveaway import GiveawayService
from discora.services.moderation import AutoModService, GeminiModerator
from discora.services.queues import (
    GiveawayQueueProcessor,
    ModerationQueueProcessor,
    QueueProcessor,
    ReactionRoleQueueProcessor,
)
from discora.services.scheduled import ScheduledMessageService
from discora.services.stats import StatsService
from discora.services.sync import SyncService
from discora.services.xp import XPService
from discora.services.youtube import FeedClient, YouTubeService
from discora.utils.http import http_session


EXTENSIONS = (
    "discora.handlers.ready",
    "discora.handlers.message",
    "discora.handlers.members",
    "discora.handlers.reactions",
    "discora.commands.builtin",
)


class DiscoraBot(commands.Bot):
    """Main bot class for Discora."""

    def __init__(self, db: Optional[Database] = None):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.presences = True

        super().__init__(
            command_prefix=config.COMMAND_PREFIX,
            intents=intents,
            help_command=None,
        )

        self.db: Database = db or create_database()
        self.cache = ConfigCache(self.db)

        # Services
        moderator = GeminiModerator(config.GEMINI_API_KEY, config.GEMINI_MODEL) if config.ai_enabled else None
        self.automod = AutoModService(self.db, moderator)
        self.xp = XPService(self, self.db)
        self.stats = StatsService(self, self.db, self.cache)
        self.giveaways = GiveawayService(self, self.db)
        self.scheduled = ScheduledMessageService(self, self.db)
        self.youtube = YouTubeService(self, self.db, FeedClient(http_session))
        self.sync = SyncService(self, self.db)
        self.queues: List[QueueProcessor] = [
            ReactionRoleQueueProcessor(self, self.db),
            GiveawayQueueProcessor(self, self.db),
            ModerationQueueProcessor(self, self.db),
        ]

        self._services_started = False

    async def setup_hook(self) -> None:
        """Called when the bot is starting up."""
        # Settings must be loaded before the first event is dispatched
        await self.cache.init()

        for extension in EXTENSIONS:
            await self.load_extension(extension)

    async def on_message(self, message: discord.Message) -> None:
        """Commands are dispatched by the message handler after moderation."""
        return

    async def _init_services(self) -> None:
        """Start background services. Safe to call on every ready event."""
        if self._services_started:
            return
        self._services_started = True

        await self.xp.setup()
        await self.stats.setup()
        await self.giveaways.setup()
        await self.scheduled.setup()
        await self.youtube.setup()
        await self.sync.setup()
        for processor in self.queues:
            await processor.setup()

        logger.tree("Services Started", [
            ("Queues", ", ".join(p.NAME for p in self.queues)),
            ("AI Moderation", "enabled" if self.automod.moderator else "disabled"),
        ], emoji="✅")

    async def close(self) -> None:
        """Clean up when bot is shutting down."""
        logger.info("Bot shutting down...")
        for processor in self.queues:
            processor.stop()
        for service in (self.sync, self.youtube, self.scheduled, self.giveaways, self.stats, self.xp):
            service.stop()
        self.cache.shutdown()

        await super().close()
        await self.db.close()
        await http_session.close()
