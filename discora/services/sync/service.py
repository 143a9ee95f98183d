"""
Discora - Sync Service
======================

Keeps the dashboard's mirror of Discord state current:
    - servers: guild list (on ready)
    - bot_info: bot name and avatar (on ready)
    - system_status: heartbeat every 30 seconds
    - server_metadata: channels and roles every minute
    - members: member directory every 15 minutes
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

import discord
from discord.ext import tasks

from discora.core.config import config
from discora.core.constants import HEARTBEAT_INTERVAL, MEMBER_SYNC_INTERVAL, METADATA_SYNC_INTERVAL
from discora.core.logger import logger
from discora.services.database import Database, encode_json
from discora.utils.async_utils import run_bounded
from discora.utils.timeutils import to_iso, utcnow

if TYPE_CHECKING:
    from discora.bot import DiscoraBot


TEXT_CHANNEL_TYPES = (discord.ChannelType.text, discord.ChannelType.news)


def build_metadata(guild: discord.Guild) -> Dict[str, List[Dict[str, Any]]]:
    """Text channels by name and roles by position (highest first)."""
    channels = sorted(
        ({"id": str(c.id), "name": c.name} for c in guild.channels if c.type in TEXT_CHANNEL_TYPES),
        key=lambda c: c["name"].lower(),
    )
    roles = [
        {"id": str(r.id), "name": r.name, "color": r.color.value}
        for r in sorted(guild.roles, key=lambda r: r.position, reverse=True)
        if not r.is_default()
    ]
    return {"channels": channels, "roles": roles}


def icon_url(guild: discord.Guild) -> str:
    return str(guild.icon.url) if guild.icon else ""


class SyncService:
    """Dashboard mirror jobs."""

    def __init__(self, bot: "DiscoraBot", db: Database) -> None:
        self.bot = bot
        self.db = db

    async def setup(self) -> None:
        self.heartbeat.change_interval(seconds=HEARTBEAT_INTERVAL)
        self.metadata_sync.change_interval(seconds=METADATA_SYNC_INTERVAL)
        self.member_sync.change_interval(seconds=MEMBER_SYNC_INTERVAL)
        self.heartbeat.start()
        self.metadata_sync.start()
        self.member_sync.start()
        logger.tree("Sync Service Started", [
            ("Heartbeat", f"every {HEARTBEAT_INTERVAL}s"),
            ("Metadata", f"every {METADATA_SYNC_INTERVAL}s"),
            ("Members", f"every {MEMBER_SYNC_INTERVAL // 60}m"),
        ], emoji="🔁")

    def stop(self) -> None:
        for loop in (self.heartbeat, self.metadata_sync, self.member_sync):
            if loop.is_running():
                loop.cancel()

    # =========================================================================
    # On Ready
    # =========================================================================

    async def sync_servers(self) -> None:
        """Register every guild the bot is in."""
        for guild in self.bot.guilds:
            try:
                result = await self.db.upsert_server(guild.id, guild.name, icon_url(guild))
                if result != "unchanged":
                    logger.tree("Server Synced", [
                        ("Guild", guild.name),
                        ("ID", str(guild.id)),
                        ("Result", result),
                    ], emoji="🏠")
            except Exception as e:
                logger.error_tree("Server Sync Failed", e, [
                    ("Guild", guild.name),
                    ("ID", str(guild.id)),
                ])

    async def publish_bot_info(self) -> None:
        """Store the bot's identity and mark it alive."""
        user = self.bot.user
        if user is None:
            return
        try:
            await self.db.upsert_bot_info(user.name, str(user.display_avatar.url))
            await self.db.record_heartbeat(to_iso(utcnow()))
        except Exception as e:
            logger.error_tree("Bot Info Update Failed", e)

    # =========================================================================
    # Heartbeat
    # =========================================================================

    @tasks.loop(seconds=30)
    async def heartbeat(self) -> None:
        try:
            await self.db.record_heartbeat(to_iso(utcnow()))
        except Exception as e:
            logger.error_tree("Heartbeat Failed", e)

    # =========================================================================
    # Metadata
    # =========================================================================

    @tasks.loop(seconds=60)
    async def metadata_sync(self) -> None:
        try:
            await run_bounded(
                list(self.bot.guilds), self.sync_metadata,
                limit=config.WORKER_CONCURRENCY, context="Metadata Sync",
            )
        except Exception as e:
            logger.error_tree("Metadata Sync Error", e)

    @metadata_sync.before_loop
    async def before_metadata_sync(self) -> None:
        await self.bot.wait_until_ready()

    async def sync_metadata(self, guild: discord.Guild) -> None:
        try:
            await self.db.upsert_metadata(guild.id, encode_json(build_metadata(guild)))
        except Exception as e:
            logger.error_tree("Metadata Sync Failed", e, [
                ("Guild", guild.name),
                ("ID", str(guild.id)),
            ])

    # =========================================================================
    # Members
    # =========================================================================

    @tasks.loop(seconds=900)
    async def member_sync(self) -> None:
        try:
            await run_bounded(
                list(self.bot.guilds), self.sync_members,
                limit=config.WORKER_CONCURRENCY, context="Member Sync",
            )
        except Exception as e:
            logger.error_tree("Member Sync Error", e)

    @member_sync.before_loop
    async def before_member_sync(self) -> None:
        await self.bot.wait_until_ready()

    async def sync_members(self, guild: discord.Guild) -> None:
        """Mirror non-bot members, writing only new or changed ones."""
        try:
            if not guild.chunked:
                await guild.chunk()
            existing = {doc.get("userId"): doc for doc in await self.db.list_members(guild.id)}

            counts = {"created": 0, "updated": 0, "unchanged": 0}
            for member in guild.members:
                if member.bot:
                    continue
                data = {
                    "guildId": str(guild.id),
                    "userId": str(member.id),
                    "username": str(member),
                    "userAvatarUrl": str(member.display_avatar.url),
                    "joinedAt": to_iso(member.joined_at) if member.joined_at else "",
                }
                result = await self.db.save_member(existing.get(str(member.id)), data)
                counts[result] += 1

            if counts["created"] or counts["updated"]:
                logger.tree("Members Synced", [
                    ("Guild", guild.name),
                    ("Created", str(counts["created"])),
                    ("Updated", str(counts["updated"])),
                    ("Unchanged", str(counts["unchanged"])),
                ], emoji="👥")
        except Exception as e:
            logger.error_tree("Member Sync Failed", e, [
                ("Guild", guild.name),
                ("ID", str(guild.id)),
            ])
