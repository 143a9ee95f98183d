"""
Discora - Stats Service
=======================

Per-guild dashboard statistics.

Three writers share the ``main_stats`` document and each owns disjoint
fields:
    - record_message: messagesToday, messagesWeekly (every message)
    - refresh_all: memberCount, onlineCount, commandCount, roleDistribution
    - daily_reset: messagesToday (zeroed), messagesWeekly (pruned)
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import time as dt_time, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import discord
from discord.ext import tasks

from discora.core.config import config
from discora.core.constants import STATS_HISTORY_LIMIT, STATS_REFRESH_INTERVAL, STATS_WEEKLY_WINDOW
from discora.core.logger import logger
from discora.services.cache import ConfigCache
from discora.services.database import Database, encode_json
from discora.utils.async_utils import run_bounded
from discora.utils.timeutils import day_key, utcnow
from .utils import bump_weekly, parse_weekly, prune_weekly

if TYPE_CHECKING:
    from discora.bot import DiscoraBot


ONLINE_STATUSES = (discord.Status.online, discord.Status.idle, discord.Status.dnd)


def role_distribution(guild: discord.Guild) -> List[Dict[str, Any]]:
    """Member count per non-default role, largest first."""
    roles = [
        {"name": role.name, "count": len(role.members), "color": str(role.color)}
        for role in guild.roles
        if not role.is_default() and role.members
    ]
    return sorted(roles, key=lambda r: r["count"], reverse=True)


class StatsService:
    """Maintains per-guild statistics documents."""

    def __init__(self, bot: "DiscoraBot", db: Database, cache: ConfigCache) -> None:
        self.bot = bot
        self.db = db
        self.cache = cache
        # Serializes read-modify-write of a guild's document within this process
        self._locks: Dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def setup(self) -> None:
        self.stats_refresh.change_interval(seconds=STATS_REFRESH_INTERVAL)
        self.stats_refresh.start()
        self.daily_reset_loop.start()
        logger.tree("Stats Service Started", [
            ("Refresh", f"every {STATS_REFRESH_INTERVAL}s"),
            ("Daily Reset", "00:00 UTC"),
        ], emoji="📊")

    def stop(self) -> None:
        if self.stats_refresh.is_running():
            self.stats_refresh.cancel()
        if self.daily_reset_loop.is_running():
            self.daily_reset_loop.cancel()
        logger.tree("Stats Service Stopped", [], emoji="🛑")

    # =========================================================================
    # Message Counters
    # =========================================================================

    async def record_message(self, guild_id: int, today: Optional[str] = None) -> None:
        """Count one message for today. Failures are logged, never raised."""
        today = today or day_key(utcnow())
        try:
            async with self._locks[guild_id]:
                doc = await self.db.ensure_guild_stats(guild_id)
                weekly = bump_weekly(parse_weekly(doc.get("messagesWeekly")), today, STATS_WEEKLY_WINDOW)
                await self.db.update_guild_stats(doc["$id"], {
                    "messagesToday": int(doc.get("messagesToday") or 0) + 1,
                    "messagesWeekly": encode_json(weekly),
                })
        except Exception as e:
            logger.error_tree("Message Stats Update Failed", e, [
                ("Guild ID", str(guild_id)),
            ])

    # =========================================================================
    # Periodic Refresh
    # =========================================================================

    @tasks.loop(seconds=120)
    async def stats_refresh(self) -> None:
        try:
            await self.refresh_all()
        except Exception as e:
            logger.error_tree("Stats Refresh Error", e)

    @stats_refresh.before_loop
    async def before_stats_refresh(self) -> None:
        await self.bot.wait_until_ready()

    async def refresh_all(self) -> None:
        """Recompute live counts for every guild."""
        await run_bounded(
            list(self.bot.guilds), self.refresh_guild,
            limit=config.WORKER_CONCURRENCY, context="Stats Refresh",
        )

    async def refresh_guild(self, guild: discord.Guild) -> None:
        """Recompute one guild's member/online/command/role numbers."""
        try:
            if not guild.chunked:
                await guild.chunk()

            online = sum(1 for m in guild.members if m.status in ONLINE_STATUSES)
            async with self._locks[guild.id]:
                doc = await self.db.ensure_guild_stats(guild.id)
                await self.db.update_guild_stats(doc["$id"], {
                    "memberCount": guild.member_count or len(guild.members),
                    "onlineCount": online,
                    "commandCount": len(self.cache.get_commands(guild.id)),
                    "roleDistribution": encode_json(role_distribution(guild)),
                })
        except Exception as e:
            logger.error_tree("Guild Stats Refresh Failed", e, [
                ("Guild", guild.name),
                ("ID", str(guild.id)),
            ])

    # =========================================================================
    # Daily Reset
    # =========================================================================

    @tasks.loop(time=dt_time(hour=0, minute=0, tzinfo=timezone.utc))
    async def daily_reset_loop(self) -> None:
        try:
            await self.daily_reset()
        except Exception as e:
            logger.error_tree("Daily Stats Reset Error", e)

    async def daily_reset(self) -> int:
        """
        Zero today's counter and prune weekly history for every guild.

        Returns:
            Number of guild documents reset.
        """
        docs = await self.db.list_guild_stats()
        if not docs:
            return 0

        async def reset_one(doc: Dict[str, Any]) -> bool:
            guild_id = int(doc.get("guildId") or 0)
            async with self._locks[guild_id]:
                # Re-read under the lock so a message recorded since the listing is kept
                current = await self.db.get_guild_stats(guild_id) if guild_id else None
                current = current or doc
                await self.db.update_guild_stats(current["$id"], {
                    "messagesToday": 0,
                    "messagesWeekly": encode_json(
                        prune_weekly(parse_weekly(current.get("messagesWeekly")), STATS_HISTORY_LIMIT)
                    ),
                })
            return True

        results = await run_bounded(docs, reset_one, limit=config.WORKER_CONCURRENCY, context="Daily Reset")
        reset = sum(1 for r in results if r is True)

        logger.tree("Daily Stats Reset", [
            ("Guilds", str(reset)),
            ("Failed", str(len(docs) - reset)),
            ("History Cap", f"{STATS_HISTORY_LIMIT} buckets (recording keeps {STATS_WEEKLY_WINDOW})"),
        ], emoji="🌅")
        return reset
