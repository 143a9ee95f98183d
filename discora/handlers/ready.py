"""
Discora - Ready Handler
=======================

Handles bot startup events.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from discora.core.logger import logger

if TYPE_CHECKING:
    from discora.bot import DiscoraBot


class ReadyHandler(commands.Cog):
    """Handles bot ready event."""

    def __init__(self, bot: "DiscoraBot") -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        """Called when the bot is ready (and again after reconnects)."""
        logger.tree("Bot Ready", [
            ("User", str(self.bot.user)),
            ("ID", str(self.bot.user.id)),
            ("Guilds", str(len(self.bot.guilds))),
        ], emoji="🚀")

        await self.bot.sync.sync_servers()
        await self.bot.sync.publish_bot_info()

        # Background jobs start once per process
        await self.bot._init_services()

        await self.bot.change_presence(
            activity=discord.Activity(
                type=discord.ActivityType.watching,
                name=f"{len(self.bot.guilds)} servers",
            )
        )

    @commands.Cog.listener()
    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.tree("Joined Guild", [
            ("Guild", guild.name),
            ("ID", str(guild.id)),
            ("Members", str(guild.member_count)),
        ], emoji="➕")
        await self.bot.sync.sync_servers()


async def setup(bot):
    await bot.add_cog(ReadyHandler(bot))
