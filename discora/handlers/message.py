"""
Discora - Message Handler
=========================

Runs every guild message through the pipeline:
    moderation -> XP -> stats -> commands

Also audits deleted messages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from discora.commands import send_custom_command
from discora.core.config import config
from discora.core.constants import AUDIT_CONTENT_LIMIT
from discora.core.logger import logger
from discora.utils.text import truncate

if TYPE_CHECKING:
    from discora.bot import DiscoraBot


class MessageHandler(commands.Cog):
    """Handles message events."""

    def __init__(self, bot: "DiscoraBot") -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or message.guild is None or not message.content:
            return

        settings = self.bot.cache.get(message.guild.id)
        if settings is None:
            return

        # Moderation
        if await self.bot.automod.moderate(message, settings):
            return

        # XP and stats
        if isinstance(message.author, discord.Member):
            await self.bot.xp.award_message(message.author, message.channel.id, settings)
        await self.bot.stats.record_message(message.guild.id)

        # Commands
        if message.content.startswith(config.COMMAND_PREFIX):
            await self._handle_command(message)

    async def _handle_command(self, message: discord.Message) -> None:
        """Built-in commands win over custom commands of the same name."""
        ctx = await self.bot.get_context(message)
        if ctx.valid:
            await self.bot.invoke(ctx)
            return

        name = (ctx.invoked_with or "").lower()
        if not name:
            return
        command = self.bot.cache.get_command(message.guild.id, name)
        if command is None:
            return

        try:
            await send_custom_command(message, command)
        except discord.HTTPException as e:
            logger.error_tree("Custom Command Failed", e, [
                ("Command", name),
                ("Guild ID", str(message.guild.id)),
            ])
            return

        await self.bot.db.log_command_usage(
            message.guild.id,
            f"{config.COMMAND_PREFIX}{name}",
            str(message.author),
            message.author.id,
            str(message.author.display_avatar.url),
        )

    @commands.Cog.listener()
    async def on_message_delete(self, message: discord.Message) -> None:
        if message.author.bot or message.guild is None or not message.content:
            return

        channel_name = getattr(message.channel, "name", str(message.channel.id))
        logger.tree("Message Deleted", [
            ("User", str(message.author)),
            ("Channel", f"#{channel_name}"),
            ("Guild", message.guild.name),
        ], emoji="🗑️")

        content = truncate(message.content, AUDIT_CONTENT_LIMIT)
        await self.bot.db.log_audit_event(
            message.guild.id,
            "MESSAGE_DELETED",
            str(message.author),
            f'Message by {message.author} deleted in #{channel_name}:\n"{content}"',
            user_id=message.author.id,
            avatar_url=str(message.author.display_avatar.url),
        )


async def setup(bot):
    await bot.add_cog(MessageHandler(bot))
