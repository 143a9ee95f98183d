"""
Discora - Reaction Role Handler
===============================

Grants or revokes roles when members react on reaction-role panels.

Uses raw events so panels posted before a restart (and therefore not in
the message cache) keep working.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from discora.core.logger import logger
from discora.services.queues import find_mapping, parse_role_mappings

if TYPE_CHECKING:
    from discora.bot import DiscoraBot


class ReactionRoleHandler(commands.Cog):
    """Handles reaction add/remove on reaction-role panels."""

    def __init__(self, bot: "DiscoraBot") -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        await self.handle_reaction(payload, added=True)

    @commands.Cog.listener()
    async def on_raw_reaction_remove(self, payload: discord.RawReactionActionEvent) -> None:
        await self.handle_reaction(payload, added=False)

    async def handle_reaction(self, payload: discord.RawReactionActionEvent, added: bool) -> None:
        if payload.guild_id is None:
            return
        if self.bot.user is not None and payload.user_id == self.bot.user.id:
            return

        guild = self.bot.get_guild(payload.guild_id)
        if guild is None:
            return

        try:
            panel = await self.bot.db.find_reaction_role(guild.id, payload.message_id)
            if panel is None:
                return

            mapping = find_mapping(parse_role_mappings(panel.get("roles")), str(payload.emoji))
            if mapping is None:
                return

            member = payload.member if added else None
            if member is None:
                member = guild.get_member(payload.user_id) or await guild.fetch_member(payload.user_id)
            if member.bot:
                return

            role = guild.get_role(mapping.role_id)
            if role is None:
                logger.warning("Reaction Role Missing", [
                    ("Panel", str(panel.get("$id"))),
                    ("Role ID", str(mapping.role_id)),
                    ("Guild", guild.name),
                ])
                return

            if added:
                await member.add_roles(role, reason="Reaction role")
            else:
                await member.remove_roles(role, reason="Reaction role removed")

            logger.tree("Reaction Role Added" if added else "Reaction Role Removed", [
                ("User", str(member)),
                ("Role", role.name),
                ("Guild", guild.name),
            ], emoji="🎭")

        except Exception as e:
            logger.error_tree("Reaction Role Failed", e, [
                ("User ID", str(payload.user_id)),
                ("Message ID", str(payload.message_id)),
                ("Guild", guild.name),
            ])


async def setup(bot):
    await bot.add_cog(ReactionRoleHandler(bot))
