"""
Discora - Members Handler
=========================

Welcome/goodbye messages, auto-role on join, and join/leave audit
entries.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from discora.core.logger import logger
from discora.services.cache import AutoRoleSettings, GoodbyeSettings, WelcomeSettings
from discora.utils.async_utils import gather_with_logging
from discora.utils.channels import resolve_text_channel
from discora.utils.text import fill_template

if TYPE_CHECKING:
    from discora.bot import DiscoraBot


class MembersHandler(commands.Cog):
    """Handles member events."""

    def __init__(self, bot: "DiscoraBot") -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        logger.tree("Member Joined", [
            ("User", str(member)),
            ("ID", str(member.id)),
            ("Guild", member.guild.name),
        ], emoji="👋")

        settings = self.bot.cache.get(member.guild.id)
        if settings is None:
            return

        await gather_with_logging(
            ("Welcome Message", self.send_welcome(member, settings.welcome)),
            ("Auto Role", self.apply_auto_role(member, settings.auto_role)),
            context=f"Member Join ({member.guild.id})",
        )
        await self.bot.db.log_audit_event(
            member.guild.id,
            "USER_JOINED",
            str(member),
            f"User {member} joined the server.",
            user_id=member.id,
            avatar_url=str(member.display_avatar.url),
        )

    @commands.Cog.listener()
    async def on_member_remove(self, member: discord.Member) -> None:
        logger.tree("Member Left", [
            ("User", str(member)),
            ("ID", str(member.id)),
            ("Guild", member.guild.name),
        ], emoji="🚪")

        settings = self.bot.cache.get(member.guild.id)
        if settings is None:
            return

        await self.send_goodbye(member, settings.goodbye)
        await self.bot.db.log_audit_event(
            member.guild.id,
            "USER_LEFT",
            str(member),
            f"User {member} left.",
            user_id=member.id,
            avatar_url=str(member.display_avatar.url),
        )

    # =========================================================================
    # Actions
    # =========================================================================

    async def send_welcome(self, member: discord.Member, welcome: WelcomeSettings) -> None:
        if not welcome.enabled or not welcome.channel_id:
            return
        channel = await resolve_text_channel(self.bot, welcome.channel_id)
        if channel is None:
            return
        await channel.send(fill_template(welcome.message, {"user": member.mention}))

    async def send_goodbye(self, member: discord.Member, goodbye: GoodbyeSettings) -> None:
        if not goodbye.enabled or not goodbye.channel_id:
            return
        try:
            channel = await resolve_text_channel(self.bot, goodbye.channel_id)
            if channel is None:
                return
            await channel.send(fill_template(goodbye.message, {"user": f"**{member}**"}))
        except discord.HTTPException as e:
            logger.error_tree("Goodbye Message Failed", e, [
                ("User", str(member)),
                ("Guild ID", str(member.guild.id)),
            ])

    async def apply_auto_role(self, member: discord.Member, auto_role: AutoRoleSettings) -> None:
        if not auto_role.enabled or not auto_role.role_id:
            return
        role = member.guild.get_role(auto_role.role_id)
        if role is None:
            logger.warning("Auto-Role Missing", [
                ("Role ID", str(auto_role.role_id)),
                ("Guild ID", str(member.guild.id)),
            ])
            return
        await member.add_roles(role, reason="Auto-role on join")
        logger.tree("Auto-Role Applied", [
            ("User", str(member)),
            ("Role", role.name),
        ], emoji="🏷️")


async def setup(bot):
    await bot.add_cog(MembersHandler(bot))
