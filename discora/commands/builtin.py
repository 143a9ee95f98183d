"""
Discora - Built-in Commands
===========================

Prefix commands every guild gets: help, leaderboard, reroll.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from discora.core.colors import COLOR_BRAND, COLOR_LEADERBOARD
from discora.core.config import config
from discora.core.logger import logger
from discora.services.giveaway import GiveawayNotEnded, GiveawayNotFound
from discora.services.xp import format_xp

if TYPE_CHECKING:
    from discora.bot import DiscoraBot


RANK_EMOJIS = ("🥇", "🥈", "🥉")


class BuiltinCommands(commands.Cog):
    """Built-in prefix commands."""

    def __init__(self, bot: "DiscoraBot") -> None:
        self.bot = bot

    async def cog_check(self, ctx: commands.Context) -> bool:
        return ctx.guild is not None

    # =========================================================================
    # Commands
    # =========================================================================

    @commands.command(name="help")
    async def help_command(self, ctx: commands.Context) -> None:
        """Shows this list of commands."""
        p = config.COMMAND_PREFIX
        builtin = "\n".join([
            f"**{p}help**: Shows this list of commands.",
            f"**{p}leaderboard**: Displays the server leaderboard.",
            f"**{p}reroll <message_id>**: Rerolls a giveaway winner (Admin only).",
        ])
        names = sorted(self.bot.cache.get_commands(ctx.guild.id))
        custom = ", ".join(f"`{p}{name}`" for name in names) if names else "No custom commands set."

        embed = discord.Embed(title=f"Commands for {ctx.guild.name}", color=COLOR_BRAND)
        embed.add_field(name="Built-in Commands", value=builtin, inline=False)
        embed.add_field(name="Custom Commands", value=custom[:1024], inline=False)
        await ctx.send(embed=embed)

    @commands.command(name="leaderboard")
    async def leaderboard(self, ctx: commands.Context) -> None:
        """Displays the server leaderboard."""
        try:
            rows = await self.bot.xp.leaderboard(ctx.guild.id)
        except Exception as e:
            logger.error_tree("Leaderboard Fetch Failed", e, [
                ("Guild", ctx.guild.name),
                ("ID", str(ctx.guild.id)),
            ])
            await ctx.send("Sorry, I was unable to fetch the leaderboard at this time.")
            return

        embed = discord.Embed(
            title=f"🏆 Leaderboard for {ctx.guild.name}",
            color=COLOR_LEADERBOARD,
            timestamp=discord.utils.utcnow(),
        )
        if not rows:
            embed.description = "No one has earned any XP yet. Start chatting to get on the board!"
        else:
            lines = []
            for index, row in enumerate(rows):
                rank = RANK_EMOJIS[index] if index < len(RANK_EMOJIS) else f"**#{index + 1}**"
                lines.append(
                    f"{rank} <@{row.get('userId')}> - Level **{row.get('level', 0)}** "
                    f"({format_xp(int(row.get('xp') or 0))} XP)"
                )
            embed.description = "\n".join(lines)
        await ctx.send(embed=embed)

    @commands.command(name="reroll")
    @commands.has_guild_permissions(manage_guild=True)
    async def reroll(self, ctx: commands.Context, message_id: int) -> None:
        """Rerolls a giveaway winner."""
        try:
            giveaway, winners = await self.bot.giveaways.reroll(ctx.guild.id, message_id)
        except GiveawayNotFound:
            await ctx.reply("Could not find an ended giveaway with that message ID.")
            return
        except GiveawayNotEnded:
            await ctx.reply("This giveaway has not ended yet.")
            return

        if winners is None:
            await ctx.reply("An error occurred while trying to reroll the giveaway.")
            return
        await ctx.reply(f"Rerolling giveaway for **{giveaway.get('prize')}**...")

    # =========================================================================
    # Hooks
    # =========================================================================

    @commands.Cog.listener()
    async def on_command_completion(self, ctx: commands.Context) -> None:
        """Record every successful command in the command log."""
        if ctx.guild is None or ctx.command is None:
            return
        logger.tree("Command Executed", [
            ("Command", f"{config.COMMAND_PREFIX}{ctx.command.qualified_name}"),
            ("User", str(ctx.author)),
            ("Guild", ctx.guild.name),
        ], emoji="⌨️")
        await self.bot.db.log_command_usage(
            ctx.guild.id,
            f"{config.COMMAND_PREFIX}{ctx.command.qualified_name}",
            str(ctx.author),
            ctx.author.id,
            str(ctx.author.display_avatar.url),
        )

    async def cog_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        if isinstance(error, commands.MissingPermissions):
            await ctx.reply('You need the "Manage Server" permission to use this command.')
        elif isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
            await ctx.reply("Please provide the message ID of the giveaway to reroll.")
        elif isinstance(error, commands.CheckFailure):
            return
        else:
            original = getattr(error, "original", error)
            logger.error_tree("Command Error", original, [
                ("Command", ctx.command.qualified_name if ctx.command else "-"),
                ("User", str(ctx.author)),
            ])
            try:
                await ctx.send("Sorry, something went wrong while running that command.")
            except discord.HTTPException:
                pass


async def setup(bot):
    await bot.add_cog(BuiltinCommands(bot))
