"""
Discora - Giveaway Service
==========================

Ends expired giveaways, picks winners, and handles rerolls.
"""

from __future__ import annotations

import random
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import discord
from discord.ext import tasks

from discora.core.colors import COLOR_GIVEAWAY_EMPTY, COLOR_GIVEAWAY_WON
from discora.core.config import config
from discora.core.constants import GIVEAWAY_CHECK_INTERVAL
from discora.core.logger import logger
from discora.services.database import Database
from discora.utils.async_utils import run_bounded
from discora.utils.channels import resolve_text_channel
from discora.utils.timeutils import to_iso, utcnow
from .utils import collect_entrants, pick_winners

if TYPE_CHECKING:
    from discora.bot import DiscoraBot


class GiveawayError(Exception):
    """Base class for giveaway lookup failures surfaced to commands."""
    pass


class GiveawayNotFound(GiveawayError):
    pass


class GiveawayNotEnded(GiveawayError):
    pass


def _ended_embed(message: discord.Message, description: str, color: int) -> discord.Embed:
    embed = message.embeds[0].copy() if message.embeds else discord.Embed(title="Giveaway")
    embed.description = description
    embed.colour = discord.Colour(color)
    return embed


class GiveawayService:
    """Service for ending and rerolling giveaways."""

    def __init__(self, bot: "DiscoraBot", db: Database, rng: Optional[random.Random] = None) -> None:
        self.bot = bot
        self.db = db
        self._rng = rng or random.Random()

    async def setup(self) -> None:
        self.check_loop.change_interval(seconds=GIVEAWAY_CHECK_INTERVAL)
        self.check_loop.start()
        logger.tree("Giveaway Service Ready", [
            ("Check Interval", f"{GIVEAWAY_CHECK_INTERVAL}s"),
        ], emoji="🎉")

    def stop(self) -> None:
        if self.check_loop.is_running():
            self.check_loop.cancel()

    # =========================================================================
    # Expiry
    # =========================================================================

    @tasks.loop(seconds=60)
    async def check_loop(self) -> None:
        try:
            await self.check_expired()
        except Exception as e:
            logger.error_tree("Giveaway Check Error", e)

    @check_loop.before_loop
    async def before_check_loop(self) -> None:
        await self.bot.wait_until_ready()

    async def check_expired(self, now: Optional[datetime] = None) -> int:
        """
        End every running giveaway whose end time has passed.

        Returns:
            Number of giveaways processed.
        """
        now = now or utcnow()
        expired = await self.db.list_expired_giveaways(to_iso(now))
        if not expired:
            return 0

        logger.tree("Expired Giveaways Found", [
            ("Count", str(len(expired))),
        ], emoji="⏳")
        await run_bounded(
            expired, lambda g: self.end_giveaway(g["$id"]),
            limit=config.WORKER_CONCURRENCY, context="Giveaway End",
        )
        return len(expired)

    # =========================================================================
    # Ending
    # =========================================================================

    async def end_giveaway(self, giveaway_id: str, reroll: bool = False) -> Optional[List[int]]:
        """
        End (or reroll) a giveaway and announce the winners.

        Returns:
            Winner ids ([] when nobody entered), or None when ending
            failed and the giveaway was marked ``error``.
        """
        giveaway: Optional[Dict[str, Any]] = None
        channel = None
        try:
            giveaway = await self.db.get_giveaway(giveaway_id)
            if giveaway is None:
                raise GiveawayNotFound(f"Giveaway {giveaway_id} not found")

            channel = await resolve_text_channel(self.bot, int(giveaway.get("channelId") or 0))
            if channel is None:
                raise GiveawayError(f"Channel {giveaway.get('channelId')} not found or not text-based")

            message = await channel.fetch_message(int(giveaway["messageId"]))
            entrants = await collect_entrants(message)

            if not entrants:
                reason = "No one reacted." if entrants is None else "Not enough entrants."
                await message.edit(
                    embed=_ended_embed(message, f"Giveaway ended. {reason}", COLOR_GIVEAWAY_EMPTY),
                    view=None,
                )
                await self.db.update_giveaway(giveaway_id, {"status": "ended", "winners": []})
                logger.tree("Giveaway Ended (No Entries)", [
                    ("ID", giveaway_id),
                    ("Prize", str(giveaway.get("prize", ""))[:50]),
                ], emoji="🎉")
                return []

            winners = pick_winners(entrants, int(giveaway.get("winnerCount") or 1), self._rng)
            await self._announce(channel, message, giveaway, winners, reroll)
            await self.db.update_giveaway(giveaway_id, {
                "status": "ended",
                "winners": [str(w) for w in winners],
            })

            mentions = ", ".join(f"<@{w}>" for w in winners)
            bot_user = self.bot.user
            await self.db.log_audit_event(
                int(giveaway["guildId"]),
                "GIVEAWAY_REROLLED" if reroll else "GIVEAWAY_ENDED",
                str(bot_user) if bot_user else "System",
                f'Giveaway for "{giveaway.get("prize")}" ended. Winners: {mentions}',
                user_id=bot_user.id if bot_user else None,
            )

            logger.tree("Giveaway Rerolled" if reroll else "Giveaway Ended", [
                ("ID", giveaway_id),
                ("Prize", str(giveaway.get("prize", ""))[:50]),
                ("Entries", str(len(entrants))),
                ("Winners", ", ".join(str(w) for w in winners)),
            ], emoji="🏆")
            return winners

        except Exception as e:
            logger.error_tree("Giveaway End Failed", e, [
                ("ID", giveaway_id),
                ("Reroll", str(reroll)),
            ])
            await self._mark_failed(giveaway_id, giveaway, channel)
            return None

    async def _announce(
        self,
        channel: discord.abc.Messageable,
        message: discord.Message,
        giveaway: Dict[str, Any],
        winners: List[int],
        reroll: bool,
    ) -> None:
        """Post the winners and flip the embed to its ended state."""
        mentions = ", ".join(f"<@{w}>" for w in winners)
        prize = giveaway.get("prize", "prize")
        if reroll:
            content = f"A new winner has been rerolled for the **{prize}** giveaway! Congratulations {mentions}!"
        else:
            content = f"Congratulations {mentions}! You won the **{prize}**!"

        await channel.send(
            content,
            allowed_mentions=discord.AllowedMentions(
                everyone=False,
                roles=False,
                users=[discord.Object(id=w) for w in winners],
            ),
        )
        await message.edit(
            embed=_ended_embed(message, f"Giveaway ended!\nWinners: {mentions}", COLOR_GIVEAWAY_WON),
            view=None,
        )

    async def _mark_failed(
        self,
        giveaway_id: str,
        giveaway: Optional[Dict[str, Any]],
        channel: Optional[discord.abc.Messageable],
    ) -> None:
        if channel is not None and giveaway is not None:
            try:
                await channel.send(
                    f"There was an error while trying to end the giveaway for "
                    f"**{giveaway.get('prize')}**. Please check bot permissions."
                )
            except discord.HTTPException as e:
                logger.error_tree("Giveaway Error Notice Failed", e, [("ID", giveaway_id)])
        try:
            await self.db.update_giveaway(giveaway_id, {"status": "error"})
        except Exception as e:
            logger.error_tree("Giveaway Status Update Failed", e, [("ID", giveaway_id)])

    # =========================================================================
    # Reroll
    # =========================================================================

    async def reroll(self, guild_id: int, message_id: int) -> Tuple[Dict[str, Any], Optional[List[int]]]:
        """
        Pick fresh winners for an ended giveaway.

        Raises:
            GiveawayNotFound: No giveaway was posted as that message.
            GiveawayNotEnded: The giveaway is still running.
        """
        giveaway = await self.db.find_giveaway_by_message(guild_id, message_id)
        if giveaway is None:
            raise GiveawayNotFound(f"No giveaway for message {message_id}")
        if giveaway.get("status") != "ended":
            raise GiveawayNotEnded(f"Giveaway {giveaway['$id']} has not ended")
        winners = await self.end_giveaway(giveaway["$id"], reroll=True)
        return giveaway, winners
