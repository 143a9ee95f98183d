"""
Discora - Giveaway Queue
========================

Posts giveaway announcements requested from the dashboard.
"""

from typing import Any, Dict

import discord

from discora.core.colors import COLOR_GIVEAWAY
from discora.core.constants import GIVEAWAY_EMOJI, GIVEAWAY_QUEUE_INTERVAL
from discora.core.logger import logger
from discora.utils.channels import resolve_text_channel
from discora.utils.timeutils import parse_iso
from .base import QueueItemError, QueueProcessor


def build_giveaway_embed(giveaway: Dict[str, Any]) -> discord.Embed:
    """Announcement embed for a running giveaway."""
    ends_at = parse_iso(giveaway.get("endsAt"))
    ends_text = f"<t:{int(ends_at.timestamp())}:R>" if ends_at else "soon"
    embed = discord.Embed(
        title=f"{GIVEAWAY_EMOJI} GIVEAWAY: {giveaway.get('prize', 'Prize')} {GIVEAWAY_EMOJI}",
        description=(
            f"React with {GIVEAWAY_EMOJI} to enter!\n"
            f"Ends: {ends_text}\n"
            f"Winners: **{giveaway.get('winnerCount', 1)}**"
        ),
        color=COLOR_GIVEAWAY,
        timestamp=ends_at,
    )
    return embed


class GiveawayQueueProcessor(QueueProcessor):
    """Drains ``giveaway_queue``."""

    NAME = "Giveaway Queue"
    EMOJI = "🎉"
    INTERVAL = GIVEAWAY_QUEUE_INTERVAL

    @property
    def collection(self) -> str:
        return self.db.collections.GIVEAWAY_QUEUE

    async def process_item(self, item: Dict[str, Any]) -> None:
        giveaway_id = item.get("giveawayId")
        giveaway = await self.db.get_giveaway(giveaway_id) if giveaway_id else None
        if giveaway is None:
            raise QueueItemError(f"Giveaway {giveaway_id} not found")

        try:
            channel = await resolve_text_channel(self.bot, int(giveaway.get("channelId") or 0))
            if channel is None:
                raise QueueItemError(f"Channel {giveaway.get('channelId')} not found or not text-based")

            message = await channel.send(embed=build_giveaway_embed(giveaway))
            await message.add_reaction(GIVEAWAY_EMOJI)
            await self.db.update_giveaway(giveaway["$id"], {"messageId": str(message.id)})
        except Exception:
            try:
                await self.db.update_giveaway(giveaway["$id"], {"status": "error"})
            except Exception as e:
                logger.error_tree("Giveaway Status Update Failed", e, [
                    ("Giveaway ID", giveaway["$id"]),
                ])
            raise

        logger.tree("Giveaway Posted", [
            ("Giveaway ID", giveaway["$id"]),
            ("Prize", str(giveaway.get("prize", ""))[:50]),
            ("Message ID", str(message.id)),
        ], emoji="🎉")
