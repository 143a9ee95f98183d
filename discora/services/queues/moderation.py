"""
Discora - Moderation Queue
==========================

Carries out kicks and bans requested from the dashboard.
"""

from typing import Any, Dict, Optional

import discord

from discora.core.constants import MODERATION_QUEUE_INTERVAL
from discora.core.logger import logger
from .base import QueueItemError, QueueProcessor


DEFAULT_REASON = "No reason provided."

AUDIT_EVENTS = {
    "kick": ("USER_KICKED", "Kicked"),
    "ban": ("USER_BANNED", "Banned"),
}


class ModerationQueueProcessor(QueueProcessor):
    """Drains ``moderation_queue``."""

    NAME = "Moderation Queue"
    EMOJI = "🔨"
    INTERVAL = MODERATION_QUEUE_INTERVAL

    @property
    def collection(self) -> str:
        return self.db.collections.MODERATION_QUEUE

    async def _get_guild(self, guild_id: int) -> discord.Guild:
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            guild = await self.bot.fetch_guild(guild_id)
        return guild

    async def _fetch_member(self, guild: discord.Guild, user_id: Any) -> Optional[discord.Member]:
        try:
            return await guild.fetch_member(int(user_id))
        except (TypeError, ValueError, discord.NotFound):
            return None

    async def process_item(self, item: Dict[str, Any]) -> None:
        action = str(item.get("actionType") or "").lower()
        if action not in AUDIT_EVENTS:
            logger.warning("Unknown Moderation Action", [
                ("Item ID", str(item.get("$id"))),
                ("Action", action or "(empty)"),
            ])
            return

        guild = await self._get_guild(int(item["guildId"]))
        member = await self._fetch_member(guild, item.get("targetUserId"))
        if member is None:
            raise QueueItemError(
                f"Target {item.get('targetUsername') or item.get('targetUserId')} is not in the guild"
            )
        initiator = await self._fetch_member(guild, item.get("initiatorId"))

        reason = item.get("reason") or DEFAULT_REASON
        if action == "kick":
            await member.kick(reason=reason)
        else:
            await member.ban(reason=reason)

        event_type, verb = AUDIT_EVENTS[action]
        await self.db.log_audit_event(
            guild.id,
            event_type,
            str(initiator) if initiator else "Dashboard",
            f"{verb} user {member}. Reason: {item.get('reason') or 'None'}",
            user_id=initiator.id if initiator else None,
            avatar_url=str(initiator.display_avatar.url) if initiator else "",
        )

        logger.tree(f"User {verb}", [
            ("Guild", guild.name),
            ("Target", f"{member} ({member.id})"),
            ("By", str(initiator) if initiator else "Dashboard"),
            ("Reason", reason[:100]),
        ], emoji="🔨")
