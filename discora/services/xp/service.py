"""
Discora - XP Service
====================

Message XP awards, level-ups, and role rewards.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import discord
from discord.ext import tasks

from discora.core.constants import COOLDOWN_SWEEP_INTERVAL, LEADERBOARD_SIZE
from discora.core.logger import logger
from discora.services.cache import GuildSettings, LevelingSettings
from discora.services.database import Database
from discora.utils.channels import resolve_text_channel
from discora.utils.text import fill_template
from .utils import CooldownTracker, apply_xp, format_xp

if TYPE_CHECKING:
    from discora.bot import DiscoraBot


@dataclass(frozen=True)
class XPAward:
    """Outcome of one message award."""

    user_id: int
    amount: int
    xp: int
    old_level: int
    new_level: int
    reward_role_id: Optional[int] = None

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


class XPService:
    """Awards XP for messages and handles level-ups."""

    def __init__(
        self,
        bot: "DiscoraBot",
        db: Database,
        cooldowns: Optional[CooldownTracker] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.bot = bot
        self.db = db
        self.cooldowns = cooldowns or CooldownTracker()
        self._rng = rng or random.Random()

    async def setup(self) -> None:
        """Start the hourly cooldown sweep."""
        self.cooldown_sweep.change_interval(seconds=COOLDOWN_SWEEP_INTERVAL)
        self.cooldown_sweep.start()
        logger.tree("XP Service Started", [
            ("Cooldown Sweep", f"every {COOLDOWN_SWEEP_INTERVAL}s"),
        ], emoji="⬆️")

    def stop(self) -> None:
        """Stop background work and clear the cooldown cache."""
        if self.cooldown_sweep.is_running():
            self.cooldown_sweep.cancel()
        self.cooldowns.clear()
        logger.tree("XP Service Stopped", [
            ("Status", "Cooldown cache cleared"),
        ], emoji="🛑")

    # =========================================================================
    # Scheduled Tasks
    # =========================================================================

    @tasks.loop(seconds=3600)
    async def cooldown_sweep(self) -> None:
        """Hourly cleanup of stale cooldown entries."""
        try:
            removed = self.cooldowns.sweep(time.time())
            if removed:
                logger.tree("XP Cooldown Sweep", [
                    ("Removed", str(removed)),
                    ("Remaining", str(len(self.cooldowns))),
                ], emoji="🧹")
        except Exception as e:
            logger.error_tree("XP Cooldown Sweep Error", e)

    # =========================================================================
    # Message XP
    # =========================================================================

    async def award_message(
        self,
        member: discord.Member,
        channel_id: int,
        settings: GuildSettings,
        now: Optional[float] = None,
    ) -> Optional[XPAward]:
        """
        Award XP for one message if leveling allows it.

        Gates, in order: leveling enabled, channel not blacklisted,
        per-user cooldown elapsed.

        Returns:
            The award, or None when a gate rejected the message or the
            user's level document could not be read.
        """
        leveling = settings.leveling
        if not leveling.enabled or channel_id in leveling.blacklisted_channels:
            return None

        now = time.time() if now is None else now
        guild_id = member.guild.id
        if not self.cooldowns.check_and_mark((guild_id, member.id), leveling.cooldown_seconds, now):
            return None

        username = str(member)
        avatar_url = str(member.display_avatar.url)

        try:
            record = await self.db.ensure_user_level(guild_id, member.id, username, avatar_url)
        except Exception as e:
            logger.error_tree("XP Record Load Failed", e, [
                ("User", username),
                ("ID", str(member.id)),
                ("Guild ID", str(guild_id)),
            ])
            return None

        amount = self._rng.randint(leveling.xp_min, leveling.xp_max)
        old_xp = int(record.get("xp") or 0)
        old_level = int(record.get("level") or 0)
        new_xp, new_level = apply_xp(old_xp, old_level, amount)

        reward_role_id = None
        if new_level > old_level:
            logger.tree("Level Up!", [
                ("User", username),
                ("ID", str(member.id)),
                ("Level", f"{old_level} -> {new_level}"),
                ("XP", format_xp(new_xp)),
            ], emoji="🎉")
            await self._announce_level_up(member, new_level, leveling)
            reward_role_id = await self._grant_role_reward(member, new_level, leveling)

        try:
            await self.db.update_user_level(record["$id"], new_xp, new_level, username, avatar_url)
        except Exception as e:
            logger.error_tree("XP Write Failed", e, [
                ("User", username),
                ("ID", str(member.id)),
                ("Lost XP", str(amount)),
            ])

        return XPAward(
            user_id=member.id,
            amount=amount,
            xp=new_xp,
            old_level=old_level,
            new_level=new_level,
            reward_role_id=reward_role_id,
        )

    async def _announce_level_up(
        self,
        member: discord.Member,
        level: int,
        leveling: LevelingSettings,
    ) -> None:
        """Post the level-up message to the configured channel."""
        if not leveling.channel_id:
            return
        try:
            channel = await resolve_text_channel(self.bot, leveling.channel_id)
            if channel is None:
                return
            await channel.send(fill_template(leveling.message, {
                "user": member.mention,
                "level": level,
            }))
        except discord.HTTPException as e:
            logger.error_tree("Level Up Announcement Failed", e, [
                ("User", str(member)),
                ("Channel ID", str(leveling.channel_id)),
            ])

    async def _grant_role_reward(
        self,
        member: discord.Member,
        level: int,
        leveling: LevelingSettings,
    ) -> Optional[int]:
        """Grant the role configured for exactly ``level``. Best effort."""
        reward = leveling.reward_for(level)
        if reward is None:
            return None

        role = member.guild.get_role(reward.role_id)
        if role is None:
            logger.warning("Role Reward Missing", [
                ("Level", str(level)),
                ("Role ID", str(reward.role_id)),
                ("Guild ID", str(member.guild.id)),
            ])
            return None

        try:
            await member.add_roles(role, reason=f"Reached level {level}")
        except discord.HTTPException as e:
            logger.error_tree("Role Reward Failed", e, [
                ("User", str(member)),
                ("Role", role.name),
                ("Level", str(level)),
            ])
            return None

        logger.tree("Role Reward Granted", [
            ("User", str(member)),
            ("Role", role.name),
            ("Level", str(level)),
        ], emoji="🏅")
        return reward.role_id

    # =========================================================================
    # Leaderboard
    # =========================================================================

    async def leaderboard(self, guild_id: int, limit: int = LEADERBOARD_SIZE) -> List[Dict[str, Any]]:
        """Top users by level, then XP."""
        return await self.db.get_leaderboard(guild_id, limit)
