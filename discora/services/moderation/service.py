"""
Discora - Auto-Moderation Service
=================================

Applies the rule-based filters and, when enabled, the AI classifier to
incoming messages. A moderated message is deleted, its author is told
why by DM, and the action is written to the audit log.
"""

from typing import Optional

import discord

from discora.core.constants import AI_VERDICT_FLAG
from discora.core.logger import logger
from discora.services.cache import GuildSettings
from discora.services.database import Database
from discora.utils.text import truncate
from .ai import GeminiModerator
from .filters import check_message


AUDIT_USER = "AutoMod"


class AutoModService:
    """Message moderation pipeline."""

    def __init__(self, db: Database, moderator: Optional[GeminiModerator] = None) -> None:
        self.db = db
        self.moderator = moderator

    async def moderate(self, message: discord.Message, settings: GuildSettings) -> bool:
        """
        Moderate one message.

        Returns:
            True if the message was removed and should not be processed
            any further.
        """
        auto_mod = settings.auto_mod
        author = message.author

        if (
            auto_mod.ignore_admins
            and isinstance(author, discord.Member)
            and author.guild_permissions.administrator
        ):
            return False

        mention_count = len({u.id for u in message.mentions}) + len({r.id for r in message.role_mentions})
        hit = check_message(message.content, mention_count, auto_mod)
        if hit is not None:
            await self._remove(
                message,
                dm_text=f"Your message in **{message.guild.name}** was removed because {hit.reason}.",
                event_type="AUTO_MOD_ACTION",
                audit_content=f"Deleted message from {author} because {hit.reason}.",
            )
            logger.tree("AutoMod Action", [
                ("User", f"{author} ({author.id})"),
                ("Guild", message.guild.name),
                ("Filter", hit.name),
            ], emoji="🛡️")
            return True

        if auto_mod.ai_enabled and self.moderator is not None and self.moderator.available:
            verdict = await self.moderator.classify(message.content)
            if verdict == AI_VERDICT_FLAG:
                await self._remove(
                    message,
                    dm_text=(
                        f"Your message in **{message.guild.name}** was automatically removed "
                        "for potentially violating server rules."
                    ),
                    event_type="AI_MODERATION",
                    audit_content=(
                        f"Deleted message from {author} for potential violation.\n"
                        f'Content: "{truncate(message.content, 500)}"'
                    ),
                )
                logger.tree("AI Moderation Action", [
                    ("User", f"{author} ({author.id})"),
                    ("Guild", message.guild.name),
                ], emoji="🤖")
                return True

        return False

    async def _remove(
        self,
        message: discord.Message,
        dm_text: str,
        event_type: str,
        audit_content: str,
    ) -> None:
        try:
            await message.delete()
        except discord.NotFound:
            pass  # already gone
        except discord.HTTPException as e:
            logger.error_tree("Moderated Message Delete Failed", e, [
                ("Message ID", str(message.id)),
            ])

        try:
            await message.author.send(dm_text)
        except discord.HTTPException:
            logger.info(f"Could not DM {message.author} about removed message")

        await self.db.log_audit_event(message.guild.id, event_type, AUDIT_USER, audit_content)
