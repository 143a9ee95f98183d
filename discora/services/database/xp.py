"""
Discora - Database XP Mixin
===========================

XP/Leveling system database operations.
"""

from typing import Any, Dict, List, Optional

from discora.core.constants import LEADERBOARD_SIZE
from discora.core.logger import logger
from .core import Query


class XPMixin:
    """Mixin for XP system database operations."""

    # =========================================================================
    # Core XP Methods
    # =========================================================================

    async def get_user_level(self, guild_id: int, user_id: int) -> Optional[Dict[str, Any]]:
        """Get a user's level document for a guild."""
        return await self.find_one(self.collections.USER_LEVELS, [
            Query.equal("guildId", str(guild_id)),
            Query.equal("userId", str(user_id)),
        ])

    async def ensure_user_level(
        self,
        guild_id: int,
        user_id: int,
        username: str,
        avatar_url: str,
    ) -> Dict[str, Any]:
        """Get or lazily create a user's level document (level 0, 0 XP)."""
        doc = await self.get_user_level(guild_id, user_id)
        if doc:
            return doc

        doc = await self.create_document(self.collections.USER_LEVELS, {
            "guildId": str(guild_id),
            "userId": str(user_id),
            "username": username,
            "userAvatarUrl": avatar_url,
            "level": 0,
            "xp": 0,
        })
        logger.tree("XP User Created", [
            ("User", username),
            ("ID", str(user_id)),
            ("Guild ID", str(guild_id)),
        ], emoji="🆕")
        return doc

    async def update_user_level(
        self,
        document_id: str,
        xp: int,
        level: int,
        username: str,
        avatar_url: str,
    ) -> Dict[str, Any]:
        """Persist XP, level and display info in one write."""
        return await self.update_document(self.collections.USER_LEVELS, document_id, {
            "xp": xp,
            "level": level,
            "username": username,
            "userAvatarUrl": avatar_url,
        })

    # =========================================================================
    # Leaderboard
    # =========================================================================

    async def get_leaderboard(self, guild_id: int, limit: int = LEADERBOARD_SIZE) -> List[Dict[str, Any]]:
        """Top users by level, then XP."""
        return await self.list_documents(self.collections.USER_LEVELS, [
            Query.equal("guildId", str(guild_id)),
            Query.order_desc("level"),
            Query.order_desc("xp"),
            Query.limit(limit),
        ])
