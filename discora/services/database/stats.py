"""
Discora - Database Stats Mixin
==============================

Server-level statistics documents (one ``main_stats`` document per guild).
"""

from typing import Any, Dict, List, Optional

from discora.core.constants import LIST_LIMIT, STATS_DOCUMENT_ID
from discora.core.logger import logger
from .core import Query, encode_json


class StatsMixin:
    """Mixin for server statistics operations."""

    async def get_guild_stats(self, guild_id: int) -> Optional[Dict[str, Any]]:
        """Get the stats document for a guild."""
        return await self.find_one(self.collections.SERVER_STATS, [
            Query.equal("guildId", str(guild_id)),
            Query.equal("doc_id", STATS_DOCUMENT_ID),
        ])

    async def ensure_guild_stats(self, guild_id: int) -> Dict[str, Any]:
        """Get or create the stats document for a guild."""
        doc = await self.get_guild_stats(guild_id)
        if doc:
            return doc

        doc = await self.create_document(self.collections.SERVER_STATS, {
            "doc_id": STATS_DOCUMENT_ID,
            "guildId": str(guild_id),
            "memberCount": 0,
            "onlineCount": 0,
            "messagesToday": 0,
            "commandCount": 0,
            "totalWarnings": 0,
            "messagesWeekly": encode_json([]),
            "roleDistribution": encode_json([]),
        })
        logger.tree("Stats Document Created", [
            ("Guild ID", str(guild_id)),
        ], emoji="📊")
        return doc

    async def update_guild_stats(self, document_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Patch a stats document."""
        return await self.update_document(self.collections.SERVER_STATS, document_id, data)

    async def list_guild_stats(self) -> List[Dict[str, Any]]:
        """All guild stats documents."""
        return await self.list_documents(self.collections.SERVER_STATS, [
            Query.equal("doc_id", STATS_DOCUMENT_ID),
            Query.limit(LIST_LIMIT),
        ])
