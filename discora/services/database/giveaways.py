"""
Discora - Database Giveaways Mixin
==================================

Giveaway document operations.
"""

from typing import Any, Dict, List, Optional

from discora.core.constants import LIST_LIMIT
from .core import Query


class GiveawaysMixin:
    """Mixin for giveaway operations."""

    async def get_giveaway(self, document_id: str) -> Optional[Dict[str, Any]]:
        """Get a giveaway by id."""
        return await self.get_document_or_none(self.collections.GIVEAWAYS, document_id)

    async def update_giveaway(self, document_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Patch a giveaway."""
        return await self.update_document(self.collections.GIVEAWAYS, document_id, data)

    async def list_expired_giveaways(self, now_iso: str) -> List[Dict[str, Any]]:
        """Running giveaways whose end time has passed and that were posted."""
        return await self.list_documents(self.collections.GIVEAWAYS, [
            Query.equal("status", "running"),
            Query.less_than_equal("endsAt", now_iso),
            Query.is_not_null("messageId"),
            Query.limit(LIST_LIMIT),
        ])

    async def find_giveaway_by_message(self, guild_id: int, message_id: int) -> Optional[Dict[str, Any]]:
        """Get the giveaway announced as a given message."""
        return await self.find_one(self.collections.GIVEAWAYS, [
            Query.equal("guildId", str(guild_id)),
            Query.equal("messageId", str(message_id)),
        ])
