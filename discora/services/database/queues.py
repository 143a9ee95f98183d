"""
Discora - Database Queues Mixin
===============================

Work queues written by the dashboard and drained by the bot, plus the
documents those queue items point at (reaction-role panels).
"""

from typing import Any, Dict, List, Optional

from discora.core.constants import QUEUE_BATCH_SIZE
from .core import Query


class QueuesMixin:
    """Mixin for queue and reaction-role operations."""

    # =========================================================================
    # Queues
    # =========================================================================

    async def list_queue(self, collection: str, limit: int = QUEUE_BATCH_SIZE) -> List[Dict[str, Any]]:
        """One page of pending queue items."""
        return await self.list_documents(collection, [Query.limit(limit)])

    async def delete_queue_item(self, collection: str, document_id: str) -> None:
        """Remove a queue item once it has been attempted."""
        await self.delete_document(collection, document_id)

    # =========================================================================
    # Reaction Roles
    # =========================================================================

    async def get_reaction_role(self, document_id: str) -> Optional[Dict[str, Any]]:
        """Get a reaction-role panel by id."""
        return await self.get_document_or_none(self.collections.REACTION_ROLES, document_id)

    async def set_reaction_role_message(self, document_id: str, message_id: int) -> None:
        """Record the message a reaction-role panel was posted as."""
        await self.update_document(self.collections.REACTION_ROLES, document_id, {
            "messageId": str(message_id),
        })

    async def find_reaction_role(self, guild_id: int, message_id: int) -> Optional[Dict[str, Any]]:
        """Get the reaction-role panel posted as a given message."""
        return await self.find_one(self.collections.REACTION_ROLES, [
            Query.equal("guildId", str(guild_id)),
            Query.equal("messageId", str(message_id)),
        ])
