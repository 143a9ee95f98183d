"""
Discora - Database YouTube Mixin
================================

YouTube subscription document operations.
"""

from typing import Any, Dict, List

from discora.core.constants import LIST_LIMIT
from .core import Query


class YouTubeMixin:
    """Mixin for YouTube subscription operations."""

    async def list_youtube_subscriptions(self) -> List[Dict[str, Any]]:
        """All YouTube subscriptions."""
        return await self.list_documents(self.collections.YOUTUBE_SUBSCRIPTIONS, [Query.limit(LIST_LIMIT)])

    async def update_youtube_subscription(self, document_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Patch a subscription in a single write."""
        return await self.update_document(self.collections.YOUTUBE_SUBSCRIPTIONS, document_id, data)
