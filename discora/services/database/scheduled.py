"""
Discora - Database Scheduled Messages Mixin
===========================================

Scheduled message document operations.
"""

from typing import Any, Dict, List

from discora.core.constants import LIST_LIMIT
from .core import Query


class ScheduledMessagesMixin:
    """Mixin for scheduled message operations."""

    async def list_due_scheduled_messages(self, now_iso: str) -> List[Dict[str, Any]]:
        """Pending messages whose next run is at or before ``now_iso``."""
        return await self.list_documents(self.collections.SCHEDULED_MESSAGES, [
            Query.equal("status", "pending"),
            Query.less_than_equal("nextRun", now_iso),
            Query.limit(LIST_LIMIT),
        ])

    async def update_scheduled_message(self, document_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Patch a scheduled message."""
        return await self.update_document(self.collections.SCHEDULED_MESSAGES, document_id, data)
