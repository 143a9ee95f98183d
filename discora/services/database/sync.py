"""
Discora - Database Sync Mixin
=============================

Mirrors of live Discord state for the dashboard: server list, bot info,
heartbeat, member directory, and channel/role metadata.

Writes are skipped when the stored document already matches.
"""

from typing import Any, Dict, List, Optional

from discora.core.constants import LIST_LIMIT
from .core import Query


BOT_INFO_DOCUMENT_ID = "main_bot_info"
SYSTEM_STATUS_DOCUMENT_ID = "main_status"


def _changed(doc: Dict[str, Any], data: Dict[str, Any]) -> bool:
    return any(doc.get(key) != value for key, value in data.items())


class SyncMixin:
    """Mixin for dashboard mirror operations."""

    async def _upsert(
        self,
        collection: str,
        queries: List[Query],
        data: Dict[str, Any],
        create_extra: Optional[Dict[str, Any]] = None,
        document_id: Optional[str] = None,
    ) -> str:
        """Create or update the single document matching ``queries``.

        Returns:
            "created", "updated", or "unchanged".
        """
        existing = await self.find_one(collection, queries)
        if existing is None:
            await self.create_document(collection, {**(create_extra or {}), **data}, document_id=document_id)
            return "created"
        if _changed(existing, data):
            await self.update_document(collection, existing["$id"], data)
            return "updated"
        return "unchanged"

    # =========================================================================
    # Servers
    # =========================================================================

    async def upsert_server(self, guild_id: int, name: str, icon_url: str) -> str:
        """Register or refresh a guild the bot is in."""
        return await self._upsert(
            self.collections.SERVERS,
            [Query.equal("guildId", str(guild_id))],
            {"name": name, "iconUrl": icon_url},
            create_extra={"guildId": str(guild_id)},
        )

    # =========================================================================
    # Bot Info / Heartbeat
    # =========================================================================

    async def upsert_bot_info(self, name: str, avatar_url: str) -> str:
        """Store the bot's display name and avatar."""
        return await self._upsert(
            self.collections.BOT_INFO, [],
            {"name": name, "avatarUrl": avatar_url},
            document_id=BOT_INFO_DOCUMENT_ID,
        )

    async def record_heartbeat(self, last_seen_iso: str) -> str:
        """Store the last time the bot was alive."""
        return await self._upsert(
            self.collections.SYSTEM_STATUS, [],
            {"lastSeen": last_seen_iso},
            document_id=SYSTEM_STATUS_DOCUMENT_ID,
        )

    # =========================================================================
    # Members / Metadata
    # =========================================================================

    async def list_members(self, guild_id: int) -> List[Dict[str, Any]]:
        """Mirrored member documents for a guild."""
        return await self.list_documents(self.collections.MEMBERS, [
            Query.equal("guildId", str(guild_id)),
            Query.limit(LIST_LIMIT),
        ])

    async def save_member(self, existing: Optional[Dict[str, Any]], data: Dict[str, Any]) -> str:
        """Create a member document, or update it when name or avatar changed."""
        if existing is None:
            await self.create_document(self.collections.MEMBERS, data)
            return "created"
        watched = {"username": data["username"], "userAvatarUrl": data["userAvatarUrl"]}
        if _changed(existing, watched):
            await self.update_document(self.collections.MEMBERS, existing["$id"], data)
            return "updated"
        return "unchanged"

    async def upsert_metadata(self, guild_id: int, payload: str) -> str:
        """Store the serialized channel/role metadata for a guild."""
        return await self._upsert(
            self.collections.SERVER_METADATA,
            [Query.equal("guildId", str(guild_id))],
            {"data": payload},
            create_extra={"guildId": str(guild_id)},
        )
