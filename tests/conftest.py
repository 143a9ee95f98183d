"""
Pytest configuration and fixtures for Discora tests.

``MemoryDatabase`` replaces the Appwrite REST primitives with an
in-memory store that understands the query clauses the bot sends, so
every mixin and service runs against real document semantics.
"""

import copy
import itertools
from typing import Any, Dict, Iterable, List, Optional
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from discora.core.config import Collections
from discora.services.database import Database, DatabaseError, Query
from discora.services.database.core import DocumentNotFoundError


# =============================================================================
# In-Memory Database
# =============================================================================

class MemoryDatabase(Database):
    """Database whose document primitives operate on dicts."""

    def __init__(self) -> None:
        super().__init__(
            endpoint="https://appwrite.invalid/v1",
            project_id="test",
            api_key="test",
            database_id="test",
            collections=Collections(),
        )
        self.store: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._ids = itertools.count(1)
        # Collection names whose writes should fail
        self.fail_writes: set = set()
        self.fail_reads: set = set()
        self.deleted: List[tuple] = []

    def seed(self, collection: str, data: Dict[str, Any], document_id: Optional[str] = None) -> Dict[str, Any]:
        doc_id = document_id or f"doc{next(self._ids)}"
        doc = {"$id": doc_id, **data}
        self.store.setdefault(collection, {})[doc_id] = doc
        return doc

    def docs(self, collection: str) -> List[Dict[str, Any]]:
        return list(self.store.get(collection, {}).values())

    @staticmethod
    def _matches(doc: Dict[str, Any], query: Query) -> bool:
        if query.method == "equal":
            return doc.get(query.attribute) in query.values
        if query.method == "lessThanEqual":
            value = doc.get(query.attribute)
            return value is not None and value <= query.values[0]
        if query.method == "isNotNull":
            return doc.get(query.attribute) not in (None, "")
        return True

    async def list_documents(self, collection: str, queries: Iterable[Query] = ()) -> List[Dict[str, Any]]:
        if collection in self.fail_reads:
            raise DatabaseError("read failed", status=500)
        queries = list(queries)
        docs = [
            d for d in self.store.get(collection, {}).values()
            if all(self._matches(d, q) for q in queries)
        ]
        for q in reversed([q for q in queries if q.method == "orderDesc"]):
            docs.sort(key=lambda d, attr=q.attribute: d.get(attr) or 0, reverse=True)
        for q in queries:
            if q.method == "limit":
                docs = docs[: q.values[0]]
        return copy.deepcopy(docs)

    async def get_document(self, collection: str, document_id: str) -> Dict[str, Any]:
        if collection in self.fail_reads:
            raise DatabaseError("read failed", status=500)
        doc = self.store.get(collection, {}).get(document_id)
        if doc is None:
            raise DocumentNotFoundError("Document not found", status=404)
        return copy.deepcopy(doc)

    async def create_document(
        self,
        collection: str,
        data: Dict[str, Any],
        document_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        if collection in self.fail_writes:
            raise DatabaseError("write failed", status=500)
        return copy.deepcopy(self.seed(collection, copy.deepcopy(data), document_id))

    async def update_document(self, collection: str, document_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        if collection in self.fail_writes:
            raise DatabaseError("write failed", status=500)
        doc = self.store.get(collection, {}).get(document_id)
        if doc is None:
            raise DocumentNotFoundError("Document not found", status=404)
        doc.update(copy.deepcopy(data))
        return copy.deepcopy(doc)

    async def delete_document(self, collection: str, document_id: str) -> None:
        self.deleted.append((collection, document_id))
        if self.store.get(collection, {}).pop(document_id, None) is None:
            raise DocumentNotFoundError("Document not found", status=404)


@pytest.fixture
def db() -> MemoryDatabase:
    return MemoryDatabase()


@pytest.fixture
def cols() -> Collections:
    return Collections()


# =============================================================================
# Discord Fakes
# =============================================================================

def make_channel(channel_id: int = 500, name: str = "general") -> MagicMock:
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = channel_id
    channel.name = name
    channel.mention = f"<#{channel_id}>"
    channel.send = AsyncMock()
    channel.fetch_message = AsyncMock()
    return channel


def make_role(role_id: int, name: str = "role") -> MagicMock:
    role = MagicMock(spec=discord.Role)
    role.id = role_id
    role.name = name
    return role


def make_guild(guild_id: int = 1, name: str = "Test Guild", roles: Iterable[MagicMock] = ()) -> MagicMock:
    guild = MagicMock(spec=discord.Guild)
    guild.id = guild_id
    guild.name = name
    by_id = {r.id: r for r in roles}
    guild.get_role = MagicMock(side_effect=lambda rid: by_id.get(rid))
    return guild


def make_member(user_id: int = 100, guild: Optional[MagicMock] = None, name: str = "user") -> MagicMock:
    member = MagicMock(spec=discord.Member)
    member.id = user_id
    member.bot = False
    member.guild = guild or make_guild()
    member.mention = f"<@{user_id}>"
    member.__str__ = MagicMock(return_value=name)
    member.display_avatar = MagicMock()
    member.display_avatar.url = f"https://cdn.invalid/avatars/{user_id}.png"
    member.add_roles = AsyncMock()
    member.remove_roles = AsyncMock()
    member.send = AsyncMock()
    return member


def make_bot(channels: Optional[Dict[int, Any]] = None, user_id: int = 999) -> MagicMock:
    channels = channels or {}
    bot = MagicMock()
    bot.get_channel = MagicMock(side_effect=lambda cid: channels.get(cid))
    bot.fetch_channel = AsyncMock(side_effect=discord.NotFound(MagicMock(status=404), "Unknown Channel"))
    bot.user = MagicMock()
    bot.user.id = user_id
    bot.user.__str__ = MagicMock(return_value="Discora#0001")
    bot.guilds = []
    return bot
