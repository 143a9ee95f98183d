"""Tests for the dashboard mirror jobs."""

import json
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import discord
import pytest

from discora.services.sync import SyncService, build_metadata

from conftest import make_bot


def _role(role_id, name, position, default=False, color=0):
    return SimpleNamespace(
        id=role_id, name=name, position=position,
        color=discord.Colour(color), is_default=lambda: default,
    )


class Member(SimpleNamespace):
    def __str__(self):
        return self.name


def _guild(members=()):
    return SimpleNamespace(
        id=1,
        name="Test Guild",
        icon=None,
        chunked=True,
        channels=[
            SimpleNamespace(id=3, name="rules", type=discord.ChannelType.text),
            SimpleNamespace(id=4, name="Voice", type=discord.ChannelType.voice),
            SimpleNamespace(id=5, name="announcements", type=discord.ChannelType.news),
        ],
        roles=[
            _role(1, "@everyone", 0, default=True),
            _role(10, "Mod", 2, color=0xFF0000),
            _role(11, "Member", 1),
        ],
        members=list(members),
    )


def _sync_member(user_id, name, avatar="a.png", bot=False):
    return Member(
        id=user_id, name=name, bot=bot,
        display_avatar=SimpleNamespace(url=avatar),
        joined_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def test_build_metadata_lists_text_channels_and_roles():
    data = build_metadata(_guild())
    assert [c["name"] for c in data["channels"]] == ["announcements", "rules"]
    assert [r["name"] for r in data["roles"]] == ["Mod", "Member"]
    assert data["roles"][0]["color"] == 0xFF0000


@pytest.mark.asyncio
async def test_metadata_written_only_when_changed(db):
    bot = make_bot()
    service = SyncService(bot, db)
    guild = _guild()

    await service.sync_metadata(guild)
    first = db.docs(db.collections.SERVER_METADATA)[0]
    assert json.loads(first["data"])["channels"][0]["id"] == "5"

    assert await db.upsert_metadata(1, first["data"]) == "unchanged"


@pytest.mark.asyncio
async def test_member_sync_creates_updates_and_skips(db):
    db.seed(db.collections.MEMBERS, {
        "guildId": "1", "userId": "100", "username": "old-name", "userAvatarUrl": "a.png",
    })
    db.seed(db.collections.MEMBERS, {
        "guildId": "1", "userId": "101", "username": "same", "userAvatarUrl": "a.png",
    })
    guild = _guild(members=[
        _sync_member(100, "new-name"),
        _sync_member(101, "same"),
        _sync_member(102, "fresh"),
        _sync_member(103, "robot", bot=True),
    ])
    db.update_document = MagicMock(wraps=db.update_document)

    await SyncService(make_bot(), db).sync_members(guild)

    docs = {d["userId"]: d for d in db.docs(db.collections.MEMBERS)}
    assert set(docs) == {"100", "101", "102"}
    assert docs["100"]["username"] == "new-name"
    assert db.update_document.call_count == 1


@pytest.mark.asyncio
async def test_server_sync_and_heartbeat(db):
    bot = make_bot()
    bot.guilds = [_guild()]
    bot.user.name = "Discora"
    bot.user.display_avatar.url = "bot.png"
    service = SyncService(bot, db)

    await service.sync_servers()
    await service.publish_bot_info()

    assert db.docs(db.collections.SERVERS)[0]["name"] == "Test Guild"
    assert db.store[db.collections.BOT_INFO]["main_bot_info"]["name"] == "Discora"
    assert "lastSeen" in db.store[db.collections.SYSTEM_STATUS]["main_status"]
