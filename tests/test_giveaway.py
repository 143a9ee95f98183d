"""Tests for winner selection, giveaway ending, and rerolls."""

import random
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from discora.services.giveaway import (
    GiveawayNotEnded,
    GiveawayNotFound,
    GiveawayService,
    collect_entrants,
    pick_winners,
)

from conftest import make_bot, make_channel


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _user(user_id, bot=False):
    return SimpleNamespace(id=user_id, bot=bot)


def _message(message_id=777, entrants=None, with_reaction=True):
    message = MagicMock()
    message.id = message_id
    message.embeds = []
    message.edit = AsyncMock()
    if with_reaction:
        users = list(entrants or [])

        async def iterate():
            for user in users:
                yield user

        message.reactions = [SimpleNamespace(emoji="🎉", users=iterate)]
    else:
        message.reactions = []
    return message


def _giveaway(db, **fields):
    base = {
        "guildId": "1", "channelId": "600", "messageId": "777", "prize": "Nitro",
        "winnerCount": 1, "status": "running", "endsAt": "2024-05-01T11:00:00.000+00:00",
    }
    base.update(fields)
    return db.seed(db.collections.GIVEAWAYS, base)


# =============================================================================
# Winner Selection
# =============================================================================

def test_pick_winners_are_distinct_and_bounded():
    winners = pick_winners([1, 2, 3, 4, 5], 3, random.Random(7))
    assert len(winners) == 3
    assert len(set(winners)) == 3
    assert set(winners) <= {1, 2, 3, 4, 5}


def test_pick_winners_with_fewer_entrants_than_slots():
    assert sorted(pick_winners([1, 2], 5, random.Random(1))) == [1, 2]


def test_pick_winners_dedupes_entrants():
    assert pick_winners([1, 1, 1], 2, random.Random(1)) == [1]


@pytest.mark.asyncio
async def test_collect_entrants_excludes_bots():
    message = _message(entrants=[_user(1), _user(2, bot=True), _user(3)])
    assert await collect_entrants(message) == [1, 3]


@pytest.mark.asyncio
async def test_collect_entrants_without_reaction():
    assert await collect_entrants(_message(with_reaction=False)) is None


# =============================================================================
# Ending
# =============================================================================

@pytest.mark.asyncio
async def test_expired_giveaway_is_ended_with_winner(db):
    channel = make_channel(600)
    channel.fetch_message = AsyncMock(return_value=_message(entrants=[_user(10), _user(11)]))
    giveaway = _giveaway(db)
    _giveaway(db, messageId="", endsAt="2024-04-01T00:00:00.000+00:00")  # never posted
    _giveaway(db, endsAt="2024-06-01T00:00:00.000+00:00", messageId="888")  # not expired
    service = GiveawayService(make_bot({600: channel}), db, rng=random.Random(3))

    assert await service.check_expired(NOW) == 1

    stored = next(d for d in db.docs(db.collections.GIVEAWAYS) if d["$id"] == giveaway["$id"])
    assert stored["status"] == "ended"
    assert len(stored["winners"]) == 1
    assert stored["winners"][0] in {"10", "11"}
    announcement = channel.send.await_args
    assert f"<@{stored['winners'][0]}>" in announcement.args[0]
    assert db.docs(db.collections.AUDIT_LOGS)[0]["type"] == "GIVEAWAY_ENDED"


@pytest.mark.asyncio
async def test_giveaway_without_entrants_ends_empty(db):
    channel = make_channel(600)
    message = _message(entrants=[_user(5, bot=True)])
    channel.fetch_message = AsyncMock(return_value=message)
    giveaway = _giveaway(db)

    winners = await GiveawayService(make_bot({600: channel}), db).end_giveaway(giveaway["$id"])

    assert winners == []
    assert db.docs(db.collections.GIVEAWAYS)[0]["status"] == "ended"
    assert db.docs(db.collections.GIVEAWAYS)[0]["winners"] == []
    message.edit.assert_awaited_once()
    channel.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_failed_end_marks_error_and_notifies(db):
    channel = make_channel(600)
    channel.fetch_message = AsyncMock(side_effect=RuntimeError("gone"))
    giveaway = _giveaway(db)

    winners = await GiveawayService(make_bot({600: channel}), db).end_giveaway(giveaway["$id"])

    assert winners is None
    assert db.docs(db.collections.GIVEAWAYS)[0]["status"] == "error"
    assert "error" in channel.send.await_args.args[0]


# =============================================================================
# Reroll
# =============================================================================

@pytest.mark.asyncio
async def test_reroll_picks_new_winners(db):
    channel = make_channel(600)
    channel.fetch_message = AsyncMock(return_value=_message(entrants=[_user(10), _user(11)]))
    _giveaway(db, status="ended", winners=["10"])
    service = GiveawayService(make_bot({600: channel}), db)

    giveaway, winners = await service.reroll(1, 777)

    assert giveaway["prize"] == "Nitro"
    assert len(winners) == 1
    assert "rerolled" in channel.send.await_args.args[0]
    assert db.docs(db.collections.AUDIT_LOGS)[0]["type"] == "GIVEAWAY_REROLLED"


@pytest.mark.asyncio
async def test_reroll_requires_ended_giveaway(db):
    _giveaway(db)
    service = GiveawayService(make_bot(), db)

    with pytest.raises(GiveawayNotEnded):
        await service.reroll(1, 777)
    with pytest.raises(GiveawayNotFound):
        await service.reroll(1, 12345)


@pytest.mark.asyncio
async def test_audit_failure_keeps_giveaway_ended(db):
    channel = make_channel(600)
    channel.fetch_message = AsyncMock(return_value=_message(entrants=[_user(10)]))
    giveaway = _giveaway(db)
    db.fail_writes.add(db.collections.AUDIT_LOGS)

    winners = await GiveawayService(make_bot({600: channel}), db).end_giveaway(giveaway["$id"])

    assert winners == [10]
    stored = db.docs(db.collections.GIVEAWAYS)[0]
    assert stored["status"] == "ended"
    assert stored["winners"] == ["10"]
    assert channel.send.await_count == 1
