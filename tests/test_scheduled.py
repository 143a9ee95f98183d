"""Tests for scheduled message dispatch and repeat arithmetic."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from discora.services.database import DatabaseError
from discora.services.scheduled import ScheduledMessageService, add_months, advance_next_run
from discora.utils.timeutils import parse_iso, to_iso

from conftest import make_bot, make_channel


NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def _schedule(db, **fields):
    base = {"channelId": "600", "content": "hello", "status": "pending", "repeat": "none"}
    base.update(fields)
    return db.seed(db.collections.SCHEDULED_MESSAGES, base)


# =============================================================================
# Calendar Arithmetic
# =============================================================================

def test_add_months_clamps_day():
    assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
    assert add_months(datetime(2023, 1, 31), 1) == datetime(2023, 2, 28)
    assert add_months(datetime(2024, 11, 30), 3) == datetime(2025, 2, 28)


def test_daily_schedule_catches_up_past_now():
    missed = NOW - timedelta(days=3, hours=1)
    next_run = advance_next_run(missed, "daily", NOW)
    assert NOW < next_run <= NOW + timedelta(days=1)
    assert next_run.hour == missed.hour


def test_weekly_schedule_advances_one_week():
    assert advance_next_run(NOW, "weekly", NOW) == NOW + timedelta(weeks=1)


def test_monthly_schedule_keeps_anchor_day():
    anchor = datetime(2024, 1, 31, 9, 0, tzinfo=timezone.utc)
    now = datetime(2024, 2, 10, tzinfo=timezone.utc)
    assert advance_next_run(anchor, "monthly", now) == datetime(2024, 2, 29, 9, 0, tzinfo=timezone.utc)

    later = datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert advance_next_run(anchor, "monthly", later) == datetime(2024, 3, 31, 9, 0, tzinfo=timezone.utc)


def test_advance_rejects_non_repeating():
    with pytest.raises(ValueError):
        advance_next_run(NOW, "none", NOW)


# =============================================================================
# Dispatch
# =============================================================================

@pytest.mark.asyncio
async def test_one_shot_message_is_sent_once(db):
    channel = make_channel(600)
    _schedule(db, nextRun=to_iso(NOW - timedelta(minutes=1)))
    service = ScheduledMessageService(make_bot({600: channel}), db)

    assert await service.dispatch_due(NOW) == 1
    assert await service.dispatch_due(NOW) == 0

    channel.send.assert_awaited_once_with("hello")
    doc = db.docs(db.collections.SCHEDULED_MESSAGES)[0]
    assert doc["status"] == "sent"
    assert doc["lastRun"] == to_iso(NOW)


@pytest.mark.asyncio
async def test_repeating_message_is_rearmed_in_future(db):
    channel = make_channel(600)
    _schedule(db, repeat="daily", nextRun=to_iso(NOW - timedelta(days=3)))
    service = ScheduledMessageService(make_bot({600: channel}), db)

    await service.dispatch_due(NOW)

    doc = db.docs(db.collections.SCHEDULED_MESSAGES)[0]
    assert doc["status"] == "pending"
    assert parse_iso(doc["nextRun"]) == NOW + timedelta(days=1)
    channel.send.assert_awaited_once()


@pytest.mark.asyncio
async def test_future_messages_are_not_sent(db):
    channel = make_channel(600)
    _schedule(db, nextRun=to_iso(NOW + timedelta(minutes=5)))

    assert await ScheduledMessageService(make_bot({600: channel}), db).dispatch_due(NOW) == 0
    channel.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_unreachable_channel_marks_error_and_others_still_send(db):
    channel = make_channel(600)
    _schedule(db, channelId="404", nextRun=to_iso(NOW))
    _schedule(db, nextRun=to_iso(NOW))
    service = ScheduledMessageService(make_bot({600: channel}), db)

    sent = await service.dispatch_due(NOW)

    assert sent == 1
    statuses = sorted(d["status"] for d in db.docs(db.collections.SCHEDULED_MESSAGES))
    assert statuses == ["error", "sent"]


@pytest.mark.asyncio
async def test_unknown_repeat_is_treated_as_one_shot(db):
    _schedule(db, repeat="hourly", nextRun=to_iso(NOW))

    await ScheduledMessageService(make_bot({600: make_channel(600)}), db).dispatch_due(NOW)

    assert db.docs(db.collections.SCHEDULED_MESSAGES)[0]["status"] == "sent"


@pytest.mark.asyncio
async def test_delivered_message_is_never_marked_error(db):
    channel = make_channel(600)
    _schedule(db, nextRun=to_iso(NOW))
    db.update_scheduled_message = AsyncMock(side_effect=DatabaseError("write failed", status=500))
    service = ScheduledMessageService(make_bot({600: channel}), db)

    assert await service.dispatch_due(NOW) == 1

    channel.send.assert_awaited_once_with("hello")
    db.update_scheduled_message.assert_awaited_once()
    assert db.update_scheduled_message.await_args.args[1]["status"] == "sent"
