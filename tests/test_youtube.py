"""Tests for feed parsing and the YouTube announcement poller."""

import asyncio
import json
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from discora.services.youtube import (
    Feed,
    VideoEntry,
    YouTubeService,
    page_is_live,
    parse_feed,
    render_notification,
)

from conftest import make_bot, make_channel


FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015" xmlns="http://www.w3.org/2005/Atom">
  <title>Cool Channel</title>
  <entry><yt:videoId>v2</yt:videoId><title>Second</title></entry>
  <entry><yt:videoId>v1</yt:videoId><title>First</title></entry>
  <entry><title>No id</title></entry>
</feed>
"""


class FakeFeeds:
    """Feed client serving canned feeds."""

    def __init__(self, feeds: Dict[str, Optional[Feed]], live: set = frozenset()) -> None:
        self.feeds = feeds
        self.live = set(live)
        self.fetches: List[str] = []

    async def fetch_feed(self, youtube_channel_id: str) -> Optional[Feed]:
        self.fetches.append(youtube_channel_id)
        return self.feeds.get(youtube_channel_id)

    async def is_live(self, video_id: str) -> bool:
        return video_id in self.live


def _feed(*ids: str, title: str = "Cool Channel") -> Feed:
    """Feed with ``ids`` given newest first."""
    return Feed(channel_title=title, entries=tuple(VideoEntry(id=i, title=f"Video {i}") for i in ids))


def _subscription(db, history=None, **fields):
    base = {
        "guildId": "1",
        "youtubeChannelId": "UC1",
        "discordChannelId": "600",
        "announcedVideoIds": json.dumps(history) if history is not None else "[]",
    }
    base.update(fields)
    return db.seed(db.collections.YOUTUBE_SUBSCRIPTIONS, base)


def _stored(db, doc_id):
    return db.store[db.collections.YOUTUBE_SUBSCRIPTIONS][doc_id]


# =============================================================================
# Feed Parsing
# =============================================================================

def test_parse_feed_reads_title_and_entries():
    feed = parse_feed(FEED_XML)
    assert feed.channel_title == "Cool Channel"
    assert [e.id for e in feed.entries] == ["v2", "v1"]
    assert feed.entries[0].url == "https://www.youtube.com/watch?v=v2"


def test_parse_feed_malformed_returns_empty():
    assert parse_feed("<feed>").entries == ()


def test_page_is_live_markers():
    assert page_is_live('..."isLiveContent":true...')
    assert not page_is_live('..."isLiveContent":false...')


def test_render_notification_uses_role_and_bold_channel():
    sub = {"mentionRoleId": "55", "youtubeChannelName": "Cool", "customMessage": "{mention} {channelName} {videoTitle} {videoUrl}"}
    text = render_notification(sub, VideoEntry(id="abc", title="Hi"), is_live=False)
    assert text == "<@&55> **Cool** Hi https://www.youtube.com/watch?v=abc"


def test_render_notification_live_template_and_default_mention():
    sub = {"youtubeChannelName": "Cool", "liveMessage": "{mention} live: {videoTitle}"}
    assert render_notification(sub, VideoEntry(id="x", title="Stream"), is_live=True) == "@everyone live: Stream"


# =============================================================================
# Poller
# =============================================================================

@pytest.mark.asyncio
async def test_first_poll_seeds_without_announcing(db):
    channel = make_channel(600, name="videos")
    sub = _subscription(db)
    service = YouTubeService(make_bot({600: channel}), db, FakeFeeds({"UC1": _feed("v3", "v2", "v1")}))

    assert await service.process_subscription(db.docs(db.collections.YOUTUBE_SUBSCRIPTIONS)[0]) == 0

    channel.send.assert_not_awaited()
    stored = _stored(db, sub["$id"])
    assert json.loads(stored["announcedVideoIds"]) == ["v1", "v2", "v3"]
    assert stored["youtubeChannelName"] == "Cool Channel"
    assert stored["discordChannelName"] == "videos"


@pytest.mark.asyncio
async def test_seed_keeps_newest_twenty(db):
    ids = [f"v{i}" for i in range(25, 0, -1)]  # newest first
    sub = _subscription(db)
    service = YouTubeService(make_bot({600: make_channel(600)}), db, FakeFeeds({"UC1": _feed(*ids)}))

    await service.process_subscription(dict(sub))

    history = json.loads(_stored(db, sub["$id"])["announcedVideoIds"])
    assert len(history) == 20
    assert history[-1] == "v25"
    assert "v1" not in history


@pytest.mark.asyncio
async def test_unchanged_feed_is_a_no_op(db):
    channel = make_channel(600)
    sub = _subscription(db, history=["v1", "v2"], youtubeChannelName="Cool", discordChannelName="videos")
    db.update_document = AsyncMock(wraps=db.update_document)
    service = YouTubeService(make_bot({600: channel}), db, FakeFeeds({"UC1": _feed("v2", "v1")}))

    assert await service.process_subscription(dict(sub)) == 0

    channel.send.assert_not_awaited()
    db.update_document.assert_not_awaited()


@pytest.mark.asyncio
async def test_new_videos_announced_oldest_first(db):
    channel = make_channel(600)
    sub = _subscription(db, history=["v1"], youtubeChannelName="Cool", discordChannelName="videos")
    service = YouTubeService(
        make_bot({600: channel}), db, FakeFeeds({"UC1": _feed("v3", "v2", "v1")}, live={"v3"}),
    )

    assert await service.process_subscription(dict(sub)) == 2

    sent = [c.args[0] for c in channel.send.await_args_list]
    assert "Video v2" in sent[0] and "uploaded" in sent[0]
    assert "Video v3" in sent[1] and "LIVE" in sent[1]
    stored = _stored(db, sub["$id"])
    assert json.loads(stored["announcedVideoIds"]) == ["v1", "v2", "v3"]
    assert stored["lastAnnouncedVideoId"] == "v3"


@pytest.mark.asyncio
async def test_history_is_truncated_to_twenty(db):
    history = [f"old{i}" for i in range(20)]
    sub = _subscription(db, history=history, youtubeChannelName="Cool", discordChannelName="videos")
    service = YouTubeService(make_bot({600: make_channel(600)}), db, FakeFeeds({"UC1": _feed("new1")}))

    await service.process_subscription(dict(sub))

    stored = json.loads(_stored(db, sub["$id"])["announcedVideoIds"])
    assert len(stored) == 20
    assert stored[0] == "old1"
    assert stored[-1] == "new1"


@pytest.mark.asyncio
async def test_failed_send_still_records_video(db):
    channel = make_channel(600)
    channel.send = AsyncMock(side_effect=discord.HTTPException(MagicMock(status=403), "Missing Access"))
    sub = _subscription(db, history=["v1"], youtubeChannelName="Cool", discordChannelName="videos")
    service = YouTubeService(make_bot({600: channel}), db, FakeFeeds({"UC1": _feed("v2", "v1")}))

    assert await service.process_subscription(dict(sub)) == 0

    assert json.loads(_stored(db, sub["$id"])["announcedVideoIds"]) == ["v1", "v2"]


@pytest.mark.asyncio
async def test_one_failing_subscription_does_not_block_others(db):
    channel = make_channel(600)
    _subscription(db, history=["a1"], youtubeChannelId="BROKEN", youtubeChannelName="Broken", discordChannelName="x")
    good = _subscription(db, history=["b1"], youtubeChannelId="UC2", youtubeChannelName="Good", discordChannelName="x")

    class ExplodingFeeds(FakeFeeds):
        async def fetch_feed(self, youtube_channel_id):
            if youtube_channel_id == "BROKEN":
                raise RuntimeError("boom")
            return await super().fetch_feed(youtube_channel_id)

    service = YouTubeService(make_bot({600: channel}), db, ExplodingFeeds({"UC2": _feed("b2", "b1")}))

    assert await service.check_all() == 2
    channel.send.assert_awaited_once()
    assert json.loads(_stored(db, good["$id"])["announcedVideoIds"]) == ["b1", "b2"]


@pytest.mark.asyncio
async def test_overlapping_check_is_skipped(db):
    release = asyncio.Event()
    _subscription(db, history=["v1"])

    class SlowFeeds(FakeFeeds):
        async def fetch_feed(self, youtube_channel_id):
            await release.wait()
            return None

    service = YouTubeService(make_bot(), db, SlowFeeds({}))
    first = asyncio.create_task(service.check_all())
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert await service.check_all() is None
    release.set()
    assert await first == 1
