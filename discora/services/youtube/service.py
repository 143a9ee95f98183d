"""
Discora - YouTube Monitor Service
=================================

Polls subscribed YouTube channels and announces new uploads and live
streams to Discord channels.

Per subscription, ``announcedVideoIds`` holds the most recent video ids
already handled, oldest first. A subscription with no history is seeded
from the current feed without announcing anything, so adding a channel
never floods the Discord channel with its back catalogue.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import discord
from discord.ext import tasks

from discora.core.config import config
from discora.core.constants import (
    DEFAULT_LIVE_MESSAGE,
    DEFAULT_UPLOAD_MESSAGE,
    YOUTUBE_DEFAULT_MENTION,
    YOUTUBE_HISTORY_LIMIT,
)
from discora.core.logger import logger
from discora.services.database import Database, decode_json, encode_json
from discora.utils.async_utils import run_bounded
from discora.utils.channels import resolve_text_channel
from discora.utils.text import fill_template
from discora.utils.timeutils import to_iso, utcnow
from .feed import FeedClient, VideoEntry

if TYPE_CHECKING:
    from discora.bot import DiscoraBot


def render_notification(sub: Dict[str, Any], video: VideoEntry, is_live: bool) -> str:
    """Fill the subscription's upload or live template for one video."""
    if is_live:
        template = sub.get("liveMessage") or DEFAULT_LIVE_MESSAGE
    else:
        template = sub.get("customMessage") or DEFAULT_UPLOAD_MESSAGE

    role_id = sub.get("mentionRoleId")
    mention = f"<@&{role_id}>" if role_id else YOUTUBE_DEFAULT_MENTION
    channel_name = sub.get("youtubeChannelName") or sub.get("youtubeChannelId", "")

    return fill_template(template, {
        "mention": mention,
        "channelName": f"**{channel_name}**",
        "videoTitle": video.title,
        "videoUrl": video.url,
    })


def merge_history(history: List[str], new_ids: List[str], limit: int = YOUTUBE_HISTORY_LIMIT) -> List[str]:
    """Append ``new_ids`` (oldest first) and keep the last ``limit`` ids."""
    return (history + new_ids)[-limit:]


class YouTubeService:
    """Background YouTube subscription poller."""

    def __init__(self, bot: "DiscoraBot", db: Database, feeds: FeedClient) -> None:
        self.bot = bot
        self.db = db
        self.feeds = feeds
        self._checking = False

    async def setup(self) -> None:
        self.poll_loop.change_interval(seconds=config.YOUTUBE_CHECK_INTERVAL)
        self.poll_loop.start()
        logger.tree("YouTube Monitor Started", [
            ("Interval", f"{config.YOUTUBE_CHECK_INTERVAL}s"),
            ("History Limit", str(YOUTUBE_HISTORY_LIMIT)),
        ], emoji="📺")

    def stop(self) -> None:
        if self.poll_loop.is_running():
            self.poll_loop.cancel()
        logger.tree("YouTube Monitor Stopped", [], emoji="🛑")

    @tasks.loop(seconds=60)
    async def poll_loop(self) -> None:
        try:
            await self.check_all()
        except Exception as e:
            logger.error_tree("YouTube Poll Error", e)

    @poll_loop.before_loop
    async def before_poll_loop(self) -> None:
        await self.bot.wait_until_ready()

    # =========================================================================
    # Polling
    # =========================================================================

    async def check_all(self) -> Optional[int]:
        """
        Poll every subscription once.

        Returns:
            Number of subscriptions polled, or None when a poll was
            already in progress and this one was skipped.
        """
        if self._checking:
            logger.info("YouTube check already running, skipping")
            return None

        self._checking = True
        try:
            subs = await self.db.list_youtube_subscriptions()
            if not subs:
                return 0
            await run_bounded(
                subs, self.process_subscription,
                limit=config.WORKER_CONCURRENCY, context="YouTube Poll",
            )
            return len(subs)
        finally:
            self._checking = False

    async def process_subscription(self, sub: Dict[str, Any]) -> int:
        """
        Poll one subscription and announce anything new.

        All changes are written back in a single update.

        Returns:
            Number of videos announced.
        """
        sub_id = sub.get("$id", "?")
        youtube_id = sub.get("youtubeChannelId", "")
        updates: Dict[str, Any] = {}
        announced = 0

        try:
            feed = await self.feeds.fetch_feed(youtube_id)

            if not sub.get("youtubeChannelName") and feed and feed.channel_title:
                sub = {**sub, "youtubeChannelName": feed.channel_title}
                updates["youtubeChannelName"] = feed.channel_title

            channel = await resolve_text_channel(self.bot, int(sub.get("discordChannelId") or 0))
            if not sub.get("discordChannelName") and channel is not None:
                name = getattr(channel, "name", None)
                if name:
                    updates["discordChannelName"] = name

            if feed and feed.entries:
                history = [str(v) for v in decode_json(sub.get("announcedVideoIds"), [])]

                if not history:
                    # Seed oldest first so later truncation drops the oldest ids
                    seeded = [entry.id for entry in reversed(feed.entries)]
                    updates["announcedVideoIds"] = encode_json(seeded[-YOUTUBE_HISTORY_LIMIT:])
                    updates["lastVideoTimestamp"] = to_iso(utcnow())
                    logger.tree("YouTube Subscription Seeded", [
                        ("Subscription", sub_id),
                        ("Channel", sub.get("youtubeChannelName") or youtube_id),
                        ("Videos", str(len(seeded))),
                    ], emoji="🌱")
                else:
                    seen = set(history)
                    fresh = [entry for entry in feed.entries if entry.id not in seen]
                    if fresh:
                        oldest_first = list(reversed(fresh))
                        for video in oldest_first:
                            if await self._notify(sub, channel, video):
                                announced += 1

                        newest = fresh[0]
                        updates["announcedVideoIds"] = encode_json(
                            merge_history(history, [v.id for v in oldest_first])
                        )
                        updates["lastVideoTimestamp"] = to_iso(utcnow())
                        updates["lastAnnouncedVideoId"] = newest.id
                        updates["lastAnnouncedVideoTitle"] = newest.title

            if updates:
                await self.db.update_youtube_subscription(sub_id, updates)

        except Exception as e:
            logger.error_tree("YouTube Subscription Failed", e, [
                ("Subscription", sub_id),
                ("Channel", sub.get("youtubeChannelName") or youtube_id),
            ])

        return announced

    async def _notify(
        self,
        sub: Dict[str, Any],
        channel: Optional[discord.abc.Messageable],
        video: VideoEntry,
    ) -> bool:
        """Announce one video. Failures are logged and reported as False."""
        if channel is None:
            logger.warning("YouTube Notification Skipped", [
                ("Subscription", str(sub.get("$id"))),
                ("Video", video.id),
                ("Reason", "Discord channel unavailable"),
            ])
            return False

        try:
            is_live = await self.feeds.is_live(video.id)
            await channel.send(render_notification(sub, video, is_live))
        except discord.HTTPException as e:
            logger.error_tree("YouTube Notification Failed", e, [
                ("Subscription", str(sub.get("$id"))),
                ("Video", video.id),
            ])
            return False

        logger.tree("YouTube Video Announced", [
            ("Channel", sub.get("youtubeChannelName") or sub.get("youtubeChannelId", "")),
            ("Video", video.title[:60]),
            ("Live", "Yes" if is_live else "No"),
        ], emoji="🔴" if is_live else "📢")
        return True
