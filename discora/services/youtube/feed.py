"""
YouTube - Feed Client
=====================

Fetches and parses a channel's public Atom feed, and checks whether a
video is a live stream by scanning its watch page.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Tuple
from xml.etree import ElementTree

import aiohttp

from discora.core.constants import YOUTUBE_FEED_URL, YOUTUBE_LIVE_MARKERS, YOUTUBE_WATCH_URL
from discora.core.logger import logger
from discora.utils.http import HTTPSessionManager


FEED_NAMESPACES = {
    "atom": "http://www.w3.org/2005/Atom",
    "yt": "http://www.youtube.com/xml/schemas/2015",
}

DEFAULT_VIDEO_TITLE = "A new video"


@dataclass(frozen=True)
class VideoEntry:
    id: str
    title: str

    @property
    def url(self) -> str:
        return YOUTUBE_WATCH_URL.format(video_id=self.id)


@dataclass(frozen=True)
class Feed:
    """Parsed feed; entries are newest first, as YouTube serves them."""

    channel_title: Optional[str] = None
    entries: Tuple[VideoEntry, ...] = ()


def parse_feed(xml_text: str) -> Feed:
    """Parse feed XML. Malformed input yields an empty feed."""
    try:
        root = ElementTree.fromstring(xml_text)
    except ElementTree.ParseError as e:
        logger.warning("YouTube Feed Parse Failed", [
            ("Error", str(e)[:100]),
        ])
        return Feed()

    channel_title = (root.findtext("atom:title", namespaces=FEED_NAMESPACES) or "").strip() or None

    entries = []
    for entry in root.findall("atom:entry", FEED_NAMESPACES):
        video_id = (entry.findtext("yt:videoId", namespaces=FEED_NAMESPACES) or "").strip()
        if not video_id:
            continue
        title = (entry.findtext("atom:title", namespaces=FEED_NAMESPACES) or "").strip()
        entries.append(VideoEntry(id=video_id, title=title or DEFAULT_VIDEO_TITLE))

    return Feed(channel_title=channel_title, entries=tuple(entries))


def page_is_live(html: str) -> bool:
    """True when the watch page carries a live-stream marker."""
    return any(marker in html for marker in YOUTUBE_LIVE_MARKERS)


class FeedClient:
    """HTTP side of the YouTube poller."""

    def __init__(self, http: HTTPSessionManager) -> None:
        self.http = http

    async def fetch_feed(self, youtube_channel_id: str) -> Optional[Feed]:
        """Fetch and parse a channel feed; None when the request fails."""
        url = YOUTUBE_FEED_URL.format(channel_id=youtube_channel_id)
        try:
            text = await self.http.fetch_text(url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("YouTube Feed Fetch Failed", [
                ("Channel ID", youtube_channel_id),
                ("Error", f"{type(e).__name__}: {str(e)[:80]}"),
            ])
            return None
        return parse_feed(text)

    async def is_live(self, video_id: str) -> bool:
        """Whether a video is a live stream. Any failure counts as not live."""
        if not video_id:
            return False
        try:
            html = await self.http.fetch_text(YOUTUBE_WATCH_URL.format(video_id=video_id))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("YouTube Live Check Failed", [
                ("Video ID", video_id),
                ("Error", type(e).__name__),
            ])
            return False
        return page_is_live(html)
