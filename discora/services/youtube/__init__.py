"""
YouTube Package
===============

Feed polling and upload/live announcements.
"""

from .feed import Feed, FeedClient, VideoEntry, page_is_live, parse_feed
from .service import YouTubeService, merge_history, render_notification

__all__ = [
    "Feed",
    "FeedClient",
    "VideoEntry",
    "YouTubeService",
    "merge_history",
    "page_is_live",
    "parse_feed",
    "render_notification",
]
