"""
Discora - Shared Constants
==========================

Centralized constants for the entire codebase.
Import from here instead of defining locally.
"""


# =============================================================================
# Leveling
# =============================================================================

XP_DEFAULT_MIN = 15
XP_DEFAULT_MAX = 25
XP_DEFAULT_COOLDOWN = 60  # seconds

# Cooldown entries older than this many windows are swept
XP_COOLDOWN_SWEEP_FACTOR = 2

# Hard limit on tracked (guild, user) cooldown keys
XP_COOLDOWN_CACHE_MAX_SIZE = 50000

LEADERBOARD_SIZE = 10

DEFAULT_LEVEL_UP_MESSAGE = "🎉 GG {user}, you just reached level **{level}**!"


# =============================================================================
# Member Events
# =============================================================================

DEFAULT_WELCOME_MESSAGE = "Welcome to the server, {user}! Enjoy your stay."
DEFAULT_GOODBYE_MESSAGE = "{user} has left the server."


# =============================================================================
# Stats
# =============================================================================

STATS_DOCUMENT_ID = "main_stats"
STATS_WEEKLY_WINDOW = 7     # buckets kept when a message is recorded
STATS_HISTORY_LIMIT = 35    # upper bound for the daily reset; recording already caps at 7


# =============================================================================
# Auto-Moderation
# =============================================================================

DEFAULT_MENTION_SPAM_LIMIT = 5
AI_VERDICT_FLAG = "FLAG"
AI_VERDICT_OK = "OK"


# =============================================================================
# Giveaways
# =============================================================================

GIVEAWAY_EMOJI = "🎉"


# =============================================================================
# YouTube
# =============================================================================

YOUTUBE_FEED_URL = "https://www.youtube.com/feeds/videos.xml?channel_id={channel_id}"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
YOUTUBE_HISTORY_LIMIT = 20
YOUTUBE_DEFAULT_MENTION = "@everyone"
YOUTUBE_LIVE_MARKERS = ('"isLive":true', '"isLiveContent":true')

DEFAULT_UPLOAD_MESSAGE = (
    "📢 Hey {mention}! {channelName} just uploaded a new video!\n\n"
    "**{videoTitle}**\n{videoUrl}"
)
DEFAULT_LIVE_MESSAGE = (
    "🔴 Hey {mention}! {channelName} is now LIVE!\n\n"
    "**{videoTitle}**\n{videoUrl}"
)


# =============================================================================
# Database
# =============================================================================

LIST_LIMIT = 5000   # page size for full-collection scans
QUEUE_BATCH_SIZE = 100
AUDIT_CONTENT_LIMIT = 1000


# =============================================================================
# Job Intervals (seconds unless noted)
# =============================================================================

REACTION_ROLE_QUEUE_INTERVAL = 15
GIVEAWAY_QUEUE_INTERVAL = 15
MODERATION_QUEUE_INTERVAL = 10
SCHEDULED_MESSAGE_INTERVAL = 60
GIVEAWAY_CHECK_INTERVAL = 60
STATS_REFRESH_INTERVAL = 120
METADATA_SYNC_INTERVAL = 60
MEMBER_SYNC_INTERVAL = 15 * 60
HEARTBEAT_INTERVAL = 30
COOLDOWN_SWEEP_INTERVAL = 3600
