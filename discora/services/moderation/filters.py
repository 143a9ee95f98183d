"""
Auto-Moderation - Filters
=========================

Rule-based message filters, checked in a fixed order; the first hit wins.
"""

import re
from dataclasses import dataclass
from typing import Optional

from discora.services.cache import AutoModSettings


INVITE_PATTERN = re.compile(
    r"(https?://)?(www\.)?(discord\.(gg|io|me|li)|discord(app)?\.com/invite)/[^\s/]+",
    re.IGNORECASE,
)
LINK_PATTERN = re.compile(r"https?://\S+", re.IGNORECASE)


@dataclass(frozen=True)
class FilterHit:
    """Which filter matched and the reason shown to the author."""

    name: str
    reason: str


def find_banned_word(content: str, words) -> Optional[str]:
    """First blacklisted word appearing as a whole word (case-insensitive)."""
    for word in words:
        if re.search(rf"\b{re.escape(word)}\b", content, re.IGNORECASE):
            return word
    return None


def check_message(content: str, mention_count: int, settings: AutoModSettings) -> Optional[FilterHit]:
    """
    Run the enabled filters over a message.

    Args:
        content: Message text.
        mention_count: Unique users plus roles mentioned.
        settings: The guild's auto-mod settings.
    """
    if settings.word_filter_enabled and settings.word_blacklist:
        word = find_banned_word(content, settings.word_blacklist)
        if word:
            return FilterHit("word", f'it contained a banned word ("{word}")')

    if settings.invite_filter_enabled and INVITE_PATTERN.search(content):
        return FilterHit("invite", "it contained a Discord invite link")

    if settings.link_filter_enabled and LINK_PATTERN.search(content):
        return FilterHit("link", "sending links is not permitted")

    if settings.mention_spam_enabled and mention_count > settings.mention_spam_limit:
        return FilterHit(
            "mentions",
            f"mentioning too many users/roles ({mention_count} > {settings.mention_spam_limit})",
        )

    return None
