"""
Discora - Channel Utilities
===========================

Resolve configured channel ids to something that can be sent to.
"""

from typing import Optional

import discord

from discora.core.logger import logger


async def resolve_text_channel(client: discord.Client, channel_id: Optional[int]) -> Optional[discord.abc.Messageable]:
    """
    Get a sendable channel from cache, falling back to the API.

    Missing, inaccessible, or non-text channels are a missing reference:
    one warning and None.
    """
    if not channel_id:
        return None

    channel = client.get_channel(channel_id)
    if channel is None:
        try:
            channel = await client.fetch_channel(channel_id)
        except (discord.NotFound, discord.Forbidden) as e:
            logger.warning("Channel Unavailable", [
                ("Channel ID", str(channel_id)),
                ("Reason", type(e).__name__),
            ])
            return None

    if not isinstance(channel, discord.abc.Messageable):
        logger.warning("Channel Not Text-Based", [
            ("Channel ID", str(channel_id)),
            ("Type", type(channel).__name__),
        ])
        return None

    return channel
