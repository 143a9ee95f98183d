"""
Discora - Custom Commands
=========================

Guild-defined prefix commands served from the config cache.
"""

from typing import Optional, Tuple

import discord

from discora.core.colors import COLOR_BRAND, parse_color
from discora.core.logger import logger
from discora.services.cache import CustomCommand
from discora.services.database import decode_json


EMBED_ERROR_MESSAGE = "Sorry, there was an error displaying this embed command."


def render_custom_command(command: CustomCommand) -> Tuple[Optional[str], Optional[discord.Embed]]:
    """
    Build the reply for a custom command.

    Returns:
        (content, embed). Both are None when an embed command's JSON is
        unusable.
    """
    if not command.is_embed:
        return command.response, None

    data = decode_json(command.embed_content, None)
    if not isinstance(data, dict):
        return None, None

    title = data.get("title") if isinstance(data.get("title"), str) else None
    description = data.get("description") if isinstance(data.get("description"), str) else None
    if not title and not description:
        return None, None

    embed = discord.Embed(
        title=title or None,
        description=description or None,
        color=parse_color(data.get("color"), COLOR_BRAND),
    )
    return None, embed


async def send_custom_command(message: discord.Message, command: CustomCommand) -> None:
    """Reply to ``message`` with a custom command's response."""
    content, embed = render_custom_command(command)

    if embed is not None:
        await message.channel.send(embed=embed)
    elif content:
        await message.channel.send(content)
    elif command.is_embed:
        logger.warning("Custom Command Embed Invalid", [
            ("Command", command.name),
            ("Guild ID", str(command.guild_id)),
        ])
        await message.channel.send(EMBED_ERROR_MESSAGE)
    else:
        logger.warning("Custom Command Empty", [
            ("Command", command.name),
            ("Guild ID", str(command.guild_id)),
        ])
        return

    logger.tree("Custom Command", [
        ("Command", command.name),
        ("User", str(message.author)),
        ("Guild", message.guild.name if message.guild else "-"),
    ], emoji="💬")
