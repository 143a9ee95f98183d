"""
Discora - Reaction Role Queue
=============================

Posts reaction-role panels requested from the dashboard.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import discord

from discora.core.colors import COLOR_REACTION_ROLES, parse_color
from discora.core.constants import REACTION_ROLE_QUEUE_INTERVAL
from discora.core.logger import logger
from discora.services.database import decode_json
from discora.utils.channels import resolve_text_channel
from .base import QueueItemError, QueueProcessor


@dataclass(frozen=True)
class RoleMapping:
    """One emoji -> role pairing on a panel."""

    emoji: str
    role_id: int


def parse_role_mappings(raw: Any) -> List[RoleMapping]:
    """Decode a panel's ``roles`` field, skipping malformed entries."""
    mappings = []
    for item in decode_json(raw, []):
        if not isinstance(item, dict):
            continue
        emoji = item.get("emoji")
        try:
            role_id = int(item.get("roleId"))
        except (TypeError, ValueError):
            continue
        if isinstance(emoji, str) and emoji:
            mappings.append(RoleMapping(emoji=emoji, role_id=role_id))
    return mappings


def find_mapping(mappings: List[RoleMapping], emoji: str) -> Optional[RoleMapping]:
    for mapping in mappings:
        if mapping.emoji == emoji:
            return mapping
    return None


def build_panel_embed(panel: Dict[str, Any], mappings: List[RoleMapping]) -> discord.Embed:
    lines = [f"{m.emoji} - <@&{m.role_id}>" for m in mappings]
    description = (panel.get("embedDescription") or "").strip()
    description = f"{description}\n\n" + "\n".join(lines) if description else "\n".join(lines)
    return discord.Embed(
        title=panel.get("embedTitle") or None,
        description=description,
        color=parse_color(panel.get("embedColor"), COLOR_REACTION_ROLES),
    )


class ReactionRoleQueueProcessor(QueueProcessor):
    """Drains ``reaction_role_queue``."""

    NAME = "Reaction Role Queue"
    EMOJI = "🎭"
    INTERVAL = REACTION_ROLE_QUEUE_INTERVAL

    @property
    def collection(self) -> str:
        return self.db.collections.REACTION_ROLE_QUEUE

    async def process_item(self, item: Dict[str, Any]) -> None:
        panel_id = item.get("reactionRoleId")
        panel = await self.db.get_reaction_role(panel_id) if panel_id else None
        if panel is None:
            raise QueueItemError(f"Reaction role panel {panel_id} not found")

        channel = await resolve_text_channel(self.bot, int(panel.get("channelId") or 0))
        if channel is None:
            raise QueueItemError(f"Channel {panel.get('channelId')} not found or not text-based")

        mappings = parse_role_mappings(panel.get("roles"))
        if not mappings:
            raise QueueItemError(f"No roles defined for reaction role panel {panel['$id']}")

        message = await channel.send(embed=build_panel_embed(panel, mappings))
        for mapping in mappings:
            await message.add_reaction(mapping.emoji)

        await self.db.set_reaction_role_message(panel["$id"], message.id)

        logger.tree("Reaction Role Panel Posted", [
            ("Panel ID", panel["$id"]),
            ("Channel ID", str(panel.get("channelId"))),
            ("Message ID", str(message.id)),
            ("Roles", str(len(mappings))),
        ], emoji="🎭")
