"""
Queue Processors Package
========================

Drain loops for the reaction-role, giveaway, and moderation queues.
"""

from .base import DrainReport, QueueItemError, QueueProcessor
from .giveaways import GiveawayQueueProcessor, build_giveaway_embed
from .moderation import ModerationQueueProcessor
from .reaction_roles import (
    ReactionRoleQueueProcessor,
    RoleMapping,
    find_mapping,
    parse_role_mappings,
)

__all__ = [
    "DrainReport",
    "GiveawayQueueProcessor",
    "ModerationQueueProcessor",
    "QueueItemError",
    "QueueProcessor",
    "ReactionRoleQueueProcessor",
    "RoleMapping",
    "build_giveaway_embed",
    "find_mapping",
    "parse_role_mappings",
]
