"""
Giveaway - Utility Functions
============================

Winner selection and entrant collection.
"""

import random
from typing import List, Optional, Sequence

import discord

from discora.core.constants import GIVEAWAY_EMOJI


def pick_winners(entrants: Sequence[int], count: int, rng: Optional[random.Random] = None) -> List[int]:
    """
    Draw ``min(count, len(entrants))`` distinct winners.

    Each draw is uniform over the entrants not yet drawn.
    """
    rng = rng or random
    pool = list(dict.fromkeys(entrants))
    winners = []
    for _ in range(min(max(0, count), len(pool))):
        winners.append(pool.pop(rng.randrange(len(pool))))
    return winners


async def collect_entrants(message: discord.Message, emoji: str = GIVEAWAY_EMOJI) -> Optional[List[int]]:
    """
    Non-bot users who reacted with the entry emoji.

    Returns:
        None if nobody reacted with the emoji at all, else the user ids.
    """
    reaction = discord.utils.get(message.reactions, emoji=emoji)
    if reaction is None:
        return None
    return [user.id async for user in reaction.users() if not user.bot]
