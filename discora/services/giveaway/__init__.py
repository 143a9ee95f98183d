"""
Giveaway Package
================

Giveaway ending, winner selection, and rerolls.
"""

from .service import GiveawayError, GiveawayNotEnded, GiveawayNotFound, GiveawayService
from .utils import collect_entrants, pick_winners

__all__ = [
    "GiveawayError",
    "GiveawayNotEnded",
    "GiveawayNotFound",
    "GiveawayService",
    "collect_entrants",
    "pick_winners",
]
