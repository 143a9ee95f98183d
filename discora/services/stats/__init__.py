"""
Stats Package
=============

Message counters, live guild numbers, and the daily reset.
"""

from .service import StatsService, role_distribution
from .utils import bump_weekly, parse_weekly, prune_weekly

__all__ = [
    "StatsService",
    "bump_weekly",
    "parse_weekly",
    "prune_weekly",
    "role_distribution",
]
