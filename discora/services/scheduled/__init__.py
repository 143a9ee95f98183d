"""
Scheduled Messages Package
==========================

One-shot and repeating channel messages.
"""

from .service import ScheduledMessageError, ScheduledMessageService
from .utils import REPEATING, add_months, advance_next_run

__all__ = [
    "REPEATING",
    "ScheduledMessageError",
    "ScheduledMessageService",
    "add_months",
    "advance_next_run",
]
