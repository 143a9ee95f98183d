"""
Discora - Scheduled Message Service
===================================

Sends due scheduled messages and re-arms repeating ones.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from discord.ext import tasks

from discora.core.config import config
from discora.core.constants import SCHEDULED_MESSAGE_INTERVAL
from discora.core.logger import logger
from discora.services.database import Database
from discora.utils.async_utils import run_bounded
from discora.utils.channels import resolve_text_channel
from discora.utils.timeutils import parse_iso, to_iso, utcnow
from .utils import REPEAT_NONE, REPEATING, advance_next_run

if TYPE_CHECKING:
    from discora.bot import DiscoraBot


class ScheduledMessageError(Exception):
    """A scheduled message that cannot be delivered."""
    pass


class ScheduledMessageService:
    """Dispatches ``scheduled_messages`` whose time has come."""

    def __init__(self, bot: "DiscoraBot", db: Database) -> None:
        self.bot = bot
        self.db = db

    async def setup(self) -> None:
        self.dispatch_loop.change_interval(seconds=SCHEDULED_MESSAGE_INTERVAL)
        self.dispatch_loop.start()
        logger.tree("Scheduled Messages Started", [
            ("Interval", f"{SCHEDULED_MESSAGE_INTERVAL}s"),
        ], emoji="⏰")

    def stop(self) -> None:
        if self.dispatch_loop.is_running():
            self.dispatch_loop.cancel()

    @tasks.loop(seconds=60)
    async def dispatch_loop(self) -> None:
        try:
            await self.dispatch_due()
        except Exception as e:
            logger.error_tree("Scheduled Message Check Error", e)

    @dispatch_loop.before_loop
    async def before_dispatch_loop(self) -> None:
        await self.bot.wait_until_ready()

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def dispatch_due(self, now: Optional[datetime] = None) -> int:
        """
        Send every pending message due at ``now``.

        Returns:
            Number of messages sent.
        """
        now = now or utcnow()
        docs = await self.db.list_due_scheduled_messages(to_iso(now))
        if not docs:
            return 0

        results = await run_bounded(
            docs, lambda doc: self.dispatch_one(doc, now),
            limit=config.WORKER_CONCURRENCY, context="Scheduled Messages",
        )
        sent = sum(1 for r in results if r is True)
        logger.tree("Scheduled Messages Dispatched", [
            ("Due", str(len(docs))),
            ("Sent", str(sent)),
            ("Failed", str(len(docs) - sent)),
        ], emoji="⏰")
        return sent

    async def dispatch_one(self, doc: Dict[str, Any], now: datetime) -> bool:
        """Send one message and move it to its next state."""
        doc_id = doc["$id"]
        try:
            channel = await resolve_text_channel(self.bot, int(doc.get("channelId") or 0))
            if channel is None:
                raise ScheduledMessageError(f"Channel {doc.get('channelId')} not found or not text-based")

            await channel.send(doc.get("content") or "")
        except Exception as e:
            logger.error_tree("Scheduled Message Failed", e, [
                ("Message ID", doc_id),
                ("Channel ID", str(doc.get("channelId"))),
            ])
            try:
                await self.db.update_scheduled_message(doc_id, {"status": "error"})
            except Exception as update_error:
                logger.error_tree("Scheduled Message Status Update Failed", update_error, [
                    ("Message ID", doc_id),
                ])
            return False

        # Delivered: a failed state write is logged, never turned into "error"
        try:
            await self.db.update_scheduled_message(doc_id, self._next_state(doc, now))
        except Exception as e:
            logger.error_tree("Scheduled Message State Update Failed", e, [
                ("Message ID", doc_id),
            ])
        return True

    def _next_state(self, doc: Dict[str, Any], now: datetime) -> Dict[str, Any]:
        """Fields to write after a successful send."""
        repeat = str(doc.get("repeat") or REPEAT_NONE).lower()
        updates: Dict[str, Any] = {"lastRun": to_iso(now)}

        if repeat not in REPEATING:
            if repeat != REPEAT_NONE:
                logger.warning("Unknown Repeat Value", [
                    ("Message ID", doc["$id"]),
                    ("Repeat", repeat),
                ])
            updates["status"] = "sent"
            return updates

        scheduled = parse_iso(doc.get("nextRun")) or now
        updates["status"] = "pending"
        updates["nextRun"] = to_iso(advance_next_run(scheduled, repeat, now))
        return updates
