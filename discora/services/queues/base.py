"""
Discora - Queue Processor Base
==============================

Shared drain loop for dashboard-written work queues.

Every listed item is attempted once and then deleted, whether it
succeeded or failed: delivery is at-most-once and a bad item can never
block the queue.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict

from discord.ext import tasks

from discora.core.config import config
from discora.core.logger import logger
from discora.services.database import Database
from discora.utils.async_utils import run_bounded

if TYPE_CHECKING:
    from discora.bot import DiscoraBot


class QueueItemError(Exception):
    """A queue item that cannot be carried out (bad or dangling data)."""
    pass


@dataclass(frozen=True)
class DrainReport:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: bool = False


class QueueProcessor:
    """Base class: subclasses set NAME, INTERVAL and implement the two hooks."""

    NAME = "Queue"
    EMOJI = "📥"
    INTERVAL = 15  # seconds

    def __init__(self, bot: "DiscoraBot", db: Database) -> None:
        self.bot = bot
        self.db = db
        self._draining = False

    @property
    def collection(self) -> str:
        """Collection id of the queue."""
        raise NotImplementedError

    async def process_item(self, item: Dict[str, Any]) -> None:
        """Carry out one queue item. Raise on failure."""
        raise NotImplementedError

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def setup(self) -> None:
        self.drain_loop.change_interval(seconds=self.INTERVAL)
        self.drain_loop.start()
        logger.tree(f"{self.NAME} Processor Started", [
            ("Collection", self.collection),
            ("Interval", f"{self.INTERVAL}s"),
        ], emoji=self.EMOJI)

    def stop(self) -> None:
        if self.drain_loop.is_running():
            self.drain_loop.cancel()

    @tasks.loop(seconds=15)
    async def drain_loop(self) -> None:
        try:
            await self.drain()
        except Exception as e:
            logger.error_tree(f"{self.NAME} Drain Error", e)

    @drain_loop.before_loop
    async def before_drain_loop(self) -> None:
        await self.bot.wait_until_ready()

    # =========================================================================
    # Draining
    # =========================================================================

    async def drain(self) -> DrainReport:
        """Process and delete one page of queue items."""
        if self._draining:
            logger.info(f"{self.NAME} drain already running, skipping")
            return DrainReport(skipped=True)

        self._draining = True
        try:
            items = await self.db.list_queue(self.collection)
            if not items:
                return DrainReport()

            results = await run_bounded(
                items, self._run_item,
                limit=config.WORKER_CONCURRENCY, context=self.NAME,
            )
            succeeded = sum(1 for r in results if r is True)
            report = DrainReport(
                processed=len(items),
                succeeded=succeeded,
                failed=len(items) - succeeded,
            )
            logger.tree(f"{self.NAME} Drained", [
                ("Items", str(report.processed)),
                ("Succeeded", str(report.succeeded)),
                ("Failed", str(report.failed)),
            ], emoji=self.EMOJI)
            return report
        finally:
            self._draining = False

    async def _run_item(self, item: Dict[str, Any]) -> bool:
        item_id = str(item.get("$id", "?"))
        try:
            await self.process_item(item)
            return True
        except Exception as e:
            logger.error_tree(f"{self.NAME} Item Failed", e, [
                ("Item ID", item_id),
            ])
            return False
        finally:
            try:
                await self.db.delete_queue_item(self.collection, item_id)
            except Exception as e:
                logger.error_tree(f"{self.NAME} Item Delete Failed", e, [
                    ("Item ID", item_id),
                ])
