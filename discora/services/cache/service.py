"""
Discora - Config Cache Service
==============================

In-memory mirror of guild settings and custom commands.

Handlers read from the cache synchronously; a background loop rebuilds
it from the database. Each refresh builds a complete new snapshot and
swaps it in with a single assignment, so readers only ever see one
generation or the next, never a partially-populated table.
"""

import asyncio
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from discord.ext import tasks

from discora.core.config import config
from discora.core.logger import logger
from discora.services.database import Database
from .models import CustomCommand, GuildSettings


@dataclass(frozen=True)
class CacheSnapshot:
    """One immutable generation of the cache."""

    settings: Mapping[int, GuildSettings] = field(default_factory=dict)
    commands: Mapping[int, Mapping[str, CustomCommand]] = field(default_factory=dict)

    @property
    def command_total(self) -> int:
        return sum(len(cmds) for cmds in self.commands.values())


EMPTY_COMMANDS: Mapping[str, CustomCommand] = MappingProxyType({})


class ConfigCache:
    """Periodically refreshed settings and custom-command tables."""

    def __init__(self, db: Database) -> None:
        self.db = db
        self._snapshot = CacheSnapshot()
        self._refreshed_once = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def init(self) -> None:
        """Load the first snapshot and start the refresh loop."""
        await self.refresh()
        self.refresh_loop.change_interval(seconds=config.CACHE_REFRESH_INTERVAL)
        self.refresh_loop.start()

        logger.tree("Config Cache Ready", [
            ("Guilds", str(len(self._snapshot.settings))),
            ("Custom Commands", str(self._snapshot.command_total)),
            ("Refresh", f"every {config.CACHE_REFRESH_INTERVAL}s"),
        ], emoji="🗂️")

    def shutdown(self) -> None:
        """Stop the refresh loop."""
        if self.refresh_loop.is_running():
            self.refresh_loop.cancel()
        logger.tree("Config Cache Stopped", [], emoji="🛑")

    @tasks.loop(seconds=15)
    async def refresh_loop(self) -> None:
        await self.refresh()

    # =========================================================================
    # Refresh
    # =========================================================================

    async def refresh(self) -> bool:
        """
        Rebuild the cache from the database.

        On failure the previous snapshot stays in place.

        Returns:
            True if a new snapshot was installed.
        """
        try:
            settings_docs, command_docs = await asyncio.gather(
                self.db.list_settings(),
                self.db.list_custom_commands(),
            )
        except Exception as e:
            logger.error_tree("Config Cache Refresh Failed", e, [
                ("Kept Guilds", str(len(self._snapshot.settings))),
            ])
            return False

        settings: Dict[int, GuildSettings] = {}
        for doc in settings_docs:
            parsed = GuildSettings.from_document(doc)
            if parsed is not None:
                settings[parsed.guild_id] = parsed

        commands: Dict[int, Dict[str, CustomCommand]] = {}
        for doc in command_docs:
            command = CustomCommand.from_document(doc)
            if command is not None:
                commands.setdefault(command.guild_id, {})[command.name] = command

        previous = self._snapshot
        self._snapshot = CacheSnapshot(
            settings=MappingProxyType(settings),
            commands=MappingProxyType({gid: MappingProxyType(cmds) for gid, cmds in commands.items()}),
        )

        if not self._refreshed_once or (
            len(previous.settings) != len(settings)
            or previous.command_total != self._snapshot.command_total
        ):
            logger.tree("Config Cache Refreshed", [
                ("Guilds", f"{len(previous.settings)} -> {len(settings)}"),
                ("Custom Commands", f"{previous.command_total} -> {self._snapshot.command_total}"),
            ], emoji="🔄")
        self._refreshed_once = True
        return True

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, guild_id: int) -> Optional[GuildSettings]:
        """Settings for a guild, or None if the guild has none."""
        return self._snapshot.settings.get(guild_id)

    def get_commands(self, guild_id: int) -> Mapping[str, CustomCommand]:
        """Custom commands for a guild keyed by lowercase name."""
        return self._snapshot.commands.get(guild_id, EMPTY_COMMANDS)

    def get_command(self, guild_id: int, name: str) -> Optional[CustomCommand]:
        return self.get_commands(guild_id).get(name.lower())

    @property
    def guild_count(self) -> int:
        return len(self._snapshot.settings)
