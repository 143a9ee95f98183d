"""
Discora - Database Logs Mixin
=============================

Audit and command-usage logs shown on the dashboard.

Both writers are best-effort: a failed write is logged and swallowed so
that logging never breaks the action being logged.
"""

from typing import Optional

from discora.core.logger import logger
from discora.utils.timeutils import to_iso, utcnow
from .core import DatabaseError


class LogsMixin:
    """Mixin for audit and command log operations."""

    async def log_audit_event(
        self,
        guild_id: int,
        event_type: str,
        user: str,
        content: str,
        user_id: Optional[int] = None,
        avatar_url: str = "",
    ) -> None:
        """Record an audit event (``user`` is a display tag or a system name)."""
        try:
            await self.create_document(self.collections.AUDIT_LOGS, {
                "guildId": str(guild_id),
                "type": event_type,
                "user": user,
                "userId": str(user_id) if user_id is not None else "system",
                "userAvatarUrl": avatar_url,
                "content": content,
                "timestamp": to_iso(utcnow()),
            })
        except DatabaseError as e:
            logger.error_tree("Audit Log Write Failed", e, [
                ("Guild ID", str(guild_id)),
                ("Type", event_type),
            ])

    async def log_command_usage(
        self,
        guild_id: int,
        command: str,
        user: str,
        user_id: int,
        avatar_url: str = "",
    ) -> None:
        """Record one executed command."""
        try:
            await self.create_document(self.collections.COMMAND_LOGS, {
                "guildId": str(guild_id),
                "command": command,
                "user": user,
                "userId": str(user_id),
                "userAvatarUrl": avatar_url,
                "timestamp": to_iso(utcnow()),
            })
        except DatabaseError as e:
            logger.error_tree("Command Log Write Failed", e, [
                ("Guild ID", str(guild_id)),
                ("Command", command),
            ])
