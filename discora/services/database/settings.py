"""
Discora - Database Settings Mixin
=================================

Guild settings and custom command reads (consumed by the config cache).
"""

from typing import Any, Dict, List

from discora.core.constants import LIST_LIMIT
from .core import Query


class SettingsMixin:
    """Mixin for settings and custom command operations."""

    async def list_settings(self) -> List[Dict[str, Any]]:
        """All server_settings documents."""
        return await self.list_documents(self.collections.SETTINGS, [Query.limit(LIST_LIMIT)])

    async def list_custom_commands(self) -> List[Dict[str, Any]]:
        """All custom_commands documents."""
        return await self.list_documents(self.collections.CUSTOM_COMMANDS, [Query.limit(LIST_LIMIT)])
