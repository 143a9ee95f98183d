"""
Sync Package
============

Dashboard mirror jobs (servers, bot info, heartbeat, metadata, members).
"""

from .service import SyncService, build_metadata

__all__ = ["SyncService", "build_metadata"]
