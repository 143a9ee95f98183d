"""
Discora - Commands Package
==========================

Built-in prefix commands (loaded as an extension) and the renderer for
guild-defined custom commands.
"""

from .custom import render_custom_command, send_custom_command

__all__ = ["render_custom_command", "send_custom_command"]
