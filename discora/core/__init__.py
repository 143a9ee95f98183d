"""
Discora - Core Package
======================

Framework essentials: config, constants, colors, and logging.
"""

from discora.core.config import config
from discora.core.logger import logger

__all__ = ["config", "logger"]
