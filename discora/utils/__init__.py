"""
Discora - Utilities Package
===========================

Shared helpers: HTTP session, async fan-out, and text templates.
"""

from discora.utils.async_utils import gather_with_logging, run_bounded
from discora.utils.http import HTTPSessionManager, http_session
from discora.utils.text import fill_template, truncate

__all__ = [
    "gather_with_logging",
    "run_bounded",
    "HTTPSessionManager",
    "http_session",
    "fill_template",
    "truncate",
]
