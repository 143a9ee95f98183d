"""
Discora - Logger
================

Tree-style logging.
"""

import sys
import traceback
from datetime import datetime
from typing import List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from discora.core.config import LOGS_DIR, config


try:
    TIMEZONE = ZoneInfo(config.LOG_TIMEZONE)
except ZoneInfoNotFoundError:
    TIMEZONE = ZoneInfo("UTC")

# ANSI colors
RESET = "\033[0m"
BOLD = "\033[1m"
RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
CYAN = "\033[96m"
GRAY = "\033[90m"

TreeItems = Sequence[Tuple[str, str]]


class Logger:
    """Tree-style logger with colors."""

    def __init__(self):
        self.log_file = LOGS_DIR / "bot.log"
        self.error_file = LOGS_DIR / "bot_error.log"

    def _timestamp(self) -> str:
        """Get formatted timestamp."""
        now = datetime.now(TIMEZONE)
        return now.strftime("%Y-%m-%d %I:%M:%S %p %Z")

    def _write_file(self, message: str, error: bool = False) -> None:
        """Write to log file (and the error file for warnings/errors)."""
        targets = [self.log_file, self.error_file] if error else [self.log_file]
        for path in targets:
            try:
                with open(path, "a", encoding="utf-8") as f:
                    f.write(message + "\n")
            except OSError as e:
                print(f"Log write failed ({path}): {e}", file=sys.stderr)

    def _format_tree(self, items: Optional[TreeItems]) -> str:
        """Format items as a tree."""
        if not items:
            return ""
        lines = []
        for i, (key, value) in enumerate(items):
            prefix = "└─" if i == len(items) - 1 else "├─"
            lines.append(f"  {prefix} {key}: {value}")
        return "\n".join(lines)

    def _emit(
        self,
        title: str,
        items: Optional[TreeItems],
        emoji: str,
        color: str,
        error: bool = False,
    ) -> None:
        timestamp = self._timestamp()
        tree_str = self._format_tree(items)

        # Console output with colors
        console_msg = f"{GRAY}[{timestamp}]{RESET} {emoji} {color}{title}{RESET}"
        if tree_str:
            console_msg += f"\n{CYAN}{tree_str}{RESET}"
        print(console_msg, file=sys.stderr if error else sys.stdout)

        # File output without colors
        file_msg = f"[{timestamp}] {emoji} {title}"
        if tree_str:
            file_msg += f"\n{tree_str}"
        self._write_file(file_msg, error=error)

    def tree(self, title: str, items: TreeItems, emoji: str = "ℹ️") -> None:
        """Log with tree format."""
        self._emit(title, items, emoji, BOLD, error=emoji in ("⚠️", "❌"))

    def error_tree(
        self,
        title: str,
        error: BaseException,
        items: Optional[TreeItems] = None,
    ) -> None:
        """Log a caught exception with optional context items."""
        details: List[Tuple[str, str]] = list(items or [])
        details.append(("Error Type", type(error).__name__))
        details.append(("Error", str(error)[:300]))
        self._emit(title, details, "❌", RED, error=True)

        tb = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        self._write_file(tb.rstrip(), error=True)

    def info(self, message: str, items: Optional[TreeItems] = None) -> None:
        """Log info message."""
        self._emit(message, items, "ℹ️", BLUE)

    def success(self, message: str, items: Optional[TreeItems] = None) -> None:
        """Log success message."""
        self._emit(message, items, "✅", GREEN)

    def warning(self, message: str, items: Optional[TreeItems] = None) -> None:
        """Log warning message."""
        self._emit(message, items, "⚠️", YELLOW, error=True)

    def error(self, message: str, items: Optional[TreeItems] = None) -> None:
        """Log error message."""
        self._emit(message, items, "❌", RED, error=True)


logger = Logger()
