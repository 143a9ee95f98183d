"""
Discora - Text Utilities
========================

Template filling and string helpers.
"""

from typing import Mapping


def fill_template(template: str, values: Mapping[str, object]) -> str:
    """
    Replace every ``{name}`` placeholder in a user-authored template.

    Unknown placeholders and stray braces are left untouched, unlike
    str.format which would raise on them.
    """
    result = template
    for key, value in values.items():
        result = result.replace("{" + key + "}", str(value))
    return result


def truncate(text: str, limit: int, suffix: str = "...") -> str:
    """Truncate text to at most ``limit`` characters."""
    if len(text) <= limit:
        return text
    return text[: max(0, limit - len(suffix))] + suffix
