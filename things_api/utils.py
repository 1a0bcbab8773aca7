"""Utility functions for the Things3 API."""
from typing import Iterable, Optional


def escape_applescript_string(text: Optional[str]) -> str:
    """Escape special characters for AppleScript double-quoted strings.

    Backslashes must be doubled before quotes are escaped, otherwise the
    backslash added in front of a quote gets doubled as well.
    """
    if not text:
        return ""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def quote_applescript_string(text: Optional[str]) -> str:
    """Return ``text`` as a complete AppleScript string literal."""
    return f'"{escape_applescript_string(text)}"'


def applescript_list(values: Iterable[str]) -> str:
    """Render a sequence of strings as an AppleScript list literal."""
    return "{" + ", ".join(quote_applescript_string(v) for v in values) + "}"
