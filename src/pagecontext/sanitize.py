"""
Recursive cleanup of request input.

Strings lose backslash quoting artifacts and surrounding whitespace and are
optionally HTML-escaped. Containers are rebuilt with the same shape.
"""

from __future__ import annotations

import html
import re
from typing import Any, Mapping

# A backslash escapes the next character; a trailing lone one is dropped.
BACKSLASH_ESCAPE_PATTERN = re.compile(r"\\(.?)", re.DOTALL)


def strip_slashes(text: str) -> str:
    """Undo backslash quoting: ``\\'`` becomes ``'``, ``\\\\`` becomes ``\\``."""

    return BACKSLASH_ESCAPE_PATTERN.sub(r"\1", text)


def sanitize(value: Any, html_escape: bool = True) -> Any:
    """
    Clean a request value of any nesting depth.

    Args:
        value: String, mapping, list/tuple of those, or another scalar
        html_escape: Escape ``& < > " '`` in strings

    Returns:
        A value of the same shape; non-string scalars are returned unchanged
    """
    if isinstance(value, str):
        cleaned = strip_slashes(value).strip()
        return html.escape(cleaned, quote=True) if html_escape else cleaned

    if isinstance(value, Mapping):
        return {key: sanitize(item, html_escape) for key, item in value.items()}

    if isinstance(value, (list, tuple)):
        return type(value)(sanitize(item, html_escape) for item in value)

    return value
