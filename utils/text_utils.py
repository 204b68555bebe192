"""
Text utilities for writing CSV and worksheet XML.

Used when generating downloadable import templates.
"""

import re
import time


def escape_csv(text: str) -> str:
    """
    Quote a CSV field when it needs quoting.

    - plain → plain
    - a,b → "a,b"
    - say "hi" → the field wrapped in quotes, inner quotes doubled

    Args:
        text: Raw field value

    Returns:
        Field text safe to join with commas
    """
    if not text:
        return ""
    escaped = text.replace('"', '""')
    if any(ch in text for ch in (",", '"', "\n", "\r")):
        return f'"{escaped}"'
    return escaped


def escape_xml(text: str) -> str:
    """Escape text for an XML text node (& first)."""
    if not text:
        return ""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def column_name(index: int) -> str:
    """
    Spreadsheet column letters for a 0-based index.

    0 → "A", 25 → "Z", 26 → "AA"
    """
    name = ""
    i = index
    while True:
        name = chr(ord("A") + i % 26) + name
        i = i // 26 - 1
        if i < 0:
            return name


def sanitize_key(key: str) -> str:
    """
    Normalize a template field key.

    "Recipe Name" → "recipe_name"
    "__weight(g)" → "weight_g"
    """
    sanitized = re.sub(r"[^a-z0-9_]+", "_", key.lower()).strip("_")
    return sanitized or f"column_{int(time.time() * 1000)}"
