from __future__ import annotations

import re
from typing import Any

from hoard.effects.patches import normalize_text
from hoard.utils.numbers import format_signed


def format_segment(value: Any, label: Any = None) -> str:
    """Render ``"<value> [<label>]"``; numbers carry an explicit sign."""

    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        base = format_signed(value)
    elif isinstance(value, str):
        base = normalize_text(value)
    else:
        return ""
    if not base:
        return ""
    tag = normalize_text(label)
    if tag:
        return f"{base} [{tag}]"
    return base


def append_segment(current: Any, segment: str, separator: str = " ") -> str:
    """Join ``segment`` onto ``current`` with one separator, leaving existing text as written."""

    addition = str(segment or "").strip()
    existing = str(current or "")
    if not addition:
        return existing
    if not existing:
        return addition
    return f"{existing}{separator}{addition}"


def remove_segment(current: Any, segment: str, separator: str = " ") -> str:
    """Remove one whole-segment occurrence of ``segment`` from ``current``.

    The match is anchored on separator boundaries so a segment is never cut
    out of the middle of a longer one. Only the separator joining the segment
    to its neighbour goes with it; the rest of the text is untouched.
    """

    target = str(segment or "").strip()
    text = str(current or "")
    if not target or not text:
        return text
    edge, width = (r"\s", 1) if separator == " " else (re.escape(separator), len(separator))
    pattern = re.compile(r"(?:^|(?<=" + edge + r"))" + re.escape(target) + r"(?=" + edge + r"|$)")
    match = pattern.search(text)
    if match is None:
        return text
    start, end = match.span()
    if start > 0:
        start -= width
    elif end < len(text):
        end += width
    return text[:start] + text[end:]
