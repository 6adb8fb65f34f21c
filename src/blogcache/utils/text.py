"""Text helpers for titles, excerpts and search."""

from __future__ import annotations

import re
from typing import Iterable

_HEADING_RE = re.compile(r"^#[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")

UNTITLED = "Untitled"


def extract_title(body: str) -> str | None:
    """Return the text of the first level-1 ATX heading, if any."""
    for line in body.splitlines():
        match = _HEADING_RE.match(line)
        if match:
            return match.group(1).strip() or None
    return None


def split_tags(value: str) -> tuple[str, ...]:
    """Split a comma separated tag list, trimming whitespace and dropping blanks."""
    return tuple(tag.strip() for tag in value.split(",") if tag.strip())


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())


def excerpt(text: str, *, max_chars: int = 180) -> str:
    """Single-line preview of ``text`` for listings."""
    flat = " ".join(normalize_whitespace(text.splitlines()).split())
    if len(flat) <= max_chars:
        return flat
    return flat[: max_chars - 1].rstrip() + "…"
