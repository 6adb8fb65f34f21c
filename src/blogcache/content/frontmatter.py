"""Front matter parsing.

A document may open with a block of ``key: value`` lines fenced by ``---``::

    ---
    title: Hello
    date: 2024-01-31 09:00:00
    tags: python, cache
    ---
    # Body starts here

Only ``title``, ``date``, ``author`` and ``tags`` are recognised. Parsing never
fails: anything it cannot make sense of is ignored.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from blogcache.models import FrontMatter
from blogcache.utils.text import split_tags

LOGGER = logging.getLogger(__name__)

DELIMITER = "---"

DATE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d")


def parse_date(value: str) -> datetime | None:
    """Parse a front matter date as UTC, returning None if no format matches."""
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def parse_front_matter(text: str) -> tuple[FrontMatter, str]:
    """Split ``text`` into its front matter and body."""
    lines = text.splitlines(keepends=True)
    if not lines or _strip_eol(lines[0]) != DELIMITER:
        return FrontMatter(), text

    closing = None
    for index in range(1, len(lines)):
        if _strip_eol(lines[index]) == DELIMITER:
            closing = index
            break
    if closing is None:
        # Unterminated block: treat the whole input as body
        return FrontMatter(), text

    values: dict[str, str] = {}
    for line in lines[1:closing]:
        key, sep, value = _strip_eol(line).partition(":")
        if not sep:
            continue
        values[key.strip().lower()] = value.strip()

    date = None
    if values.get("date"):
        date = parse_date(values["date"])
        if date is None:
            LOGGER.debug("Ignoring unparseable front matter date %r", values["date"])

    metadata = FrontMatter(
        title=values.get("title") or None,
        date=date,
        author=values.get("author") or None,
        tags=split_tags(values.get("tags", "")),
    )
    return metadata, "".join(lines[closing + 1 :])
