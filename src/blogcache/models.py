"""Core blogcache data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Mapping


@dataclass(slots=True, frozen=True)
class Document:
    """A source file as seen by a single scan."""

    path: Path
    key: str
    content: bytes
    mtime: float


@dataclass(slots=True, frozen=True)
class FrontMatter:
    """Metadata extracted from the leading block of a document."""

    title: str | None = None
    date: datetime | None = None
    author: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class Entry:
    """Rendered document held by the cache."""

    key: str
    title: str
    author: str
    created_at: datetime
    tags: tuple[str, ...]
    raw_body: str
    rendered_html: str
    rendered_page: str
    source_path: Path | None = None


def recency_key(entry: Entry) -> tuple[float, str]:
    # Newest first, ties broken by key ascending.
    return (-entry.created_at.timestamp(), entry.key)


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Immutable view of every cached entry produced by one scan."""

    entries: Mapping[str, Entry] = field(default_factory=lambda: MappingProxyType({}))
    mtimes: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    ordered: tuple[Entry, ...] = ()
    generation: int = 0
    built_at: datetime | None = None

    @classmethod
    def create(
        cls,
        entries: Mapping[str, Entry],
        mtimes: Mapping[str, float],
        *,
        generation: int,
        built_at: datetime | None = None,
    ) -> "Snapshot":
        entries = dict(entries)
        mtimes = {key: mtimes[key] for key in entries if key in mtimes}
        return cls(
            entries=MappingProxyType(entries),
            mtimes=MappingProxyType(mtimes),
            ordered=tuple(sorted(entries.values(), key=recency_key)),
            generation=generation,
            built_at=built_at,
        )

    def __len__(self) -> int:
        return len(self.entries)
