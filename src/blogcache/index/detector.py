"""Change detection between scans."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Collection, Iterable, Mapping

from blogcache.models import Document

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ChangeSet:
    unchanged: frozenset[str] = frozenset()
    changed: tuple[Document, ...] = ()
    removed: frozenset[str] = frozenset()


def detect_changes(
    last_seen: Mapping[str, float],
    documents: Iterable[Document],
    *,
    unreadable: Collection[str] = (),
) -> ChangeSet:
    """Classify freshly enumerated documents against the previous scan.

    A document is stale only if its mtime is strictly greater than the one
    recorded, so rescanning untouched files is a no-op. Keys in ``unreadable``
    still exist on disk and are never reported as removed.
    """
    current: dict[str, Document] = {}
    for document in documents:
        existing = current.get(document.key)
        if existing is not None:
            LOGGER.warning("Duplicate key %s from %s and %s", document.key, existing.path, document.path)
            if existing.mtime >= document.mtime:
                continue
        current[document.key] = document

    unchanged: set[str] = set()
    changed: list[Document] = []
    for key, document in current.items():
        previous = last_seen.get(key)
        if previous is not None and document.mtime <= previous:
            unchanged.add(key)
        else:
            changed.append(document)

    removed = frozenset(key for key in last_seen if key not in current and key not in unreadable)
    return ChangeSet(unchanged=frozenset(unchanged), changed=tuple(changed), removed=removed)
