"""In-memory snapshot cache with atomic replacement."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Mapping

from blogcache.models import Entry, Snapshot


def merge_snapshot(
    previous: Snapshot,
    updates: Mapping[str, Entry],
    update_mtimes: Mapping[str, float],
    removed: Iterable[str] = (),
) -> tuple[dict[str, Entry], dict[str, float]]:
    """Compute the contents of the next snapshot without touching ``previous``.

    Unchanged entries are carried forward, ``updates`` overwrite or add entries
    and ``removed`` keys are dropped.
    """
    entries = dict(previous.entries)
    mtimes = dict(previous.mtimes)
    for key in removed:
        entries.pop(key, None)
        mtimes.pop(key, None)
    entries.update(updates)
    mtimes.update(update_mtimes)
    return entries, mtimes


class CacheStore:
    """Holds the current snapshot and serves lock-free reads from it.

    Writers build the complete contents of the next snapshot first and then
    install it with :meth:`replace_all`; the lock only guards the reference
    swap. Readers grab the current reference once per call, so each call sees
    exactly one snapshot and never an older one than a previous call saw.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot = Snapshot()

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def generation(self) -> int:
        return self._snapshot.generation

    def replace_all(self, entries: Mapping[str, Entry], mtimes: Mapping[str, float]) -> Snapshot:
        """Install a new snapshot holding exactly ``entries``."""
        staged = Snapshot.create(entries, mtimes, generation=0, built_at=datetime.now(timezone.utc))
        with self._lock:
            snapshot = replace(staged, generation=self._snapshot.generation + 1)
            self._snapshot = snapshot
        return snapshot

    def get(self, key: str) -> Entry | None:
        return self._snapshot.entries.get(key)

    def list_all(self) -> tuple[Entry, ...]:
        return self._snapshot.ordered

    def search(self, query: str) -> tuple[Entry, ...]:
        """Entries whose title or raw body contains ``query`` verbatim."""
        snapshot = self._snapshot
        return tuple(
            entry for entry in snapshot.ordered if query in entry.title or query in entry.raw_body
        )

    def __len__(self) -> int:
        return len(self._snapshot)
