"""Tests for the snapshot cache."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from blogcache.index.cache import CacheStore, merge_snapshot
from blogcache.models import Entry, Snapshot

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_entry(key: str, *, days: int = 0, title: str = "Title", body: str = "") -> Entry:
    return Entry(
        key=key,
        title=title,
        author="Jane",
        created_at=BASE + timedelta(days=days),
        tags=(),
        raw_body=body,
        rendered_html=f"<p>{body}</p>",
        rendered_page=f"<html>{body}</html>",
    )


@pytest.fixture
def cache() -> CacheStore:
    store = CacheStore()
    entries = {
        "/old.html": make_entry("/old.html", days=0, title="Old news", body="about caching"),
        "/new.html": make_entry("/new.html", days=5, title="Fresh xyz", body="hello world"),
        "/mid.html": make_entry("/mid.html", days=2, title="Middle", body="contains xyz here"),
        "/tie.html": make_entry("/tie.html", days=2, title="Tie", body="XYZ uppercase"),
    }
    store.replace_all(entries, {key: 1.0 for key in entries})
    return store


class TestMergeSnapshot:
    """Test merge_snapshot composition."""

    def test_carries_forward_overwrites_and_removes(self) -> None:
        keep = make_entry("/keep.html")
        stale = make_entry("/edit.html", title="Before")
        previous = Snapshot.create(
            {"/keep.html": keep, "/edit.html": stale, "/gone.html": make_entry("/gone.html")},
            {"/keep.html": 1.0, "/edit.html": 1.0, "/gone.html": 1.0},
            generation=3,
        )
        edited = make_entry("/edit.html", title="After")
        added = make_entry("/add.html")

        entries, mtimes = merge_snapshot(
            previous,
            {"/edit.html": edited, "/add.html": added},
            {"/edit.html": 2.0, "/add.html": 2.0},
            {"/gone.html"},
        )

        assert entries == {"/keep.html": keep, "/edit.html": edited, "/add.html": added}
        assert mtimes == {"/keep.html": 1.0, "/edit.html": 2.0, "/add.html": 2.0}

    def test_previous_untouched(self) -> None:
        previous = Snapshot.create({"/a.html": make_entry("/a.html")}, {"/a.html": 1.0}, generation=1)

        merge_snapshot(previous, {"/b.html": make_entry("/b.html")}, {"/b.html": 1.0}, {"/a.html"})

        assert set(previous.entries) == {"/a.html"}


class TestCacheStore:
    """Test CacheStore reads and replacement."""

    def test_starts_empty(self) -> None:
        store = CacheStore()

        assert len(store) == 0
        assert store.generation == 0
        assert store.list_all() == ()
        assert store.get("/a.html") is None

    def test_get_found_and_missing(self, cache: CacheStore) -> None:
        assert cache.get("/new.html").title == "Fresh xyz"
        assert cache.get("/missing.html") is None

    def test_list_all_recency_order(self, cache: CacheStore) -> None:
        """Newest first with equal timestamps ordered by key."""
        keys = [entry.key for entry in cache.list_all()]

        assert keys == ["/new.html", "/mid.html", "/tie.html", "/old.html"]

    def test_search_title_and_body_case_sensitive(self, cache: CacheStore) -> None:
        keys = [entry.key for entry in cache.search("xyz")]

        assert keys == ["/new.html", "/mid.html"]

    def test_search_is_literal(self, cache: CacheStore) -> None:
        assert cache.search("x.z") == ()
        assert [entry.key for entry in cache.search("XYZ")] == ["/tie.html"]

    def test_search_no_match(self, cache: CacheStore) -> None:
        assert cache.search("nothing like this") == ()

    def test_replace_all_increments_generation(self, cache: CacheStore) -> None:
        before = cache.generation

        snapshot = cache.replace_all({}, {})

        assert snapshot.generation == before + 1
        assert cache.snapshot is snapshot
        assert cache.list_all() == ()

    def test_old_snapshot_not_mutated(self, cache: CacheStore) -> None:
        """Readers holding the previous snapshot keep a consistent view."""
        held = cache.snapshot

        cache.replace_all({"/only.html": make_entry("/only.html")}, {"/only.html": 1.0})

        assert set(held.entries) == {"/old.html", "/new.html", "/mid.html", "/tie.html"}
        assert set(cache.snapshot.entries) == {"/only.html"}

    def test_concurrent_readers_see_whole_generations(self) -> None:
        """Readers never observe a mix of entries from two generations."""
        store = CacheStore()
        keys = [f"/{index}.html" for index in range(50)]
        stop = threading.Event()
        mixed: list[set[str]] = []

        def writer() -> None:
            for generation in range(200):
                title = f"gen-{generation}"
                entries = {key: make_entry(key, title=title) for key in keys}
                store.replace_all(entries, {key: float(generation) for key in keys})
            stop.set()

        def reader() -> None:
            last_generation = 0
            while not stop.is_set():
                snapshot = store.snapshot
                if snapshot.generation < last_generation:
                    mixed.append({"went backwards"})
                last_generation = snapshot.generation
                titles = {entry.title for entry in snapshot.ordered}
                if len(titles) > 1:
                    mixed.append(titles)

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for thread in readers:
            thread.start()
        writer()
        for thread in readers:
            thread.join()

        assert mixed == []
        assert store.generation == 200
