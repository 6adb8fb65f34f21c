"""Single refresh pass: scan, detect, render and install."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Iterator

from blogcache.config import AppConfig
from blogcache.content.frontmatter import parse_front_matter
from blogcache.content.renderer import MarkdownRenderer, Renderer
from blogcache.content.templates import PageFormatter
from blogcache.index.cache import CacheStore, merge_snapshot
from blogcache.index.detector import detect_changes
from blogcache.models import Document, Entry
from blogcache.utils.files import ScanFailures, iter_documents
from blogcache.utils.text import UNTITLED, extract_title

LOGGER = logging.getLogger(__name__)

PageWrapper = Callable[[str, str], str]


@dataclass(slots=True)
class RefreshStats:
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    removed: int = 0
    failed: int = 0
    generation: int = 0
    duration: float = 0.0
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.inserted or self.updated or self.removed)

    def increment(self, status: str, count: int = 1) -> None:
        if status == "inserted":
            self.inserted += count
        elif status == "updated":
            self.updated += count
        elif status == "unchanged":
            self.unchanged += count
        elif status == "removed":
            self.removed += count
        else:
            raise ValueError(f"Unknown refresh status: {status}")

    def record_error(self, key: str, exc: BaseException) -> None:
        self.failed += 1
        self.errors[key] = f"{type(exc).__name__}: {exc}"


def build_entry(
    document: Document,
    *,
    renderer: Renderer,
    wrap_page: PageWrapper,
    default_author: str,
    now: datetime | None = None,
) -> Entry:
    """Parse and render one document into a cache entry."""
    text = document.content.decode("utf-8-sig")
    metadata, body = parse_front_matter(text)

    title = metadata.title or extract_title(body) or UNTITLED
    if metadata.date is not None:
        created_at = metadata.date
    elif document.mtime:
        created_at = datetime.fromtimestamp(document.mtime, tz=timezone.utc)
    else:
        created_at = now or datetime.now(timezone.utc)

    html = renderer(body)
    return Entry(
        key=document.key,
        title=title,
        author=metadata.author or default_author,
        created_at=created_at,
        tags=metadata.tags,
        raw_body=body,
        rendered_html=html,
        rendered_page=wrap_page(title, html),
        source_path=document.path,
    )


class Refresher:
    """Runs full rescans of the posts directory into a :class:`CacheStore`.

    Passes must not overlap; :class:`~blogcache.index.scheduler.RefreshScheduler`
    serialises them.
    """

    def __init__(
        self,
        config: AppConfig,
        cache: CacheStore,
        *,
        renderer: Renderer | None = None,
        wrap_page: PageWrapper | None = None,
        root: Path | None = None,
    ) -> None:
        self.config = config
        self.cache = cache
        self.renderer = renderer or MarkdownRenderer()
        self.wrap_page = wrap_page or PageFormatter(config).page
        self.root = Path(root) if root is not None else config.resolve_posts_directory(Path.cwd())

    def scan(self, failures: ScanFailures | None = None) -> Iterator[Document]:
        return iter_documents(
            self.root,
            source_extension=self.config.source_extension,
            served_extension=self.config.served_extension,
            failures=failures,
        )

    def refresh(self, documents: Iterable[Document] | None = None) -> RefreshStats:
        """Run one pass and install the resulting snapshot.

        Files that exist but cannot be read are reported as failures and keep
        their previous entry, like documents that fail to render.
        """
        started = time.monotonic()
        stats = RefreshStats()
        previous = self.cache.snapshot
        failures = ScanFailures()

        if documents is None:
            if not self.root.is_dir():
                LOGGER.error("Posts directory %s is missing, keeping current cache", self.root)
                stats.generation = previous.generation
                return stats
            documents = list(self.scan(failures))

        for key, exc in failures.files.items():
            stats.record_error(key, exc)
        unreadable = {key for key in previous.mtimes if failures.covers(key)}
        for key in sorted(unreadable):
            LOGGER.info("Keeping previous version of unreadable %s", key)

        changes = detect_changes(previous.mtimes, documents, unreadable=unreadable)
        stats.increment("unchanged", len(changes.unchanged))
        stats.increment("removed", len(changes.removed))

        updates: dict[str, Entry] = {}
        update_mtimes: dict[str, float] = {}
        for document in changes.changed:
            try:
                entry = build_entry(
                    document,
                    renderer=self.renderer,
                    wrap_page=self.wrap_page,
                    default_author=self.config.blog_author,
                )
            except Exception as exc:
                LOGGER.error("Failed to render %s: %s", document.path, exc)
                stats.record_error(document.key, exc)
                if document.key in previous.entries:
                    LOGGER.info("Keeping previous version of %s", document.key)
                continue

            LOGGER.debug("Rendered %s -> %s", document.path, document.key)
            updates[document.key] = entry
            update_mtimes[document.key] = document.mtime
            stats.increment("updated" if document.key in previous.entries else "inserted")

        entries, mtimes = merge_snapshot(previous, updates, update_mtimes, changes.removed)
        snapshot = self.cache.replace_all(entries, mtimes)

        stats.generation = snapshot.generation
        stats.duration = time.monotonic() - started
        if stats.changed or stats.failed:
            LOGGER.info(
                "Refresh #%d: inserted %d, updated %d, removed %d, failed %d (%d entries)",
                snapshot.generation,
                stats.inserted,
                stats.updated,
                stats.removed,
                stats.failed,
                len(snapshot),
            )
        return stats
