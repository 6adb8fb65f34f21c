"""Utility helpers for enumerating source documents."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator

from blogcache.models import Document

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ScanFailures:
    """Files and directories one scan could not read, by key.

    Directory failures are stored as key prefixes (``/sub/``, or ``/`` for the
    root) so every entry that lives below them can be matched.
    """

    files: dict[str, OSError] = field(default_factory=dict)
    directories: dict[str, OSError] = field(default_factory=dict)

    def covers(self, key: str) -> bool:
        if key in self.files:
            return True
        return any(key.startswith(prefix) for prefix in self.directories)


def iter_source_paths(
    root: Path, extension: str, onerror: Callable[[OSError], None] | None = None
) -> Iterator[Path]:
    """Yield files under ``root`` whose suffix matches ``extension``, recursively.

    Directories that cannot be listed are logged, passed to ``onerror`` and
    skipped; the walk carries on with their siblings.
    """
    suffix = extension.lower()

    def walk_error(exc: OSError) -> None:
        LOGGER.warning("Skipping unreadable directory %s: %s", exc.filename, exc)
        if onerror is not None:
            onerror(exc)

    for dirpath, _dirnames, filenames in os.walk(root, onerror=walk_error):
        base = Path(dirpath)
        for name in filenames:
            if Path(name).suffix.lower() != suffix:
                continue
            item = base / name
            if item.is_file():
                yield item


def derive_key(root: Path, path: Path, source_extension: str, served_extension: str) -> str:
    """Map a source path to its URL path, e.g. ``root/sub/a.md`` -> ``/sub/a.html``."""
    relative = path.relative_to(root).as_posix()
    if relative.lower().endswith(source_extension.lower()):
        relative = relative[: -len(source_extension)]
    return "/" + relative + served_extension


def directory_prefix(root: Path, directory: Path) -> str:
    relative = directory.relative_to(root).as_posix()
    return "/" if relative == "." else f"/{relative}/"


def read_document(root: Path, path: Path, *, source_extension: str, served_extension: str) -> Document:
    """Read a single source file. Raises :class:`OSError` if it cannot be read."""
    mtime = path.stat().st_mtime
    content = path.read_bytes()
    return Document(
        path=path,
        key=derive_key(root, path, source_extension, served_extension),
        content=content,
        mtime=mtime,
    )


def iter_documents(
    root: Path,
    *,
    source_extension: str = ".md",
    served_extension: str = ".html",
    failures: ScanFailures | None = None,
) -> Iterator[Document]:
    """Lazily yield every readable source document under ``root``.

    Unreadable files and directories are logged and skipped. When ``failures``
    is given it collects them, so callers can tell a skipped key from a
    deleted one.
    """
    root = Path(root).resolve()

    def record_directory(exc: OSError) -> None:
        if failures is None or exc.filename is None:
            return
        try:
            prefix = directory_prefix(root, Path(os.fsdecode(exc.filename)))
        except ValueError:
            prefix = "/"
        failures.directories[prefix] = exc

    for path in iter_source_paths(root, source_extension, onerror=record_directory):
        try:
            document = read_document(
                root, path, source_extension=source_extension, served_extension=served_extension
            )
        except OSError as exc:
            LOGGER.warning("Skipping unreadable file %s: %s", path, exc)
            if failures is not None:
                failures.files[derive_key(root, path, source_extension, served_extension)] = exc
            continue
        yield document
