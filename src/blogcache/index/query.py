"""Read API over the cache for request handlers."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from blogcache.index.cache import CacheStore
from blogcache.models import Entry


class LookupStatus(enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    INVALID = "invalid"


@dataclass(slots=True, frozen=True)
class LookupResult:
    status: LookupStatus
    key: str
    entry: Entry | None = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


class QueryService:
    """High-level API for serving entries from the cache."""

    def __init__(self, cache: CacheStore, *, served_extension: str = ".html") -> None:
        self.cache = cache
        self.served_extension = served_extension

    def validate_key(self, key: str) -> str | None:
        """Normalise an untrusted key, or return None if it must be rejected."""
        if not key or "\0" in key or "\\" in key:
            return None
        if not key.startswith("/"):
            key = "/" + key
        segments = key.split("/")
        if any(segment in ("..", ".") for segment in segments):
            return None
        name = segments[-1]
        if not name.endswith(self.served_extension) or name == self.served_extension:
            return None
        return key

    def lookup(self, key: str) -> LookupResult:
        normalized = self.validate_key(key)
        if normalized is None:
            return LookupResult(LookupStatus.INVALID, key)
        entry = self.cache.get(normalized)
        if entry is None:
            return LookupResult(LookupStatus.NOT_FOUND, normalized)
        return LookupResult(LookupStatus.FOUND, normalized, entry)

    def get(self, key: str) -> Entry | None:
        return self.lookup(key).entry

    def list_all(self) -> tuple[Entry, ...]:
        return self.cache.list_all()

    def search(self, query: str) -> tuple[Entry, ...]:
        return self.cache.search(query)
