"""FastAPI application serving the cached blog."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, List

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel

from blogcache.config import AppConfig
from blogcache.content.templates import PageFormatter
from blogcache.index.cache import CacheStore
from blogcache.index.query import LookupStatus, QueryService
from blogcache.index.refresher import Refresher
from blogcache.index.scheduler import RefreshScheduler
from blogcache.models import Entry
from blogcache.utils.text import excerpt

LOGGER = logging.getLogger(__name__)


class EntrySummary(BaseModel):
    key: str
    title: str
    author: str
    created_at: datetime
    tags: List[str]
    excerpt: str

    @classmethod
    def from_entry(cls, entry: Entry) -> "EntrySummary":
        return cls(
            key=entry.key,
            title=entry.title,
            author=entry.author,
            created_at=entry.created_at,
            tags=list(entry.tags),
            excerpt=excerpt(entry.raw_body),
        )


def create_app(
    config: AppConfig,
    *,
    cache: CacheStore | None = None,
    refresher: Refresher | None = None,
    formatter: PageFormatter | None = None,
) -> FastAPI:
    """Build the application and wire the cache, refresher and scheduler.

    On startup one refresh pass runs before requests are served; the background
    scheduler is started only when ``config.hot_reload`` is set.
    """
    if cache is None:
        cache = refresher.cache if refresher is not None else CacheStore()
    if formatter is None:
        formatter = PageFormatter(config)
    if refresher is None:
        refresher = Refresher(config, cache, wrap_page=formatter.page)
    scheduler = RefreshScheduler(refresher, interval=config.reload_interval)
    queries = QueryService(cache, served_extension=config.served_extension)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await asyncio.to_thread(scheduler.trigger)
        if config.hot_reload:
            scheduler.start()
        try:
            yield
        finally:
            await asyncio.to_thread(scheduler.stop)

    app = FastAPI(title="blogcache", version="0.1.0", lifespan=lifespan)
    app.state.config = config
    app.state.cache = cache
    app.state.queries = queries
    app.state.scheduler = scheduler

    @app.get("/", response_class=HTMLResponse)
    def index_page() -> HTMLResponse:
        return HTMLResponse(content=formatter.index(queries.list_all()))

    @app.get("/feed.xml")
    def feed() -> Response:
        return Response(content=formatter.feed(queries.list_all()), media_type="application/xml")

    @app.get("/search", response_class=HTMLResponse)
    def search_page(q: str = Query("", max_length=256)) -> HTMLResponse:
        query = q.strip()
        entries = queries.search(query) if query else ()
        return HTMLResponse(content=formatter.search(query, entries))

    @app.get("/api/entries")
    def list_entries() -> dict[str, List[EntrySummary]]:
        return {"entries": [EntrySummary.from_entry(entry) for entry in queries.list_all()]}

    @app.get("/api/search")
    def search_entries(q: str = Query(..., max_length=256)) -> dict[str, List[EntrySummary]]:
        if not q.strip():
            raise HTTPException(status_code=400, detail="Empty query")
        return {"results": [EntrySummary.from_entry(entry) for entry in queries.search(q)]}

    @app.get("/{key:path}", response_class=HTMLResponse)
    def entry_page(key: str) -> HTMLResponse:
        result = queries.lookup(key)
        if result.status is LookupStatus.INVALID:
            LOGGER.debug("Rejected key %r", key)
            raise HTTPException(status_code=404, detail="Not found")
        if result.entry is None:
            raise HTTPException(status_code=404, detail="Not found")
        return HTMLResponse(content=result.entry.rendered_page)

    return app
