"""Page and feed formatting with Jinja2 templates."""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from blogcache.config import AppConfig
from blogcache.models import Entry
from blogcache.utils.text import excerpt

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


def format_display_time(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def format_rfc822(value: datetime) -> str:
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


class PageFormatter:
    """Render blog pages, listings and the RSS feed from cache entries."""

    def __init__(self, config: AppConfig, templates_dir: Path | None = None) -> None:
        self.config = config
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir or TEMPLATES_DIR)),
            autoescape=select_autoescape(["html", "xml"]),
        )
        self.env.filters["display_time"] = format_display_time
        self.env.filters["rfc822"] = format_rfc822
        self.env.filters["excerpt"] = excerpt
        self.env.globals["blog"] = {
            "name": config.blog_name,
            "description": config.blog_description,
            "url": config.public_url,
        }

    def page(self, title: str, html: str) -> str:
        """Wrap rendered post HTML in the site layout."""
        return self.env.get_template("page.html").render(title=title, content=html)

    def index(self, entries: Sequence[Entry]) -> str:
        return self.env.get_template("index.html").render(entries=entries)

    def search(self, query: str, entries: Sequence[Entry]) -> str:
        return self.env.get_template("search.html").render(query=query, entries=entries)

    def feed(self, entries: Sequence[Entry], *, now: datetime | None = None) -> str:
        """Render an RSS 2.0 document for ``entries``."""
        built = now or datetime.now(timezone.utc)
        return self.env.get_template("feed.xml").render(entries=entries, last_build=built)
