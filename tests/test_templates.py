"""Tests for markdown rendering and page formatting."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from blogcache.config import AppConfig
from blogcache.content.renderer import MarkdownRenderer
from blogcache.content.templates import PageFormatter, format_display_time, format_rfc822
from blogcache.models import Entry


def make_entry(key: str, title: str, **overrides) -> Entry:
    values = dict(
        key=key,
        title=title,
        author="Jane",
        created_at=datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc),
        tags=("python", "cache"),
        raw_body="body text",
        rendered_html="<p>body <b>text</b></p>",
        rendered_page="",
    )
    values.update(overrides)
    return Entry(**values)


@pytest.fixture
def formatter() -> PageFormatter:
    config = AppConfig(blog_name="Notes", blog_description="Things & stuff", host="localhost", port=5444)
    return PageFormatter(config)


class TestMarkdownRenderer:
    """Test MarkdownRenderer output."""

    def test_heading_and_paragraph(self) -> None:
        html = MarkdownRenderer()("# Hello\nworld")

        assert "<h1>Hello</h1>" in html
        assert "<p>world</p>" in html

    def test_tables_enabled(self) -> None:
        html = MarkdownRenderer()("| a | b |\n|---|---|\n| 1 | 2 |\n")

        assert "<table>" in html

    def test_strikethrough_enabled(self) -> None:
        assert "<s>gone</s>" in MarkdownRenderer()("~~gone~~")

    def test_raw_html_toggle(self) -> None:
        assert "<span>x</span>" in MarkdownRenderer()("<span>x</span>")
        assert "&lt;span&gt;" in MarkdownRenderer(html=False)("<span>x</span>")

    def test_empty_body(self) -> None:
        assert MarkdownRenderer()("") == ""


class TestFormatters:
    """Test date filters."""

    def test_display_time(self) -> None:
        assert format_display_time(datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)) == "2024-03-01 08:00:00"

    def test_rfc822(self) -> None:
        assert format_rfc822(datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)) == "Fri, 01 Mar 2024 08:00:00 GMT"


class TestPageFormatter:
    """Test rendered pages."""

    def test_page_embeds_html_unescaped(self, formatter: PageFormatter) -> None:
        page = formatter.page("Hello <World>", "<p>content</p>")

        assert "<title>Hello &lt;World&gt; - Notes</title>" in page
        assert "<p>content</p>" in page
        assert "Things &amp; stuff" in page
        assert 'href="/feed.xml"' in page

    def test_index_lists_entries(self, formatter: PageFormatter) -> None:
        html = formatter.index([make_entry("/a.html", "First"), make_entry("/my post.html", "Second")])

        assert 'href="/a.html"' in html
        assert 'href="/my%20post.html"' in html
        assert "First" in html
        assert "2024-03-01 08:00:00" in html
        assert "python, cache" in html

    def test_index_empty(self, formatter: PageFormatter) -> None:
        assert "No posts yet." in formatter.index([])

    def test_search_page(self, formatter: PageFormatter) -> None:
        html = formatter.search("<q>", [])

        assert "&lt;q&gt;" in html
        assert "No matches found." in html

    def test_feed(self, formatter: PageFormatter) -> None:
        now = datetime(2024, 4, 1, tzinfo=timezone.utc)

        feed = formatter.feed([make_entry("/a.html", "First")], now=now)

        assert feed.startswith('<?xml version="1.0" encoding="UTF-8" ?>')
        assert "<title>Notes</title>" in feed
        assert "<lastBuildDate>Mon, 01 Apr 2024 00:00:00 GMT</lastBuildDate>" in feed
        assert "<link>http://localhost:5444/a.html</link>" in feed
        assert "<pubDate>Fri, 01 Mar 2024 08:00:00 GMT</pubDate>" in feed
        assert "&lt;p&gt;body &lt;b&gt;text&lt;/b&gt;&lt;/p&gt;" in feed
        assert "<category>python</category>" in feed
        assert "<author>Jane</author>" in feed
