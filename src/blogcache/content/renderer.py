"""Markdown rendering backed by markdown-it-py."""

from __future__ import annotations

from typing import Callable

from markdown_it import MarkdownIt

Renderer = Callable[[str], str]


class MarkdownRenderer:
    """Convert markdown bodies to HTML.

    Uses the CommonMark preset with tables and strikethrough enabled, which is
    close to GitHub flavoured markdown. Raw HTML in documents is passed through.
    """

    def __init__(self, *, html: bool = True, linkify: bool = False) -> None:
        self._md = (
            MarkdownIt("commonmark", {"html": html, "linkify": linkify})
            .enable("table")
            .enable("strikethrough")
        )

    def __call__(self, body: str) -> str:
        return self._md.render(body)
