"""Command line interface for blogcache."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from blogcache.config import AppConfig, ConfigError, load_config
from blogcache.index.cache import CacheStore
from blogcache.index.refresher import Refresher, RefreshStats
from blogcache.models import Entry
from blogcache.web.app import create_app

console = Console()
app = typer.Typer(help="blogcache - serve a directory of markdown posts from memory")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load(config_path: Optional[Path], posts: Optional[Path]) -> AppConfig:
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if posts is not None:
        config.posts_directory = posts
    root = config.resolve_posts_directory(Path.cwd())
    if not root.is_dir():
        raise typer.BadParameter(f"Posts directory not found: {root}")
    return config


def _refresh_once(config: AppConfig) -> tuple[CacheStore, RefreshStats]:
    cache = CacheStore()
    stats = Refresher(config, cache).refresh()
    for key, error in stats.errors.items():
        console.print(f"[red]Failed:[/red] {escape(key)}: {escape(error)}")
    return cache, stats


def _entries_table(entries: tuple[Entry, ...]) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Date")
    table.add_column("Key")
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Tags")
    for entry in entries:
        table.add_row(
            entry.created_at.strftime("%Y-%m-%d %H:%M"),
            entry.key,
            entry.title,
            entry.author,
            ", ".join(entry.tags),
        )
    return table


@app.command("list")
def list_entries(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML config file"),
    posts: Optional[Path] = typer.Option(None, "--posts", help="Posts directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Scan the posts directory once and list the cached entries."""
    _setup_logging(verbose)
    config = _load(config_path, posts)
    cache, stats = _refresh_once(config)

    entries = cache.list_all()
    if not entries:
        console.print("[yellow]No posts found.[/yellow]")
        return
    console.print(_entries_table(entries))
    console.print(f"{len(entries)} entries, {stats.failed} failed.")


@app.command()
def search(
    query: str = typer.Argument(..., help="Literal, case-sensitive text to look for"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML config file"),
    posts: Optional[Path] = typer.Option(None, "--posts", help="Posts directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search titles and bodies of all posts."""
    _setup_logging(verbose)
    config = _load(config_path, posts)
    cache, _ = _refresh_once(config)

    results = cache.search(query)
    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return
    console.print(_entries_table(results))


@app.command()
def serve(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML config file"),
    posts: Optional[Path] = typer.Option(None, "--posts", help="Posts directory"),
    host: Optional[str] = typer.Option(None, help="Host interface"),
    port: Optional[int] = typer.Option(None, help="Server port"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Start the blog server with background reloading."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - uvicorn is a declared dependency
        raise typer.BadParameter("uvicorn is not installed") from exc

    _setup_logging(verbose)
    config = _load(config_path, posts)
    if host is not None:
        config.host = host
    if port is not None:
        config.port = port
    try:
        config.validate()
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc

    console.print(
        f"Serving [bold]{config.resolve_posts_directory(Path.cwd())}[/bold] "
        f"on http://{config.host}:{config.port}"
    )
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        reload=False,
        log_level="debug" if verbose else "info",
    )
