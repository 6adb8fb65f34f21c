"""Application configuration defaults and TOML loading."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("config.toml")


class ConfigError(ValueError):
    """Raised when the configuration cannot be loaded or is invalid."""


@dataclass(slots=True)
class AppConfig:
    posts_directory: Path = Path("posts")
    source_extension: str = ".md"
    served_extension: str = ".html"
    reload_interval: int = 5
    hot_reload: bool = True
    blog_name: str = "My Blog"
    blog_description: str = "A simple blog"
    blog_author: str = "Anonymous"
    host: str = "127.0.0.1"
    port: int = 5444
    base_url: str | None = None

    def __post_init__(self) -> None:
        self.posts_directory = Path(self.posts_directory)

    @property
    def public_url(self) -> str:
        """Absolute URL prefix used for feed links."""
        if self.base_url:
            return self.base_url.rstrip("/")
        return f"http://{self.host}:{self.port}"

    def resolve_posts_directory(self, base_dir: Path | None = None) -> Path:
        if self.posts_directory.is_absolute() or base_dir is None:
            return self.posts_directory
        return base_dir / self.posts_directory

    def validate(self) -> None:
        if isinstance(self.reload_interval, bool) or not isinstance(self.reload_interval, int):
            raise ConfigError("reload_interval must be an integer")
        if self.reload_interval <= 0:
            raise ConfigError(f"reload_interval must be positive, got {self.reload_interval}")
        if not 0 < self.port < 65536:
            raise ConfigError(f"port out of range: {self.port}")
        for name in ("source_extension", "served_extension"):
            value = getattr(self, name)
            if not value.startswith(".") or len(value) < 2:
                raise ConfigError(f"{name} must look like '.ext', got {value!r}")


# TOML value types accepted for each AppConfig field.
_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "posts_directory": (str,),
    "source_extension": (str,),
    "served_extension": (str,),
    "reload_interval": (int,),
    "hot_reload": (bool,),
    "blog_name": (str,),
    "blog_description": (str,),
    "blog_author": (str,),
    "host": (str,),
    "port": (int,),
    "base_url": (str,),
}


def _coerce(data: dict[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(AppConfig)}
    values: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            LOGGER.debug("Ignoring unknown config key %r", key)
            continue
        expected = _FIELD_TYPES[key]
        # bool is an int subclass; reject it for integer fields
        if not isinstance(value, expected) or (bool not in expected and isinstance(value, bool)):
            raise ConfigError(f"Config key {key!r} has invalid value {value!r}")
        values[key] = Path(value) if key == "posts_directory" else value
    return values


def load_config(path: Path | None = None, *, base_dir: Path | None = None) -> AppConfig:
    """Load configuration from a TOML file.

    A missing file yields the defaults. Relative ``posts_directory`` values are
    resolved against the directory holding the config file.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_FILE
    if base_dir is not None and not config_path.is_absolute():
        config_path = base_dir / config_path

    if not config_path.exists():
        if path is not None:
            raise ConfigError(f"Config file not found: {config_path}")
        LOGGER.info("No config file at %s, using defaults", config_path)
        config = AppConfig()
        config.validate()
        return config

    try:
        with config_path.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to load config {config_path}: {exc}") from exc

    config = AppConfig(**_coerce(data))
    if not config.posts_directory.is_absolute():
        config.posts_directory = config_path.parent / config.posts_directory
    config.validate()
    return config
