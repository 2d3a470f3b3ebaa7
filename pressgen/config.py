from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

from .content import DEFAULT_LANG
from .errors import ConfigError
from .utils import parse_bool, parse_int

SUMMARY_SEPARATOR = "<!--more-->"
MAX_WORKERS = 32


@dataclass(frozen=True)
class SiteConfig:
    source: Path = Path("content")
    output: Path = Path("_site")
    templates: Optional[Path] = None
    static: Optional[Path] = None
    site_name: str = "My Blog"
    site_description: str = ""
    site_url: str = ""
    base_url: str = ""
    author: str = ""
    lang: str = DEFAULT_LANG
    posts_per_page: int = 10
    build_workers: int = 0
    summary_separator: str = SUMMARY_SEPARATOR
    highlight_style: str = "default"
    clean: bool = True
    enable_feed: bool = True
    enable_sitemap: bool = True
    feed_limit: int = 20
    write_nojekyll: bool = False
    custom_domain: str = ""
    allow_unknown_layouts: bool = False
    layouts: dict = field(default_factory=dict)

    @property
    def workers(self) -> int:
        workers = self.build_workers if self.build_workers > 0 else (os.cpu_count() or 1)
        return max(1, min(workers, MAX_WORKERS))

    @property
    def resolved_site_url(self) -> str:
        site_url = self.site_url.strip().rstrip("/")
        if not site_url and self.custom_domain:
            site_url = f"https://{self.custom_domain.strip()}"
        return site_url

    @classmethod
    def from_mapping(cls, data: dict) -> "SiteConfig":
        """Build a config from a mapping, ignoring unknown keys and ``None`` values."""
        values: dict = {}
        for item in fields(cls):
            value = data.get(item.name)
            if value is None:
                continue
            default = getattr(cls, item.name, None)
            if item.name in {"source", "output", "templates", "static"}:
                values[item.name] = Path(value) if str(value).strip() else default
            elif item.name == "layouts":
                if not isinstance(value, dict):
                    raise ConfigError("'layouts' must be a table of layout name to template file")
                values[item.name] = {str(k): str(v) for k, v in value.items()}
            elif isinstance(default, bool):
                values[item.name] = parse_bool(value)
            elif isinstance(default, int):
                values[item.name] = parse_int(value, default)
            else:
                values[item.name] = str(value)
        if values.get("posts_per_page", 1) < 1:
            raise ConfigError("posts_per_page must be at least 1")
        return cls(**values)


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a mapping: {path}")
    return data
