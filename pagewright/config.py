from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass
from pathlib import Path

import yaml

from .content import decode_fields, parse_str
from .errors import ConfigError

CONFIG_FIELDS = (
    ("title", "title", parse_str),
    ("url", "base_url", parse_str),
)


@dataclass(frozen=True)
class SiteConfig:
    title: str = ""
    base_url: str = "/"


def normalize_url(url: str) -> str:
    url = url.strip()
    if not url.endswith("/"):
        url += "/"
    return url


def read_config_file(path: Path) -> dict:
    """Parse a TOML, YAML or JSON config file, chosen by suffix."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Error reading configuration file at {path}: {exc}") from exc
    suffix = path.suffix.lower()
    if suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            return {}
    elif suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    else:
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a mapping: {path}")
    return data


def load_config(path: Path) -> SiteConfig:
    data = read_config_file(path)
    try:
        fields = decode_fields(data, CONFIG_FIELDS)
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc
    config = SiteConfig(**fields)
    return SiteConfig(title=config.title, base_url=normalize_url(config.base_url))
