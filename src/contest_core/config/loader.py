"""Config loader — reads YAML, applies CONTEST_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from contest_core.config.schema import AppConfig

# env var -> (section, key)
_ENV_OVERRIDES = {
    "CONTEST_DATABASE_URL": ("database", "url"),
    "CONTEST_LOG_LEVEL": ("logging", "level"),
    "CONTEST_LOG_FORMAT": ("logging", "format"),
    "CONTEST_QUOTES_BASE_URL": ("quotes", "base_url"),
}


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, returns defaults.

    Environment variable overrides:
        CONTEST_DATABASE_URL     -> database.url
        CONTEST_LOG_LEVEL        -> logging.level
        CONTEST_LOG_FORMAT       -> logging.format
        CONTEST_QUOTES_BASE_URL  -> quotes.base_url
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p) as f:
                data = yaml.safe_load(f) or {}

    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            data.setdefault(section, {})[key] = value

    return AppConfig.model_validate(data)
