"""Configuration system."""

from contest_core.config.loader import load_config
from contest_core.config.schema import AppConfig

__all__ = ["AppConfig", "load_config"]
