"""Configuration tooling for the newsroom pipeline."""
from __future__ import annotations

from .config_manager import ConfigError, load_config
from .config_schema import Config, DEFAULT_CONFIG, iter_field_docs

__all__ = [
    "load_config",
    "Config",
    "ConfigError",
    "DEFAULT_CONFIG",
    "iter_field_docs",
]
