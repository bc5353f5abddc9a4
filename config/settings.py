"""Project configuration facade backed by newsroom.config_manager."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from newsroom.config_manager import Config, ConfigError, load_config

CONFIG: Config = load_config()

BASE_DIR = Path(__file__).resolve().parent.parent
COLLECTED_DIR = CONFIG.paths.collected_dir
LOGS_DIR = CONFIG.paths.logs_dir

for directory in (COLLECTED_DIR, LOGS_DIR):
    directory.mkdir(parents=True, exist_ok=True)

ENVIRONMENT = CONFIG.app.environment
DEBUG = CONFIG.app.debug
DISPLAY_TIMEZONE = CONFIG.app.timezone
IS_PRODUCTION = ENVIRONMENT == "production"
IS_STAGING = ENVIRONMENT == "staging"

COLLECTION_CONFIG: Dict[str, Any] = CONFIG.collection.model_dump(mode="python")
COLLECTION_CONFIG["request_timeout"] = COLLECTION_CONFIG["request_timeout_seconds"]
COLLECTION_CONFIG["collected_dir"] = COLLECTED_DIR

REWRITE_CONFIG: Dict[str, Any] = CONFIG.rewrite.model_dump(mode="python")

RATE_LIMITING_CONFIG: Dict[str, Any] = CONFIG.rate_limiting.model_dump(mode="python")

IMAGES_CONFIG: Dict[str, Any] = CONFIG.images.model_dump(mode="python")
SANITIZER_CONFIG: Dict[str, Any] = CONFIG.sanitizer.model_dump(mode="python")

LOOKUPS_CONFIG: Dict[str, Any] = {
    name: COLLECTED_DIR / filename
    for name, filename in (
        ("categories", CONFIG.lookups.categories_file),
        ("tags", CONFIG.lookups.tags_file),
        ("authors", CONFIG.lookups.authors_file),
    )
}

RUNS_CONFIG: List[Dict[str, Any]] = [run.model_dump(mode="python") for run in CONFIG.runs]

LOGGING_CONFIG: Dict[str, Any] = {
    "level": CONFIG.logging.level,
    "file_path": str(CONFIG.logging.file_path) if CONFIG.logging.file_path else None,
    "max_file_size": f"{CONFIG.logging.max_file_size_mb} MB",
    "retention": f"{CONFIG.logging.retention_days} days",
    "format": CONFIG.logging.format,
}


def validate_config(config: Config | None = None) -> None:
    """Execute domain specific consistency checks."""

    from config.sources import ALL_SOURCES

    cfg = config or CONFIG
    if cfg.collection.backoff_base > cfg.collection.backoff_max:
        raise ConfigError("collection.backoff_base must not exceed collection.backoff_max")
    if cfg.images.stock_pick_top > cfg.images.per_page:
        raise ConfigError("images.stock_pick_top must not exceed images.per_page")
    if cfg.rewrite.enabled and not cfg.rewrite.api_key and cfg.app.environment == "production":
        raise ConfigError("rewrite.api_key is required in production when rewrite is enabled")
    unknown = sorted(
        {
            entry.source
            for run in cfg.runs
            for entry in run.sources
            if entry.source not in ALL_SOURCES
        }
    )
    if unknown:
        raise ConfigError("runs reference unknown sources: " + ", ".join(unknown))


__all__ = [
    "BASE_DIR",
    "CONFIG",
    "COLLECTED_DIR",
    "LOGS_DIR",
    "ENVIRONMENT",
    "DEBUG",
    "IS_PRODUCTION",
    "IS_STAGING",
    "COLLECTION_CONFIG",
    "REWRITE_CONFIG",
    "RATE_LIMITING_CONFIG",
    "IMAGES_CONFIG",
    "SANITIZER_CONFIG",
    "LOOKUPS_CONFIG",
    "RUNS_CONFIG",
    "LOGGING_CONFIG",
    "validate_config",
]
