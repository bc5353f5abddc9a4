"""Config package with lazy attribute loading to avoid heavy imports during packaging."""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Iterable

__all__ = [
    "COLLECTION_CONFIG",
    "REWRITE_CONFIG",
    "RATE_LIMITING_CONFIG",
    "IMAGES_CONFIG",
    "SANITIZER_CONFIG",
    "LOOKUPS_CONFIG",
    "RUNS_CONFIG",
    "LOGGING_CONFIG",
    "COLLECTED_DIR",
    "ENVIRONMENT",
    "IS_PRODUCTION",
    "IS_STAGING",
    "DEBUG",
    "DISPLAY_TIMEZONE",
    "validate_config",
    "ALL_SOURCES",
    "get_source",
    "get_sources_by_network",
    "validate_sources",
    "get_run",
    "list_runs",
    "enabled_sources",
    "MIN_PYTHON_VERSION",
    "MIN_PYTHON_VERSION_STR",
    "PROJECT_VERSION",
    "PYTHON_REQUIRES_SPECIFIER",
    "__version__",
]

_MODULE_ATTRS: Dict[str, Iterable[str]] = {
    "config.settings": [
        "COLLECTION_CONFIG",
        "REWRITE_CONFIG",
        "RATE_LIMITING_CONFIG",
        "IMAGES_CONFIG",
        "SANITIZER_CONFIG",
        "LOOKUPS_CONFIG",
        "RUNS_CONFIG",
        "LOGGING_CONFIG",
        "COLLECTED_DIR",
        "ENVIRONMENT",
        "IS_PRODUCTION",
        "IS_STAGING",
        "DEBUG",
        "DISPLAY_TIMEZONE",
        "validate_config",
    ],
    "config.sources": [
        "ALL_SOURCES",
        "get_source",
        "get_sources_by_network",
        "validate_sources",
    ],
    "config.runs": [
        "get_run",
        "list_runs",
        "enabled_sources",
    ],
    "config.version": [
        "MIN_PYTHON_VERSION",
        "MIN_PYTHON_VERSION_STR",
        "PROJECT_VERSION",
        "PYTHON_REQUIRES_SPECIFIER",
        "__version__",
    ],
}

_ATTR_TO_MODULE: Dict[str, str] = {
    attribute: module for module, attributes in _MODULE_ATTRS.items() for attribute in attributes
}


def __getattr__(name: str) -> Any:
    module_name = _ATTR_TO_MODULE.get(name)
    if module_name is None:
        raise AttributeError(f"module 'config' has no attribute {name!r}")
    module = import_module(module_name)
    for attribute in _MODULE_ATTRS[module_name]:
        globals()[attribute] = getattr(module, attribute)
    return globals()[name]


__author__ = "Newsroom Pipeline Team"
