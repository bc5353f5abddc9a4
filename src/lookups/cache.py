# src/lookups/cache.py
# File-backed lookup tables for CMS entities
# ==========================================

"""
The CMS sync job dumps tags, categories and authors to small JSON files:

    {"lastUpdated": "...", "tags": [{"_id": "...", "slug": "...", "title": "..."}]}

``LookupCache`` reads one of those files into a label -> id table. Loading
is explicit: nothing is read until ``load()`` (or the first lookup) and the
table is only replaced by ``refresh()`` or dropped by ``invalidate()``, so
callers decide when a long-lived process sees a newer dump.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from src.utils.logger import StructuredLogMixin, get_logger
from src.utils.text_cleaner import slugify


class LookupCache(StructuredLogMixin):
    """Case-insensitive slug/label -> id table backed by one JSON file."""

    def __init__(
        self,
        path: Union[str, Path],
        entity_key: str,
        label_fields: Sequence[str] = ("title",),
        *,
        logger_factory=None,
    ):
        self.path = Path(path)
        self.entity_key = entity_key
        self.label_fields = tuple(label_fields)
        self.last_updated: Optional[str] = None

        self._ids: Optional[Dict[str, str]] = None
        self._labels: List[str] = []

        self.logger_factory = logger_factory or get_logger()
        self.module_logger = self.logger_factory.create_module_logger("lookups")

    def _log_context(self) -> Dict[str, Any]:
        return {"entity": self.entity_key}

    @property
    def loaded(self) -> bool:
        return self._ids is not None

    def load(self) -> "LookupCache":
        """Read the file once; later calls are no-ops until invalidated."""
        if self._ids is None:
            self._read()
        return self

    def refresh(self) -> "LookupCache":
        """Re-read the file unconditionally."""
        self._read()
        return self

    def invalidate(self) -> None:
        self._ids = None
        self._labels = []
        self.last_updated = None

    def resolve(self, value: Optional[str]) -> Optional[str]:
        """Return the id for ``value`` by lower-cased key, then by slug."""
        if not value:
            return None
        ids = self._table()
        key = value.strip().lower()
        return ids.get(key) or ids.get(slugify(key))

    def resolve_many(self, values: Sequence[str]) -> List[str]:
        """Resolve ``values`` in order, dropping unknown and duplicate ids."""
        resolved: List[str] = []
        for value in values:
            entity_id = self.resolve(value)
            if entity_id is None:
                self._emit_log("warning", "lookups.unknown_value", details={"value": value})
            elif entity_id not in resolved:
                resolved.append(entity_id)
        return resolved

    def labels(self) -> List[str]:
        """Display labels in file order."""
        self._table()
        return list(self._labels)

    def __len__(self) -> int:
        return len(self._labels) if self._ids is not None else 0

    # Internals
    # =========

    def _table(self) -> Dict[str, str]:
        if self._ids is None:
            self._read()
        return self._ids or {}

    def _read(self) -> None:
        self._ids = {}
        self._labels = []
        self.last_updated = None

        if not self.path.exists():
            self._emit_log("warning", "lookups.file_missing", details={"path": str(self.path)})
            return

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            self._emit_log(
                "error",
                "lookups.file_unreadable",
                details={"path": str(self.path), "error": str(exc)},
            )
            return

        entities = data.get(self.entity_key) if isinstance(data, Mapping) else None
        if not isinstance(entities, list):
            self._emit_log("warning", "lookups.invalid_format", details={"path": str(self.path)})
            return

        for entity in entities:
            if not isinstance(entity, Mapping) or not entity.get("_id"):
                continue
            entity_id = str(entity["_id"])
            slug = entity.get("slug")
            if isinstance(slug, str) and slug.strip():
                self._ids[slug.strip().lower()] = entity_id
            label = next(
                (
                    str(entity[field]).strip()
                    for field in self.label_fields
                    if isinstance(entity.get(field), str) and entity[field].strip()
                ),
                None,
            )
            if label:
                self._ids[label.lower()] = entity_id
                self._labels.append(label)

        self.last_updated = data.get("lastUpdated")
        self._emit_log(
            "info",
            "lookups.loaded",
            details={"count": len(entities), "last_updated": self.last_updated},
        )


def _lookup_path(name: str, config: Optional[Mapping[str, Any]]) -> Path:
    if config is None:
        from config.settings import LOOKUPS_CONFIG

        config = LOOKUPS_CONFIG
    return Path(config[name])


def tags_cache(config: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> LookupCache:
    return LookupCache(_lookup_path("tags", config), "tags", ("title",), **kwargs)


def categories_cache(config: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> LookupCache:
    return LookupCache(_lookup_path("categories", config), "categories", ("title",), **kwargs)


def authors_cache(config: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> LookupCache:
    return LookupCache(_lookup_path("authors", config), "authors", ("name", "title"), **kwargs)
