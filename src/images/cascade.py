# src/images/cascade.py
# Ordered image provider cascade
# ==============================

"""
Providers are consulted strictly in configured order and the first hit
wins. Order is an editorial decision (free-licence archive before stock
photos), so providers are never raced. A provider failing in any way only
costs that provider's turn; an article without an image is still a valid
article.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Mapping, Optional, Sequence

import requests

from src.contracts import SelectedImageModel
from src.utils.logger import StructuredLogMixin, get_logger

from .providers import PROVIDER_CLASSES, ImageProvider


class ImageCascade(StructuredLogMixin):
    """Resolve a cover image by trying providers one after another."""

    def __init__(self, providers: Sequence[ImageProvider], *, logger_factory=None):
        self.providers = list(providers)
        self.logger_factory = logger_factory or get_logger()
        self.module_logger = self.logger_factory.create_module_logger("images.cascade")
        self.stats: Dict[str, int] = {"resolved": 0, "no_image": 0, "provider_errors": 0}

    @classmethod
    def from_config(
        cls,
        config: Optional[Mapping[str, Any]] = None,
        *,
        session: Optional[requests.Session] = None,
        logger_factory=None,
    ) -> "ImageCascade":
        """Instantiate providers in ``provider_order``."""
        if config is None:
            from config.settings import IMAGES_CONFIG

            config = IMAGES_CONFIG
        providers = [
            PROVIDER_CLASSES[name](config, session=session, logger_factory=logger_factory)
            for name in config.get("provider_order") or list(PROVIDER_CLASSES)
        ]
        return cls(providers, logger_factory=logger_factory)

    def resolve(
        self, keyword: str, category: Optional[str] = None
    ) -> Optional[SelectedImageModel]:
        """Return the first provider's image for ``keyword``, or ``None``.

        ``category`` is carried into the logs only; searches use the keyword.
        """
        query = (keyword or "").strip()
        if not query:
            self._emit_log("warning", "images.cascade.empty_keyword", details={"category": category})
            self.stats["no_image"] += 1
            return None

        tried = []
        for provider in self.providers:
            if not provider.available:
                self._emit_log("debug", "images.cascade.provider_skipped", provider=provider.name)
                continue

            tried.append(provider.name)
            started = time.perf_counter()
            try:
                image = provider.search(query)
            except Exception as exc:  # one provider never sinks the cascade
                self.stats["provider_errors"] += 1
                self._emit_log(
                    "error",
                    "images.cascade.provider_error",
                    provider=provider.name,
                    details={"keyword": query, "error": repr(exc)},
                )
                continue

            if image is not None:
                self.stats["resolved"] += 1
                self._emit_log(
                    "info",
                    "images.cascade.resolved",
                    provider=provider.name,
                    latency=round(time.perf_counter() - started, 3),
                    details={"keyword": query, "category": category},
                )
                return image

        self.stats["no_image"] += 1
        self._emit_log(
            "warning",
            "images.cascade.no_image",
            details={"keyword": query, "category": category, "tried": tried},
        )
        return None
