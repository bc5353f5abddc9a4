# src/images/providers/base.py
# Shared plumbing for image providers
# ===================================

"""
Every provider answers one question: "give me a usable cover image for
this keyword, or nothing". The base class owns the HTTP session, the
timeout and the error boundary so concrete providers only describe their
API and how to map its records.
"""

from __future__ import annotations

import random
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, TypeVar

import requests
from requests.adapters import HTTPAdapter

from src.contracts import SelectedImageModel
from src.utils.logger import StructuredLogMixin, get_logger

T = TypeVar("T")


class ImageProvider(StructuredLogMixin):
    """Base class for a single image search backend."""

    name: ClassVar[str] = "provider"

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        *,
        session: Optional[requests.Session] = None,
        logger_factory=None,
    ):
        if config is None:
            from config.settings import IMAGES_CONFIG

            config = IMAGES_CONFIG
        self.config = dict(config)
        self.per_page = max(int(self.config.get("per_page", 5)), 3)
        self.timeout = float(self.config.get("request_timeout_seconds", 15.0))
        self.session = session or self._create_session()

        self.logger_factory = logger_factory or get_logger()
        self.module_logger = self.logger_factory.create_module_logger(f"images.{self.name}")

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(self._default_headers())
        adapter = HTTPAdapter(pool_connections=2, pool_maxsize=4)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def _default_headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    def _log_context(self) -> Dict[str, Any]:
        return {"provider": self.name}

    @property
    def available(self) -> bool:
        """``False`` when the provider lacks credentials and must be skipped."""
        return True

    def search(self, keyword: str) -> Optional[SelectedImageModel]:
        """Return an image for ``keyword`` or ``None``; never raises."""

        query = (keyword or "").strip()
        if not query:
            return None
        if not self.available:
            self._emit_log("debug", "images.provider.unavailable")
            return None

        try:
            result = self._search(query)
        except requests.exceptions.RequestException as exc:
            self._emit_log(
                "error",
                "images.provider.request_failed",
                details={"keyword": query, "error": str(exc)},
            )
            return None
        except ValueError as exc:
            # Undecodable JSON and contract validation errors both land here.
            self._emit_log(
                "error",
                "images.provider.bad_payload",
                details={"keyword": query, "error": str(exc)},
            )
            return None

        if result is None:
            self._emit_log("debug", "images.provider.no_result", details={"keyword": query})
        else:
            self._emit_log(
                "info",
                "images.provider.found",
                details={"keyword": query, "url": result.url, "score": result.score},
            )
        return result

    def _search(self, query: str) -> Optional[SelectedImageModel]:
        raise NotImplementedError

    def _get_json(
        self,
        url: str,
        params: Mapping[str, Any],
        headers: Optional[Mapping[str, str]] = None,
    ) -> Optional[Dict[str, Any]]:
        """GET ``url`` and decode JSON; HTTP errors are logged and give ``None``."""

        response = self.session.get(
            url, params=dict(params), headers=dict(headers or {}), timeout=self.timeout
        )
        if response.status_code >= 400:
            self._emit_log(
                "error",
                "images.provider.http_error",
                details={"status_code": response.status_code, "url": url},
            )
            return None
        data = response.json()
        return data if isinstance(data, dict) else None


class StockPhotoProvider(ImageProvider):
    """Keyed stock-photo API; picks at random among the top results."""

    api_key_field: ClassVar[str] = ""

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        *,
        api_key: Optional[str] = None,
        rng: Optional[random.Random] = None,
        session: Optional[requests.Session] = None,
        logger_factory=None,
    ):
        super().__init__(config, session=session, logger_factory=logger_factory)
        self.api_key = api_key if api_key is not None else self.config.get(self.api_key_field)
        self.pick_top = max(int(self.config.get("stock_pick_top", 3)), 1)
        self.rng = rng or random.Random()

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _pick(self, items: Sequence[T]) -> Optional[T]:
        top: List[T] = list(items[: self.pick_top])
        if not top:
            return None
        return self.rng.choice(top)
