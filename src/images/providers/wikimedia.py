# src/images/providers/wikimedia.py
# Wikimedia Commons provider
# ==========================

"""
Commons is tried first because its images are free to reuse with
attribution and it has real photos of named people and places, which
stock sites rarely do. Its search is noisy, so results are not picked
directly: all file candidates are fetched with their licence, size and
category metadata in a single query and handed to ``CommonsScorer``.

Search strategy:

1. full-text search restricted to the File namespace
2. when that finds nothing, a broad search; the first matching category
   is expanded to its files, otherwise any files in the broad results
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Mapping, Optional

import requests

from src.contracts import ImageCandidateModel, SelectedImageModel

from ..commons_scorer import CommonsScorer, CommonsScoringOptions, build_candidate
from .base import ImageProvider

DEFAULT_API_URL = "https://commons.wikimedia.org/w/api.php"
DEFAULT_USER_AGENT = "NewsIngestionBot/1.0 (https://example.com/contact)"
FILE_NAMESPACE = 6
CATEGORY_NAMESPACE = 14
BROAD_SEARCH_LIMIT = 5
THUMB_WIDTH = 1600


def format_user_agent(value: Optional[str]) -> str:
    """Commons requires an identifying User-Agent with contact details.

    A bare contact string (an email or URL) is wrapped into the bot's
    product token; a complete agent string is used as given.
    """
    if not value:
        return DEFAULT_USER_AGENT
    if "/" in value and "(" in value:
        return value
    return f"NewsIngestionBot/1.0 ({value})"


class WikimediaProvider(ImageProvider):
    name: ClassVar[str] = "wikimedia"

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        *,
        scorer: Optional[CommonsScorer] = None,
        session: Optional[requests.Session] = None,
        logger_factory=None,
    ):
        if config is None:
            from config.settings import IMAGES_CONFIG

            config = IMAGES_CONFIG
        self.user_agent = format_user_agent(config.get("wikimedia_user_agent"))
        super().__init__(config, session=session, logger_factory=logger_factory)
        self.api_url = self.config.get("wikimedia_api_url") or DEFAULT_API_URL
        self.scorer = scorer or CommonsScorer(
            CommonsScoringOptions.from_config(self.config.get("commons") or {})
        )

    def _default_headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "User-Agent": self.user_agent}

    def _search(self, query: str) -> Optional[SelectedImageModel]:
        titles = self.find_file_titles(query)
        if not titles:
            return None

        candidates = self.fetch_candidates(titles)
        selected = self.scorer.select_best(query, candidates)
        if selected is None:
            self._emit_log(
                "info",
                "images.wikimedia.low_confidence",
                details={
                    "keyword": query,
                    "titles": len(titles),
                    "candidates": len(candidates),
                },
            )
        return selected

    # MediaWiki queries
    # =================

    def _query(self, **params: Any) -> Dict[str, Any]:
        payload = {"action": "query", "format": "json"}
        payload.update(params)
        data = self._get_json(self.api_url, payload, headers={"User-Agent": self.user_agent})
        return (data or {}).get("query") or {}

    def find_file_titles(self, query: str) -> List[str]:
        results = self._query(
            list="search",
            srsearch=query,
            srnamespace=FILE_NAMESPACE,
            srlimit=self.per_page,
        ).get("search") or []
        titles = self._titles_in_namespace(results, FILE_NAMESPACE)
        if titles:
            return titles[: self.per_page]

        self._emit_log("debug", "images.wikimedia.broad_search", details={"keyword": query})
        broad = self._query(list="search", srsearch=query, srlimit=BROAD_SEARCH_LIMIT).get(
            "search"
        ) or []
        categories = self._titles_in_namespace(broad, CATEGORY_NAMESPACE)
        if categories:
            return self.files_in_category(categories[0])
        return self._titles_in_namespace(broad, FILE_NAMESPACE)[: self.per_page]

    def files_in_category(self, category_title: str) -> List[str]:
        members = self._query(
            list="categorymembers",
            cmtitle=category_title,
            cmtype="file",
            cmlimit=self.per_page,
        ).get("categorymembers") or []
        return self._titles_in_namespace(members, FILE_NAMESPACE)[: self.per_page]

    def fetch_candidates(self, titles: List[str]) -> List[ImageCandidateModel]:
        pages = self._query(
            titles="|".join(titles),
            prop="imageinfo|categories",
            iiprop="url|size|mime|extmetadata|sha1",
            iiurlwidth=THUMB_WIDTH,
            cllimit="max",
        ).get("pages") or {}

        candidates = []
        for page in pages.values():
            if page.get("ns") != FILE_NAMESPACE:
                continue
            candidate = build_candidate(page)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    @staticmethod
    def _titles_in_namespace(items: List[Mapping[str, Any]], namespace: int) -> List[str]:
        return [
            str(item["title"])
            for item in items
            if item.get("ns") == namespace and item.get("title")
        ]
