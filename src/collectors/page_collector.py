# src/collectors/page_collector.py
# Generic HTML page collector
# ===========================

"""
One collector serves every news site in ``config.sources``. A source entry
is pure data (listing URL, link selectors, article selectors) and this
class supplies the behaviour:

1. fetch the section listing and pick up to ``count`` article links
2. fetch each article and extract title, excerpt, category and body
3. write ``<collected_dir>/<source>/<source>-<timestamp>.json``
4. prune older files of that source

A single article that cannot be fetched or parsed is recorded as failed
and the source carries on with the next link.
"""

from __future__ import annotations

import json
import random
import re
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional
from urllib.parse import urldefrag, urljoin

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter

from src.pipeline.run_store import write_json_atomic
from src.utils.datetime_utils import file_timestamp, isoformat_utc, parse_to_utc, utc_now
from src.utils.text_cleaner import join_paragraphs, normalize_text

from .base_collector import BaseCollector, empty_source_result

if TYPE_CHECKING:  # pragma: no cover - typing only
    from src.utils.logger import NewsroomLogger

RETRYABLE_STATUS = (429, 500, 502, 503, 504)
DEFAULT_ARTICLE_COUNT = 5
_ARTICLE_TYPES = ("NewsArticle", "Article", "ReportageNewsArticle", "BlogPosting")


class ArticleExtractionError(ValueError):
    """An article page did not contain the minimum fields (a title)."""


class PageCollector(BaseCollector):
    """Scrapes listing and article pages described by source catalogue entries."""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger_factory: Optional["NewsroomLogger"] = None,
    ) -> None:
        super().__init__(logger_factory=logger_factory)
        if config is None:
            from config.settings import COLLECTION_CONFIG

            config = COLLECTION_CONFIG
        self.config = dict(config)
        self.collected_dir = Path(self.config["collected_dir"])
        self.timeout = float(
            self.config.get("request_timeout", self.config.get("request_timeout_seconds", 30.0))
        )
        self.max_retries = int(self.config.get("max_retries", 3))
        self.keep_latest_files = int(self.config.get("keep_latest_files", 1))
        self.max_response_bytes = int(self.config.get("max_response_bytes", 10 * 1024 * 1024))
        self.session = session or self._create_session()
        self._sleep = sleep

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "User-Agent": self.config["user_agent"],
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.9",
                "Cache-Control": "no-cache",
            }
        )
        adapter = HTTPAdapter(pool_connections=10, pool_maxsize=20)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _backoff_sleep(self, attempt: int) -> None:
        base = self.config.get("backoff_base", 0.5)
        max_b = self.config.get("backoff_max", 10.0)
        jitter = random.uniform(0, self.config.get("jitter_max", 0.3))
        self._sleep(min(max_b, (base * (2**attempt)) + jitter))

    # Template method implementation
    # ==============================

    def collect_from_source(
        self, source_id: str, source_config: Dict[str, Any]
    ) -> Dict[str, Any]:
        started = time.perf_counter()
        result = empty_source_result(source_id)
        count = int(source_config.get("count", DEFAULT_ARTICLE_COUNT))

        listing_html = self.fetch_page(source_config["listing_url"], source_id=source_id)
        if listing_html is None:
            result.update(
                success=False,
                error_message="listing page could not be fetched",
                processing_time=time.perf_counter() - started,
            )
            return result

        links = self.extract_links(listing_html, source_config, limit=count)
        result["articles_found"] = len(links)

        articles: List[Dict[str, Any]] = []
        failures: List[Dict[str, Any]] = []
        for index, link in enumerate(links):
            try:
                article = self.collect_article(link["url"], source_config, source_id=source_id)
            except (ArticleExtractionError, requests.exceptions.RequestException) as exc:
                failures.append({"url": link["url"], "title": link.get("title"), "error": str(exc)})
                self._emit_log(
                    "warning",
                    "collector.article.failed",
                    source_id=source_id,
                    details={"index": index, "url": link["url"], "error": str(exc)},
                )
                continue
            articles.append(article)

        output_path = self.save_source_file(source_id, source_config, articles, failures)
        self.prune_source_files(source_id)

        result.update(
            articles=articles,
            articles_saved=len(articles),
            output_path=str(output_path),
            processing_time=time.perf_counter() - started,
        )
        return result

    def collect_article(
        self, url: str, source_config: Dict[str, Any], *, source_id: Optional[str] = None
    ) -> Dict[str, Any]:
        html = self.fetch_page(url, source_id=source_id)
        if html is None:
            raise ArticleExtractionError(f"article page could not be fetched: {url}")
        article = self.extract_article(html, url, source_config)
        article["sourceId"] = source_id
        article["scrapedAt"] = isoformat_utc(utc_now())
        return article

    # HTTP
    # ====

    def fetch_page(self, url: str, *, source_id: Optional[str] = None) -> Optional[str]:
        """GET ``url`` with retries on 429/5xx and network errors."""

        try:
            for attempt in range(self.max_retries + 1):
                try:
                    response = self.session.get(url, timeout=self.timeout)
                except (
                    requests.exceptions.Timeout,
                    requests.exceptions.ConnectionError,
                ) as exc:
                    if attempt < self.max_retries:
                        self._backoff_sleep(attempt)
                        continue
                    self._emit_log(
                        "warning",
                        "collector.page.retry_exhausted",
                        source_id=source_id,
                        details={"error": str(exc), "url": url},
                    )
                    return None

                if response.status_code in RETRYABLE_STATUS:
                    if attempt < self.max_retries:
                        self._backoff_sleep(attempt)
                        continue
                    self._emit_log(
                        "warning",
                        "collector.page.status_retry_exhausted",
                        source_id=source_id,
                        details={"status_code": response.status_code, "url": url},
                    )
                    return None

                response.raise_for_status()
                if len(response.content) > self.max_response_bytes:
                    self._emit_log(
                        "warning",
                        "collector.page.too_large",
                        source_id=source_id,
                        details={"bytes": len(response.content), "url": url},
                    )
                    return None
                return response.text
        except requests.exceptions.RequestException as exc:
            self._emit_log(
                "error",
                "collector.page.fetch_exception",
                source_id=source_id,
                details={"error": str(exc), "url": url},
            )
        return None

    # Extraction
    # ==========

    def extract_links(
        self, html: str, source_config: Dict[str, Any], *, limit: int
    ) -> List[Dict[str, str]]:
        """Return up to ``limit`` unique ``{url, title}`` article links."""

        soup = BeautifulSoup(html, "html.parser")
        base_url = source_config["listing_url"]
        must_contain = source_config.get("url_must_contain") or ""
        excluded = [term.lower() for term in source_config.get("exclude_title_terms") or []]

        links: List[Dict[str, str]] = []
        seen = set()
        for selector in source_config.get("link_selectors") or []:
            for anchor in soup.select(selector):
                href = anchor.get("href")
                if not href:
                    continue
                url = urldefrag(urljoin(base_url, href))[0]
                if must_contain and must_contain not in url:
                    continue
                if url in seen:
                    continue
                title = normalize_text(anchor.get_text(" "))
                if any(term in title.lower() for term in excluded):
                    continue
                seen.add(url)
                links.append({"url": url, "title": title})
                if len(links) >= limit:
                    return links
        return links

    def extract_article(
        self, html: str, url: str, source_config: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Pull title, excerpt, category, body and date out of an article page.

        The visible headline beats the JSON-LD one. Excerpt falls back from
        JSON-LD to the meta description to the first body paragraph. The
        section category configured for the source wins over page hints.
        """
        soup = BeautifulSoup(html, "html.parser")
        node = self._json_ld_article(soup) if source_config.get("use_json_ld", True) else {}

        title = self._first_text(soup, source_config.get("title_selectors") or ["h1"])
        if not title:
            title = normalize_text(str(node.get("headline") or ""))
        if not title:
            raise ArticleExtractionError(f"could not determine article title: {url}")

        paragraphs = self._body_paragraphs(soup, source_config)

        excerpt = normalize_text(str(node.get("description") or ""))
        if not excerpt:
            excerpt = self._meta_content(soup, source_config.get("description_selectors") or [])
        if not excerpt and paragraphs:
            excerpt = paragraphs[0]

        category = source_config.get("category") or self._page_category(soup, node, source_config)

        published = parse_to_utc(node.get("datePublished"))
        return {
            "url": url,
            "title": title,
            "excerpt": excerpt,
            "category": category or None,
            "body": join_paragraphs(paragraphs),
            "publishedAt": isoformat_utc(published) if published else None,
        }

    @staticmethod
    def _first_text(soup: BeautifulSoup, selectors: Iterable[str]) -> str:
        for selector in selectors:
            element = soup.select_one(selector)
            if element is not None:
                text = normalize_text(element.get_text(" "))
                if text:
                    return text
        return ""

    @staticmethod
    def _meta_content(soup: BeautifulSoup, selectors: Iterable[str]) -> str:
        for selector in selectors:
            element = soup.select_one(selector)
            if element is not None and element.get("content"):
                return normalize_text(element["content"])
        return ""

    @staticmethod
    def _body_paragraphs(soup: BeautifulSoup, source_config: Dict[str, Any]) -> List[str]:
        for selector in source_config.get("body_container_selectors") or []:
            container = soup.select_one(selector)
            if container is None:
                continue
            paragraphs = [normalize_text(p.get_text(" ")) for p in container.find_all("p")]
            paragraphs = [text for text in paragraphs if text]
            if paragraphs:
                return paragraphs

        for selector in source_config.get("body_fallback_selectors") or []:
            paragraphs = [normalize_text(p.get_text(" ")) for p in soup.select(selector)]
            paragraphs = [text for text in paragraphs if text]
            if paragraphs:
                return paragraphs
        return []

    def _page_category(
        self, soup: BeautifulSoup, node: Dict[str, Any], source_config: Dict[str, Any]
    ) -> str:
        section = node.get("articleSection") or node.get("section")
        if isinstance(section, list):
            section = section[0] if section else None
        if section:
            return normalize_text(str(section))
        crumbs = [
            normalize_text(element.get_text(" "))
            for selector in source_config.get("breadcrumb_selectors") or []
            for element in soup.select(selector)
        ]
        crumbs = [crumb for crumb in crumbs if crumb]
        return crumbs[-1] if crumbs else ""

    @staticmethod
    def _json_ld_article(soup: BeautifulSoup) -> Dict[str, Any]:
        """Return the first NewsArticle-like JSON-LD node, or ``{}``."""

        for script in soup.find_all("script", type="application/ld+json"):
            raw = script.string or script.get_text()
            if not raw or not raw.strip():
                continue
            try:
                data = json.loads(raw)
            except ValueError:
                continue
            if isinstance(data, list):
                nodes = data
            elif isinstance(data, dict):
                nodes = data.get("@graph") or [data]
            else:
                nodes = []
            dict_nodes = [item for item in nodes if isinstance(item, dict)]
            for item in dict_nodes:
                kind = item.get("@type")
                kinds = kind if isinstance(kind, list) else [kind]
                if any(value in _ARTICLE_TYPES for value in kinds):
                    return item
            if dict_nodes:
                return dict_nodes[0]
        return {}

    # Per-source files
    # ================

    def source_dir(self, source_id: str) -> Path:
        return self.collected_dir / source_id

    def save_source_file(
        self,
        source_id: str,
        source_config: Dict[str, Any],
        articles: List[Dict[str, Any]],
        failures: List[Dict[str, Any]],
    ) -> Path:
        saved_at = utc_now()
        path = self.source_dir(source_id) / f"{source_id}-{file_timestamp(saved_at)}.json"
        payload = {
            "metadata": {
                "savedAt": isoformat_utc(saved_at),
                "source": source_id,
                "name": source_config.get("name"),
                "listingUrl": source_config.get("listing_url"),
                "totalArticlesScraped": len(articles),
                "totalArticlesFailed": len(failures),
            },
            "articles": articles,
            "failures": failures,
        }
        write_json_atomic(path, payload)
        return path

    def source_files(self, source_id: str) -> List[Path]:
        """Saved files of ``source_id``, newest first."""
        directory = self.source_dir(source_id)
        if not directory.exists():
            return []
        files = [
            path
            for path in directory.glob(f"{source_id}-*.json")
            if re.match(rf"^{re.escape(source_id)}-\d", path.name)
        ]
        return sorted(files, key=lambda path: (path.stat().st_mtime, path.name), reverse=True)

    def prune_source_files(self, source_id: str) -> List[Path]:
        """Delete all but the newest ``keep_latest_files`` files of a source."""
        removed = []
        for path in self.source_files(source_id)[self.keep_latest_files :]:
            try:
                path.unlink()
                removed.append(path)
            except OSError as exc:
                self._emit_log(
                    "warning",
                    "collector.files.prune_failed",
                    source_id=source_id,
                    details={"path": str(path), "error": str(exc)},
                )
        return removed
