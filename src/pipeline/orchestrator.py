# src/pipeline/orchestrator.py
# Sequential processing of one run's articles
# ===========================================

"""
For each collected article, in order:

    sanitize -> rewrite -> enforce limits -> resolve cover image

Articles are handled strictly one at a time because the rewrite API quota
is shared by the whole process. A failure at any step only affects that
article: it is written to the processed file with ``processed: null`` and
the run moves on. Image resolution can never fail an article; at worst the
article ships without a picture.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from src.contracts import (
    ProcessedArticleModel,
    ProcessedArticlesFileModel,
    ProcessedEntryModel,
    RawArticleModel,
    SelectedImageModel,
)
from src.images import ImageCascade
from src.lookups import LookupCache
from src.rewrite import RewriteGateway
from src.sanitizer import ArticleSanitizer
from src.utils.logger import StructuredLogMixin, get_logger

from .run_store import RunStore


@dataclass
class RunSummary:
    run_id: str
    total: int = 0
    processed: int = 0
    failed: int = 0
    resumed: int = 0
    stopped: bool = False
    duration: float = 0.0
    output_path: Optional[Path] = None
    failures: List[int] = field(default_factory=list)

    @property
    def state(self) -> str:
        return "stopped" if self.stopped else "completed"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "state": self.state,
            "total": self.total,
            "processed": self.processed,
            "failed": self.failed,
            "resumed": self.resumed,
            "duration_seconds": round(self.duration, 2),
            "output_path": str(self.output_path) if self.output_path else None,
        }


class RunOrchestrator(StructuredLogMixin):
    """Drives a run from its collected file to its processed file."""

    def __init__(
        self,
        *,
        gateway: Optional[RewriteGateway] = None,
        cascade: Optional[ImageCascade] = None,
        sanitizer: Optional[ArticleSanitizer] = None,
        store: Optional[RunStore] = None,
        tags: Optional[LookupCache] = None,
        config: Optional[Mapping[str, Any]] = None,
        sleep: Callable[[float], None] = time.sleep,
        should_stop: Optional[Callable[[], bool]] = None,
        persist_incrementally: bool = False,
        logger_factory=None,
    ):
        if config is None:
            from config.settings import REWRITE_CONFIG

            config = REWRITE_CONFIG
        self.config = dict(config)
        self.enabled = bool(self.config.get("enabled", True))
        self.request_delay = float(self.config.get("request_delay_ms", 60000)) / 1000.0

        self.logger_factory = logger_factory or get_logger()
        self.gateway = gateway or RewriteGateway(sleep=sleep, logger_factory=self.logger_factory)
        self.cascade = cascade or ImageCascade.from_config(logger_factory=self.logger_factory)
        self.sanitizer = sanitizer or ArticleSanitizer.from_config()
        self.store = store or RunStore()
        self.tags = tags

        self._sleep = sleep
        self.should_stop = should_stop or (lambda: False)
        self.persist_incrementally = persist_incrementally

        self.module_logger = self.logger_factory.create_module_logger("pipeline")
        self._run_id: Optional[str] = None

    def _log_context(self) -> Dict[str, Any]:
        return {"run_id": self._run_id}

    # Public API
    # ==========

    def process_run(self, run_id: str, *, resume: bool = False) -> Optional[RunSummary]:
        """Process ``[run_id]articles.json`` from the collected directory."""
        return self.process_file(run_id, resume=resume)

    def process_file(
        self,
        run_id: str,
        path: Optional[Union[str, Path]] = None,
        *,
        resume: bool = False,
    ) -> Optional[RunSummary]:
        """Process a collected file; ``None`` when there was nothing to do.

        Raises ``RunArtifactError`` only for I/O problems on the run's own
        files.
        """
        self._run_id = run_id
        try:
            if not self.enabled:
                self._emit_log("warning", "pipeline.rewrite_disabled")
                return None

            source = Path(path) if path else self.store.collected_path(run_id)
            collected = self.store.read_collected(run_id, source)
            if collected is None:
                self._emit_log(
                    "warning", "pipeline.collected_missing", details={"path": str(source)}
                )
                return None

            previous = self.store.read_processed(run_id) if resume else None
            return self._process_articles(run_id, collected.articles, previous)
        finally:
            self._run_id = None

    def process_article(
        self,
        raw: Mapping[str, Any],
        *,
        article_index: Optional[int] = None,
        available_tags: Sequence[str] = (),
    ) -> Optional[ProcessedArticleModel]:
        """Run one article through every stage; ``None`` marks it failed."""

        try:
            article = RawArticleModel.model_validate(dict(raw))
        except ValidationError as exc:
            self._emit_log(
                "error",
                "pipeline.article.invalid",
                article_index=article_index,
                details={"error": str(exc)},
            )
            return None

        try:
            body = self.sanitizer.sanitize(article.body)
            stats = getattr(self.sanitizer, "last_stats", None)
            if stats is not None:
                self._emit_log(
                    "debug",
                    "pipeline.article.sanitized",
                    article_index=article_index,
                    source_id=article.source_id,
                    details=asdict(stats),
                )
            rewrite = self.gateway.rewrite(
                article,
                body=body,
                available_tags=available_tags,
                article_index=article_index,
            )
            if rewrite is None:
                self._emit_log(
                    "error",
                    "pipeline.article.failed",
                    article_index=article_index,
                    source_id=article.source_id,
                    details={"stage": "rewrite", "url": article.url},
                )
                return None

            image = self._resolve_image(rewrite.image_keyword, article.category, article_index)
            processed = ProcessedArticleModel.from_rewrite(
                rewrite, category=article.category, image=image
            )
        except Exception as exc:  # per-article isolation boundary
            self._emit_log(
                "error",
                "pipeline.article.failed",
                article_index=article_index,
                source_id=article.source_id,
                details={"stage": "unexpected", "error": repr(exc), "url": article.url},
            )
            return None

        self._emit_log(
            "info",
            "pipeline.article.processed",
            article_index=article_index,
            source_id=article.source_id,
            details={
                "title": processed.title,
                "image_source": processed.image.source if processed.image else None,
            },
        )
        return processed

    # Internals
    # =========

    def _process_articles(
        self,
        run_id: str,
        articles: List[Dict[str, Any]],
        previous: Optional[ProcessedArticlesFileModel],
    ) -> RunSummary:
        started = time.perf_counter()
        summary = RunSummary(run_id=run_id, total=len(articles))
        available_tags = self.tags.labels() if self.tags is not None else []
        entries: List[ProcessedEntryModel] = []

        self._emit_log("info", "pipeline.run.started", details={"articles": len(articles)})

        called = False
        for index, raw in enumerate(articles):
            if self.should_stop():
                summary.stopped = True
                self._emit_log("warning", "pipeline.run.stopped", article_index=index)
                break

            reused = self._resumable_entry(previous, index, raw)
            if reused is not None:
                entries.append(reused)
                summary.resumed += 1
                summary.processed += 1
                continue

            # Spacing between rewrite calls, never before the first one.
            if called and self.request_delay > 0:
                self._sleep(self.request_delay)
            called = True

            processed = self.process_article(
                raw, article_index=index, available_tags=available_tags
            )
            entries.append(ProcessedEntryModel(original=dict(raw), processed=processed))
            if processed is None:
                summary.failed += 1
                summary.failures.append(index)
            else:
                summary.processed += 1

            if self.persist_incrementally:
                self.store.write_processed(
                    run_id, self._with_untouched_tail(entries, articles, previous)
                )

        summary.output_path = self.store.write_processed(
            run_id, self._with_untouched_tail(entries, articles, previous)
        )
        summary.duration = time.perf_counter() - started
        self._emit_log("info", "pipeline.run.completed", details=summary.as_dict())
        return summary

    def _resolve_image(
        self, keyword: str, category: Optional[str], article_index: Optional[int]
    ) -> Optional[SelectedImageModel]:
        try:
            return self.cascade.resolve(keyword, category)
        except Exception as exc:  # a missing image never fails the article
            self._emit_log(
                "error",
                "pipeline.image.failed",
                article_index=article_index,
                details={"keyword": keyword, "error": repr(exc)},
            )
            return None

    @staticmethod
    def _with_untouched_tail(
        entries: List[ProcessedEntryModel],
        articles: Sequence[Mapping[str, Any]],
        previous: Optional[ProcessedArticlesFileModel],
    ) -> List[ProcessedEntryModel]:
        """Append earlier results for articles this call has not reached yet.

        Copying stops at the first index whose URL no longer matches, so
        entries stay aligned with the collected file.
        """
        if previous is None:
            return entries
        merged = list(entries)
        for index in range(len(entries), min(len(articles), len(previous.articles))):
            entry = previous.articles[index]
            if entry.original.get("url") != articles[index].get("url"):
                break
            merged.append(entry)
        return merged

    @staticmethod
    def _resumable_entry(
        previous: Optional[ProcessedArticlesFileModel],
        index: int,
        raw: Mapping[str, Any],
    ) -> Optional[ProcessedEntryModel]:
        if previous is None or index >= len(previous.articles):
            return None
        entry = previous.articles[index]
        if entry.processed is None:
            return None
        if entry.original.get("url") != raw.get("url"):
            return None
        return entry
