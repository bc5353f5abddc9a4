"""Contracts for the per-run collected and processed artifact files."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from .article import ProcessedArticleModel
from .common import CamelModel


class CollectedArticlesFileModel(CamelModel):
    """``{runId, collectedAt, totalArticles, articles}``.

    Articles stay raw dicts: one malformed record must not make the whole
    file unreadable.
    """

    run_id: str
    collected_at: str
    total_articles: int = 0
    articles: List[Dict[str, Any]] = Field(default_factory=list)

    @model_validator(mode="after")
    def sync_total(self) -> "CollectedArticlesFileModel":
        self.total_articles = len(self.articles)
        return self


class ProcessedEntryModel(CamelModel):
    original: Dict[str, Any]
    processed: Optional[ProcessedArticleModel] = None


class ProcessedArticlesFileModel(CamelModel):
    """``{runId, processedAt, totalArticles, articles: [{original, processed}]}``."""

    run_id: str
    processed_at: str
    total_articles: int = 0
    articles: List[ProcessedEntryModel] = Field(default_factory=list)

    @model_validator(mode="after")
    def sync_total(self) -> "ProcessedArticlesFileModel":
        self.total_articles = len(self.articles)
        return self

    @property
    def succeeded(self) -> int:
        return sum(1 for entry in self.articles if entry.processed is not None)
