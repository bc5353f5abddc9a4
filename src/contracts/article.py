"""Contracts for articles as they move through the pipeline."""

from __future__ import annotations

from typing import Any, List, Optional, TypedDict

from pydantic import ConfigDict, Field, field_validator, model_validator

from .common import CamelModel
from .image import SelectedImageModel

TITLE_MAX_CHARS = 160
TICKER_TITLE_MAX_CHARS = 45
EXCERPT_MAX_CHARS = 160
TAG_COUNT = 3


class RawArticlePayload(TypedDict, total=False):
    """Serialized article as written by the collection layer."""

    sourceId: str
    origin: str
    url: str
    title: str
    excerpt: str
    body: str
    category: Optional[str]
    publishedAt: str


class RawArticleModel(CamelModel):
    """Validated view of a collected article.

    Unknown keys written by collectors (``origin``, ``scrapedAt`` ...) are
    kept so the record can be echoed back unchanged.
    """

    source_id: Optional[str] = None
    url: str = Field(min_length=1)
    title: str = ""
    excerpt: Optional[str] = None
    body: Optional[str] = None
    category: Optional[str] = None
    published_at: Optional[str] = None

    model_config = ConfigDict(extra="allow", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def source_from_origin(cls, data: Any) -> Any:
        if isinstance(data, dict) and not (data.get("sourceId") or data.get("source_id")):
            origin = data.get("origin")
            if origin:
                data = {**data, "sourceId": origin}
        return data


class RewriteResponseModel(CamelModel):
    """Structured answer from the rewrite API after enforcement."""

    title: str = Field(min_length=1, max_length=TITLE_MAX_CHARS)
    ticker_title: str = Field(min_length=1, max_length=TICKER_TITLE_MAX_CHARS)
    excerpt: str = Field(min_length=1, max_length=EXCERPT_MAX_CHARS)
    body: str = Field(min_length=1)
    image_keyword: str = Field(min_length=1)
    tags: List[str] = Field(min_length=TAG_COUNT, max_length=TAG_COUNT)

    model_config = ConfigDict(extra="forbid")

    @field_validator("tags")
    @classmethod
    def tags_not_blank(cls, value: List[str]) -> List[str]:
        if any(not tag.strip() for tag in value):
            raise ValueError("tags must be non-empty strings")
        return value


class ProcessedArticleModel(CamelModel):
    """Terminal, CMS-ready form of one article."""

    title: str
    ticker_title: str
    excerpt: str
    category: Optional[str] = None
    body: str
    image_keyword: str
    tags: List[str]
    image: Optional[SelectedImageModel] = None

    @field_validator("tags")
    @classmethod
    def exactly_three_tags(cls, value: List[str]) -> List[str]:
        if len(value) != TAG_COUNT:
            raise ValueError(f"processed articles carry exactly {TAG_COUNT} tags")
        return value

    @classmethod
    def from_rewrite(
        cls,
        rewrite: RewriteResponseModel,
        *,
        category: Optional[str],
        image: Optional[SelectedImageModel],
    ) -> "ProcessedArticleModel":
        return cls(
            title=rewrite.title,
            ticker_title=rewrite.ticker_title,
            excerpt=rewrite.excerpt,
            category=category,
            body=rewrite.body,
            image_keyword=rewrite.image_keyword,
            tags=list(rewrite.tags),
            image=image,
        )
