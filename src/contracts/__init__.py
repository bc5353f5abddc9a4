"""Shared contracts for validated pipeline payloads."""

from .article import (
    EXCERPT_MAX_CHARS,
    TAG_COUNT,
    TICKER_TITLE_MAX_CHARS,
    TITLE_MAX_CHARS,
    ProcessedArticleModel,
    RawArticleModel,
    RawArticlePayload,
    RewriteResponseModel,
)
from .common import CamelModel
from .image import ImageCandidateModel, ImageSource, SelectedImageModel
from .run import CollectedArticlesFileModel, ProcessedArticlesFileModel, ProcessedEntryModel

__all__ = [
    "CamelModel",
    "CollectedArticlesFileModel",
    "EXCERPT_MAX_CHARS",
    "ImageCandidateModel",
    "ImageSource",
    "ProcessedArticleModel",
    "ProcessedArticlesFileModel",
    "ProcessedEntryModel",
    "RawArticleModel",
    "RawArticlePayload",
    "RewriteResponseModel",
    "SelectedImageModel",
    "TAG_COUNT",
    "TICKER_TITLE_MAX_CHARS",
    "TITLE_MAX_CHARS",
]
