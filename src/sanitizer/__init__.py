"""Article body sanitizing."""

from .article_sanitizer import ArticleSanitizer, SanitizerStats

__all__ = ["ArticleSanitizer", "SanitizerStats"]
