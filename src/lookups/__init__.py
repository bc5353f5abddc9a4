"""Explicitly loaded lookup tables (tags, categories, authors)."""

from .cache import LookupCache, authors_cache, categories_cache, tags_cache

__all__ = ["LookupCache", "authors_cache", "categories_cache", "tags_cache"]
