"""
Collectors for the newsroom pipeline.

Sites are described as data in ``config.sources``; ``PageCollector`` turns
those descriptions into articles and ``collect_run`` assembles a run file.
"""

from .base_collector import BaseCollector
from .page_collector import ArticleExtractionError, PageCollector
from .run_collector import RunCollectionResult, build_sources_config, collect_run

__all__ = [
    "ArticleExtractionError",
    "BaseCollector",
    "PageCollector",
    "RunCollectionResult",
    "build_sources_config",
    "collect_run",
]
