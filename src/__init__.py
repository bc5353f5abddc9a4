"""
Main package of the newsroom pipeline.

Holds the functional modules: collectors, sanitizer, rewrite gateway,
image resolution, run orchestration, lookups and utilities.
"""

from config.version import PROJECT_VERSION, PYTHON_REQUIRES_SPECIFIER

from .collectors import BaseCollector, PageCollector, collect_run
from .images import ImageCascade
from .lookups import LookupCache
from .pipeline import RunOrchestrator, RunStore
from .rewrite import RewriteGateway
from .sanitizer import ArticleSanitizer
from .utils import get_logger, setup_logging

__version__ = PROJECT_VERSION
__description__ = (
    "Collects news articles, rewrites them through a language-model API "
    "and attaches a licensed cover image"
)

__package_info__ = {
    "name": "newsroom-pipeline",
    "version": __version__,
    "description": __description__,
    "license": "MIT",
    "python_requires": PYTHON_REQUIRES_SPECIFIER,
}

__all__ = [
    "ArticleSanitizer",
    "BaseCollector",
    "ImageCascade",
    "LookupCache",
    "PageCollector",
    "RewriteGateway",
    "RunOrchestrator",
    "RunStore",
    "collect_run",
    "get_logger",
    "setup_logging",
]
