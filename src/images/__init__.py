"""Cover image resolution: providers, Commons scoring and the cascade."""

from .cascade import ImageCascade
from .commons_scorer import (
    CommonsScorer,
    CommonsScoringOptions,
    ScoredCandidate,
    build_candidate,
    dedupe_candidates,
    infer_strict_entity_mode,
    select_best,
)
from .providers import PexelsProvider, PixabayProvider, WikimediaProvider

__all__ = [
    "CommonsScorer",
    "CommonsScoringOptions",
    "ImageCascade",
    "PexelsProvider",
    "PixabayProvider",
    "ScoredCandidate",
    "WikimediaProvider",
    "build_candidate",
    "dedupe_candidates",
    "infer_strict_entity_mode",
    "select_best",
]
