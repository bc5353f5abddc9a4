# src/images/commons_scorer.py
# Commons candidate scoring for cover images
# ==========================================

"""
Commons search returns everything that mentions a keyword: maps, flags,
logos, scanned documents and camera dumps next to the photo we actually
want. Taking the first hit is unreliable, so every candidate goes through
the same transparent pipeline:

1. deduplicate (content hash, then normalised base filename)
2. hard filter (unusable URL, licence, width, non-photo, entity safety)
3. score what survives (relevance, photo-likeness, quality, penalties)
4. pick the best, or nothing when even the best is weak

Each point awarded or removed is recorded as a human readable reason so a
surprising pick can be explained from the logs alone.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple
from urllib.parse import quote

from newsroom import pattern_tables
from src.contracts import ImageCandidateModel, SelectedImageModel
from src.utils.text_cleaner import strip_markup

COMMONS_PAGE_BASE = "https://commons.wikimedia.org/wiki/"
CREDIT_PROVIDER = "Wikimedia Commons"
SCORE_FLOOR = -100
SCORE_CEILING = 200

# (minimum width, points), widest first
RESOLUTION_STEPS = ((3600, 18), (2800, 16), (2000, 12), (1400, 6), (900, 2))
EXIF_FIELDS = ("Model", "Make", "DateTimeOriginal")

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")
_APOSTROPHES = re.compile(r"['’]")
_EXTENSION = re.compile(r"\.[a-z0-9]{2,5}$", re.IGNORECASE)
_COUNTER = re.compile(r"\(\d+\)")
_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")
_FILE_PREFIX = re.compile(r"^File:", re.IGNORECASE)


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


@dataclass
class CommonsScoringOptions:
    """Thresholds and vocabulary tables used by ``CommonsScorer``."""

    min_width: int = 900
    min_accept_score: float = 55
    strict_entity_match: Optional[bool] = None
    allowed_licenses: Sequence[str] = pattern_tables.COMMONS_ALLOWED_LICENSES
    map_like_keywords: Sequence[str] = pattern_tables.COMMONS_MAP_LIKE_KEYWORDS
    hard_reject_tokens: Sequence[str] = pattern_tables.COMMONS_HARD_REJECT_TOKENS
    blocked_category_signals: Sequence[str] = pattern_tables.COMMONS_BLOCKED_CATEGORY_SIGNALS
    photo_category_signals: Sequence[str] = pattern_tables.COMMONS_PHOTO_CATEGORY_SIGNALS
    camera_dump_pattern: str = pattern_tables.COMMONS_CAMERA_DUMP_PATTERN
    gallery_pattern: str = pattern_tables.COMMONS_GALLERY_PATTERN
    non_photo_pattern: str = pattern_tables.COMMONS_NON_PHOTO_PATTERN
    stopwords: Sequence[str] = pattern_tables.COMMONS_STOPWORDS

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]] = None) -> "CommonsScoringOptions":
        """Build options from the ``images.commons`` configuration section."""
        if config is None:
            from config.settings import IMAGES_CONFIG

            config = IMAGES_CONFIG["commons"]
        known = set(cls.__dataclass_fields__)
        return cls(**{key: value for key, value in config.items() if key in known})


@dataclass
class ScoredCandidate:
    candidate: ImageCandidateModel
    score: float
    reasons: List[str] = field(default_factory=list)


@dataclass
class _CandidateText:
    """Lower-cased searchable text of one candidate."""

    title: str
    description: str
    artist: str
    categories: List[str]
    depicts: List[str]

    @property
    def categories_joined(self) -> str:
        return " ".join(self.categories)

    @property
    def depicts_joined(self) -> str:
        return " ".join(self.depicts)

    @property
    def joined(self) -> str:
        return f"{self.title} {self.description} {self.categories_joined}".strip()


def infer_strict_entity_mode(keyword: str) -> bool:
    """Guess whether ``keyword`` names a specific person, place or organisation.

    Any uppercase letter, two or more words, or a dot or hyphen is taken
    as a proper-noun shape.
    """
    raw = (keyword or "").strip()
    has_caps = any(char.isupper() for char in raw)
    looks_like_name = len(raw.split()) >= 2 or "." in raw or "-" in raw
    return has_caps or looks_like_name


def base_filename_key(title: str) -> str:
    """``"File:Some_Name (1).jpg"`` becomes ``"some_name"``."""
    text = _FILE_PREFIX.sub("", title or "").strip()
    if not text:
        return ""
    text = _EXTENSION.sub("", text)
    text = _COUNTER.sub("", _normalize(text))
    return _NON_ALNUM_RUN.sub("_", text).strip("_")


def dedupe_candidates(candidates: Iterable[ImageCandidateModel]) -> List[ImageCandidateModel]:
    """Collapse duplicates, keeping the widest file of each group.

    Files group by SHA-1 when Commons reports one, otherwise by base
    filename, and as a last resort by URL or title.
    """
    kept: Dict[str, ImageCandidateModel] = {}
    for candidate in candidates:
        sha1 = (candidate.sha1 or "").strip()
        key = sha1 or base_filename_key(candidate.title) or candidate.url or candidate.title
        existing = kept.get(key)
        if existing is None or candidate.width > existing.width:
            kept[key] = candidate
    return list(kept.values())


def mime_preference(mime: Optional[str]) -> int:
    value = _normalize(mime)
    if "jpeg" in value or "jpg" in value:
        return 3
    if "png" in value:
        return 2
    return 1


def resolution_boost(width: int) -> int:
    for minimum, points in RESOLUTION_STEPS:
        if width >= minimum:
            return points
    return 0


def aspect_ratio(width: int, height: int) -> float:
    if not width or not height:
        return 0.0
    return width / height


def build_candidate(page: Mapping[str, Any]) -> Optional[ImageCandidateModel]:
    """Normalise one ``prop=imageinfo|categories`` page into a candidate.

    Returns ``None`` for pages without image info (missing or non-file
    pages).
    """
    infos = page.get("imageinfo") or []
    if not infos:
        return None
    info = infos[0] or {}
    meta = info.get("extmetadata") or {}

    def meta_text(key: str) -> str:
        entry = meta.get(key)
        if isinstance(entry, Mapping):
            return str(entry.get("value") or "")
        return ""

    return ImageCandidateModel(
        title=str(page.get("title") or ""),
        url=info.get("url"),
        thumb_url=info.get("thumburl"),
        width=int(info.get("width") or 0),
        height=int(info.get("height") or 0),
        mime=str(info.get("mime") or ""),
        license_short_name=meta_text("LicenseShortName"),
        license_url=meta_text("LicenseUrl") or None,
        artist=meta_text("Artist"),
        credit=meta_text("Credit") or meta_text("Attribution"),
        description=meta_text("ImageDescription"),
        object_name=meta_text("ObjectName"),
        categories=[
            str(category.get("title"))
            for category in page.get("categories") or []
            if isinstance(category, Mapping) and category.get("title")
        ],
        exif={key: meta_text(key) for key in EXIF_FIELDS if meta_text(key)},
        sha1=info.get("sha1"),
        description_url=info.get("descriptionurl"),
    )


class CommonsScorer:
    """Ranks Commons candidates for a keyword and picks a cover image."""

    def __init__(self, options: Optional[CommonsScoringOptions] = None):
        self.options = options or CommonsScoringOptions()
        opts = self.options
        self._allowed_licenses = {_normalize(item) for item in opts.allowed_licenses}
        self._map_like = [_normalize(item) for item in opts.map_like_keywords]
        self._hard_reject = [_normalize(item) for item in opts.hard_reject_tokens]
        self._blocked_categories = [_normalize(item) for item in opts.blocked_category_signals]
        self._photo_categories = [_normalize(item) for item in opts.photo_category_signals]
        self._stopwords: Set[str] = {_normalize(item) for item in opts.stopwords}
        self._camera_dump = re.compile(opts.camera_dump_pattern, re.IGNORECASE)
        self._gallery = re.compile(opts.gallery_pattern, re.IGNORECASE)
        self._non_photo = re.compile(opts.non_photo_pattern, re.IGNORECASE)

    # Public API
    # ==========

    def select_best(
        self,
        keyword: str,
        candidates: Iterable[ImageCandidateModel],
        *,
        strict_entity_match: Optional[bool] = None,
    ) -> Optional[SelectedImageModel]:
        """Return the winning candidate as a ``SelectedImageModel``.

        ``None`` means nothing survived the hard filters or the best score
        stayed under ``min_accept_score``; callers fall through to the next
        provider.
        """
        ranked = self.rank(keyword, candidates, strict_entity_match=strict_entity_match)
        if not ranked:
            return None
        best = ranked[0]
        if best.score < self.options.min_accept_score:
            return None
        return self.to_selected_image(best)

    def rank(
        self,
        keyword: str,
        candidates: Iterable[ImageCandidateModel],
        *,
        strict_entity_match: Optional[bool] = None,
    ) -> List[ScoredCandidate]:
        """Filter and score ``candidates``, best first."""
        keyword_raw = (keyword or "").strip()
        normalized = _normalize(keyword_raw)
        if not normalized:
            return []

        strict = strict_entity_match
        if strict is None:
            strict = self.options.strict_entity_match
        if strict is None:
            strict = infer_strict_entity_mode(keyword_raw)

        survivors = [
            candidate
            for candidate in dedupe_candidates(candidates)
            if self.passes_hard_filters(candidate, normalized, strict)
        ]

        scored = []
        for candidate in survivors:
            score, reasons = self.score_candidate(candidate, normalized, strict)
            scored.append(ScoredCandidate(candidate=candidate, score=score, reasons=reasons))

        scored.sort(
            key=lambda item: (
                item.score,
                item.candidate.width,
                mime_preference(item.candidate.mime),
            ),
            reverse=True,
        )
        return scored

    # Hard filters
    # ============

    def passes_hard_filters(
        self, candidate: ImageCandidateModel, keyword: str, strict: bool
    ) -> bool:
        return (
            self._has_usable_url(candidate)
            and self._is_allowed_license(candidate)
            and candidate.width >= self.options.min_width
            and self._is_not_obviously_non_photo(candidate, keyword)
            and self._passes_entity_safety(candidate, keyword, strict)
        )

    @staticmethod
    def _has_usable_url(candidate: ImageCandidateModel) -> bool:
        url = (candidate.url or "").lower()
        return url.startswith("http://") or url.startswith("https://")

    def _is_allowed_license(self, candidate: ImageCandidateModel) -> bool:
        license_name = _normalize(candidate.license_short_name)
        return bool(license_name) and license_name in self._allowed_licenses

    def _is_not_obviously_non_photo(self, candidate: ImageCandidateModel, keyword: str) -> bool:
        # A keyword that asks for a map or a logo gets one.
        if any(word in keyword for word in self._map_like):
            return True
        if "svg" in _normalize(candidate.mime):
            return False

        text = self._text(candidate)
        joined = f"{text.title} {text.description} {text.categories_joined}"
        if any(token in joined for token in self._hard_reject):
            return False
        return not any(
            signal in category
            for category in text.categories
            for signal in self._blocked_categories
        )

    def _passes_entity_safety(
        self, candidate: ImageCandidateModel, keyword: str, strict: bool
    ) -> bool:
        if not strict:
            return True
        text = self._text(candidate)
        return (
            keyword in text.depicts_joined
            or keyword in text.title
            or keyword in text.categories_joined
            or keyword in text.description
        )

    # Scoring
    # =======

    def score_candidate(
        self, candidate: ImageCandidateModel, keyword: str, strict: bool
    ) -> Tuple[float, List[str]]:
        score = 0
        reasons: List[str] = []
        text = self._text(candidate)
        categories = text.categories_joined
        depicts = text.depicts_joined
        tokens = self.tokenize(keyword)

        # Relevance
        if depicts:
            if keyword in depicts:
                score += 60
                reasons.append("Depicts matches keyword (+60)")
            else:
                token_set = set(tokens)
                overlap = sum(1 for token in self.tokenize(depicts) if token in token_set)
                if overlap > 0:
                    points = min(30, overlap * 10)
                    score += points
                    reasons.append(f"Depicts token overlap {overlap} (+{points})")

        if len(keyword) >= 3 and (
            keyword in text.title or keyword in text.description or keyword in categories
        ):
            score += 35
            reasons.append("Exact keyword phrase match (+35)")

        title_hits = self.count_hits(tokens, text.title)
        desc_hits = self.count_hits(tokens, text.description)
        cat_hits = self.count_hits(tokens, categories)
        title_points = min(24, title_hits * 12)
        desc_points = min(16, desc_hits * 8)
        cat_points = min(12, cat_hits * 6)
        if title_points:
            reasons.append(f"Title token hits {title_hits} (+{title_points})")
        if desc_points:
            reasons.append(f"Description token hits {desc_hits} (+{desc_points})")
        if cat_points:
            reasons.append(f"Category token hits {cat_hits} (+{cat_points})")
        score += title_points + desc_points + cat_points

        if strict and keyword not in depicts and title_hits + desc_hits + cat_hits <= 1:
            score -= 15
            reasons.append("Strict entity mode: weak evidence (-15)")

        # Photo-likeness
        mime = _normalize(candidate.mime)
        if "jpeg" in mime or "jpg" in mime or "png" in mime:
            score += 2
            reasons.append("Standard raster image (+2)")

        if any(
            signal in category
            for category in text.categories
            for signal in self._photo_categories
        ):
            score += 8
            reasons.append("Photo-like categories (+8)")

        if any(_normalize(candidate.exif.get(key)) for key in EXIF_FIELDS):
            score += 8
            reasons.append("EXIF-like metadata present (+8)")

        # Quality
        boost = resolution_boost(candidate.width)
        if boost:
            score += boost
            reasons.append(f"Resolution curve boost w={candidate.width} (+{boost})")

        ratio = aspect_ratio(candidate.width, candidate.height)
        if 1.3 <= ratio <= 1.9:
            score += 12
            reasons.append(f"Aspect ratio {ratio:.2f} ideal (+12)")
        elif 1.1 <= ratio < 1.3 or 1.9 < ratio <= 2.2:
            score += 6
            reasons.append(f"Aspect ratio {ratio:.2f} acceptable (+6)")
        elif 0.9 <= ratio < 1.1:
            score += 2
            reasons.append(f"Aspect ratio {ratio:.2f} square-ish (+2)")
        elif ratio > 0:
            score -= 10
            reasons.append(f"Aspect ratio {ratio:.2f} unfriendly (-10)")

        if "featured pictures" in categories:
            score += 25
            reasons.append("Featured picture category (+25)")
        if "quality images" in categories:
            score += 18
            reasons.append("Quality image category (+18)")

        # Penalties
        joined = text.joined
        if self._camera_dump.search(text.title):
            score -= 6
            reasons.append("Camera-dump filename pattern (-6)")
        if self._gallery.search(joined):
            score -= 12
            reasons.append("Gallery/collage/collection penalty (-12)")
        if self._non_photo.search(joined):
            score -= 20
            reasons.append("Non-photo safety penalty (-20)")

        if text.artist:
            score += 3
            reasons.append("Artist metadata present (+3)")

        if "jpeg" in mime or "jpg" in mime:
            score += 2
            reasons.append("JPEG slight preference (+2)")
        elif "png" in mime:
            score += 1
            reasons.append("PNG slight preference (+1)")

        return max(SCORE_FLOOR, min(SCORE_CEILING, score)), reasons

    def tokenize(self, text: str) -> List[str]:
        cleaned = _APOSTROPHES.sub("", _normalize(text))
        return [
            token
            for token in _TOKEN_SPLIT.split(cleaned)
            if len(token) >= 2 and token not in self._stopwords
        ]

    @staticmethod
    def count_hits(tokens: Sequence[str], haystack: str) -> int:
        return sum(1 for token in tokens if token in haystack)

    # Output mapping
    # ==============

    @staticmethod
    def to_selected_image(scored: ScoredCandidate) -> SelectedImageModel:
        candidate = scored.candidate
        license_name = strip_markup(candidate.license_short_name) or "Unknown"
        creator = strip_markup(candidate.artist) or None
        title = candidate.title or ""

        source_page_url = candidate.description_url
        if not source_page_url and title.startswith("File:"):
            source_page_url = COMMONS_PAGE_BASE + quote(title, safe="")

        image_title = (
            strip_markup(candidate.object_name)
            or strip_markup(_FILE_PREFIX.sub("", title))
            or None
        )

        credit_bits = []
        if creator:
            credit_bits.append(f"Photo by {creator}")
        credit_bits.append(f"via {CREDIT_PROVIDER}")
        credit_bits.append(f"({license_name})")

        return SelectedImageModel(
            source="wikimedia",
            url=candidate.url or "",
            thumb_url=candidate.thumb_url,
            width=candidate.width or None,
            height=candidate.height or None,
            mime=candidate.mime or None,
            author_name=creator,
            artist=creator,
            source_page_url=source_page_url,
            license=license_name,
            license_short_name=license_name,
            license_url=strip_markup(candidate.license_url) or None,
            image_title=image_title,
            image_description=strip_markup(candidate.description) or None,
            attribution=strip_markup(candidate.credit) or None,
            credit_provider=CREDIT_PROVIDER,
            credit_line=" ".join(credit_bits),
            score=scored.score,
            reasons=list(scored.reasons),
            sha1=candidate.sha1,
        )

    # Internals
    # =========

    @staticmethod
    def _text(candidate: ImageCandidateModel) -> _CandidateText:
        return _CandidateText(
            title=_normalize(strip_markup(candidate.title)),
            description=_normalize(strip_markup(candidate.description)),
            artist=_normalize(strip_markup(candidate.artist)),
            categories=[_normalize(item) for item in candidate.categories],
            depicts=[_normalize(item) for item in candidate.depicts],
        )


def select_best(
    keyword: str,
    candidates: Iterable[ImageCandidateModel],
    options: Optional[CommonsScoringOptions] = None,
) -> Optional[SelectedImageModel]:
    """Convenience wrapper around ``CommonsScorer.select_best``."""
    return CommonsScorer(options).select_best(keyword, candidates)
