"""Declarative configuration schema for the newsroom pipeline."""
from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterable, List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    PositiveFloat,
    PositiveInt,
    PrivateAttr,
    field_validator,
    model_validator,
)

from newsroom import pattern_tables

IMAGE_PROVIDERS = ("wikimedia", "pexels", "pixabay")
TOKEN_LIMIT_PARAMS = ("max_completion_tokens", "max_tokens")


class SchemaError(ValueError):
    """Raised when the configuration schema definition is invalid."""


class StrictModel(BaseModel):
    """Base model enforcing strict validation rules."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
    )


def _check_patterns(values: List[str], *, flags: int = re.IGNORECASE) -> List[str]:
    for pattern in values:
        try:
            re.compile(pattern, flags)
        except re.error as exc:
            raise ValueError(f"invalid regular expression {pattern!r}: {exc}") from exc
    return values


class AppSettings(StrictModel):
    """Top-level runtime metadata."""

    environment: str = Field(
        default="development",
        description="Normalized deployment environment name.",
        examples=["production"],
    )
    debug: bool = Field(
        default=False,
        description="When true, enables verbose logging.",
    )
    timezone: str = Field(
        default="UTC",
        description="Timezone used for human-facing timestamps.",
        examples=["America/New_York"],
    )

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"development", "production", "staging", "test"}:
            raise ValueError(
                "environment must be one of: development, staging, production, test"
            )
        return normalized


class PathsConfig(StrictModel):
    """Filesystem layout settings."""

    collected_dir: Path = Field(
        default=Path("collected"),
        description="Directory holding collected, processed and cache JSON files.",
        examples=["/var/lib/newsroom/collected"],
    )
    logs_dir: Path = Field(
        default=Path("logs"),
        description="Directory where operational logs are written.",
    )

    @model_validator(mode="after")
    def _resolve_paths(self) -> "PathsConfig":
        for name in ("collected_dir", "logs_dir"):
            value: Path = getattr(self, name)
            if not value.is_absolute():
                object.__setattr__(self, name, value.resolve())
        return self


class CollectionConfig(StrictModel):
    """Source collection behaviour."""

    request_timeout_seconds: PositiveFloat = Field(
        default=30.0,
        description="HTTP timeout for listing and article page requests.",
    )
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; NewsroomBot/1.0; +https://example.com/bot)",
        description="User-Agent header sent to news sites.",
    )
    max_retries: NonNegativeInt = Field(
        default=3, description="Retries per page on 429/5xx or network errors."
    )
    backoff_base: PositiveFloat = Field(
        default=0.5, description="Base factor for exponential backoff (seconds)."
    )
    backoff_max: PositiveFloat = Field(
        default=10.0, description="Upper bound for a single backoff sleep (seconds)."
    )
    jitter_max: float = Field(
        default=0.3, ge=0.0, description="Maximum random jitter added to backoff."
    )
    keep_latest_files: PositiveInt = Field(
        default=1,
        description="Per-source scrape files kept after pruning.",
    )
    max_response_bytes: PositiveInt = Field(
        default=10 * 1024 * 1024,
        description="Pages larger than this are rejected.",
    )


class RewriteConfig(StrictModel):
    """Rewrite API client parameters."""

    enabled: bool = Field(
        default=True,
        description="Master switch for the rewrite stage.",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Bearer token for the rewrite API; treated as secret.",
    )
    api_url: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        description="Chat completions endpoint.",
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Model identifier sent with every request.",
        examples=["gpt-4o"],
    )
    token_param: Literal["max_completion_tokens", "max_tokens"] = Field(
        default="max_completion_tokens",
        description="Initial name of the token-limit request parameter.",
    )
    max_completion_tokens: PositiveInt = Field(
        default=1_400,
        description="Token limit sent under the active token-limit parameter.",
    )
    temperature: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature; omitted from requests when unset.",
    )
    request_delay_ms: NonNegativeInt = Field(
        default=60_000,
        description="Pause between articles of a run (ms).",
    )
    max_retries: NonNegativeInt = Field(
        default=3, description="Retries per logical rewrite request."
    )
    retry_delay_ms: PositiveInt = Field(
        default=1_000,
        description="Base delay for exponential backoff on 429/network errors (ms).",
    )
    timeout_seconds: PositiveFloat = Field(
        default=60.0,
        description="HTTP timeout for one rewrite call.",
    )


class RateLimitingConfig(StrictModel):
    """Sliding-window quota for the rewrite API."""

    max_requests: PositiveInt = Field(
        default=3, description="Requests allowed inside one window."
    )
    window_ms: PositiveInt = Field(
        default=60_000, description="Length of the trailing window (ms)."
    )
    safety_buffer_ms: NonNegativeInt = Field(
        default=100,
        description="Extra wait added after the oldest request leaves the window.",
    )


class CommonsScoringConfig(StrictModel):
    """Hard filters, thresholds and vocabularies for Commons candidates."""

    min_width: PositiveInt = Field(
        default=900, description="Candidates narrower than this are discarded."
    )
    min_accept_score: float = Field(
        default=55.0,
        description="Winning score below this yields no image.",
    )
    strict_entity_match: Optional[bool] = Field(
        default=None,
        description="Force entity-safety mode on/off; inferred from the keyword when unset.",
    )
    allowed_licenses: List[str] = Field(
        default_factory=lambda: list(pattern_tables.COMMONS_ALLOWED_LICENSES),
        description="Licence short names accepted (case-insensitive).",
    )
    map_like_keywords: List[str] = Field(
        default_factory=lambda: list(pattern_tables.COMMONS_MAP_LIKE_KEYWORDS)
    )
    hard_reject_tokens: List[str] = Field(
        default_factory=lambda: list(pattern_tables.COMMONS_HARD_REJECT_TOKENS)
    )
    blocked_category_signals: List[str] = Field(
        default_factory=lambda: list(pattern_tables.COMMONS_BLOCKED_CATEGORY_SIGNALS)
    )
    photo_category_signals: List[str] = Field(
        default_factory=lambda: list(pattern_tables.COMMONS_PHOTO_CATEGORY_SIGNALS)
    )
    camera_dump_pattern: str = Field(default=pattern_tables.COMMONS_CAMERA_DUMP_PATTERN)
    gallery_pattern: str = Field(default=pattern_tables.COMMONS_GALLERY_PATTERN)
    non_photo_pattern: str = Field(default=pattern_tables.COMMONS_NON_PHOTO_PATTERN)
    stopwords: List[str] = Field(
        default_factory=lambda: list(pattern_tables.COMMONS_STOPWORDS)
    )

    @field_validator("camera_dump_pattern", "gallery_pattern", "non_photo_pattern")
    @classmethod
    def _compile_pattern(cls, value: str) -> str:
        _check_patterns([value])
        return value


class ImagesConfig(StrictModel):
    """Image provider cascade configuration."""

    provider_order: List[str] = Field(
        default_factory=lambda: list(IMAGE_PROVIDERS),
        description="Providers tried in this order; first hit wins.",
    )
    per_page: PositiveInt = Field(
        default=5, description="Search results requested per provider."
    )
    stock_pick_top: PositiveInt = Field(
        default=3,
        description="Stock providers pick randomly among this many top results.",
    )
    request_timeout_seconds: PositiveFloat = Field(
        default=15.0, description="HTTP timeout for provider calls."
    )
    pexels_api_key: Optional[str] = Field(default=None)
    pixabay_api_key: Optional[str] = Field(default=None)
    wikimedia_user_agent: Optional[str] = Field(
        default=None,
        description="Contact string or full User-Agent for the Commons API.",
        examples=["newsdesk@example.com"],
    )
    wikimedia_api_url: str = Field(default="https://commons.wikimedia.org/w/api.php")
    pexels_api_url: str = Field(default="https://api.pexels.com/v1/search")
    pixabay_api_url: str = Field(default="https://pixabay.com/api/")
    commons: CommonsScoringConfig = Field(default_factory=CommonsScoringConfig)

    @field_validator("provider_order")
    @classmethod
    def _validate_order(cls, value: List[str]) -> List[str]:
        normalized = [item.strip().lower() for item in value]
        unknown = [item for item in normalized if item not in IMAGE_PROVIDERS]
        if unknown:
            raise ValueError(f"unknown image providers: {', '.join(unknown)}")
        if len(set(normalized)) != len(normalized):
            raise ValueError("provider_order must not repeat providers")
        return normalized


class SanitizerConfig(StrictModel):
    """Body cleaning tables and headline-spam thresholds."""

    drop_line_patterns: List[str] = Field(
        default_factory=lambda: list(pattern_tables.DROP_LINE_PATTERNS),
        description="Lines matching any of these are removed.",
    )
    cutoff_section_patterns: List[str] = Field(
        default_factory=lambda: list(pattern_tables.CUTOFF_SECTION_PATTERNS),
        description="The body is truncated at the first line matching any of these.",
    )
    standalone_credit_patterns: List[str] = Field(
        default_factory=lambda: list(pattern_tables.STANDALONE_CREDIT_PATTERNS)
    )
    headline_max_length: PositiveInt = Field(default=120)
    headline_max_commas: NonNegativeInt = Field(default=1)
    headline_shape_pattern: str = Field(
        default=pattern_tables.HEADLINE_SHAPE_PATTERN,
        description="Case-sensitive shape a spam headline must have.",
    )
    sentence_terminal_pattern: str = Field(
        default=pattern_tables.SENTENCE_TERMINAL_PATTERN
    )
    bare_number_pattern: str = Field(default=pattern_tables.BARE_NUMBER_PATTERN)
    honorific_openers: List[str] = Field(
        default_factory=lambda: list(pattern_tables.HONORIFIC_OPENERS)
    )
    narrative_openers: List[str] = Field(
        default_factory=lambda: list(pattern_tables.NARRATIVE_OPENERS)
    )

    @field_validator(
        "drop_line_patterns", "cutoff_section_patterns", "standalone_credit_patterns"
    )
    @classmethod
    def _compile_tables(cls, value: List[str]) -> List[str]:
        return _check_patterns(value)

    @field_validator("sentence_terminal_pattern", "bare_number_pattern")
    @classmethod
    def _compile_single(cls, value: str) -> str:
        _check_patterns([value])
        return value

    @field_validator("headline_shape_pattern")
    @classmethod
    def _compile_shape(cls, value: str) -> str:
        _check_patterns([value], flags=0)
        return value


class LookupsConfig(StrictModel):
    """Local CMS lookup cache files, relative to ``paths.collected_dir``."""

    categories_file: str = Field(default="sanity-categories.json")
    tags_file: str = Field(default="sanity-tags.json")
    authors_file: str = Field(default="sanity-authors.json")


class RunSourceConfig(StrictModel):
    """One source entry inside a run."""

    source: str = Field(..., min_length=1)
    count: int = Field(default=1, description="Articles to take; <= 0 disables.")


class RunConfig(StrictModel):
    """A scheduled batch of sources."""

    id: str = Field(..., min_length=1, examples=["run1"])
    label: str = Field(default="")
    enabled: bool = Field(default=True)
    sources: List[RunSourceConfig] = Field(default_factory=list)


def _default_runs() -> List[RunConfig]:
    def _sources(*pairs: tuple[str, int]) -> List[RunSourceConfig]:
        return [RunSourceConfig(source=source, count=count) for source, count in pairs]

    return [
        RunConfig(
            id="run1",
            label="Morning Run",
            enabled=True,
            sources=_sources(
                ("apNewsUS", 2),
                ("yahooUSNews", 1),
                ("apNewsWorld", 1),
                ("yahooWorldNews", 1),
                ("apNewsPolitics", 2),
                ("apNewsBusiness", 1),
            ),
        ),
        RunConfig(
            id="run2",
            label="Midday Run",
            enabled=False,
            sources=_sources(
                ("apNewsBusiness", 1),
                ("cbsUS", 1),
                ("yahooPoliticsNews", 1),
                ("apNewsWorld", 1),
                ("cbsWorld", 1),
                ("techCrunch", 1),
                ("abcNewsInternational", 1),
                ("abcNewsTechnology", 1),
            ),
        ),
        RunConfig(
            id="run3",
            label="Evening Run",
            enabled=False,
            sources=_sources(
                ("apNewsUS", 1),
                ("yahooEntertainmentNews", 1),
                ("cbsUS", 1),
                ("cbsWorld", 1),
                ("apNewsBusiness", 1),
                ("yahooScienceNews", 1),
                ("abcNewsUS", 1),
            ),
        ),
        RunConfig(
            id="run4",
            label="Late Run",
            enabled=False,
            sources=_sources(
                ("yahooEntertainmentNews", 1),
                ("apNewsScience", 1),
                ("apNewsLifestyle", 1),
                ("yahooWorldNews", 1),
            ),
        ),
    ]


class LoggingConfig(StrictModel):
    """Logging subsystem configuration."""

    level: str = Field(
        default="INFO",
        description="Minimum log level for the console and file sinks.",
        examples=["DEBUG"],
    )
    file_path: Optional[Path] = Field(
        default=Path("logs/newsroom.log"),
        description="Rotating log file; empty disables the file sink.",
    )
    max_file_size_mb: PositiveInt = Field(default=10)
    retention_days: PositiveInt = Field(default=30)
    format: str = Field(
        default="{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {name}:{line} | {message}",
        description="loguru format template for the file sink.",
    )

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unsupported log level: {value}")
        return normalized

    @field_validator("file_path", mode="before")
    @classmethod
    def _empty_path_disables(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @model_validator(mode="after")
    def _resolve_path(self) -> "LoggingConfig":
        if self.file_path is not None and not self.file_path.is_absolute():
            object.__setattr__(self, "file_path", self.file_path.resolve())
        return self


class Config(StrictModel):
    """Complete newsroom pipeline configuration model."""

    app: AppSettings = Field(default_factory=AppSettings)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    collection: CollectionConfig = Field(default_factory=CollectionConfig)
    rewrite: RewriteConfig = Field(default_factory=RewriteConfig)
    rate_limiting: RateLimitingConfig = Field(default_factory=RateLimitingConfig)
    images: ImagesConfig = Field(default_factory=ImagesConfig)
    sanitizer: SanitizerConfig = Field(default_factory=SanitizerConfig)
    lookups: LookupsConfig = Field(default_factory=LookupsConfig)
    runs: List[RunConfig] = Field(default_factory=_default_runs)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    _metadata: object = PrivateAttr(default=None)

    @model_validator(mode="after")
    def _unique_run_ids(self) -> "Config":
        seen: set[str] = set()
        for run in self.runs:
            if run.id in seen:
                raise ValueError(f"duplicate run id: {run.id}")
            seen.add(run.id)
        return self


DEFAULT_CONFIG = Config()


def iter_field_docs(
    model: BaseModel | type[BaseModel],
    prefix: str = "",
    *,
    include_defaults: bool = True,
) -> Iterable[dict[str, object]]:
    """Yield flattened schema documentation entries."""

    instance = DEFAULT_CONFIG if isinstance(model, type) else model
    target_model = type(instance) if not isinstance(model, type) else model

    for name, field in target_model.model_fields.items():
        value = getattr(instance, name, field.default)
        key = f"{prefix}.{name}" if prefix else name
        is_nested = isinstance(value, BaseModel)
        entry: dict[str, object] = {
            "name": key,
            "type": getattr(field.annotation, "__name__", str(field.annotation)),
            "description": field.description or "",
            "default": None if (is_nested or not include_defaults) else value,
            "examples": field.examples or [],
            "constraints": _describe_constraints(field),
            "is_nested": is_nested,
        }
        yield entry
        if is_nested:
            yield from iter_field_docs(value, key)


def _describe_constraints(field: Any) -> str:
    """Return a human readable description of field constraints."""

    symbols = {
        "ge": ">=",
        "gt": ">",
        "le": "<=",
        "lt": "<",
        "max_length": "len<=",
        "min_length": "len>=",
    }
    parts: list[str] = []
    for metadata in getattr(field, "metadata", []) or []:
        for attr, comparator in symbols.items():
            bound = getattr(metadata, attr, None)
            if bound is not None:
                parts.append(f"{comparator} {bound}")
    return ", ".join(parts)


__all__ = [
    "Config",
    "DEFAULT_CONFIG",
    "IMAGE_PROVIDERS",
    "TOKEN_LIMIT_PARAMS",
    "RunConfig",
    "RunSourceConfig",
    "SchemaError",
    "iter_field_docs",
]
