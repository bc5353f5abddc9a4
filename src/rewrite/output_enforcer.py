"""Length and count limits applied to every rewrite answer.

The model is asked to respect the limits but routinely overshoots them by a
few characters. Trimming here keeps an otherwise good rewrite instead of
failing validation on a detail.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from src.contracts import (
    EXCERPT_MAX_CHARS,
    TAG_COUNT,
    TICKER_TITLE_MAX_CHARS,
    TITLE_MAX_CHARS,
)

ELLIPSIS = "…"
# Below this offset a word-boundary cut would throw away too much text.
MIN_WORD_BOUNDARY = 20

FIELD_LIMITS = {
    "title": TITLE_MAX_CHARS,
    "tickerTitle": TICKER_TITLE_MAX_CHARS,
    "excerpt": EXCERPT_MAX_CHARS,
}


def trim_to_max_chars(value: str, max_chars: int) -> str:
    """Return ``value`` stripped and, if longer than ``max_chars``, shortened.

    Shortened strings end with a single ellipsis character and never exceed
    ``max_chars``. The cut happens at the last space when that space sits
    more than ``MIN_WORD_BOUNDARY`` characters in.
    """
    text = (value or "").strip()
    if len(text) <= max_chars:
        return text

    head = text[: max(0, max_chars - 1)].rstrip()
    last_space = head.rfind(" ")
    if last_space > MIN_WORD_BOUNDARY:
        head = head[:last_space].rstrip()
    return f"{head}{ELLIPSIS}"


def first_token(value: str) -> str:
    stripped = value.strip()
    parts = stripped.split()
    return parts[0] if parts else stripped


def enforce(response: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``response`` with field limits applied.

    Never raises: fields of unexpected type are passed through untouched
    and left for contract validation to reject.
    """
    if not isinstance(response, Mapping):
        return response  # type: ignore[return-value]

    result: Dict[str, Any] = dict(response)

    for key, limit in FIELD_LIMITS.items():
        if isinstance(result.get(key), str):
            result[key] = trim_to_max_chars(result[key], limit)

    tags = result.get("tags")
    if isinstance(tags, list):
        result["tags"] = [
            tag.strip() for tag in tags if isinstance(tag, str) and tag.strip()
        ][:TAG_COUNT]

    keyword = result.get("imageKeyword")
    if isinstance(keyword, str):
        result["imageKeyword"] = first_token(keyword)

    return result
