"""Prompt and request payload construction for the rewrite API."""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from src.contracts import (
    EXCERPT_MAX_CHARS,
    TAG_COUNT,
    TICKER_TITLE_MAX_CHARS,
    TITLE_MAX_CHARS,
)

BODY_MAX_WORDS = 650

_INSTRUCTIONS = """Rewrite this article. Output ONLY valid JSON: {{"title":"...", "tickerTitle":"...", "excerpt":"...", "body":"...", "imageKeyword":"...", "tags":["tag1","tag2","tag3"]}}

Rules: Keep facts, names, dates and quotes accurate. Use new wording and structure in a neutral news tone. Do not add information.
Body: remove bylines and author names, publisher/network/agency mentions, and promotional or call-to-action lines.

Limits: title <= {title_max} chars, tickerTitle <= {ticker_max} chars, excerpt <= {excerpt_max} chars (complete sentences), body <= {body_words} words (3-4 paragraphs), tags = exactly {tag_count} strings {tag_rule}. If a field exceeds its limit, shorten it to fit.

imageKeyword: a single concrete subject that appears verbatim in the article. Prefer person > organization or product > place > named event > concrete object. Avoid generic topics, abstract words, verbs and dates. Output only the keyword."""


def _tag_rule(available_tags: Sequence[str]) -> str:
    if available_tags:
        return "chosen from: " + ", ".join(available_tags)
    return "describing the article's main topics"


def build_prompt(
    *,
    title: str,
    excerpt: Optional[str] = None,
    category: Optional[str] = None,
    body: Optional[str] = None,
    available_tags: Sequence[str] = (),
) -> str:
    """Return the user message sent for one article."""

    instructions = _INSTRUCTIONS.format(
        title_max=TITLE_MAX_CHARS,
        ticker_max=TICKER_TITLE_MAX_CHARS,
        excerpt_max=EXCERPT_MAX_CHARS,
        body_words=BODY_MAX_WORDS,
        tag_count=TAG_COUNT,
        tag_rule=_tag_rule(available_tags),
    )

    lines = ["Article:", f"Title: {title or ''}"]
    if excerpt:
        lines.append(f"Excerpt: {excerpt}")
    if category:
        lines.append(f"Category: {category}")
    lines.append(f"Body: {body or ''}")

    return f"{instructions}\n\n\n" + "\n".join(lines).strip()


def build_request_payload(
    prompt: str,
    *,
    model: str,
    token_param: str,
    max_tokens: int,
    temperature: Optional[float] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "model": model,
        "messages": [{"role": "user", "content": prompt}],
        token_param: max_tokens,
    }
    if temperature is not None:
        payload["temperature"] = temperature
    return payload
