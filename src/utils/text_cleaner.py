from __future__ import annotations

import html as _html
import re
import unicodedata
from typing import Iterable, Optional

from bs4 import BeautifulSoup

_SLUG_STRIP = re.compile(r"[^\w-]+")


def normalize_text(text: Optional[str]) -> str:
    """Unescape entities, NFKC-normalize and collapse all whitespace."""
    if not text:
        return ""
    text = _html.unescape(text)
    text = unicodedata.normalize("NFKC", text)
    text = text.replace("\x00", "").replace("\r", " ").replace("\n", " ")
    text = " ".join(text.split())
    return text.strip()


def strip_markup(value: Optional[str]) -> str:
    """Return the visible text of an HTML fragment on a single line.

    Commons metadata fields (artist, licence, description) arrive as small
    HTML snippets; block breaks become spaces.
    """
    if not value:
        return ""
    if "<" not in value:
        return normalize_text(value)
    soup = BeautifulSoup(value, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return normalize_text(soup.get_text(" "))


def join_paragraphs(paragraphs: Iterable[str]) -> str:
    """Join non-empty paragraph texts with a blank line between them."""
    return "\n\n".join(text for text in (normalize_text(p) for p in paragraphs) if text)


def slugify(value: str) -> str:
    return _SLUG_STRIP.sub("-", value.strip().lower())
