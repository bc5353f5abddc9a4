"""Default pattern tables for body sanitizing and Commons image filtering.

These tables were tuned against real scraped feeds and Commons search
results. They are plain data so they can be overridden from ``config.toml``
(``[sanitizer]`` and ``[images.commons]``) without touching code. Patterns
are compiled case-insensitively unless stated otherwise.
"""

from __future__ import annotations

from typing import Final, Tuple

# Lines dropped wherever they appear in a body.
DROP_LINE_PATTERNS: Final[Tuple[str, ...]] = (
    # generic promos and calls to action
    r"\b(stay up to date|keep reading|continue reading|read on)\b",
    r"\b(sign up|subscribe|subscription|newsletter)\b",
    r"\b(download|get)\b.*\b(app|the app)\b",
    r"\b(follow us|follow)\b.*\b(whatsapp|newsletter|app|facebook|instagram|tiktok|twitter|x|youtube|threads|linkedin)\b",
    r"\b(join)\b.*\b(channel|community)\b",
    r"\b(turn on|enable)\b.*\b(notifications|alerts)\b",
    r"\b(push notifications|breaking news alerts)\b",
    r"\b(click here|tap here|learn more|read more)\b",
    r"\b(register|create an account|log in|sign in)\b",
    r"\b(support our journalism|support independent journalism)\b",
    r"\b(donate|contribute)\b",
    r"\b(advertisement|sponsored|promoted)\b",
    # share prompts
    r"\b(share this|share on|share via)\b",
    r"\b(link in bio)\b",
    # wire service channel promos
    r"following our whatsapp channel",
    # publisher boilerplate
    r"^\s*updated on:\s*",
    r"^\s*/\s*[a-z0-9 .-]+news\s*$",
    r"^\s*edited by\s*$",
    r"^\s*the associated press\s*$",
    r"^\s*contributed to this report\.?\s*$",
    r"©\s*\d{4}\s+",
    r"\ball rights reserved\b",
    # lead-ins that usually precede a block of unrelated links
    r"^\s*more from\s+.+$",
    r"^\s*best of\s+.+$",
    # event promos
    r"\b(check out the latest reveals)\b",
    r"\b(this video is brought to you in partnership with)\b",
    r"\b(last chance to get front row access)\b",
    r"\b(don't miss it)\b",
    # footer links and legal
    r"\b(terms of service|privacy policy|cookie policy)\b",
)

# Section markers: the body is truncated at the first matching line.
CUTOFF_SECTION_PATTERNS: Final[Tuple[str, ...]] = (
    r"^\s*(related stories|recommended stories|more stories|more from|trending now|around the web)\s*:?\s*$",
    r"^\s*(you may also like|you might also like|read next|up next|in case you missed it)\s*:?\s*$",
    r"^\s*related\b[^:]{0,40}:",
    r"^\s*edited by\s*$",
    r"^\s*the associated press\s*$",
    r"^\s*©\s*\d{4}\s+",
    r"^\s*\*{3,}\s*$",
    r"^\s*best of\s+.+$",
    r"^\s*topics\s*$",
    r"^\s*venture editor\s*$",
    r"^\s*advertisement\s*$",
)

# Credit lines that only carry a network or agency name.
STANDALONE_CREDIT_PATTERNS: Final[Tuple[str, ...]] = (
    r"^\s*/\s*(cbs|abc|nbc|cnn|fox|bbc)\s+news\s*$",
    r"^(cbs news|ap news|associated press|reuters|bloomberg|afp|the guardian|new york times|washington post)$",
)

# Appended-headline heuristic. The shape pattern is case sensitive.
HEADLINE_SHAPE_PATTERN: Final[str] = r"^[A-Z0-9][^:]{8,}$"
SENTENCE_TERMINAL_PATTERN: Final[str] = r"[.!?]\"?$"
BARE_NUMBER_PATTERN: Final[str] = r"^\d+%?$"
HONORIFIC_OPENERS: Final[Tuple[str, ...]] = ("mr.", "mrs.", "ms.")
NARRATIVE_OPENERS: Final[Tuple[str, ...]] = (
    "in",
    "on",
    "at",
    "after",
    "before",
    "during",
    "as",
    "when",
    "while",
    "because",
    "since",
    "although",
)

# Commons licence allow-list, compared lower-cased.
COMMONS_ALLOWED_LICENSES: Final[Tuple[str, ...]] = (
    "CC BY 4.0",
    "CC BY-SA 4.0",
    "CC BY 3.0",
    "CC BY-SA 3.0",
    "CC BY 2.0",
    "CC BY-SA 2.0",
    "CC0",
    "Public domain",
    "PD",
)

# Keywords that mean the caller actually wants a map, flag, logo...
COMMONS_MAP_LIKE_KEYWORDS: Final[Tuple[str, ...]] = (
    "map",
    "flag",
    "logo",
    "seal",
    "coat of arms",
    "coat",
    "diagram",
    "chart",
    "icon",
)

COMMONS_HARD_REJECT_TOKENS: Final[Tuple[str, ...]] = (
    "map of",
    "flag of",
    "coat of arms",
    "logo",
    "seal",
    "icon",
    "pictogram",
    "diagram",
    "chart",
    "infographic",
    "collage",
    "montage",
    "vector",
    "svg",
)

COMMONS_BLOCKED_CATEGORY_SIGNALS: Final[Tuple[str, ...]] = (
    "category:maps",
    "category:flags",
    "category:logos",
    "category:coats of arms",
    "category:seals",
    "category:icons",
    "category:pictograms",
    "category:diagrams",
    "category:charts",
    "category:svg",
    "category:vector",
)

COMMONS_PHOTO_CATEGORY_SIGNALS: Final[Tuple[str, ...]] = (
    "category:photographs",
    "category:images of",
    "category:portraits",
)

COMMONS_CAMERA_DUMP_PATTERN: Final[str] = r"(\bimg[_-]\d+\b|\bdsc[_-]\d+\b|\bp\d{6,}\b)"
COMMONS_GALLERY_PATTERN: Final[str] = r"\bgallery\b|\bcollage\b|\bmontage\b|\bset of\b|\bcollection\b"
COMMONS_NON_PHOTO_PATTERN: Final[str] = (
    r"\bmap\b|\bflag\b|\blogo\b|\bcoat of arms\b|\bseal\b|\bdiagram\b|\bchart\b|\binfographic\b"
)

COMMONS_STOPWORDS: Final[Tuple[str, ...]] = (
    "the",
    "a",
    "an",
    "and",
    "or",
    "of",
    "to",
    "in",
    "on",
    "for",
    "with",
    "at",
    "by",
    "from",
    "as",
    "is",
    "are",
    "was",
    "were",
    "be",
    "been",
    "this",
    "that",
    "these",
    "those",
    "it",
)

__all__ = [
    "BARE_NUMBER_PATTERN",
    "COMMONS_ALLOWED_LICENSES",
    "COMMONS_BLOCKED_CATEGORY_SIGNALS",
    "COMMONS_CAMERA_DUMP_PATTERN",
    "COMMONS_GALLERY_PATTERN",
    "COMMONS_HARD_REJECT_TOKENS",
    "COMMONS_MAP_LIKE_KEYWORDS",
    "COMMONS_NON_PHOTO_PATTERN",
    "COMMONS_PHOTO_CATEGORY_SIGNALS",
    "COMMONS_STOPWORDS",
    "CUTOFF_SECTION_PATTERNS",
    "DROP_LINE_PATTERNS",
    "HEADLINE_SHAPE_PATTERN",
    "HONORIFIC_OPENERS",
    "NARRATIVE_OPENERS",
    "SENTENCE_TERMINAL_PATTERN",
    "STANDALONE_CREDIT_PATTERNS",
]
