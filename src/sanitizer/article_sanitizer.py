# src/sanitizer/article_sanitizer.py
# Body cleaning before text leaves the process
# ============================================

"""
Scraped bodies carry promos, credit lines, "related stories" tails and
headlines of unrelated articles appended by some publishers. The sanitizer
removes them line by line. It errs on the side of keeping text: a spam line
that survives is cheaper than a real paragraph that disappears.

All patterns come from ``SanitizerConfig`` so they can be retuned from
``config.toml`` without code changes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern, Sequence

from newsroom import pattern_tables


def _compile_all(patterns: Sequence[str], flags: int = re.IGNORECASE) -> List[Pattern[str]]:
    return [re.compile(pattern, flags) for pattern in patterns]


def _opener_pattern(openers: Sequence[str]) -> Optional[Pattern[str]]:
    if not openers:
        return None
    alternatives = "|".join(re.escape(opener) for opener in openers)
    return re.compile(rf"^(?:{alternatives})(?!\w)", re.IGNORECASE)


@dataclass
class SanitizerStats:
    lines_in: int = 0
    lines_kept: int = 0
    dropped_junk: int = 0
    dropped_credit: int = 0
    dropped_headline: int = 0
    cut_off: bool = False


@dataclass
class ArticleSanitizer:
    """Line-oriented cleaner for scraped article bodies."""

    drop_line_patterns: Sequence[str] = field(
        default_factory=lambda: list(pattern_tables.DROP_LINE_PATTERNS)
    )
    cutoff_section_patterns: Sequence[str] = field(
        default_factory=lambda: list(pattern_tables.CUTOFF_SECTION_PATTERNS)
    )
    standalone_credit_patterns: Sequence[str] = field(
        default_factory=lambda: list(pattern_tables.STANDALONE_CREDIT_PATTERNS)
    )
    headline_max_length: int = 120
    headline_max_commas: int = 1
    headline_shape_pattern: str = pattern_tables.HEADLINE_SHAPE_PATTERN
    sentence_terminal_pattern: str = pattern_tables.SENTENCE_TERMINAL_PATTERN
    bare_number_pattern: str = pattern_tables.BARE_NUMBER_PATTERN
    honorific_openers: Sequence[str] = field(
        default_factory=lambda: list(pattern_tables.HONORIFIC_OPENERS)
    )
    narrative_openers: Sequence[str] = field(
        default_factory=lambda: list(pattern_tables.NARRATIVE_OPENERS)
    )

    def __post_init__(self) -> None:
        self._drop = _compile_all(self.drop_line_patterns)
        self._cutoff = _compile_all(self.cutoff_section_patterns)
        self._credit = _compile_all(self.standalone_credit_patterns)
        # Headline shape relies on case: no IGNORECASE here.
        self._shape = re.compile(self.headline_shape_pattern)
        self._terminal = re.compile(self.sentence_terminal_pattern)
        self._bare_number = re.compile(self.bare_number_pattern)
        self._honorific = _opener_pattern(self.honorific_openers)
        self._narrative = _opener_pattern(self.narrative_openers)
        self.last_stats = SanitizerStats()

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "ArticleSanitizer":
        """Build from a ``SANITIZER_CONFIG``-shaped mapping."""
        if config is None:
            from config.settings import SANITIZER_CONFIG

            config = SANITIZER_CONFIG
        known = cls.__dataclass_fields__.keys()
        return cls(**{key: value for key, value in config.items() if key in known})

    def sanitize(self, body: Optional[str]) -> Optional[str]:
        """Return the cleaned body, or ``None`` when nothing survives."""
        stats = SanitizerStats()
        self.last_stats = stats
        if not body:
            return None

        cleaned: List[str] = []
        empty_streak = 0

        for raw_line in body.replace("\r\n", "\n").split("\n"):
            line = raw_line.strip()
            stats.lines_in += 1

            if not line:
                empty_streak += 1
                if empty_streak <= 1 and cleaned:
                    cleaned.append("")
                continue
            empty_streak = 0

            if any(pattern.search(line) for pattern in self._cutoff):
                stats.cut_off = True
                break

            if any(pattern.search(line) for pattern in self._drop):
                stats.dropped_junk += 1
                continue

            if any(pattern.search(line) for pattern in self._credit):
                stats.dropped_credit += 1
                continue

            if self.looks_like_headline_spam(line):
                stats.dropped_headline += 1
                continue

            cleaned.append(line)

        while cleaned and cleaned[-1] == "":
            cleaned.pop()

        stats.lines_kept = sum(1 for line in cleaned if line)
        result = "\n".join(cleaned).strip()
        return result or None

    def looks_like_headline_spam(self, line: str) -> bool:
        """Heuristic for headlines of other articles appended to a body."""
        if len(line) > self.headline_max_length:
            return False
        if self._terminal.search(line):
            return False
        if self._bare_number.search(line):
            return False
        if self._honorific is not None and self._honorific.search(line):
            return False
        if self._narrative is not None and self._narrative.search(line):
            return False
        if not self._shape.search(line):
            return False
        return line.count(",") <= self.headline_max_commas

