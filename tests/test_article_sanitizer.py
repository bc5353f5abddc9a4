from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from src.sanitizer import ArticleSanitizer


def test_related_marker_cuts_off_the_rest_of_the_body() -> None:
    body = (
        "Officials confirmed the plan on Monday.\n"
        "Related: Storm season outlook\n"
        "This paragraph belongs to another story."
    )
    sanitizer = ArticleSanitizer()

    assert sanitizer.sanitize(body) == "Officials confirmed the plan on Monday."
    assert sanitizer.last_stats.cut_off is True


def test_promo_credit_and_headline_lines_are_dropped() -> None:
    body = "\n".join(
        [
            "The council approved the budget on Tuesday.",
            "Sign up for our morning newsletter.",
            "CBS News",
            "Stocks Rally As Fed Holds Rates Steady",
            "In other business, the mayor thanked volunteers.",
        ]
    )
    sanitizer = ArticleSanitizer()

    cleaned = sanitizer.sanitize(body)

    assert cleaned == (
        "The council approved the budget on Tuesday.\n"
        "In other business, the mayor thanked volunteers."
    )
    stats = sanitizer.last_stats
    assert stats.dropped_junk == 1
    assert stats.dropped_credit == 1
    assert stats.dropped_headline == 1


def test_blank_lines_collapse_to_one() -> None:
    body = "\n\nFirst paragraph here.\n\n\n\nSecond paragraph here.\n\n"
    assert ArticleSanitizer().sanitize(body) == "First paragraph here.\n\nSecond paragraph here."


def test_nothing_left_gives_none() -> None:
    sanitizer = ArticleSanitizer()
    assert sanitizer.sanitize(None) is None
    assert sanitizer.sanitize("") is None
    assert sanitizer.sanitize("Subscribe to our newsletter\nAll rights reserved") is None


def test_headline_heuristic_keeps_sentences_and_numbers() -> None:
    sanitizer = ArticleSanitizer()
    assert sanitizer.looks_like_headline_spam("Markets Slide After Jobs Report") is True
    assert sanitizer.looks_like_headline_spam("Markets slid after the jobs report.") is False
    assert sanitizer.looks_like_headline_spam("42%") is False
    assert sanitizer.looks_like_headline_spam("Mr. Smith Goes To Washington") is False
    assert sanitizer.looks_like_headline_spam("Quote: a colon disqualifies") is False


def test_from_config_ignores_unknown_keys() -> None:
    sanitizer = ArticleSanitizer.from_config(
        {"cutoff_section_patterns": [r"^stop here$"], "not_a_field": True}
    )
    assert sanitizer.sanitize("Keep this line.\nstop here\nDrop this.") == "Keep this line."


_WORDS = st.sampled_from(
    ["council", "approved", "budget", "river", "city", "school", "water", "report", "state", "road"]
)
_SENTENCE = st.lists(_WORDS, min_size=3, max_size=12).map(lambda words: " ".join(words) + ".")
_PARAGRAPHS = st.lists(_SENTENCE, min_size=1, max_size=6)


@given(_PARAGRAPHS)
@settings(max_examples=60)
def test_clean_prose_survives_and_sanitizing_is_idempotent(paragraphs: list[str]) -> None:
    sanitizer = ArticleSanitizer()
    body = "\n\n".join(paragraphs)

    once = sanitizer.sanitize(body)

    assert once == body
    assert sanitizer.sanitize(once) == once
