from __future__ import annotations

import string

from hypothesis import given, settings
from hypothesis import strategies as st

from src.sanitizer import ArticleSanitizer
from src.utils.text_cleaner import normalize_text, slugify


TEXT_STRATEGY = st.text(alphabet=st.characters(blacklist_categories=("Cs",)))


@given(TEXT_STRATEGY)
@settings(max_examples=150)
def test_normalize_text_strips_controls_and_is_idempotent(raw: str) -> None:
    normalized = normalize_text(raw)
    assert normalize_text(normalized) == normalized
    assert normalized == normalized.strip()
    for forbidden in ("\n", "\r", "\x00"):
        assert forbidden not in normalized


@given(
    st.lists(
        st.text(
            alphabet=string.ascii_letters + string.digits,
            min_size=1,
            max_size=10,
        ),
        min_size=1,
        max_size=6,
    ),
    st.sampled_from([" ", "\n", "\t", "\r", "  \n"]),
)
@settings(max_examples=75)
def test_normalize_text_collapses_whitespace(parts: list[str], spacer: str) -> None:
    raw = spacer.join(parts)
    normalized = normalize_text(raw)
    assert "  " not in normalized
    assert "\n" not in normalized
    assert normalized.split(" ") == normalize_text(" ".join(parts)).split(" ")


@given(st.text(alphabet=string.ascii_letters + " -_.'", min_size=0, max_size=40))
@settings(max_examples=100)
def test_slugify_is_idempotent(label: str) -> None:
    slug = slugify(label)
    assert slugify(slug) == slug
    assert " " not in slug


@st.composite
def article_bodies(draw) -> str:
    sentences = draw(
        st.lists(
            st.text(alphabet=string.ascii_lowercase + " ", min_size=5, max_size=40).map(
                lambda text: text.strip().capitalize() + "."
            ),
            min_size=1,
            max_size=6,
        )
    )
    junk = draw(
        st.lists(
            st.sampled_from(
                [
                    "Advertisement",
                    "Related stories",
                    "",
                    "",
                    "Photo: Reuters",
                ]
            ),
            max_size=4,
        )
    )
    lines = sentences + junk
    return "\n".join(draw(st.permutations(lines)))


@given(article_bodies())
@settings(max_examples=80)
def test_sanitizer_output_is_a_fixed_point(body: str) -> None:
    sanitizer = ArticleSanitizer()
    once = sanitizer.sanitize(body)
    if once is None:
        return
    assert sanitizer.sanitize(once) == once
    assert "\n\n\n" not in once
    assert once == once.strip()

