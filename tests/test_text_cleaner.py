from hypothesis import given, settings
from hypothesis import strategies as st

from src.utils.text_cleaner import join_paragraphs, normalize_text, slugify, strip_markup


def test_strip_markup_keeps_visible_text_only():
    html = """
    <span><script>alert(1)</script><a href="//commons.wikimedia.org/wiki/User:Ann">Ann
    Lee</a> &amp; friends</span>
    """
    cleaned = strip_markup(html)
    assert "alert(1)" not in cleaned
    assert cleaned == "Ann Lee & friends"


def test_strip_markup_plain_text_is_only_normalized():
    assert strip_markup("  CC  BY-SA 4.0 ") == "CC BY-SA 4.0"
    assert strip_markup(None) == ""


def test_normalize_text_is_deterministic_and_idempotent():
    s = "  The  post   Café  appeared\n first  on  X  "
    a = normalize_text(s)
    b = normalize_text(a)
    assert a == b
    assert "Café" in a


def test_join_paragraphs_skips_blank_paragraphs():
    assert join_paragraphs(["  First  one ", "", "\n", "Second"]) == "First one\n\nSecond"


def test_slugify():
    assert slugify("Climate Change") == "climate-change"
    assert slugify("  U.S. News ") == "u-s-news"


@given(text=st.text())
@settings(max_examples=75)
def test_normalize_text_idempotent_property(text: str) -> None:
    once = normalize_text(text)
    twice = normalize_text(once)
    assert once == twice


@given(
    leading=st.text(),
    body_words=st.lists(st.text(min_size=1), min_size=1, max_size=5),
    trailing=st.text(),
)
@settings(max_examples=50)
def test_strip_markup_strips_scripts_and_controls(
    leading: str, body_words: list[str], trailing: str
) -> None:
    payload = f"""
    <div><script>malicious()</script><style>body{{}}</style>
    {leading}<p>{' '.join(body_words)}</p>{trailing}</div>
    """

    cleaned = strip_markup(payload)

    assert "malicious()" not in cleaned
    assert "<script" not in cleaned.lower()
    assert "\n" not in cleaned
    assert cleaned == normalize_text(cleaned)
