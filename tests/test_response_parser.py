from __future__ import annotations

import json

import pytest

from src.rewrite.response_parser import (
    ResponseParseError,
    parse_rewrite_response,
    parse_strict,
    ticker_from_title,
)


def _answer(**overrides) -> dict:
    data = {
        "title": "City council approves new transit budget",
        "tickerTitle": "Transit budget approved",
        "excerpt": "The council voted 7-2 to fund three new bus lines.",
        "body": "The council voted on Tuesday.\n\nThree new lines will open next year.",
        "imageKeyword": "Bus",
        "tags": ["Politics", "Transport", "Local"],
    }
    data.update(overrides)
    return data


def test_json_is_extracted_from_surrounding_prose() -> None:
    text = "Sure, here is the rewrite:\n```json\n" + json.dumps(_answer()) + "\n```\nThanks!"

    response = parse_strict(text)

    assert response.title == "City council approves new transit budget"
    assert response.ticker_title == "Transit budget approved"
    assert response.tags == ["Politics", "Transport", "Local"]
    assert response.to_payload()["imageKeyword"] == "Bus"


def test_missing_ticker_title_is_derived_from_the_title() -> None:
    title = "Regional water authority announces emergency conservation measures"
    data = _answer(title=title)
    del data["tickerTitle"]

    response = parse_strict(json.dumps(data))

    assert response.ticker_title == title[:42] + "..."
    assert ticker_from_title("Short title") == "Short title"


def test_overlong_fields_and_extra_tags_are_enforced_before_validation() -> None:
    data = _answer(title="Word " * 50, tags=["A", "B", "C", "D"])

    response = parse_strict(json.dumps(data))

    assert len(response.title) <= 160
    assert response.tags == ["A", "B", "C"]


@pytest.mark.parametrize(
    "text, reason",
    [
        ("", "empty_response"),
        ("no braces at all", "no_json_object"),
        ("{not valid json}", "invalid_json"),
        (json.dumps(_answer(tags=["Only", "Two"])), "contract_violation"),
        (json.dumps(_answer(extra="field")), "contract_violation"),
        (json.dumps(_answer(body="")), "contract_violation"),
    ],
)
def test_defects_are_reported_with_a_reason(text: str, reason: str) -> None:
    with pytest.raises(ResponseParseError) as excinfo:
        parse_strict(text)
    assert excinfo.value.reason == reason


def test_parse_rewrite_response_never_raises() -> None:
    response, error = parse_rewrite_response(None)
    assert response is None
    assert error is not None and error.reason == "empty_response"

    response, error = parse_rewrite_response(json.dumps(_answer()))
    assert error is None
    assert response is not None
