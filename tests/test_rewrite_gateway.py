from __future__ import annotations

import json

import pytest
import requests

from src.contracts import RawArticleModel
from src.rewrite import RewriteGateway, SlidingWindowRateLimiter
from stubs import DummyResponse, FakeClock, FakeSession

API_URL = "https://api.example.test/v1/chat/completions"

GOOD_ANSWER = {
    "title": "Storm forces closure of coastal highway",
    "tickerTitle": "Coastal highway closed",
    "excerpt": "Crews expect to reopen the road by Friday.",
    "body": "A storm closed the highway.\n\nCrews are clearing debris.",
    "imageKeyword": "Highway",
    "tags": ["Weather", "Transport", "Local"],
}

TOKEN_PARAM_ERROR = (
    "Unsupported parameter: 'max_completion_tokens' is not supported with this model. "
    "Use 'max_tokens' instead."
)


def _completion(content: str, finish_reason: str = "stop") -> DummyResponse:
    return DummyResponse(
        200,
        {
            "choices": [{"message": {"content": content}, "finish_reason": finish_reason}],
            "usage": {"total_tokens": 321},
        },
    )


def _error(status: int, message: str = "", **error_fields) -> DummyResponse:
    return DummyResponse(status, {"error": {"message": message, **error_fields}})


def _article() -> RawArticleModel:
    return RawArticleModel.model_validate(
        {
            "url": "https://news.example.test/storm",
            "title": "Storm closes highway",
            "excerpt": "Highway shut",
            "category": "Weather",
            "body": "Original body with junk.",
            "origin": "exampleWeather",
        }
    )


def _gateway(
    session: FakeSession,
    clock: FakeClock,
    logger_factory,
    **config_overrides,
) -> RewriteGateway:
    config = {
        "api_key": "sk-test",
        "api_url": API_URL,
        "model": "test-model",
        "max_completion_tokens": 1400,
        "max_retries": 3,
        "retry_delay_ms": 1000,
        "timeout_seconds": 5,
    }
    config.update(config_overrides)
    limiter = SlidingWindowRateLimiter(
        max_requests=100, window=60.0, clock=clock, sleep=clock.sleep
    )
    return RewriteGateway(
        config,
        rate_limiter=limiter,
        session=session,
        sleep=clock.sleep,
        logger_factory=logger_factory,
    )


def test_successful_rewrite_sends_expected_request(clock, logger_factory, stub_logger) -> None:
    session = FakeSession([_completion(json.dumps(GOOD_ANSWER))])
    gateway = _gateway(session, clock, logger_factory)

    result = gateway.rewrite(
        _article(),
        body="Sanitized body.",
        available_tags=["Weather", "Transport"],
        article_index=0,
    )

    assert result is not None
    assert result.ticker_title == "Coastal highway closed"
    call = session.calls[0]
    assert call["url"] == API_URL
    assert call["headers"] == {"Authorization": "Bearer sk-test"}
    assert call["timeout"] == 5.0
    payload = call["json"]
    assert payload["model"] == "test-model"
    assert payload["max_completion_tokens"] == 1400
    assert "temperature" not in payload
    prompt = payload["messages"][0]["content"]
    assert "Body: Sanitized body." in prompt
    assert "chosen from: Weather, Transport" in prompt
    assert "sk-test" not in json.dumps(stub_logger.records)
    assert gateway.stats["succeeded"] == 1


def test_token_parameter_is_swapped_once_and_remembered(clock, logger_factory, stub_logger) -> None:
    session = FakeSession(
        [
            _error(400, TOKEN_PARAM_ERROR),
            _completion(json.dumps(GOOD_ANSWER)),
            _completion(json.dumps(GOOD_ANSWER)),
        ]
    )
    gateway = _gateway(session, clock, logger_factory)

    assert gateway.rewrite(_article()) is not None

    healed_payload = session.calls[1]["json"]
    assert healed_payload["max_tokens"] == 1400
    assert "max_completion_tokens" not in healed_payload
    assert gateway.token_param == "max_tokens"
    assert clock.sleeps == []
    assert stub_logger.find("rewrite.auto_heal.token_param")

    gateway.rewrite(_article())
    assert "max_tokens" in session.calls[2]["json"]


def test_second_token_rejection_is_not_healed_again(clock, logger_factory, stub_logger) -> None:
    session = FakeSession([_error(400, TOKEN_PARAM_ERROR), _error(400, TOKEN_PARAM_ERROR)])
    gateway = _gateway(session, clock, logger_factory)

    assert gateway.rewrite(_article()) is None
    assert len(session.calls) == 2
    assert stub_logger.find("rewrite.request.rejected")


def test_unsupported_temperature_is_dropped(clock, logger_factory) -> None:
    session = FakeSession(
        [
            _error(400, "Unsupported value: 'temperature' does not support 0.7 with this model."),
            _completion(json.dumps(GOOD_ANSWER)),
        ]
    )
    gateway = _gateway(session, clock, logger_factory, temperature=0.7)

    assert gateway.rewrite(_article()) is not None
    assert session.calls[0]["json"]["temperature"] == 0.7
    assert "temperature" not in session.calls[1]["json"]


def test_quota_exhaustion_is_not_retried(clock, logger_factory, stub_logger) -> None:
    session = FakeSession(
        [_error(429, "You exceeded your current quota", type="insufficient_quota")]
    )
    gateway = _gateway(session, clock, logger_factory)

    assert gateway.rewrite(_article()) is None
    assert len(session.calls) == 1
    assert clock.sleeps == []
    levels = [level for level, payload in stub_logger.records if payload.get("event") == "rewrite.quota_exhausted"]
    assert levels == ["critical"]


def test_rate_limit_and_server_errors_back_off_exponentially(clock, logger_factory) -> None:
    session = FakeSession(
        [
            _error(429, "Rate limit reached", type="requests"),
            _error(503, "Overloaded"),
            _completion(json.dumps(GOOD_ANSWER)),
        ]
    )
    gateway = _gateway(session, clock, logger_factory)

    assert gateway.rewrite(_article()) is not None
    assert clock.sleeps == [1.0, 2.0]


def test_network_errors_exhaust_retries(clock, logger_factory, stub_logger) -> None:
    session = FakeSession([requests.exceptions.Timeout("slow")] * 3)
    gateway = _gateway(session, clock, logger_factory, max_retries=2)

    assert gateway.rewrite(_article()) is None
    assert len(session.calls) == 3
    assert clock.sleeps == [1.0, 2.0]
    assert stub_logger.find("rewrite.request.retry_exhausted")


def test_missing_api_key_skips_the_call(clock, logger_factory, stub_logger) -> None:
    session = FakeSession([])
    gateway = _gateway(session, clock, logger_factory, api_key=None)

    assert gateway.rewrite(_article()) is None
    assert session.calls == []
    assert stub_logger.find("rewrite.config.missing_api_key")


@pytest.mark.parametrize(
    "content",
    ["I cannot help with that.", json.dumps({**GOOD_ANSWER, "tags": ["One"]})],
)
def test_unusable_answers_become_none(content, clock, logger_factory, stub_logger) -> None:
    gateway = _gateway(FakeSession([_completion(content)]), clock, logger_factory)

    assert gateway.rewrite(_article()) is None
    assert stub_logger.find("rewrite.response.invalid")
    assert gateway.stats["failed"] == 1


def test_truncated_answer_is_logged(clock, logger_factory, stub_logger) -> None:
    session = FakeSession([_completion(json.dumps(GOOD_ANSWER), finish_reason="length")])
    gateway = _gateway(session, clock, logger_factory)

    assert gateway.rewrite(_article()) is not None
    assert stub_logger.find("rewrite.response.truncated")


def test_rate_limiter_spaces_requests_across_articles(logger_factory) -> None:
    clock = FakeClock()
    session = FakeSession([_completion(json.dumps(GOOD_ANSWER)) for _ in range(3)])
    limiter = SlidingWindowRateLimiter(
        max_requests=2, window=60.0, safety_buffer=0.0, clock=clock, sleep=clock.sleep
    )
    gateway = RewriteGateway(
        {"api_key": "k", "api_url": API_URL, "model": "m"},
        rate_limiter=limiter,
        session=session,
        sleep=clock.sleep,
        logger_factory=logger_factory,
    )

    for _ in range(3):
        assert gateway.rewrite(_article()) is not None

    assert clock.sleeps == [60.0]


REVERSE_TOKEN_PARAM_ERROR = (
    "Unsupported parameter: 'max_tokens' is not supported with this model. "
    "Use 'max_completion_tokens' instead."
)


def test_max_tokens_rejection_switches_to_max_completion_tokens(clock, logger_factory) -> None:
    session = FakeSession(
        [_error(400, REVERSE_TOKEN_PARAM_ERROR), _completion(json.dumps(GOOD_ANSWER))]
    )
    gateway = _gateway(session, clock, logger_factory, token_param="max_tokens")

    assert gateway.rewrite(_article()) is not None

    assert session.calls[0]["json"]["max_tokens"] == 1400
    healed_payload = session.calls[1]["json"]
    assert healed_payload["max_completion_tokens"] == 1400
    assert "max_tokens" not in healed_payload
    assert gateway.token_param == "max_completion_tokens"


def test_token_parameter_never_toggles_back(clock, logger_factory, stub_logger) -> None:
    session = FakeSession(
        [
            _error(400, TOKEN_PARAM_ERROR),
            _completion(json.dumps(GOOD_ANSWER)),
            _error(400, REVERSE_TOKEN_PARAM_ERROR),
        ]
    )
    gateway = _gateway(session, clock, logger_factory)

    assert gateway.rewrite(_article()) is not None
    assert gateway.rewrite(_article()) is None

    sent = [
        [name for name in ("max_tokens", "max_completion_tokens") if name in call["json"]]
        for call in session.calls
    ]
    assert sent == [["max_completion_tokens"], ["max_tokens"], ["max_tokens"]]
    assert gateway.token_param == "max_tokens"
    assert len(stub_logger.find("rewrite.auto_heal.token_param")) == 1
    assert stub_logger.find("rewrite.request.rejected")


@pytest.mark.parametrize("message", [{"content": None}, {"content": "   "}, {}])
def test_empty_message_content_is_reported(message, clock, logger_factory, stub_logger) -> None:
    response = DummyResponse(200, {"choices": [{"message": message, "finish_reason": "stop"}]})
    gateway = _gateway(FakeSession([response]), clock, logger_factory)

    assert gateway.rewrite(_article()) is None
    assert stub_logger.find("rewrite.response.empty_content")
    assert not stub_logger.find("rewrite.request.completed")
    assert gateway.stats["failed"] == 1
