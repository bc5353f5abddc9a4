# src/rewrite/gateway.py
# Client for the external rewrite API
# ===================================

"""
The gateway owns everything between a sanitized article and a validated
``RewriteResponseModel``: prompt construction, the shared sliding-window
quota, the HTTP call, retries with exponential backoff and the automatic
repair of two known request-contract mismatches (token-limit parameter name
and unsupported temperature).

``rewrite`` never raises. Every failure ends as ``None`` plus one structured
log event naming the reason.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter

from newsroom.config_schema import TOKEN_LIMIT_PARAMS
from src.contracts import RawArticleModel, RewriteResponseModel
from src.utils.logger import StructuredLogMixin, get_logger

from .prompt import build_prompt, build_request_payload
from .rate_limiter import SlidingWindowRateLimiter
from .response_parser import parse_rewrite_response

if TYPE_CHECKING:  # pragma: no cover - typing only
    from src.utils.logger import NewsroomLogger

RETRYABLE_STATUS = (429, 500, 502, 503, 504)
QUOTA_ERROR_CODE = "insufficient_quota"


@dataclass
class AutoHealState:
    """Repair guards for one logical rewrite request.

    The temperature guard is fresh per request. The token guard is seeded
    from the gateway, so the parameter name is swapped at most once per
    process.
    """

    token_param: str
    token_param_swapped: bool = False
    temperature_dropped: bool = False

    @staticmethod
    def _other_token_param(param: str) -> str:
        first, second = TOKEN_LIMIT_PARAMS
        return second if param == first else first

    def try_swap_token_param(self, payload: Dict[str, Any], message: str) -> bool:
        """Switch the token-limit parameter if ``message`` rejects it.

        Returns ``False`` once the swap has already been spent.
        """
        if self.token_param_swapped:
            return False
        lowered = message.lower()
        if "unsupported parameter" not in lowered:
            return False
        if not any(param in message for param in TOKEN_LIMIT_PARAMS):
            return False

        # Error texts often name both parameters; the rejected one is the one sent.
        replacement = self._other_token_param(self.token_param)
        value = None
        for param in TOKEN_LIMIT_PARAMS:
            if param in payload:
                value = payload.pop(param)
        payload[replacement] = value
        self.token_param = replacement
        self.token_param_swapped = True
        return True

    def try_drop_temperature(self, payload: Dict[str, Any], message: str) -> bool:
        if self.temperature_dropped or "temperature" not in message.lower():
            return False
        payload.pop("temperature", None)
        self.temperature_dropped = True
        return True


@dataclass
class UpstreamError:
    status: int
    message: str = ""
    type: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def from_response(cls, response: requests.Response) -> "UpstreamError":
        try:
            data = response.json()
        except ValueError:
            data = {}
        error = data.get("error") if isinstance(data, dict) else None
        if not isinstance(error, dict):
            error = {}
        return cls(
            status=response.status_code,
            message=str(error.get("message") or ""),
            type=error.get("type"),
            code=error.get("code"),
        )

    @property
    def is_quota_exhausted(self) -> bool:
        return self.status == 429 and QUOTA_ERROR_CODE in (self.type, self.code)


class RewriteGateway(StructuredLogMixin):
    """Rate-limited, self-healing client for the chat completions endpoint."""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger_factory: Optional["NewsroomLogger"] = None,
    ) -> None:
        if config is None:
            from config.settings import REWRITE_CONFIG

            config = REWRITE_CONFIG
        self.config = dict(config)
        self.api_key: Optional[str] = self.config.get("api_key")
        self.api_url: str = self.config["api_url"]
        self.model: str = self.config["model"]
        self.max_tokens = int(self.config.get("max_completion_tokens", 1400))
        self.temperature: Optional[float] = self.config.get("temperature")
        self.max_retries = int(self.config.get("max_retries", 3))
        self.retry_delay = float(self.config.get("retry_delay_ms", 1000)) / 1000.0
        self.timeout = float(self.config.get("timeout_seconds", 60.0))
        # Learned from upstream rejections; the swap happens at most once per process.
        self.token_param: str = self.config.get("token_param", TOKEN_LIMIT_PARAMS[0])
        self.token_param_swapped = False

        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter.from_config(sleep=sleep)
        self.session = session or self._create_session()
        self._sleep = sleep

        self.logger_factory = logger_factory or get_logger()
        self.module_logger = self.logger_factory.create_module_logger("rewrite.gateway")
        self.stats = {"requests": 0, "succeeded": 0, "failed": 0, "auto_heals": 0}

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({"Content-Type": "application/json"})
        adapter = HTTPAdapter(pool_connections=1, pool_maxsize=2)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def _log_context(self) -> Dict[str, Any]:
        return {"model": self.model}

    # Public API
    # ==========

    def rewrite(
        self,
        article: RawArticleModel,
        *,
        body: Optional[str] = None,
        available_tags: Sequence[str] = (),
        article_index: Optional[int] = None,
    ) -> Optional[RewriteResponseModel]:
        """Rewrite ``article``; ``body`` is the sanitized text when available."""

        try:
            prompt = build_prompt(
                title=article.title,
                excerpt=article.excerpt,
                category=article.category,
                body=body if body is not None else article.body,
                available_tags=available_tags,
            )
            content = self.send(prompt, article_index=article_index)
            if content is None:
                self.stats["failed"] += 1
                return None

            parsed, error = parse_rewrite_response(content)
            if parsed is None:
                self.stats["failed"] += 1
                self._emit_log(
                    "error",
                    "rewrite.response.invalid",
                    article_index=article_index,
                    details={
                        "reason": error.reason if error else "unknown",
                        "problem": error.detail if error else None,
                        "preview": content[:200],
                    },
                )
                return None

            self.stats["succeeded"] += 1
            return parsed
        except Exception as exc:  # isolation boundary: callers never see errors
            self.stats["failed"] += 1
            self._emit_log(
                "error",
                "rewrite.unexpected_error",
                article_index=article_index,
                details={"error": repr(exc)},
            )
            return None

    def send(self, prompt: str, *, article_index: Optional[int] = None) -> Optional[str]:
        """POST ``prompt`` and return the message content, or ``None``."""

        if not self.api_key:
            self._emit_log(
                "error",
                "rewrite.config.missing_api_key",
                article_index=article_index,
            )
            return None

        state = AutoHealState(
            token_param=self.token_param, token_param_swapped=self.token_param_swapped
        )
        payload = build_request_payload(
            prompt,
            model=self.model,
            token_param=state.token_param,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        headers = {"Authorization": f"Bearer {self.api_key}"}

        for attempt in range(self.max_retries + 1):
            waited = self.rate_limiter.wait_for_slot()
            if waited > 0:
                self._emit_log(
                    "debug",
                    "rewrite.rate_limit.waited",
                    article_index=article_index,
                    latency=round(waited, 3),
                )

            started = time.perf_counter()
            try:
                self.stats["requests"] += 1
                response = self.session.post(
                    self.api_url, json=payload, headers=headers, timeout=self.timeout
                )
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as exc:
                self.rate_limiter.record_request()
                if attempt < self.max_retries:
                    self._backoff(attempt, article_index, reason=type(exc).__name__)
                    continue
                self._emit_log(
                    "error",
                    "rewrite.request.retry_exhausted",
                    article_index=article_index,
                    details={"error": str(exc), "attempts": attempt + 1},
                )
                return None
            except requests.exceptions.RequestException as exc:
                self.rate_limiter.record_request()
                self._emit_log(
                    "error",
                    "rewrite.request.failed",
                    article_index=article_index,
                    details={"error": str(exc), "attempt": attempt + 1},
                )
                return None

            self.rate_limiter.record_request()
            latency = round(time.perf_counter() - started, 3)

            if response.status_code < 400:
                return self._handle_success(response, article_index, latency)

            error = UpstreamError.from_response(response)

            if error.status == 400 and state.try_swap_token_param(payload, error.message):
                self.token_param = state.token_param
                self.token_param_swapped = True
                self.stats["auto_heals"] += 1
                self._emit_log(
                    "warning",
                    "rewrite.auto_heal.token_param",
                    article_index=article_index,
                    details={"now_using": state.token_param},
                )
                continue

            if error.status == 400 and state.try_drop_temperature(payload, error.message):
                self.stats["auto_heals"] += 1
                self._emit_log(
                    "warning",
                    "rewrite.auto_heal.temperature_dropped",
                    article_index=article_index,
                )
                continue

            if error.is_quota_exhausted:
                self._emit_log(
                    "critical",
                    "rewrite.quota_exhausted",
                    article_index=article_index,
                    details={
                        "status_code": error.status,
                        "message": error.message,
                        "action": "check billing and plan of the rewrite API account",
                    },
                )
                return None

            if error.status in RETRYABLE_STATUS and attempt < self.max_retries:
                self._backoff(attempt, article_index, reason=f"http_{error.status}")
                continue

            self._emit_log(
                "error",
                "rewrite.request.rejected",
                article_index=article_index,
                latency=latency,
                details={
                    "status_code": error.status,
                    "message": error.message or None,
                    "type": error.type,
                    "code": error.code,
                    "attempt": attempt + 1,
                },
            )
            return None

        self._emit_log(
            "error",
            "rewrite.request.retry_exhausted",
            article_index=article_index,
            details={"attempts": self.max_retries + 1},
        )
        return None

    # Internals
    # =========

    def _handle_success(
        self,
        response: requests.Response,
        article_index: Optional[int],
        latency: float,
    ) -> Optional[str]:
        try:
            data = response.json()
        except ValueError:
            self._emit_log(
                "error",
                "rewrite.response.not_json",
                article_index=article_index,
                latency=latency,
            )
            return None

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            self._emit_log(
                "error",
                "rewrite.response.no_choices",
                article_index=article_index,
                latency=latency,
            )
            return None

        choice = choices[0] or {}
        if choice.get("finish_reason") == "length":
            self._emit_log(
                "warning",
                "rewrite.response.truncated",
                article_index=article_index,
                details={"token_limit": self.max_tokens},
            )

        content = (choice.get("message") or {}).get("content")
        if not isinstance(content, str) or not content.strip():
            self._emit_log(
                "error",
                "rewrite.response.empty_content",
                article_index=article_index,
                latency=latency,
                details={"finish_reason": choice.get("finish_reason")},
            )
            return None

        self._emit_log(
            "info",
            "rewrite.request.completed",
            article_index=article_index,
            latency=latency,
            details={"usage": data.get("usage")},
        )
        return content

    def _backoff(self, attempt: int, article_index: Optional[int], *, reason: str) -> None:
        delay = self.retry_delay * (2**attempt)
        self._emit_log(
            "warning",
            "rewrite.request.retry",
            article_index=article_index,
            details={
                "reason": reason,
                "delay_seconds": delay,
                "attempt": attempt + 1,
                "max_attempts": self.max_retries + 1,
            },
        )
        self._sleep(delay)
