"""Test doubles shared by the test-suite (loggers, HTTP responses, sessions)."""

from __future__ import annotations

import copy
import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests


class StubModuleLogger:
    """Captures structured log payloads for assertions."""

    def __init__(self) -> None:
        self.records: List[Tuple[str, Dict[str, Any]]] = []

    def _capture(self, level: str, payload: Any) -> None:
        self.records.append((level, payload if isinstance(payload, dict) else {"message": payload}))

    def debug(self, payload: Any) -> None:
        self._capture("debug", payload)

    def info(self, payload: Any) -> None:
        self._capture("info", payload)

    def warning(self, payload: Any) -> None:
        self._capture("warning", payload)

    def error(self, payload: Any) -> None:
        self._capture("error", payload)

    def critical(self, payload: Any) -> None:
        self._capture("critical", payload)

    def events(self, level: Optional[str] = None) -> List[str]:
        return [
            payload.get("event")
            for record_level, payload in self.records
            if level is None or record_level == level
        ]

    def find(self, event: str) -> List[Dict[str, Any]]:
        return [payload for _level, payload in self.records if payload.get("event") == event]


class StubLoggerFactory:
    """Stands in for ``NewsroomLogger``; every module shares one stub logger."""

    def __init__(self) -> None:
        self.module_logger = StubModuleLogger()
        self.modules: List[str] = []
        self.errors: List[Tuple[Exception, Dict[str, Any]]] = []

    def create_module_logger(self, module_name: str) -> StubModuleLogger:
        self.modules.append(module_name)
        return self.module_logger

    def log_system_startup(self, version: str = "0.0.0", config_summary=None) -> None:
        pass

    def log_error_with_context(self, error: Exception, context=None) -> None:
        self.errors.append((error, dict(context or {})))


class DummyResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self._text = text

    @property
    def text(self) -> str:
        return self._text

    @property
    def content(self) -> bytes:
        return self._text.encode("utf-8")

    def json(self) -> Any:
        if self._payload is None:
            return json.loads(self._text)
        return self._payload

    def raise_for_status(self) -> None:
        if 400 <= self.status_code < 600:
            raise requests.exceptions.HTTPError(f"HTTP {self.status_code}")


Responder = Callable[[str, Dict[str, Any]], Any]


class FakeSession:
    """Replays queued responses (or exceptions) and records every call.

    ``responder`` may be given instead of a queue to answer based on the
    URL and keyword arguments of the call.
    """

    def __init__(self, responses: Optional[List[Any]] = None, responder: Optional[Responder] = None):
        self.responses = list(responses or [])
        self.responder = responder
        self.calls: List[Dict[str, Any]] = []
        self.headers: Dict[str, str] = {}

    def _next(self, method: str, url: str, kwargs: Dict[str, Any]) -> Any:
        self.calls.append({"method": method, "url": url, **copy.deepcopy(kwargs)})
        if self.responder is not None:
            result = self.responder(url, kwargs)
        elif self.responses:
            result = self.responses.pop(0)
        else:
            raise AssertionError(f"unexpected {method} {url}")
        if isinstance(result, BaseException):
            raise result
        return result

    def get(self, url: str, **kwargs: Any) -> Any:
        return self._next("GET", url, kwargs)

    def post(self, url: str, **kwargs: Any) -> Any:
        return self._next("POST", url, kwargs)


class FakeClock:
    """Manual timeline: ``sleep`` advances ``now``."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds
