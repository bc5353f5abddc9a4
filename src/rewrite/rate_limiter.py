"""Sliding-window limiter guarding the rewrite API quota."""

from __future__ import annotations

import time
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional


class SlidingWindowRateLimiter:
    """
    Allow at most ``max_requests`` calls inside any trailing ``window`` seconds.

    Timestamps live in memory only and are owned by a single caller thread.
    ``wait_for_slot`` blocks (through the injected ``sleep``) until the oldest
    request has left the window; ``record_request`` must be called after the
    request is actually issued.
    """

    def __init__(
        self,
        max_requests: int = 3,
        window: float = 60.0,
        safety_buffer: float = 0.1,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")
        self.max_requests = max_requests
        self.window = window
        self.safety_buffer = max(0.0, safety_buffer)
        self._clock = clock
        self._sleep = sleep
        self._timestamps: Deque[float] = deque()
        self.total_wait = 0.0

    @classmethod
    def from_config(
        cls, config: Optional[Dict[str, Any]] = None, **kwargs: Any
    ) -> "SlidingWindowRateLimiter":
        """Build from a ``RATE_LIMITING_CONFIG``-shaped mapping."""
        if config is None:
            from config.settings import RATE_LIMITING_CONFIG

            config = RATE_LIMITING_CONFIG
        return cls(
            max_requests=int(config["max_requests"]),
            window=float(config["window_ms"]) / 1000.0,
            safety_buffer=float(config.get("safety_buffer_ms", 100)) / 1000.0,
            **kwargs,
        )

    def _cleanup(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.window:
            self._timestamps.popleft()

    def wait_for_slot(self) -> float:
        """Block until a request may be issued; return the seconds waited."""
        waited = 0.0
        while True:
            now = self._clock()
            self._cleanup(now)
            if len(self._timestamps) < self.max_requests:
                self.total_wait += waited
                return waited
            oldest = self._timestamps[0]
            delay = self.window - (now - oldest) + self.safety_buffer
            if delay > 0:
                self._sleep(delay)
                waited += delay

    def record_request(self) -> None:
        now = self._clock()
        self._timestamps.append(now)
        self._cleanup(now)

    def current_count(self) -> int:
        self._cleanup(self._clock())
        return len(self._timestamps)

    def reset(self) -> None:
        self._timestamps.clear()
        self.total_wait = 0.0
