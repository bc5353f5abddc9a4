"""Rewrite stage: prompt, quota, API client and output enforcement."""

from .gateway import AutoHealState, RewriteGateway
from .output_enforcer import enforce, trim_to_max_chars
from .prompt import build_prompt, build_request_payload
from .rate_limiter import SlidingWindowRateLimiter
from .response_parser import ResponseParseError, parse_rewrite_response, parse_strict

__all__ = [
    "AutoHealState",
    "ResponseParseError",
    "RewriteGateway",
    "SlidingWindowRateLimiter",
    "build_prompt",
    "build_request_payload",
    "enforce",
    "parse_rewrite_response",
    "parse_strict",
    "trim_to_max_chars",
]
