"""Turn raw model text into a validated ``RewriteResponseModel``."""

from __future__ import annotations

import json
import re
from typing import Any, Optional, Tuple

from pydantic import ValidationError

from src.contracts import TICKER_TITLE_MAX_CHARS, RewriteResponseModel

from .output_enforcer import enforce

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


class ResponseParseError(ValueError):
    """Raised by ``parse_strict`` with a short machine-readable reason."""

    def __init__(self, reason: str, detail: str = "") -> None:
        super().__init__(f"{reason}: {detail}" if detail else reason)
        self.reason = reason
        self.detail = detail


def ticker_from_title(title: str) -> str:
    if len(title) > TICKER_TITLE_MAX_CHARS:
        return title[: TICKER_TITLE_MAX_CHARS - 3] + "..."
    return title


def parse_strict(text: Optional[str]) -> RewriteResponseModel:
    """Parse and validate ``text``; raise ``ResponseParseError`` on any defect."""

    if not text:
        raise ResponseParseError("empty_response")
    match = _JSON_BLOCK.search(text)
    if match is None:
        raise ResponseParseError("no_json_object")
    try:
        data: Any = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ResponseParseError("invalid_json", str(exc)) from exc
    if not isinstance(data, dict):
        raise ResponseParseError("not_an_object")

    data = enforce(data)
    if not data.get("tickerTitle") and isinstance(data.get("title"), str):
        data["tickerTitle"] = ticker_from_title(data["title"])

    try:
        return RewriteResponseModel.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ResponseParseError("contract_violation", problems) from exc


def parse_rewrite_response(
    text: Optional[str],
) -> Tuple[Optional[RewriteResponseModel], Optional[ResponseParseError]]:
    """Return ``(response, None)`` on success or ``(None, error)``."""

    try:
        return parse_strict(text), None
    except ResponseParseError as exc:
        return None, exc
