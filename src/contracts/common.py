"""Common shared contract definitions."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for payloads exchanged as JSON with camelCase keys.

    Attributes stay snake_case in Python; the alias generator maps them to
    the wire names (``ticker_title`` <-> ``tickerTitle``).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """Return a JSON-ready dict keyed by wire names."""

        return self.model_dump(mode="json", by_alias=True)
