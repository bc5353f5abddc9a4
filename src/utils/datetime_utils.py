from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_utc(dt: Optional[datetime] = None) -> str:
    """Render ``dt`` (default: now) as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    dt = dt or utc_now()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def file_timestamp(dt: Optional[datetime] = None) -> str:
    """Filesystem-safe ISO timestamp; sorts lexicographically in time order."""
    return isoformat_utc(dt).replace(":", "-").replace(".", "-")


def parse_to_utc(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse a page or JSON-LD date into an aware UTC datetime.

    Returns ``None`` for empty or unparseable input; naive values are
    assumed to be UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = date_parser.parse(str(value))
        except (ValueError, OverflowError):
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_display_tz(dt_utc: datetime, tz: str = "UTC") -> datetime:
    """Convert a UTC datetime to the given display timezone (zoneinfo key)."""
    if dt_utc.tzinfo is None:
        dt_utc = dt_utc.replace(tzinfo=timezone.utc)
    try:
        return dt_utc.astimezone(ZoneInfo(tz))
    except ZoneInfoNotFoundError:
        return dt_utc


def format_display(
    dt_utc: datetime, tz: str = "UTC", fmt: str = "%Y-%m-%d %H:%M:%S %Z%z"
) -> str:
    """Format a UTC datetime for display in the requested timezone."""
    return to_display_tz(dt_utc, tz).strftime(fmt)
