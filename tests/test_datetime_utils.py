from datetime import datetime, timedelta, timezone

import pytest
from src.utils.datetime_utils import (
    file_timestamp,
    format_display,
    isoformat_utc,
    parse_to_utc,
    to_display_tz,
)


def test_parse_various_tz_strings():
    # GMT string
    dt = parse_to_utc("Tue, 15 Jan 2019 12:45:26 GMT")
    assert dt.tzinfo == timezone.utc
    assert dt.hour == 12

    # ISO with offset -0300
    dt2 = parse_to_utc("2025-09-30T12:00:00-03:00")
    assert dt2 == datetime(2025, 9, 30, 15, 0, tzinfo=timezone.utc)

    # Naive -> treated as UTC
    dt3 = parse_to_utc("2024-01-01 00:00:00")
    assert dt3 == datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [None, "", "not a date at all"])
def test_unparseable_dates_are_none(value):
    assert parse_to_utc(value) is None


def test_aware_datetimes_are_converted():
    local = datetime(2024, 6, 1, 10, 0, tzinfo=timezone(timedelta(hours=2)))
    assert parse_to_utc(local) == datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)


def test_isoformat_utc_uses_millisecond_z_format():
    dt = datetime(2024, 5, 6, 7, 8, 9, 123456, tzinfo=timezone.utc)
    assert isoformat_utc(dt) == "2024-05-06T07:08:09.123Z"
    assert isoformat_utc(datetime(2024, 5, 6)) == "2024-05-06T00:00:00.000Z"


def test_file_timestamps_sort_in_time_order():
    earlier = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
    later = earlier + timedelta(seconds=61)
    assert ":" not in file_timestamp(earlier)
    assert file_timestamp(earlier) < file_timestamp(later)


def test_display_santiago_format():
    base = datetime(2025, 9, 1, 15, 0, tzinfo=timezone.utc)
    local = to_display_tz(base, "America/Santiago")
    if local.tzinfo is timezone.utc:
        pytest.skip("ZoneInfo data for America/Santiago not available")
    assert local.tzinfo is not None
    s = format_display(base, "America/Santiago")
    assert "America" not in s


def test_unknown_display_zone_falls_back_to_utc():
    base = datetime(2025, 9, 1, 15, 0, tzinfo=timezone.utc)
    assert to_display_tz(base, "Mars/Olympus_Mons") == base
