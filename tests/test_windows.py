"""Tests for `sunset_bot.core.windows`."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from conftest import NOW, utc
from sunset_bot.core.models import PlannedAtAttribute
from sunset_bot.core.windows import (
    AUTO_MOVE_LOOKBACK,
    WindowName,
    compute_window,
    day_bounds,
    get_zone,
    iso_week_end,
)

UTC = ZoneInfo("UTC")
ZONES = ["UTC", "America/New_York", "Asia/Tokyo", "Australia/Lord_Howe", "Pacific/Kiritimati"]
REFERENCES = [
    NOW,
    utc(2026, 10, 14, 2, 0),
    utc(2026, 10, 31, 12, 0),  # New York falls back on Sunday 2026-11-01
    utc(2026, 3, 8, 6, 30),  # New York springs forward
    utc(2026, 12, 31, 23, 59, 59),
    utc(2027, 1, 3, 23, 0),  # Sunday
]


def test_today_in_utc():
    window = compute_window(WindowName.TODAY, NOW, UTC)

    assert window.start == utc(2026, 10, 14)
    assert window.end == utc(2026, 10, 15)
    assert window.attribute is None
    assert window.overdue_since is None


def test_today_uses_the_tenant_calendar_day():
    # 02:00 UTC on the 14th is still the evening of the 13th in New York (EDT).
    window = compute_window(WindowName.TODAY, utc(2026, 10, 14, 2, 0), ZoneInfo("America/New_York"))

    assert window.start == utc(2026, 10, 13, 4, 0)
    assert window.end == utc(2026, 10, 14, 4, 0)


def test_tomorrow_and_yesterday_shift_one_calendar_day():
    tomorrow = compute_window(WindowName.TOMORROW, NOW, UTC)
    yesterday = compute_window(WindowName.YESTERDAY, NOW, UTC)

    assert (tomorrow.start, tomorrow.end) == (utc(2026, 10, 15), utc(2026, 10, 16))
    assert (yesterday.start, yesterday.end) == (utc(2026, 10, 13), utc(2026, 10, 14))


@pytest.mark.parametrize("zone_name", ZONES)
@pytest.mark.parametrize("reference", REFERENCES)
def test_day_windows_are_contiguous_and_disjoint(zone_name, reference):
    zone = ZoneInfo(zone_name)
    yesterday = compute_window(WindowName.YESTERDAY, reference, zone)
    today = compute_window(WindowName.TODAY, reference, zone)
    tomorrow = compute_window(WindowName.TOMORROW, reference, zone)

    assert yesterday.end == today.start
    assert today.end == tomorrow.start
    assert today.start <= reference < today.end
    assert today.start < today.end < tomorrow.end


def test_dst_day_is_longer_than_24_hours():
    start, end = day_bounds(utc(2026, 11, 1, 12, 0), ZoneInfo("America/New_York"))

    assert end - start == timedelta(hours=25)


@pytest.mark.parametrize(
    "reference, expected",
    [
        (NOW, utc(2026, 10, 19)),  # Wednesday
        (utc(2026, 10, 12, 0, 0), utc(2026, 10, 19)),  # Monday, start of week
        (utc(2026, 10, 18, 23, 59), utc(2026, 10, 19)),  # Sunday, last minute
    ],
)
def test_iso_week_ends_before_next_monday(reference, expected):
    assert iso_week_end(reference, UTC) == expected


def test_iso_week_end_in_tenant_zone():
    # Sunday 20:00 UTC is already Monday morning in Tokyo.
    end = iso_week_end(utc(2026, 10, 18, 20, 0), ZoneInfo("Asia/Tokyo"))

    assert end == datetime(2026, 10, 26, tzinfo=ZoneInfo("Asia/Tokyo")).astimezone(timezone.utc)


def test_later_window():
    window = compute_window(WindowName.LATER, NOW, UTC)

    assert window.start == utc(2026, 10, 19)
    assert window.end is None
    assert window.attribute is PlannedAtAttribute.LATER


def test_rest_of_week_window():
    window = compute_window(WindowName.REST_OF_WEEK, NOW, UTC)

    assert window.start == utc(2026, 10, 16)  # day after tomorrow
    assert window.end == utc(2026, 10, 19)
    assert window.attribute is PlannedAtAttribute.REST_OF_THE_WEEK


def test_rest_of_week_date_range_is_empty_on_saturday():
    window = compute_window(WindowName.REST_OF_WEEK, utc(2026, 10, 17, 9, 0), UTC)

    assert window.start >= window.end


def test_auto_move_extends_today_only():
    today = compute_window(WindowName.TODAY, NOW, UTC, auto_move=True)
    tomorrow = compute_window(WindowName.TOMORROW, NOW, UTC, auto_move=True)

    assert today.overdue_since == today.start - AUTO_MOVE_LOOKBACK
    assert tomorrow.overdue_since is None


def test_naive_reference_is_treated_as_utc():
    naive = compute_window(WindowName.TODAY, NOW.replace(tzinfo=None), UTC)

    assert naive == compute_window(WindowName.TODAY, NOW, UTC)


def test_window_name_accepts_plain_strings():
    assert compute_window("rest", NOW, UTC).name is WindowName.REST_OF_WEEK
    assert WindowName.REST_OF_WEEK.label == "Rest of the Week"


def test_get_zone_falls_back_for_unknown_names():
    assert get_zone("Mars/Olympus_Mons") == ZoneInfo("UTC")
    assert get_zone(None, default="Europe/Istanbul") == ZoneInfo("Europe/Istanbul")
    assert get_zone("Asia/Tokyo") == ZoneInfo("Asia/Tokyo")
