"""Date windows used to filter a tenant's task list.

Every window is computed from a reference instant and the tenant's timezone
and expressed as UTC instants:

* today / tomorrow / yesterday: ``[start-of-day, start-of-next-day)``
* later: ``LATER`` bucket with no planned instant, or planned on/after the
  end of the current ISO week
* rest: ``REST_OF_THE_WEEK`` bucket with no planned instant, or planned from
  the day after tomorrow up to the end of the ISO week
* today with auto-move: also incomplete tasks planned during the 30 days
  before today
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sunset_bot.core.models import PlannedAtAttribute
from sunset_bot.monitoring.logging import get_logger

logger = get_logger(__name__)

AUTO_MOVE_LOOKBACK = timedelta(days=30)


class WindowName(str, Enum):
    TODAY = "today"
    TOMORROW = "tomorrow"
    YESTERDAY = "yesterday"
    LATER = "later"
    REST_OF_WEEK = "rest"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    WindowName.TODAY: "Today",
    WindowName.TOMORROW: "Tomorrow",
    WindowName.YESTERDAY: "Yesterday",
    WindowName.LATER: "Later",
    WindowName.REST_OF_WEEK: "Rest of the Week",
}

_DAY_OFFSETS = {
    WindowName.TODAY: 0,
    WindowName.TOMORROW: 1,
    WindowName.YESTERDAY: -1,
}


@dataclass(frozen=True)
class TaskWindow:
    """Filter matching a task when any of its conditions holds.

    Attributes:
        name: Window this filter was computed for
        start: Inclusive lower bound on ``planned_at`` (UTC)
        end: Exclusive upper bound on ``planned_at`` (UTC), None for open-ended
        attribute: Bucket matched by tasks whose ``planned_at`` is null
        overdue_since: Incomplete tasks planned in ``[overdue_since, start)`` also match
    """

    name: WindowName
    start: datetime
    end: Optional[datetime] = None
    attribute: Optional[PlannedAtAttribute] = None
    overdue_since: Optional[datetime] = None


def get_zone(name: Optional[str], default: str = "UTC") -> tzinfo:
    """Resolve an IANA zone name, falling back to ``default``."""
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("windows.zone.unknown", zone=name, fallback=default)
    return ZoneInfo(default)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _local_midnight(day: date, zone: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=zone).astimezone(timezone.utc)


def local_today(reference: datetime, zone: tzinfo) -> date:
    return _as_utc(reference).astimezone(zone).date()


def day_bounds(reference: datetime, zone: tzinfo, offset_days: int = 0) -> Tuple[datetime, datetime]:
    """Return the UTC ``[start, end)`` of the local day ``offset_days`` away."""
    day = local_today(reference, zone) + timedelta(days=offset_days)
    return _local_midnight(day, zone), _local_midnight(day + timedelta(days=1), zone)


def iso_week_end(reference: datetime, zone: tzinfo) -> datetime:
    """Return the instant right after Sunday ends, i.e. next Monday 00:00 local."""
    today = local_today(reference, zone)
    next_monday = today + timedelta(days=7 - today.weekday())
    return _local_midnight(next_monday, zone)


def compute_window(
    name: WindowName,
    reference: datetime,
    zone: tzinfo,
    auto_move: bool = False,
) -> TaskWindow:
    """Compute the task filter for ``name``.

    Args:
        name: Window to compute
        reference: Current instant (naive values are treated as UTC)
        zone: Tenant timezone
        auto_move: Roll overdue incomplete tasks into today (ignored for other windows)
    """
    name = WindowName(name)

    if name in _DAY_OFFSETS:
        start, end = day_bounds(reference, zone, _DAY_OFFSETS[name])
        overdue_since = None
        if name is WindowName.TODAY and auto_move:
            overdue_since = start - AUTO_MOVE_LOOKBACK
        return TaskWindow(name=name, start=start, end=end, overdue_since=overdue_since)

    week_end = iso_week_end(reference, zone)

    if name is WindowName.LATER:
        return TaskWindow(name=name, start=week_end, attribute=PlannedAtAttribute.LATER)

    # Empty date range on Saturday and Sunday: the day after tomorrow is
    # already in the next ISO week.
    rest_start, _ = day_bounds(reference, zone, 2)
    return TaskWindow(
        name=name,
        start=rest_start,
        end=week_end,
        attribute=PlannedAtAttribute.REST_OF_THE_WEEK,
    )
