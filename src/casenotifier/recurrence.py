"""
Weekly recurrence anchored to a fixed weekday.

A drop becomes available at local midnight on the anchor weekday. Both the
reference day and the target midnight are computed in the host's local
timezone using calendar arithmetic, so month/year ends and DST changes are
handled by the calendar rather than by adding multiples of 86400.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo

from dateutil import tz
from tzlocal import get_localzone_name

from .errors import InvalidTimestamp

MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)

WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

ONEDAY = timedelta(days=1)


def weekday_from_name(name: str) -> int:
    """'wed', 'Wednesday', 'WED' -> 2"""
    key = (name or "").strip().lower()[:3]
    if key not in WEEKDAY_NAMES:
        raise ValueError(f"unknown weekday: {name!r}")
    return WEEKDAY_NAMES.index(key)


def local_zone() -> tzinfo:
    """
    The host's timezone with its full transition history, so instants
    recorded under older offsets or DST rules keep their wall-clock date.
    """
    zone = tz.gettz(get_localzone_name())
    if zone is None:
        # unnamed zone (e.g. a bare POSIX TZ string): current rules only
        zone = tz.tzlocal()
    return zone


def local_datetime(timestamp: int) -> datetime:
    """Unix seconds -> aware datetime in the host's local timezone."""
    try:
        return datetime.fromtimestamp(int(timestamp), local_zone())
    except (OverflowError, OSError, ValueError) as e:
        raise InvalidTimestamp(timestamp, str(e)) from e


def local_midnight(day: date) -> int:
    """
    Unix seconds for 00:00:00 local time on ``day``. When midnight falls in
    a DST gap the first existing instant after it is used.
    """
    dt = datetime.combine(day, time(0, 0, 0), tzinfo=local_zone())
    dt = tz.resolve_imaginary(dt)
    return int(dt.timestamp())


def next_occurrence(reference_timestamp: int, anchor_weekday: int = WEDNESDAY) -> int:
    """
    Return local midnight of the first anchor weekday strictly after the
    local calendar day containing ``reference_timestamp``.

    A reference on the anchor weekday itself maps to the following week.
    """
    day = local_datetime(reference_timestamp).date()
    days_ahead = (anchor_weekday - day.weekday() - 1) % 7 + 1
    try:
        target = day + days_ahead * ONEDAY
    except OverflowError as e:
        raise InvalidTimestamp(reference_timestamp, "no following anchor day") from e
    return local_midnight(target)


def remaining_time(now: int, next: int) -> int:
    """Seconds until ``next``; 0 once ``now`` has reached it."""
    if now >= next:
        return 0
    return next - now
