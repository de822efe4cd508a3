"""
Tests for the weekly recurrence: next drop at local midnight on the anchor
weekday, strictly after the reference day.
"""

from datetime import datetime, timedelta

import pytest

from casenotifier.errors import InvalidTimestamp
from casenotifier.recurrence import (
    MONDAY,
    SUNDAY,
    WEDNESDAY,
    local_midnight,
    next_occurrence,
    remaining_time,
    weekday_from_name,
)
from casenotifier.shared import DISPLAY_FMT, format_date, parse_date
from conftest import local_ts


def as_local(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp)


@pytest.mark.unit
class TestNextOccurrence:
    def test_wednesday_morning_maps_to_following_wednesday(self):
        # 2025-01-15 is a Wednesday
        ref = local_ts(2025, 1, 15, 10, 0, 0)
        assert next_occurrence(ref) == local_ts(2025, 1, 22)

    def test_wednesday_midnight_is_not_its_own_occurrence(self):
        ref = local_ts(2025, 1, 15)
        assert next_occurrence(ref) == local_ts(2025, 1, 22)

    def test_tuesday_last_second_maps_to_next_day(self):
        ref = local_ts(2025, 1, 14, 23, 59, 59)
        assert next_occurrence(ref) == local_ts(2025, 1, 15)

    def test_thursday_maps_six_days_ahead(self):
        ref = local_ts(2025, 1, 16, 8, 30)
        assert next_occurrence(ref) == local_ts(2025, 1, 22)

    def test_year_boundary(self):
        # Monday 2024-12-30 -> Wednesday 2025-01-01
        ref = local_ts(2024, 12, 30, 18)
        assert next_occurrence(ref) == local_ts(2025, 1, 1)

    def test_month_boundary(self):
        # Friday 2025-02-28 -> Wednesday 2025-03-05
        ref = local_ts(2025, 2, 28, 12)
        assert next_occurrence(ref) == local_ts(2025, 3, 5)

    def test_other_anchor_weekday(self):
        # Wednesday reference, Monday anchor
        ref = local_ts(2025, 1, 15, 10)
        assert next_occurrence(ref, MONDAY) == local_ts(2025, 1, 20)

    def test_properties_hold_over_a_year(self):
        start = local_ts(2025, 1, 1)
        step = 7 * 3600 + 13 * 60 + 17
        for ref in range(start, start + 366 * 86400, step):
            result = next_occurrence(ref)
            ref_day = as_local(ref).date()
            landed = as_local(result)
            assert landed.date() > ref_day
            assert landed.date() - ref_day <= timedelta(days=7)
            assert landed.weekday() == WEDNESDAY
            assert (landed.hour, landed.minute, landed.second) == (0, 0, 0)
            assert next_occurrence(result - 1) == result

    @pytest.mark.parametrize("bad", [10**20, 2**64 - 1, -(10**20)])
    def test_unrepresentable_timestamp(self, bad):
        with pytest.raises(InvalidTimestamp):
            next_occurrence(bad)


@pytest.mark.unit
class TestDaylightSaving:
    def test_spring_forward_new_york(self, set_local_tz):
        set_local_tz("America/New_York")
        # DST starts Sunday 2025-03-09
        ref = local_ts(2025, 3, 5, 12)
        result = next_occurrence(ref)
        assert result == local_ts(2025, 3, 12)
        assert result - local_ts(2025, 3, 5) == 7 * 86400 - 3600

    def test_fall_back_new_york(self, set_local_tz):
        set_local_tz("America/New_York")
        # DST ends Sunday 2025-11-02
        ref = local_ts(2025, 10, 29, 23, 30)
        result = next_occurrence(ref)
        assert result == local_ts(2025, 11, 5)
        assert result - local_ts(2025, 10, 29) == 7 * 86400 + 3600

    def test_spring_forward_london(self, set_local_tz):
        set_local_tz("Europe/London")
        # BST starts Sunday 2025-03-30
        ref = local_ts(2025, 3, 27, 9)
        assert next_occurrence(ref) == local_ts(2025, 4, 2)
        assert as_local(next_occurrence(ref)).hour == 0

    def test_midnight_in_dst_gap_resolves_to_same_day(self, set_local_tz):
        # Chile moves clocks forward at midnight; Sunday 2024-09-08 has no 00:00
        set_local_tz("America/Santiago")
        day = datetime(2024, 9, 8).date()
        landed = as_local(local_midnight(day))
        assert landed.date() == day
        assert landed.hour <= 1

    def test_sunday_anchor_across_gap(self, set_local_tz):
        set_local_tz("America/Santiago")
        ref = local_ts(2024, 9, 4, 12)
        landed = as_local(next_occurrence(ref, SUNDAY))
        assert landed.date() == datetime(2024, 9, 8).date()

    @pytest.mark.parametrize(
        "zone, wednesday",
        [
            # UTC+4 until 2014, UTC+3 since
            ("Europe/Moscow", (2012, 6, 13)),
            # DST abolished in 2022
            ("Asia/Tehran", (2021, 6, 16)),
            # DST abolished in 2019
            ("America/Sao_Paulo", (2018, 12, 12)),
        ],
    )
    def test_rules_no_longer_in_force(self, set_local_tz, zone, wednesday):
        set_local_tz(zone)
        ref = local_ts(*wednesday, 0, 30)
        assert format_date(ref) == as_local(ref).strftime(DISPLAY_FMT)
        assert parse_date(format_date(ref)) == ref
        assert as_local(ref).hour == 0

        result = next_occurrence(ref)
        assert as_local(result).date() == as_local(ref).date() + timedelta(days=7)
        assert as_local(result).hour == 0
        assert format_date(result).startswith("00:00:00 ")


@pytest.mark.unit
class TestRemainingTime:
    def test_ready_when_now_equals_next(self):
        assert remaining_time(1000, 1000) == 0

    def test_ready_when_past(self):
        assert remaining_time(5000, 1000) == 0

    def test_exact_difference_before(self):
        assert remaining_time(1000, 1001) == 1
        assert remaining_time(0, 86400) == 86400


@pytest.mark.unit
@pytest.mark.parametrize(
    "name, expected",
    [("wed", 2), ("Wednesday", 2), ("MON", 0), (" sun ", 6)],
)
def test_weekday_from_name(name, expected):
    assert weekday_from_name(name) == expected


@pytest.mark.unit
def test_weekday_from_name_rejects_unknown():
    with pytest.raises(ValueError):
        weekday_from_name("someday")
