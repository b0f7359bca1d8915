"""Unit tests for local day and week keys."""

from datetime import datetime

import pytest

from chronoglass.calendar_keys import day_key, iso_week_of_day_key, monday_start
from conftest import HOUR_MS, to_ms


class TestDayKey:
    def test_formats_local_date_zero_padded(self):
        assert day_key(to_ms(2024, 3, 5, 9, 30)) == "2024-03-05"

    def test_is_stable(self):
        ts = to_ms(2024, 7, 14, 18, 0)
        assert day_key(ts) == day_key(ts)

    def test_crossing_local_midnight_changes_key(self):
        late = to_ms(2024, 1, 1, 23, 0)
        early = late + 2 * HOUR_MS
        assert day_key(late) == "2024-01-01"
        assert day_key(early) == "2024-01-02"

    def test_same_day_23_hours_apart(self):
        start = to_ms(2024, 1, 1, 0, 30)
        assert day_key(start) == day_key(start + 23 * HOUR_MS)


class TestMondayStart:
    @pytest.mark.parametrize(
        "moment, expected",
        [
            ((2024, 1, 1, 0, 0), (2024, 1, 1)),
            ((2024, 1, 3, 15, 45), (2024, 1, 1)),
            ((2024, 1, 7, 23, 59), (2024, 1, 1)),
            ((2024, 1, 8, 0, 0), (2024, 1, 8)),
            ((2024, 3, 1, 10, 0), (2024, 2, 26)),
            ((2025, 1, 1, 10, 0), (2024, 12, 30)),
        ],
    )
    def test_returns_local_midnight_of_monday(self, moment, expected):
        assert monday_start(to_ms(*moment)) == to_ms(*expected)

    def test_idempotent(self):
        ts = to_ms(2024, 5, 16, 11, 11)
        monday = monday_start(ts)
        assert monday_start(monday) == monday

    def test_whole_week_shares_key(self):
        monday = to_ms(2024, 4, 8, 12, 0)
        keys = {monday_start(to_ms(2024, 4, 8 + k, 12, 0)) for k in range(7)}
        assert keys == {monday_start(monday)}

    def test_sunday_belongs_to_previous_monday(self):
        assert monday_start(to_ms(2024, 4, 14, 8, 0)) == to_ms(2024, 4, 8)
        assert monday_start(to_ms(2024, 4, 15, 8, 0)) == to_ms(2024, 4, 15)


class TestMondayStartAcrossDst:
    def test_week_containing_spring_forward(self, new_york_tz):
        # DST began Sunday 2024-03-10 in New York.
        result = monday_start(to_ms(2024, 3, 10, 12, 0))
        assert datetime.fromtimestamp(result / 1000) == datetime(2024, 3, 4)

    def test_week_after_spring_forward(self, new_york_tz):
        result = monday_start(to_ms(2024, 3, 13, 12, 0))
        assert datetime.fromtimestamp(result / 1000) == datetime(2024, 3, 11)

    def test_week_containing_fall_back(self, new_york_tz):
        # DST ended Sunday 2024-11-03 in New York.
        result = monday_start(to_ms(2024, 11, 3, 22, 0))
        assert datetime.fromtimestamp(result / 1000) == datetime(2024, 10, 28)
        later = monday_start(to_ms(2024, 11, 6, 9, 0))
        assert datetime.fromtimestamp(later / 1000) == datetime(2024, 11, 4)


class TestIsoWeek:
    def test_year_boundary(self):
        assert iso_week_of_day_key("2024-12-30") == (2025, 1)
        assert iso_week_of_day_key("2024-01-01") == (2024, 1)

    def test_rejects_bad_key(self):
        with pytest.raises(ValueError):
            iso_week_of_day_key("2024-13-01")
