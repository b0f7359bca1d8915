"""Unit tests for interval durations and formatting."""

from decimal import Decimal

from chronoglass.clock import system_clock
from chronoglass.durations import format_clock, format_human, interval_duration, ms_to_hours
from chronoglass.models import SubActivity, WorkSession


class TestIntervalDuration:
    def test_closed_interval(self):
        sub = SubActivity(id="a", title="x", start_time=1_000, end_time=5_000)
        assert interval_duration(sub) == 4_000
        assert interval_duration(sub, now_ms=999_999) == 4_000

    def test_open_interval_runs_until_now(self):
        session = WorkSession(id="s", start_time=10_000)
        assert interval_duration(session, now_ms=70_000) == 60_000

    def test_open_interval_with_start_in_future_is_zero(self):
        session = WorkSession(id="s", start_time=10_000)
        assert interval_duration(session, now_ms=5_000) == 0

    def test_end_before_start_is_clamped(self):
        session = WorkSession(id="s", start_time=10_000, end_time=9_000)
        assert interval_duration(session) == 0

    def test_open_interval_reads_fresh_clock(self):
        session = WorkSession(id="s", start_time=system_clock() - 1_000)
        first = interval_duration(session)
        second = interval_duration(session)
        assert first >= 1_000
        assert second >= first


class TestFormatClock:
    def test_hours_minutes_seconds(self):
        assert format_clock(5_025_000) == "01:23:45"

    def test_floors_partial_seconds(self):
        assert format_clock(999) == "00:00:00"
        assert format_clock(61_999) == "00:01:01"

    def test_hours_are_not_wrapped(self):
        assert format_clock(100 * 3_600_000) == "100:00:00"

    def test_negative_is_zero(self):
        assert format_clock(-5_000) == "00:00:00"


class TestFormatHuman:
    def test_one_decimal(self):
        assert format_human(9_000_000) == "2.5h"
        assert format_human(0) == "0.0h"
        assert format_human(144_000_000) == "40.0h"

    def test_rounds_half_up(self):
        # 0.05h and 1.25h sit exactly on the rounding boundary.
        assert format_human(180_000) == "0.1h"
        assert format_human(4_500_000) == "1.3h"

    def test_rounds_to_nearest(self):
        assert format_human(5_025_000) == "1.4h"
        assert format_human(3_420_000) == "1.0h"

    def test_ms_to_hours_never_negative_zero(self):
        assert ms_to_hours(-1) == Decimal("0.0")
        assert str(ms_to_hours(-1)) == "0.0"
        assert ms_to_hours(-9_000_000) == Decimal("-2.5")
