"""Local calendar day and week identifiers derived from timestamps."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta


def local_datetime(timestamp_ms: int) -> datetime:
    """Interpret an epoch-millisecond instant in the system's local timezone."""
    return datetime.fromtimestamp(timestamp_ms / 1000)


def day_key(timestamp_ms: int) -> str:
    """Return the local calendar date of ``timestamp_ms`` as ``YYYY-MM-DD``."""
    local = local_datetime(timestamp_ms)
    return f"{local.year:04d}-{local.month:02d}-{local.day:02d}"


def local_midnight(day: date) -> int:
    """Epoch milliseconds of local midnight at the start of ``day``."""
    return int(round(datetime.combine(day, time.min).timestamp() * 1000))


def monday_start(timestamp_ms: int) -> int:
    """Return local midnight of the Monday on or before ``timestamp_ms``'s day.

    Day arithmetic is done on ``date`` objects so a week that spans a DST
    change still lands exactly on midnight.
    """
    local_day = local_datetime(timestamp_ms).date()
    # Sunday=0 .. Saturday=6
    weekday = (local_day.weekday() + 1) % 7
    offset = -6 if weekday == 0 else 1 - weekday
    return local_midnight(local_day + timedelta(days=offset))


def parse_day_key(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


def iso_week_of_day_key(value: str) -> tuple[int, int]:
    """Return the ISO ``(year, week)`` pair of a ``YYYY-MM-DD`` key."""
    iso = parse_day_key(value).isocalendar()
    return iso[0], iso[1]
