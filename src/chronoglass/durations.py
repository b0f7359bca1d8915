"""Elapsed-time computation and display formatting."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Protocol

from .clock import system_clock

MS_PER_SECOND = 1000
MS_PER_HOUR = 3_600_000


class Interval(Protocol):
    start_time: int
    end_time: Optional[int]


def interval_duration(interval: Interval, now_ms: Optional[int] = None) -> int:
    """Elapsed milliseconds of ``interval``, never negative.

    An open interval (``end_time is None``) runs until ``now_ms``, which is
    read from the system clock when not supplied.
    """
    end = interval.end_time
    if end is None:
        end = now_ms if now_ms is not None else system_clock()
    return max(0, end - interval.start_time)


def ms_to_hours(ms: int) -> Decimal:
    """Hours in ``ms`` rounded half-up to one decimal place."""
    hours = Decimal(int(ms)) / Decimal(MS_PER_HOUR)
    rounded = hours.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    # Avoid "-0.0" for tiny negative inputs.
    return rounded if rounded else Decimal("0.0")


def format_clock(ms: int) -> str:
    """Render ``ms`` as ``HH:MM:SS``; hours are not wrapped at 24."""
    total_seconds = max(0, int(ms)) // MS_PER_SECOND
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_human(ms: int) -> str:
    """Render ``ms`` as decimal hours with one fractional digit, e.g. ``2.5h``."""
    return f"{ms_to_hours(ms)}h"
