"""Clock capability injected into every time-dependent computation."""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], int]
"""A zero-argument callable returning the current instant in epoch milliseconds."""


def system_clock() -> int:
    """Read the real wall clock in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def fixed_clock(instant_ms: int) -> Clock:
    """Return a clock frozen at ``instant_ms``."""

    def _now() -> int:
        return instant_ms

    return _now
