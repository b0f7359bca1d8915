"""Shared fixtures: deterministic clocks and throwaway data files."""

import os
import sys
import time
from datetime import datetime
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from chronoglass.session_store import SessionStore
from chronoglass.storage import DataStore

HOUR_MS = 3_600_000


def to_ms(*args) -> int:
    """Epoch milliseconds of a naive local datetime."""
    return int(round(datetime(*args).timestamp() * 1000))


class FakeClock:
    """A manually advanced clock that counts how often it was read."""

    def __init__(self, instant_ms: int) -> None:
        self.now = instant_ms
        self.reads = 0

    def __call__(self) -> int:
        self.reads += 1
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms

    def set(self, *args) -> None:
        self.now = to_ms(*args)


@pytest.fixture
def local_ms():
    return to_ms


@pytest.fixture
def clock():
    # Wednesday of the week that starts Monday 2024-01-01.
    return FakeClock(to_ms(2024, 1, 3, 12, 0))


@pytest.fixture
def data_path(tmp_path):
    return tmp_path / "data.json"


@pytest.fixture
def store(data_path, clock):
    return SessionStore(DataStore(data_path), clock=clock)


@pytest.fixture
def new_york_tz():
    """Run a test under America/New_York local time rules."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "America/New_York"
    time.tzset()
    try:
        yield
    finally:
        if previous is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = previous
        time.tzset()
