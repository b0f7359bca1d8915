"""Configuration models and defaults for chronoglass."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

DEFAULT_WEEKLY_HOURS_TARGET = 40
DEFAULT_USER_NAME = "User"


@dataclass(slots=True)
class ServerSettings:
    """Runtime configuration for the local HTTP API."""

    host: str = "127.0.0.1"
    port: int = 45321
    poll_interval: timedelta = timedelta(seconds=1)

    @classmethod
    def from_options(
        cls,
        host: str,
        port: int,
        poll_seconds: float | None = None,
    ) -> "ServerSettings":
        poll = poll_seconds if poll_seconds is not None else 1.0
        return cls(host=host, port=port, poll_interval=timedelta(seconds=poll))
