"""Domain models for recorded work sessions."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional

from .config import DEFAULT_USER_NAME, DEFAULT_WEEKLY_HOURS_TARGET

# 1970-01-01 to 9999-01-01 UTC; later instants overflow year 9999 in local time.
MIN_TIMESTAMP_MS = 0
MAX_TIMESTAMP_MS = 253_370_764_800_000


@dataclass(slots=True)
class SubActivity:
    """A titled stretch of time logged inside a work session."""

    id: str
    title: str
    start_time: int
    end_time: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "SubActivity":
        return cls(
            id=str(raw["id"]),
            title=str(raw["title"]),
            start_time=to_timestamp(raw["startTime"]),
            end_time=_optional_timestamp(raw.get("endTime")),
        )


@dataclass(slots=True)
class WorkSession:
    """One start-to-stop block of work; ``end_time`` is ``None`` while running."""

    id: str
    start_time: int
    end_time: Optional[int] = None
    date: str = ""
    sub_activities: list[SubActivity] = field(default_factory=list)
    note: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def open_sub_activity(self) -> Optional[SubActivity]:
        for sub in self.sub_activities:
            if sub.is_open:
                return sub
        return None

    def close(self, end_time: int) -> None:
        """Set ``end_time`` on the session and on any still-open sub-activity."""
        for sub in self.sub_activities:
            if sub.is_open:
                sub.end_time = end_time
        self.end_time = end_time

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "date": self.date,
            "subActivities": [sub.to_dict() for sub in self.sub_activities],
        }
        if self.note is not None:
            payload["note"] = self.note
        return payload

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "WorkSession":
        subs = raw.get("subActivities") or []
        if not isinstance(subs, list):
            raise ValueError("subActivities must be a list")
        note = raw.get("note")
        return cls(
            id=str(raw["id"]),
            start_time=to_timestamp(raw["startTime"]),
            end_time=_optional_timestamp(raw.get("endTime")),
            date=str(raw.get("date") or ""),
            sub_activities=[SubActivity.from_dict(sub) for sub in subs],
            note=str(note) if note is not None else None,
        )


@dataclass(slots=True)
class AppSettings:
    """User-editable preferences persisted next to the sessions."""

    weekly_hours_target: float = DEFAULT_WEEKLY_HOURS_TARGET
    user_name: str = DEFAULT_USER_NAME

    def to_dict(self) -> dict[str, Any]:
        return {
            "weeklyHoursTarget": self.weekly_hours_target,
            "userName": self.user_name,
        }


@dataclass(slots=True)
class AppData:
    sessions: list[WorkSession] = field(default_factory=list)
    settings: AppSettings = field(default_factory=AppSettings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessions": [session.to_dict() for session in self.sessions],
            "settings": self.settings.to_dict(),
        }


@dataclass(slots=True, frozen=True)
class DaySeriesPoint:
    """One bar of the current-week chart."""

    label: str
    day_key: str
    hours: float
    is_today: bool


@dataclass(slots=True, frozen=True)
class WeeklyHistoryItem:
    week_start: int
    total_ms: int
    balance_ms: int


@dataclass(slots=True, frozen=True)
class ActivityEntry:
    """A sub-activity flattened out of its session for the daily log."""

    session_id: str
    title: str
    start_time: int
    end_time: Optional[int]
    duration_ms: int


def to_timestamp(value: Any) -> int:
    """Coerce a stored epoch-millisecond value, rejecting what local time cannot represent."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"timestamp must be a number, got {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"timestamp must be finite, got {value!r}")
    timestamp = int(value)
    if not MIN_TIMESTAMP_MS <= timestamp <= MAX_TIMESTAMP_MS:
        raise ValueError(f"timestamp {timestamp} is out of range")
    return timestamp


def _optional_timestamp(value: Any) -> Optional[int]:
    if value is None:
        return None
    return to_timestamp(value)
