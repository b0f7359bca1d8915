"""Day, week and history totals computed from work sessions.

Every function here is a pure projection of the session list: nothing is
cached between calls, and each call reads its clock exactly once so that all
open intervals in one pass are measured against the same instant.
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import timedelta
from numbers import Real
from typing import Iterable, Optional, Sequence

from .calendar_keys import day_key, local_datetime, local_midnight, monday_start
from .clock import Clock, system_clock
from .config import DEFAULT_WEEKLY_HOURS_TARGET
from .durations import MS_PER_HOUR, interval_duration, ms_to_hours
from .models import ActivityEntry, DaySeriesPoint, WeeklyHistoryItem, WorkSession

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def effective_target_hours(target: object) -> float:
    """Return ``target`` if it is a positive finite number, else the 40h default."""
    if isinstance(target, bool) or not isinstance(target, Real):
        return DEFAULT_WEEKLY_HOURS_TARGET
    if math.isnan(target) or math.isinf(target) or target <= 0:
        return DEFAULT_WEEKLY_HOURS_TARGET
    return target


def _week_totals(sessions: Iterable[WorkSession], now_ms: int) -> dict[int, int]:
    totals: defaultdict[int, int] = defaultdict(int)
    for session in sessions:
        totals[monday_start(session.start_time)] += interval_duration(session, now_ms)
    # The running week is always present so a fresh week starts in debt.
    totals.setdefault(monday_start(now_ms), 0)
    return dict(totals)


def _target_ms(target_hours: object) -> int:
    return int(round(effective_target_hours(target_hours) * MS_PER_HOUR))


def weekly_balance(
    sessions: Iterable[WorkSession],
    target_hours_per_week: object,
    *,
    clock: Clock = system_clock,
) -> int:
    """Signed milliseconds of overtime (positive) or undertime across all weeks."""
    now_ms = clock()
    target_ms = _target_ms(target_hours_per_week)
    return sum(total - target_ms for total in _week_totals(sessions, now_ms).values())


def weekly_history(
    sessions: Iterable[WorkSession],
    target_hours_per_week: object,
    *,
    clock: Clock = system_clock,
) -> list[WeeklyHistoryItem]:
    """Per-week totals and balances, most recent week first."""
    now_ms = clock()
    target_ms = _target_ms(target_hours_per_week)
    totals = _week_totals(sessions, now_ms)
    return [
        WeeklyHistoryItem(week_start=week, total_ms=total, balance_ms=total - target_ms)
        for week, total in sorted(totals.items(), key=lambda item: item[0], reverse=True)
    ]


def current_week_series(
    sessions: Sequence[WorkSession],
    *,
    clock: Clock = system_clock,
) -> list[DaySeriesPoint]:
    """Hours worked on each day Monday through Sunday of the running week."""
    now_ms = clock()
    today = day_key(now_ms)
    monday = local_datetime(monday_start(now_ms)).date()

    per_day: defaultdict[str, int] = defaultdict(int)
    for session in sessions:
        per_day[day_key(session.start_time)] += interval_duration(session, now_ms)

    points: list[DaySeriesPoint] = []
    for offset, label in enumerate(WEEKDAY_LABELS):
        key = day_key(local_midnight(monday + timedelta(days=offset)))
        points.append(
            DaySeriesPoint(
                label=label,
                day_key=key,
                hours=float(ms_to_hours(per_day.get(key, 0))),
                is_today=key == today,
            )
        )
    return points


def sessions_for_day(sessions: Iterable[WorkSession], day: str) -> list[WorkSession]:
    return [session for session in sessions if day_key(session.start_time) == day]


def today_sessions(
    sessions: Iterable[WorkSession], *, clock: Clock = system_clock
) -> list[WorkSession]:
    return sessions_for_day(sessions, day_key(clock()))


def daily_activities(
    sessions: Iterable[WorkSession], *, clock: Clock = system_clock
) -> list[ActivityEntry]:
    """Sub-activities of today's sessions, latest first."""
    now_ms = clock()
    entries = [
        ActivityEntry(
            session_id=session.id,
            title=sub.title,
            start_time=sub.start_time,
            end_time=sub.end_time,
            duration_ms=interval_duration(sub, now_ms),
        )
        for session in sessions_for_day(sessions, day_key(now_ms))
        for sub in session.sub_activities
    ]
    entries.sort(key=lambda entry: entry.start_time, reverse=True)
    return entries


def month_total(sessions: Iterable[WorkSession], *, clock: Clock = system_clock) -> int:
    """Milliseconds worked in sessions started during the running calendar month."""
    now_ms = clock()
    month_key = day_key(now_ms)[:7]
    return sum(
        interval_duration(session, now_ms)
        for session in sessions
        if day_key(session.start_time).startswith(month_key)
    )


def active_elapsed(
    sessions: Iterable[WorkSession],
    active_id: Optional[str],
    *,
    clock: Clock = system_clock,
) -> int:
    """Elapsed milliseconds of the active session, 0 when nothing is running."""
    if active_id is None:
        return 0
    now_ms = clock()
    for session in sessions:
        if session.id == active_id:
            return interval_duration(session, now_ms)
    return 0
