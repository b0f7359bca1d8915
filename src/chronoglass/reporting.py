"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from typing import Optional

from .aggregation import (
    active_elapsed,
    current_week_series,
    daily_activities,
    effective_target_hours,
    month_total,
    weekly_balance,
    weekly_history,
)
from .calendar_keys import day_key
from .clock import fixed_clock
from .durations import format_clock, format_human
from .session_store import SessionStore

_BAR_WIDTH = 30


class SummaryPrinter:
    """Render human-readable summaries in the console."""

    def __init__(self, store: SessionStore) -> None:
        self.store = store

    def print_status(self) -> None:
        clock = fixed_clock(self.store.clock())
        sessions = self.store.sessions
        active = self.store.active_session
        settings = self.store.settings

        print(f"Hello, {settings.user_name}. Today is {day_key(clock())}.")
        print("-" * 40)
        if active:
            elapsed = active_elapsed(sessions, active.id, clock=clock)
            print(f"Working:     {format_clock(elapsed)}")
            open_sub = active.open_sub_activity()
            if open_sub:
                print(f"Current task: {open_sub.title}")
        else:
            print("Not working.")

        balance = weekly_balance(sessions, settings.weekly_hours_target, clock=clock)
        print(f"Balance:     {format_balance(balance)}")
        print(f"This month:  {format_human(month_total(sessions, clock=clock))}")

        activities = daily_activities(sessions, clock=clock)
        if activities:
            print()
            print("Today's activities:")
            for entry in activities:
                state = "" if entry.end_time is not None else " (running)"
                print(f"  {entry.title[:40]:<40} {format_clock(entry.duration_ms)}{state}")

    def print_week(self) -> None:
        points = current_week_series(self.store.sessions, clock=self.store.clock)
        peak = max((point.hours for point in points), default=0.0)
        for point in points:
            marker = "*" if point.is_today else " "
            width = int(round(point.hours / peak * _BAR_WIDTH)) if peak else 0
            print(f"{marker}{point.label} {point.day_key} {'#' * width:<{_BAR_WIDTH}} {point.hours:.1f}h")

    def print_history(self, limit: Optional[int] = None) -> None:
        target = self.store.settings.weekly_hours_target
        items = weekly_history(self.store.sessions, target, clock=self.store.clock)
        if limit is not None:
            items = items[:limit]
        print(f"Weekly target: {effective_target_hours(target)}h")
        print(f"{'Week of':<12} {'Total':>8} {'Balance':>9}")
        for item in items:
            print(
                f"{day_key(item.week_start):<12} {format_human(item.total_ms):>8} "
                f"{format_balance(item.balance_ms):>9}"
            )


def format_balance(ms: int) -> str:
    """Signed decimal hours, e.g. ``+1.5h`` or ``-32.0h``."""
    sign = "+" if ms >= 0 else "-"
    return f"{sign}{format_human(abs(ms))}"
