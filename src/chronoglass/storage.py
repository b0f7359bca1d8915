"""JSON file storage for sessions and settings."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .calendar_keys import day_key
from .config import DEFAULT_USER_NAME, DEFAULT_WEEKLY_HOURS_TARGET
from .models import AppData, AppSettings, WorkSession

logger = logging.getLogger(__name__)


def normalize_app_data(raw: Any) -> AppData:
    """Coerce a decoded JSON document into ``AppData``, filling in defaults.

    A non-object document or a non-list ``sessions`` yields no sessions,
    missing settings fields take their defaults and individual session
    records that cannot be read are dropped.
    """
    if not isinstance(raw, dict):
        raw = {}

    raw_sessions = raw.get("sessions")
    sessions: list[WorkSession] = []
    if isinstance(raw_sessions, list):
        for index, item in enumerate(raw_sessions):
            try:
                session = WorkSession.from_dict(item)
                day_key(session.start_time)
            except (KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
                logger.warning("Skipping malformed session #%d: %s", index, exc)
                continue
            sessions.append(session)
    elif raw_sessions is not None:
        logger.warning("Ignoring non-list 'sessions' value in stored data.")

    return AppData(sessions=sessions, settings=_normalize_settings(raw.get("settings")))


def _normalize_settings(raw: Any) -> AppSettings:
    if not isinstance(raw, dict):
        return AppSettings()
    target = raw.get("weeklyHoursTarget", DEFAULT_WEEKLY_HOURS_TARGET)
    if isinstance(target, bool) or not isinstance(target, (int, float)):
        target = DEFAULT_WEEKLY_HOURS_TARGET
    user_name = raw.get("userName", DEFAULT_USER_NAME)
    if not isinstance(user_name, str):
        user_name = DEFAULT_USER_NAME
    return AppSettings(weekly_hours_target=target, user_name=user_name)


def dump_app_data(data: AppData) -> str:
    return json.dumps(data.to_dict(), indent=2, ensure_ascii=False)


class DataStore:
    """Reads and writes the ``data.json`` document."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> AppData:
        if not self.path.exists():
            return AppData()
        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError:
            logger.warning("Failed to read %s; falling back to defaults.", self.path, exc_info=True)
            return AppData()
        if not content.strip():
            return AppData()
        try:
            raw = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.warning("Stored data in %s is not valid JSON (%s); using defaults.", self.path, exc)
            return AppData()
        return normalize_app_data(raw)

    def save(self, data: AppData) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(dump_app_data(data), encoding="utf-8")
        tmp_path.replace(self.path)
        logger.debug("Saved %d sessions to %s", len(data.sessions), self.path)

    def reset(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info("Removed %s", self.path)


def parse_export(text: str) -> AppData:
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Import is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict) or not isinstance(raw.get("sessions"), list):
        raise ValueError("Import must be an object with a 'sessions' list")
    return normalize_app_data(raw)
