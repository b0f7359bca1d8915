"""
Session store: owns the session list and the active-session reference.

Only ONE session can be open at a time. The explicit ``active_session_id`` is
the source of truth for that; scanning for an open session is only used to
re-derive it after loading data from disk.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Optional

from .calendar_keys import day_key, iso_week_of_day_key
from .clock import Clock, system_clock
from .models import AppData, AppSettings, SubActivity, WorkSession, to_timestamp
from .normalization import normalize_title
from .storage import DataStore, dump_app_data, parse_export

logger = logging.getLogger(__name__)


class SessionStateError(RuntimeError):
    """The requested transition is not valid for the current session state."""


class ActiveSessionError(SessionStateError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"A session is already active ({session_id}).")
        self.session_id = session_id


class NoActiveSessionError(SessionStateError):
    def __init__(self) -> None:
        super().__init__("No active session.")


def new_id() -> str:
    return str(uuid.uuid4())


class SessionStore:
    """In-memory session data persisted through a ``DataStore`` after each change."""

    def __init__(self, data_store: DataStore, clock: Clock = system_clock) -> None:
        self._data_store = data_store
        self._clock = clock
        self._lock = threading.Lock()
        self._data = AppData()
        self.active_session_id: Optional[str] = None
        self.reload()

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def sessions(self) -> list[WorkSession]:
        return list(self._data.sessions)

    @property
    def settings(self) -> AppSettings:
        return self._data.settings

    @property
    def data(self) -> AppData:
        return self._data

    @property
    def active_session(self) -> Optional[WorkSession]:
        if self.active_session_id is None:
            return None
        return self._find(self.active_session_id)

    def sessions_on(self, day: str) -> list[WorkSession]:
        return [session for session in self._data.sessions if session.date == day]

    def sessions_in_iso_week(self, year: int, week: int) -> list[WorkSession]:
        matches = []
        for session in self._data.sessions:
            try:
                if iso_week_of_day_key(session.date) == (year, week):
                    matches.append(session)
            except ValueError:
                continue
        return matches

    def export_json(self) -> str:
        return dump_app_data(self._data)

    def start_session(
        self, title: Optional[str] = None, start_time: Optional[int] = None
    ) -> WorkSession:
        """Open a new session, optionally with a first sub-activity."""
        with self._lock:
            if self.active_session_id is not None:
                raise ActiveSessionError(self.active_session_id)
            start = to_timestamp(start_time) if start_time is not None else self._clock()
            session = WorkSession(id=new_id(), start_time=start, date=day_key(start))
            normalized = normalize_title(title)
            if normalized:
                session.sub_activities.append(
                    SubActivity(id=new_id(), title=normalized, start_time=start)
                )
            self._data.sessions.append(session)
            self.active_session_id = session.id
            self._persist()
        logger.info("Session %s started at %d", session.id, session.start_time)
        return session

    def stop_session(self) -> WorkSession:
        """Close the active session and whatever sub-activity is still open."""
        with self._lock:
            session = self._require_active()
            session.close(max(self._clock(), session.start_time))
            self.active_session_id = None
            self._persist()
        logger.info("Session %s stopped", session.id)
        return session

    def log_sub_activity(self, title: str) -> SubActivity:
        normalized = normalize_title(title)
        if not normalized:
            raise ValueError("Sub-activity title must not be blank.")
        with self._lock:
            session = self._require_active()
            now = self._clock()
            current = session.open_sub_activity()
            if current is not None:
                current.end_time = max(now, current.start_time)
            sub = SubActivity(id=new_id(), title=normalized, start_time=now)
            session.sub_activities.append(sub)
            self._persist()
        logger.info("Logged '%s' in session %s", sub.title, session.id)
        return sub

    def stop_current_task(self) -> Optional[SubActivity]:
        """Close the open sub-activity; the session keeps running."""
        with self._lock:
            session = self._require_active()
            current = session.open_sub_activity()
            if current is None:
                return None
            current.end_time = max(self._clock(), current.start_time)
            self._persist()
        return current

    def upsert_session(self, session: WorkSession) -> WorkSession:
        """Replace the session with the same id, or append it."""
        with self._lock:
            if (
                session.is_open
                and self.active_session_id is not None
                and self.active_session_id != session.id
            ):
                raise ActiveSessionError(self.active_session_id)
            if not session.date:
                session.date = day_key(session.start_time)
            self._data.sessions = [s for s in self._data.sessions if s.id != session.id]
            self._data.sessions.append(session)
            if session.is_open:
                self.active_session_id = session.id
            elif self.active_session_id == session.id:
                self.active_session_id = None
            self._persist()
        return session

    def overwrite(self, data: AppData) -> None:
        with self._lock:
            self._replace(data)
            self._persist()

    def import_json(self, text: str) -> AppData:
        data = parse_export(text)
        self.overwrite(data)
        logger.info("Imported %d sessions", len(data.sessions))
        return data

    def clear_all(self) -> None:
        with self._lock:
            self._data.sessions = []
            self.active_session_id = None
            self._persist()

    def clear_day(self, day: str) -> int:
        return self._remove_where(lambda session: session.date == day)

    def clear_range(self, start_day: str, end_day: str) -> int:
        """Remove sessions whose date falls in ``[start_day, end_day]``."""
        return self._remove_where(lambda session: start_day <= session.date <= end_day)

    def update_settings(
        self,
        weekly_hours_target: Optional[float] = None,
        user_name: Optional[str] = None,
    ) -> AppSettings:
        with self._lock:
            if weekly_hours_target is not None:
                self._data.settings.weekly_hours_target = weekly_hours_target
            if user_name is not None:
                self._data.settings.user_name = user_name
            self._persist()
        return self._data.settings

    def reset(self) -> None:
        """Delete the data file and start over with default settings."""
        with self._lock:
            self._data_store.reset()
            self._replace(AppData())

    def reload(self) -> None:
        """Re-read persisted data and re-derive the active session."""
        data = self._data_store.load()
        with self._lock:
            if self._replace(data):
                self._persist()

    def _find(self, session_id: str) -> Optional[WorkSession]:
        for session in self._data.sessions:
            if session.id == session_id:
                return session
        return None

    def _require_active(self) -> WorkSession:
        session = self.active_session
        if session is None:
            raise NoActiveSessionError()
        return session

    def _replace(self, data: AppData) -> int:
        """Adopt ``data``, closing all but the latest open session.

        A stale open session ends where the next session begins (never before
        its own start). Returns how many sessions were closed.
        """
        self._data = data
        open_sessions = [s for s in data.sessions if s.is_open]
        latest = max(open_sessions, key=lambda s: s.start_time, default=None)
        self.active_session_id = latest.id if latest else None
        stale = [s for s in open_sessions if s is not latest]
        if stale:
            logger.warning(
                "Found %d open sessions; closing all but %s.", len(open_sessions), latest.id
            )
        starts = sorted(s.start_time for s in data.sessions)
        for session in stale:
            later = [start for start in starts if start > session.start_time]
            end = later[0] if later else session.start_time
            session.close(max(end, session.start_time))
        return len(stale)

    def _remove_where(self, predicate) -> int:
        with self._lock:
            before = len(self._data.sessions)
            self._data.sessions = [s for s in self._data.sessions if not predicate(s)]
            removed = before - len(self._data.sessions)
            if self.active_session_id is not None and self._find(self.active_session_id) is None:
                self.active_session_id = None
            self._persist()
        logger.info("Removed %d sessions", removed)
        return removed

    def _persist(self) -> None:
        self._data_store.save(self._data)
