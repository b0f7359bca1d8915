"""FastAPI application that exposes the local data API and dashboard numbers."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

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
from .clock import Clock, fixed_clock, system_clock
from .config import ServerSettings
from .durations import MS_PER_HOUR, format_clock, format_human
from .models import (
    MAX_TIMESTAMP_MS,
    MIN_TIMESTAMP_MS,
    AppData,
    AppSettings,
    SubActivity,
    WorkSession,
)
from .paths import get_data_path
from .session_store import SessionStateError, SessionStore
from .storage import DataStore, normalize_app_data

logger = logging.getLogger(__name__)


class SubActivityPayload(BaseModel):
    id: str
    title: str = Field(min_length=1)
    start_time: int = Field(alias="startTime", ge=MIN_TIMESTAMP_MS, le=MAX_TIMESTAMP_MS)
    end_time: Optional[int] = Field(
        default=None, alias="endTime", ge=MIN_TIMESTAMP_MS, le=MAX_TIMESTAMP_MS
    )

    model_config = ConfigDict(populate_by_name=True)

    def to_model(self) -> SubActivity:
        return SubActivity(
            id=self.id, title=self.title, start_time=self.start_time, end_time=self.end_time
        )


class SessionPayload(BaseModel):
    id: str
    start_time: int = Field(alias="startTime", ge=MIN_TIMESTAMP_MS, le=MAX_TIMESTAMP_MS)
    end_time: Optional[int] = Field(
        default=None, alias="endTime", ge=MIN_TIMESTAMP_MS, le=MAX_TIMESTAMP_MS
    )
    date: str = ""
    sub_activities: List[SubActivityPayload] = Field(default_factory=list, alias="subActivities")
    note: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    def to_model(self) -> WorkSession:
        return WorkSession(
            id=self.id,
            start_time=self.start_time,
            end_time=self.end_time,
            date=self.date,
            sub_activities=[sub.to_model() for sub in self.sub_activities],
            note=self.note,
        )


class StartRequest(BaseModel):
    title: Optional[str] = None
    start_time: Optional[int] = Field(
        default=None, alias="startTime", ge=MIN_TIMESTAMP_MS, le=MAX_TIMESTAMP_MS
    )

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class TaskPayload(BaseModel):
    title: str

    model_config = ConfigDict(extra="forbid")


class SettingsUpdate(BaseModel):
    weekly_hours_target: Optional[float] = Field(default=None, ge=0, alias="weeklyHoursTarget")
    user_name: Optional[str] = Field(default=None, alias="userName")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


def create_app(
    *,
    data_path: Optional[Path] = None,
    settings: Optional[ServerSettings] = None,
    clock: Clock = system_clock,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_path = Path(data_path or get_data_path())
    resolved_settings = settings or ServerSettings()
    store = SessionStore(DataStore(resolved_path), clock=clock)

    app = FastAPI(title="Chronoglass", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.data_path = resolved_path
    app.state.store = store

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        logger.info("Serving %d sessions from %s", len(store.sessions), resolved_path)

    @app.get("/data")
    def get_all_data(request: Request) -> Dict[str, Any]:
        return _store(request).data.to_dict()

    @app.get("/data/day/{date}")
    def get_day_data(date: str, request: Request) -> List[Dict[str, Any]]:
        _validate_day(date)
        return [session.to_dict() for session in _store(request).sessions_on(date)]

    @app.get("/data/week/{year}/{week}")
    def get_week_data(year: int, week: int, request: Request) -> List[Dict[str, Any]]:
        if not 1 <= week <= 53:
            raise HTTPException(status_code=400, detail="week must be between 1 and 53")
        sessions = _store(request).sessions_in_iso_week(year, week)
        return [session.to_dict() for session in sessions]

    @app.post("/data/start", status_code=201)
    def start_new_session(payload: StartRequest, request: Request) -> Dict[str, Any]:
        session = _run(_store(request).start_session, payload.title, payload.start_time)
        return session.to_dict()

    @app.post("/data/append", status_code=201)
    def append_session(payload: SessionPayload, request: Request) -> Dict[str, Any]:
        session = payload.to_model()
        _validate_session(session)
        return _run(_store(request).upsert_session, session).to_dict()

    @app.post("/data/overwrite")
    def overwrite_all(payload: Dict[str, Any], request: Request) -> Dict[str, Any]:
        data = normalize_app_data(payload)
        _store(request).overwrite(data)
        return {"sessions": len(data.sessions)}

    @app.delete("/data/all")
    def clear_all(request: Request) -> Dict[str, Any]:
        _store(request).clear_all()
        return {"removed": "all"}

    @app.delete("/data/day/{date}")
    def clear_day(date: str, request: Request) -> Dict[str, Any]:
        _validate_day(date)
        return {"removed": _store(request).clear_day(date)}

    @app.delete("/data/range")
    def clear_range(
        request: Request,
        start: str = Query(description="First day to remove (YYYY-MM-DD, inclusive)."),
        end: str = Query(description="Last day to remove (YYYY-MM-DD, inclusive)."),
    ) -> Dict[str, Any]:
        _validate_day(start)
        _validate_day(end)
        if end < start:
            raise HTTPException(
                status_code=400, detail="end date must be on or after start date"
            )
        return {"removed": _store(request).clear_range(start, end)}

    @app.get("/api/dashboard")
    def dashboard(request: Request) -> Dict[str, Any]:
        current = _store(request)
        # One reading so every number on the dashboard agrees.
        snapshot = fixed_clock(current.clock())
        sessions = current.sessions
        active = current.active_session
        balance_ms = weekly_balance(
            sessions, current.settings.weekly_hours_target, clock=snapshot
        )
        elapsed_ms = active_elapsed(sessions, current.active_session_id, clock=snapshot)
        month_ms = month_total(sessions, clock=snapshot)
        open_sub = active.open_sub_activity() if active else None
        return {
            "today": day_key(snapshot()),
            "user_name": current.settings.user_name,
            "active_session": active.to_dict() if active else None,
            "active_task": open_sub.title if open_sub else None,
            "elapsed_ms": elapsed_ms,
            "clock": format_clock(elapsed_ms),
            "balance_ms": balance_ms,
            "balance_hours": balance_ms / MS_PER_HOUR,
            "month_total_ms": month_ms,
            "month_total": format_human(month_ms),
            "week": [
                {
                    "label": point.label,
                    "day_key": point.day_key,
                    "hours": point.hours,
                    "is_today": point.is_today,
                }
                for point in current_week_series(sessions, clock=snapshot)
            ],
            "activities": [
                {
                    "session_id": entry.session_id,
                    "title": entry.title,
                    "start_time": entry.start_time,
                    "end_time": entry.end_time,
                    "duration_ms": entry.duration_ms,
                    "duration": format_clock(entry.duration_ms),
                }
                for entry in daily_activities(sessions, clock=snapshot)
            ],
            "poll_seconds": resolved_settings.poll_interval.total_seconds() if active else None,
        }

    @app.get("/api/history")
    def history(request: Request) -> Dict[str, Any]:
        current = _store(request)
        target = current.settings.weekly_hours_target
        items = weekly_history(current.sessions, target, clock=current.clock)
        return {
            "target_hours": effective_target_hours(target),
            "weeks": [
                {
                    "week_start": item.week_start,
                    "week_start_day": day_key(item.week_start),
                    "total_ms": item.total_ms,
                    "balance_ms": item.balance_ms,
                    "total": format_human(item.total_ms),
                }
                for item in items
            ],
        }

    @app.post("/api/session/start", status_code=201)
    def start_session(request: Request, payload: Optional[StartRequest] = None) -> Dict[str, Any]:
        title = payload.title if payload else None
        start_time = payload.start_time if payload else None
        return _run(_store(request).start_session, title, start_time).to_dict()

    @app.post("/api/session/stop")
    def stop_session(request: Request) -> Dict[str, Any]:
        return _run(_store(request).stop_session).to_dict()

    @app.post("/api/tasks", status_code=201)
    def log_task(payload: TaskPayload, request: Request) -> Dict[str, Any]:
        return _run(_store(request).log_sub_activity, payload.title).to_dict()

    @app.post("/api/tasks/stop")
    def stop_task(request: Request) -> Dict[str, Any]:
        closed = _run(_store(request).stop_current_task)
        return {"closed": closed.to_dict() if closed else None}

    @app.get("/api/settings")
    def get_settings(request: Request) -> Dict[str, Any]:
        return _store(request).settings.to_dict()

    @app.put("/api/settings")
    def put_settings(payload: SettingsUpdate, request: Request) -> Dict[str, Any]:
        updated: AppSettings = _store(request).update_settings(
            weekly_hours_target=payload.weekly_hours_target,
            user_name=payload.user_name,
        )
        return updated.to_dict()

    @app.get("/api/export")
    def export_data(request: Request) -> PlainTextResponse:
        return PlainTextResponse(
            _store(request).export_json(),
            media_type="application/json",
            headers={"Content-Disposition": 'attachment; filename="chronoglass.json"'},
        )

    @app.post("/api/import")
    async def import_data(request: Request) -> Dict[str, Any]:
        body = (await request.body()).decode("utf-8")
        try:
            data: AppData = _store(request).import_json(body)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"sessions": len(data.sessions)}

    return app


def _store(request: Request) -> SessionStore:
    return request.app.state.store


def _run(operation, *args):
    try:
        return operation(*args)
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _validate_session(session: WorkSession) -> None:
    if session.end_time is not None and session.end_time < session.start_time:
        raise HTTPException(status_code=400, detail="endTime must not precede startTime")
    open_subs = 0
    for sub in session.sub_activities:
        if sub.end_time is None:
            open_subs += 1
        elif sub.end_time < sub.start_time:
            raise HTTPException(
                status_code=400,
                detail=f"sub-activity {sub.id} ends before it starts",
            )
    if open_subs > 1:
        raise HTTPException(status_code=400, detail="at most one sub-activity may be open")
    if open_subs and not session.is_open:
        raise HTTPException(
            status_code=400, detail="a closed session cannot hold an open sub-activity"
        )


def _validate_day(value: str) -> None:
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date format") from exc
