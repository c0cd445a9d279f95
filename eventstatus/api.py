"""FastAPI application for EventStatus."""

from __future__ import annotations

import logging
import tomllib
from contextlib import asynccontextmanager
from datetime import datetime, tzinfo
from importlib.metadata import PackageNotFoundError, version as pkg_version
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .classifier import EventSchedule, InvalidSchedule, describe
from .feed import (
    ClassifiedEvent,
    FeedError,
    classify_feed,
    filter_events,
    load_feed,
    serialize_event,
    sort_events,
    status_counts,
)
from .scheduler import start_scheduler, stop_scheduler
from .utils import parse_instant, resolve_timezone, utcnow
from .web import register_web_routes, templates

# Use uvicorn's error logger so messages get the level prefix in the default log
# format (needed for downstream filtering like Loki).
logger = logging.getLogger("uvicorn.error")

MAX_PER_PAGE = 100


def _load_app_version() -> str:
    """Return the current package version, falling back to pyproject for dev runs."""
    try:
        return pkg_version("eventstatus")
    except PackageNotFoundError:
        pyproject_path = Path(__file__).resolve().parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            data = tomllib.loads(pyproject_path.read_text())
            project = data.get("project") or {}
            return str(project.get("version") or "dev")
    return "dev"


APP_VERSION = _load_app_version()


@asynccontextmanager
async def lifespan(_: FastAPI):
    start_scheduler()
    try:
        yield
    finally:
        stop_scheduler()


app = FastAPI(title="EventStatus", version=APP_VERSION, lifespan=lifespan)

templates.env.globals["app_version"] = APP_VERSION

# Register web routes
register_web_routes(app)


class ClassifyPayload(BaseModel):
    start_time: str = Field(..., description="ISO datetime string")
    end_time: str | None = Field(
        None, description="Optional ISO datetime string at or after start_time"
    )
    now: str | None = Field(
        None, description="Optional ISO datetime to classify against"
    )
    timezone: str | None = Field(
        None, description="IANA time zone for day boundaries and formatting"
    )


def _wants_json(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    return request.url.path.startswith("/api/") or (
        "application/json" in accept and "text/html" not in accept
    )


def _render_error(request: Request, status_code: int, message: str | None):
    context = {
        "request": request,
        "status_code": status_code,
        "error_message": message or "Something went wrong.",
    }
    return templates.TemplateResponse(
        request, "error.html", context, status_code=status_code
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as friendly pages unless JSON was requested."""
    if _wants_json(request):
        return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)
    detail = exc.detail if isinstance(exc.detail, str) else "Something went wrong."
    return _render_error(request, exc.status_code, detail)


@app.exception_handler(InvalidSchedule)
async def invalid_schedule_handler(request: Request, exc: InvalidSchedule):
    if _wants_json(request):
        return JSONResponse({"detail": str(exc)}, status_code=422)
    return _render_error(request, 422, str(exc))


@app.exception_handler(FeedError)
async def feed_error_handler(request: Request, exc: FeedError):
    logger.error(
        "Event feed unavailable while handling %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    detail = "The event feed is unavailable right now. Please try again shortly."
    if _wants_json(request):
        return JSONResponse({"detail": detail}, status_code=503)
    return _render_error(request, 503, detail)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    if _wants_json(request):
        return JSONResponse({"detail": exc.errors()}, status_code=422)
    return _render_error(
        request,
        422,
        "Some of the fields were invalid. Please double-check and try again.",
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Gracefully handle unexpected errors."""
    logger.exception(
        "Unhandled error while processing %s %s", request.method, request.url.path
    )
    if _wants_json(request):
        return JSONResponse({"detail": "Internal server error"}, status_code=500)
    return _render_error(
        request,
        500,
        "We hit a snag while processing that request. Please try again.",
    )


def _timezone(name: str | None) -> tzinfo:
    try:
        return resolve_timezone(name or config.settings.timezone)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _parse_now(raw: str | None, tz: tzinfo) -> datetime:
    if not raw:
        return utcnow()
    try:
        return parse_instant(raw, tz)
    except ValueError as exc:
        raise HTTPException(
            status_code=400, detail="Invalid now; use ISO8601 format"
        ) from exc


def _build_pagination(*, page: int, per_page: int, total_events: int):
    total_pages = (
        max(1, (total_events + per_page - 1) // per_page) if total_events else 1
    )
    page = max(1, min(page, total_pages)) if total_events else 1
    return {
        "page": page,
        "per_page": per_page,
        "total_pages": total_pages,
        "total_events": total_events,
        "has_prev": page > 1,
        "has_next": page < total_pages and total_events > 0,
        "prev_page": page - 1 if page > 1 else None,
        "next_page": page + 1 if page < total_pages and total_events > 0 else None,
    }


def _classified_feed(tz: tzinfo, now: datetime) -> list[ClassifiedEvent]:
    records = load_feed(config.settings.feed_path)
    return sort_events(classify_feed(records, now, tz=tz))


@app.get("/health")
def health():
    return {"status": "ok", "version": APP_VERSION}


# -------- JSON API (v1) --------


@app.post("/api/v1/schedules/classify")
def api_classify_schedule(payload: ClassifyPayload):
    tz = _timezone(payload.timezone)
    now = _parse_now(payload.now, tz)
    schedule = EventSchedule.from_values(payload.start_time, payload.end_time, tz=tz)
    view = describe(schedule, now, tz=tz)
    return {
        **view.as_dict(),
        "start_time": schedule.start.isoformat(),
        "end_time": schedule.end.isoformat() if schedule.end else None,
        "now": now.isoformat(),
        "timezone": str(tz),
    }


@app.get("/api/v1/events")
def api_list_events(
    q: str | None = Query(None),
    status: str = Query("all"),
    organizer_id: str | None = Query(None),
    timezone: str | None = Query(None),
    now: str | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1, le=MAX_PER_PAGE),
):
    tz = _timezone(timezone)
    current = _parse_now(now, tz)
    classified = _classified_feed(tz, current)
    try:
        scoped = filter_events(classified, query=q, organizer_id=organizer_id)
        matching = filter_events(scoped, status=status)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    per_page = per_page or config.settings.events_per_page
    pagination = _build_pagination(
        page=page, per_page=per_page, total_events=len(matching)
    )
    offset = (pagination["page"] - 1) * per_page
    return {
        "events": [serialize_event(e) for e in matching[offset : offset + per_page]],
        "counts": status_counts(scoped),
        "pagination": pagination,
        "filters": {
            "q": q or "",
            "status": status,
            "organizer_id": organizer_id,
        },
        "now": current.isoformat(),
        "timezone": str(tz),
    }


@app.get("/api/v1/events/{event_id}")
def api_get_event(
    event_id: str,
    timezone: str | None = Query(None),
    now: str | None = Query(None),
):
    tz = _timezone(timezone)
    current = _parse_now(now, tz)
    for event in _classified_feed(tz, current):
        if event.record.id == event_id:
            return serialize_event(event)
    raise HTTPException(status_code=404, detail="Event not found")
