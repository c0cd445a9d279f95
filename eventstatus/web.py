"""Web route handlers for EventStatus."""

from __future__ import annotations

from pathlib import Path

from fastapi import HTTPException, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from markupsafe import Markup, escape

from . import config
from .feed import (
    DEFAULT_BADGE,
    STATUS_BADGES,
    STATUS_LABELS,
    FeedError,
    classify_feed,
    filter_events,
    load_feed,
    sort_events,
    status_counts,
)
from .utils import humanize_time, resolve_timezone, utcnow

templates = Jinja2Templates(directory=Path(__file__).parent / "templates")

DASHBOARD_TABS = ["all", "upcoming", "live", "completed"]


def status_badge(status: str) -> Markup:
    """Render a status pill for the dashboard."""
    css = STATUS_BADGES.get(status, DEFAULT_BADGE)
    label = STATUS_LABELS.get(status, status.title())
    return Markup('<span class="badge {}">{}</span>').format(css, escape(label))


templates.env.filters["status_badge"] = status_badge
templates.env.filters["relative_time"] = humanize_time


def home(request: Request):
    return RedirectResponse(url="/events", status_code=307)


def events_dashboard(
    request: Request,
    status: str = Query("all"),
    q: str | None = Query(None),
    organizer_id: str | None = Query(None),
):
    """Render the events dashboard with status tabs."""
    settings = config.settings
    tz = resolve_timezone(settings.timezone)
    now = utcnow()
    try:
        classified = sort_events(classify_feed(load_feed(settings.feed_path), now, tz=tz))
    except FeedError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    try:
        scoped = filter_events(classified, query=q, organizer_id=organizer_id)
        visible = filter_events(scoped, status=status)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return templates.TemplateResponse(
        request,
        "events.html",
        {
            "request": request,
            "events": visible,
            "counts": status_counts(scoped),
            "tabs": DASHBOARD_TABS,
            "active_status": (status or "all").lower(),
            "query": q or "",
            "organizer_id": organizer_id or "",
            "now": now,
            "timezone": settings.timezone,
        },
    )


def register_web_routes(app):
    """Register web routes on the FastAPI app."""
    app.get("/", include_in_schema=False)(home)
    app.get("/events", response_class=HTMLResponse)(events_dashboard)
