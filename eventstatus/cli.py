"""Typer CLI for EventStatus."""

from __future__ import annotations

import json
from pathlib import Path

import typer
import uvicorn

from . import config
from .classifier import EventSchedule, InvalidSchedule, describe
from .config import load_settings, settings_as_dict, update_config_file
from .feed import (
    FeedError,
    classify_feed,
    filter_events,
    load_feed,
    serialize_event,
    sort_events,
)
from .scheduler import start_scheduler, stop_scheduler
from .seed import seed_feed
from .sweep import run_status_sweep
from .utils import parse_instant, resolve_timezone, utcnow

app = typer.Typer(help="EventStatus command-line interface")


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """Show help when no subcommand is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _fail(message: str) -> None:
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _zone(name: str | None):
    try:
        return resolve_timezone(name or config.settings.timezone)
    except ValueError as exc:
        _fail(str(exc))


@app.command("classify")
def classify_command(
    start: str = typer.Argument(..., help="Event start as an ISO datetime"),
    end: str | None = typer.Option(None, "--end", help="Optional ISO end datetime"),
    now: str | None = typer.Option(
        None, "--now", help="Classify against this ISO datetime instead of the clock"
    ),
    tz: str | None = typer.Option(None, "--tz", help="IANA time zone for display"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON output"),
) -> None:
    """Print the status, date range, and countdown for one schedule."""
    zone = _zone(tz)
    try:
        current = parse_instant(now, zone) if now else utcnow()
    except ValueError as exc:
        _fail(f"Invalid --now value: {exc}")
    try:
        schedule = EventSchedule.from_values(start, end, tz=zone)
    except InvalidSchedule as exc:
        _fail(f"Invalid schedule: {exc}")
    view = describe(schedule, current, tz=zone)

    if as_json:
        typer.echo(json.dumps(view.as_dict(), indent=2))
        return
    typer.echo(f"Status: {view.status}")
    typer.echo(f"When: {view.date_range_text}")
    if view.time_remaining_text:
        typer.echo(view.time_remaining_text)


@app.command("events")
def list_events(
    status: str = typer.Option("all", "--status", help="all, upcoming, live, completed, invalid"),
    query: str | None = typer.Option(None, "--query", "-q", help="Search title, location, type"),
    organizer: str | None = typer.Option(None, "--organizer", help="Only this organizer's events"),
    feed: Path | None = typer.Option(None, "--feed", help="Path to the event feed JSON"),
    tz: str | None = typer.Option(None, "--tz", help="IANA time zone for display"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON output"),
) -> None:
    """List the feed with computed statuses."""
    zone = _zone(tz)
    feed_path = feed or config.settings.feed_path
    try:
        classified = sort_events(classify_feed(load_feed(feed_path), utcnow(), tz=zone))
        matching = filter_events(
            classified, query=query, status=status, organizer_id=organizer
        )
    except (FeedError, ValueError) as exc:
        _fail(str(exc))

    if as_json:
        typer.echo(json.dumps([serialize_event(e) for e in matching], indent=2))
        return
    if not matching:
        typer.echo("No events found.")
        return
    for event in matching:
        line = f"[{event.status:>9}] {event.record.title} - {event.date_range_text}"
        if event.time_remaining_text:
            line = f"{line} ({event.time_remaining_text})"
        typer.echo(line)


@app.command("sweep")
def sweep(
    feed: Path | None = typer.Option(None, "--feed", help="Path to the event feed JSON"),
) -> None:
    """Run the status sweep manually."""
    try:
        stats = run_status_sweep(path=feed)
    except FeedError as exc:
        _fail(str(exc))
    typer.echo(f"Sweep complete: {stats}")


@app.command("seed-data")
def seed_data(
    count: int = typer.Option(
        config.settings.seed_event_count, "--count", min=0, help="Number of events to create"
    ),
    organizers: int = typer.Option(
        config.settings.seed_organizers,
        "--organizers",
        min=1,
        help="Number of distinct organizers",
    ),
    open_ended_percent: int = typer.Option(
        config.settings.seed_open_ended_percent,
        "--open-ended-percent",
        min=0,
        max=100,
        help="Percentage of events without an end time (0-100)",
    ),
    feed: Path | None = typer.Option(None, "--feed", help="Where to write the feed"),
):
    """Write a feed of fake events for local testing."""
    target = feed or config.settings.feed_path
    stats = seed_feed(
        target,
        count=count,
        organizers=organizers,
        open_ended_percent=open_ended_percent,
    )
    typer.echo(
        f"Seed complete: {stats['events']} events ({stats['open_ended']} without an end) "
        f"for {stats['organizers']} organizers written to {target}."
    )


@app.command("runserver")
def runserver(
    host: str = typer.Option(config.settings.app_host, "--host", help="Host to bind"),
    port: int = typer.Option(config.settings.app_port, "--port", help="Port to bind"),
):
    """Start FastAPI with APScheduler."""
    start_scheduler()
    server_config = uvicorn.Config(
        "eventstatus.api:app",
        host=host,
        port=port,
        reload=False,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
    server = uvicorn.Server(server_config)
    try:
        typer.echo(f"Starting EventStatus on {host}:{port}")
        server.run()
    finally:
        stop_scheduler()


@app.command("config")
def configure(
    show: bool = typer.Option(
        False, "--show", help="Show the current effective configuration"
    ),
    timezone: str | None = typer.Option(
        None, "--timezone", help="IANA time zone used for day boundaries"
    ),
    feed_path: Path | None = typer.Option(
        None, "--feed-path", help="Path to the event feed JSON"
    ),
    enable_scheduler: bool | None = typer.Option(
        None,
        "--enable-scheduler/--disable-scheduler",
        help="Toggle the background status sweep",
    ),
    sweep_interval_minutes: int | None = typer.Option(
        None, "--sweep-interval-minutes", min=1, help="Minutes between sweeps"
    ),
    events_per_page: int | None = typer.Option(
        None, "--events-per-page", min=1, help="API pagination size"
    ),
    seed_event_count: int | None = typer.Option(
        None, "--seed-event-count", min=0, help="Default seed-data event count"
    ),
    seed_organizers: int | None = typer.Option(
        None, "--seed-organizers", min=1, help="Default seed-data organizers"
    ),
    seed_open_ended_percent: int | None = typer.Option(
        None,
        "--seed-open-ended-percent",
        min=0,
        max=100,
        help="Default percent of seeded events without an end",
    ),
    host: str | None = typer.Option(None, "--host", help="Default host for runserver"),
    port: int | None = typer.Option(None, "--port", help="Default port for runserver"),
    config_path: Path | None = typer.Option(
        None,
        "--config-path",
        help="Path to eventstatus.toml (default: ./eventstatus.toml)",
    ),
):
    """View or update the persistent configuration file."""
    if timezone is not None:
        _zone(timezone)

    updates = {
        "timezone": timezone,
        "feed_path": str(feed_path) if feed_path else None,
        "enable_scheduler": enable_scheduler,
        "sweep_interval_minutes": sweep_interval_minutes,
        "events_per_page": events_per_page,
        "seed_event_count": seed_event_count,
        "seed_organizers": seed_organizers,
        "seed_open_ended_percent": seed_open_ended_percent,
        "app_host": host,
        "app_port": port,
    }
    clean_updates = {k: v for k, v in updates.items() if v is not None}

    target_path = config_path or config.settings.config_path
    if clean_updates:
        settings_ref = update_config_file(clean_updates, path=target_path)
        typer.echo(f"Updated configuration in {target_path}")
    else:
        settings_ref = load_settings(target_path)
    if show or not clean_updates:
        effective = settings_as_dict(settings_ref)
        effective["config_path"] = str(target_path)
        typer.echo(json.dumps(effective, indent=2))


if __name__ == "__main__":
    app()
