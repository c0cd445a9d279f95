"""APScheduler integration."""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from . import config
from .feed import FeedError
from .sweep import run_status_sweep

logger = logging.getLogger("uvicorn.error")

_scheduler: BackgroundScheduler | None = None


def _sweep_job() -> None:
    try:
        run_status_sweep()
    except FeedError as exc:
        logger.warning("Skipping status sweep: %s", exc)


def start_scheduler() -> BackgroundScheduler | None:
    global _scheduler
    if not config.settings.enable_scheduler:
        return None
    if _scheduler and _scheduler.running:
        return _scheduler
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        _sweep_job,
        "interval",
        seconds=int(config.settings.sweep_interval.total_seconds()),
        id="status-sweep",
        max_instances=1,
        replace_existing=True,
    )
    scheduler.start()
    _scheduler = scheduler
    return scheduler


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
        _scheduler = None
