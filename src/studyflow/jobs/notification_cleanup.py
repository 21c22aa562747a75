"""Background scheduler that purges old, read notifications."""

from __future__ import annotations

import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from ..core.config import get_settings
from ..core.database import SessionLocal
from ..services.notification_service import purge_read_notifications

logger = logging.getLogger(__name__)

_scheduler = AsyncIOScheduler(timezone="UTC")


async def _execute_cleanup() -> None:
    retention_days = get_settings().notification_retention_days
    session = SessionLocal()
    try:
        removed = purge_read_notifications(session, older_than_days=retention_days)
        session.commit()
        logger.info("notification cleanup removed %s read notification(s)", removed)
    except Exception:  # pragma: no cover - safeguard for background job
        session.rollback()
        logger.exception("notification cleanup job failed")
        raise
    finally:
        session.close()


@_scheduler.scheduled_job("cron", hour=3, minute=15, id="notification_cleanup", misfire_grace_time=3600)
async def _scheduled_job() -> None:
    await _execute_cleanup()


def register_scheduler(app: FastAPI) -> None:
    """Attach APScheduler lifecycle hooks to the FastAPI app."""

    @app.on_event("startup")
    async def start_scheduler() -> None:
        if not _scheduler.running:
            _scheduler.start()
            logger.info("notification cleanup scheduler started")

    @app.on_event("shutdown")
    async def shutdown_scheduler() -> None:
        if _scheduler.running:
            _scheduler.shutdown(wait=False)
            logger.info("notification cleanup scheduler stopped")


def run_purge_once(current_time: datetime | None = None, older_than_days: int | None = None) -> int:
    """Run the purge synchronously, e.g. from a shell during maintenance."""

    days = older_than_days if older_than_days is not None else get_settings().notification_retention_days
    session = SessionLocal()
    try:
        removed = purge_read_notifications(session, older_than_days=days, current_time=current_time)
        session.commit()
        return removed
    finally:
        session.close()
