"""
Access Log Background Jobs

Hourly purge of access log rows older than the retention window
(``settings.access_log_retention_days``, 90 days by default).

The job is idempotent and opens its own database session. It can be
triggered manually through /debug/jobs/{job_id}/trigger.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.core.database import async_session_maker
from app.core.scheduler import register_job
from app.modules.access_logs import repository

logger = logging.getLogger(__name__)

JOB_ID_PURGE_EXPIRED = "access_logs_purge_expired"


async def purge_expired_access_logs() -> dict[str, Any]:
    """
    Delete access logs past the retention window.

    Returns:
        Dict with the cutoff used and the number of rows deleted
    """
    cutoff = datetime.now(UTC) - timedelta(days=settings.access_log_retention_days)
    logger.info(f"Starting access log purge. Cutoff: {cutoff.isoformat()}")

    async with async_session_maker() as db:
        deleted = await repository.delete_older_than(db, cutoff)

    logger.info(f"Access log purge completed: {deleted} row(s) deleted")
    return {"cutoff": cutoff.isoformat(), "deleted": deleted}


def register_access_log_jobs() -> None:
    """Register access log jobs. Call during startup, before the scheduler starts."""
    register_job(
        job_id=JOB_ID_PURGE_EXPIRED,
        func=purge_expired_access_logs,
        trigger=IntervalTrigger(hours=1),
    )
    logger.info(f"Registered job: {JOB_ID_PURGE_EXPIRED} (interval: 1 hour)")
