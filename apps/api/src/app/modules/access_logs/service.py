"""
Access Log Service

Fire-and-forget audit logging for attendance mutations.

The write runs in a detached task with its own session, so it never shares
the request transaction and never delays the response. A failed audit write
is logged and dropped: an audit outage must not block attendance recording.
"""

import asyncio
import logging
from typing import Any

from app.core.database import async_session_maker
from app.modules.access_logs import repository
from app.modules.access_logs.models import AccessAction

logger = logging.getLogger(__name__)

# Strong references to in-flight audit writes; the event loop keeps only weak ones
_pending_writes: set[asyncio.Task] = set()


async def _write_entry(entry: dict[str, Any]) -> None:
    try:
        async with async_session_maker() as db:
            await repository.create(db, **entry)
    except Exception as e:
        logger.error(
            f"Failed to write access log ({entry.get('action')} by {entry.get('user_id')}): {e}"
        )


def log_attendance_event(
    action: AccessAction,
    *,
    user_id: str,
    school_id: str,
    route: str,
    success: bool = True,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> asyncio.Task | None:
    """
    Schedule an audit write and return immediately.

    Returns:
        The background task, or None if it could not be scheduled
    """
    entry = {
        "action": AccessAction(action).value,
        "user_id": user_id,
        "school_id": school_id,
        "route": route,
        "success": success,
        "details": details,
        "ip_address": ip_address,
        "user_agent": user_agent,
    }

    try:
        task = asyncio.get_running_loop().create_task(_write_entry(entry))
    except RuntimeError as e:
        logger.error(f"Could not schedule access log write for {entry['action']}: {e}")
        return None

    _pending_writes.add(task)
    task.add_done_callback(_pending_writes.discard)
    return task


async def drain_pending_writes() -> None:
    """Wait for in-flight audit writes. Called on shutdown."""
    if _pending_writes:
        await asyncio.gather(*_pending_writes, return_exceptions=True)
