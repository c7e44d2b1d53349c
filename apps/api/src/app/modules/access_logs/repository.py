"""
Access Log Repository
"""

from datetime import datetime
from typing import Any

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.access_logs.models import AccessLog


async def create(
    db: AsyncSession,
    *,
    route: str,
    action: str,
    success: bool,
    school_id: str | None = None,
    user_id: str | None = None,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AccessLog:
    """Insert an access log row."""
    entry = AccessLog(
        school_id=school_id,
        user_id=user_id,
        route=route,
        action=action,
        success=success,
        details=details,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(entry)
    await db.commit()
    return entry


async def delete_older_than(db: AsyncSession, cutoff: datetime) -> int:
    """
    Delete rows created before ``cutoff``.

    Returns:
        Number of rows removed
    """
    result = await db.execute(delete(AccessLog).where(AccessLog.created_at < cutoff))
    await db.commit()
    return result.rowcount or 0
