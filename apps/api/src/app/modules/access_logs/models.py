"""
Access Log Models

Audit trail of attendance mutations. Rows are append-only and purged after
the retention window.
"""

from enum import Enum
from typing import Any

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel


class AccessAction(str, Enum):
    """Audited actions."""

    ATTENDANCE_CREATE = "attendance_create"
    ATTENDANCE_UPDATE = "attendance_update"
    ATTENDANCE_DELETE = "attendance_delete"


class AccessLog(BaseModel):
    """One audited request."""

    __tablename__ = "access_logs"

    # Nullable so a log row survives the user or school being removed
    school_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="SET NULL"),
        nullable=True,
    )
    user_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    route: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_access_logs_school_created", "school_id", "created_at"),
        Index("ix_access_logs_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AccessLog(id={self.id}, action={self.action}, success={self.success})>"
