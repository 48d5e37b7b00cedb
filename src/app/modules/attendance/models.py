"""
Attendance Models

Check-in tokens shown on the live attendance display.
Tokens are insert-only: never updated, never deleted.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class AttendanceToken(Base):
    """
    A check-in token with a fixed validity window.

    created_at is set by the minting display (not the database) so that
    expires_at = created_at + window + guard band is computed from one clock.
    """

    __tablename__ = "attendance_tokens"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_attendance_tokens_expires_at", "expires_at"),
        Index("ix_attendance_tokens_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AttendanceToken(id={self.id}, expires_at={self.expires_at.isoformat()})>"
