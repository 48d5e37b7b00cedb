"""
Attendance Repository

Database operations for check-in tokens.

Design Principles:
- Single responsibility - only database operations, no business logic
- Timezone-aware datetime handling (UTC)
- Blind inserts: no compare-and-swap, concurrent mints both succeed
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AttendanceToken


async def get_live_token(db: AsyncSession, not_expired_at: datetime) -> AttendanceToken | None:
    """
    Get the most recently created token still valid at the given instant.

    Args:
        db: Database session
        not_expired_at: Only tokens with expires_at strictly after this are returned

    Returns:
        The newest live token, or None
    """
    result = await db.execute(
        select(AttendanceToken)
        .where(AttendanceToken.expires_at > not_expired_at)
        .order_by(AttendanceToken.created_at.desc())
        .limit(1)
    )
    return result.scalars().first()


async def create_token(
    db: AsyncSession,
    token: str,
    created_at: datetime,
    expires_at: datetime,
) -> AttendanceToken:
    """Insert a new check-in token."""
    new_token = AttendanceToken(
        token=token,
        created_at=created_at,
        expires_at=expires_at,
    )

    db.add(new_token)
    await db.commit()
    await db.refresh(new_token)

    return new_token
