"""
Enrollment Repository

Database operations for enrollment applications.

Design Principles:
- Single responsibility - only database operations, no business logic
- Every write commits on its own; callers compose them without a
  surrounding transaction
- Status changes go through a forward-only state machine
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import EnrollmentApplication, EnrollmentStatus


async def get_by_id(db: AsyncSession, id: UUID) -> EnrollmentApplication | None:
    """Get application by ID."""
    return await db.get(EnrollmentApplication, id)


async def list_pending(db: AsyncSession) -> list[EnrollmentApplication]:
    """Get pending applications, newest first."""
    result = await db.execute(
        select(EnrollmentApplication)
        .where(EnrollmentApplication.status == EnrollmentStatus.PENDING)
        .order_by(EnrollmentApplication.created_at.desc())
    )
    return list(result.scalars().all())


# Valid status transitions - decisions are final
VALID_STATUS_TRANSITIONS: dict[EnrollmentStatus, set[EnrollmentStatus]] = {
    EnrollmentStatus.PENDING: {
        EnrollmentStatus.APPROVED,
        EnrollmentStatus.REJECTED,
    },
    # Terminal states - no transitions allowed
    EnrollmentStatus.APPROVED: set(),
    EnrollmentStatus.REJECTED: set(),
}


class InvalidStatusTransitionError(ValueError):
    """Raised when an invalid status transition is attempted."""

    def __init__(
        self,
        current_status: EnrollmentStatus,
        new_status: EnrollmentStatus,
    ):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
        )


async def update_status(
    db: AsyncSession,
    id: UUID,
    status: EnrollmentStatus,
) -> EnrollmentApplication:
    """
    Update application status.

    Re-applying the current status is rejected too: approving an already
    approved application is an error, not a no-op.

    Args:
        db: Database session
        id: Application UUID
        status: New status to set

    Returns:
        Updated EnrollmentApplication

    Raises:
        ValueError: If application not found
        InvalidStatusTransitionError: If status transition is not allowed
    """
    application = await get_by_id(db, id)
    if not application:
        raise ValueError(f"Application {id} not found")

    current_status = application.status
    if status not in VALID_STATUS_TRANSITIONS.get(current_status, set()):
        raise InvalidStatusTransitionError(current_status, status)

    application.status = status

    await db.commit()
    await db.refresh(application)

    return application
