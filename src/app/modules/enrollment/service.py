"""
Enrollment Service Layer

Business logic for the admission decision on enrollment applications.

This module implements:
1. Review list:
   - Pending applications, newest first, served from the Redis cache when warm

2. Approval:
   - Generate a registration code that no student holds yet
   - Create the student roster record
   - Move the application to 'approved'
   - Send the enrollment email (non-blocking)
   - Invalidate the pending review cache

3. Rejection:
   - Move the application to 'rejected' and invalidate the cache

Consistency notes:
- Each step commits on its own. A failure before the status update leaves
  the application pending and the approval can simply be retried.
- A failure of the status update after the student was created is reported
  as PartialTransitionError naming the student. Nothing is rolled back; an
  operator resolves it.
- Registration code uniqueness is check-then-insert. Two concurrent
  approvals can pick the same code; the code space makes this unlikely.
"""

import contextlib
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.email import send_enrollment_approved
from app.core.identifiers import (
    IdentifierExhaustedError,
    generate_unique_identifier,
    registration_code_candidate,
)
from app.modules.enrollment import cache, repository
from app.modules.enrollment.helpers import get_full_name
from app.modules.enrollment.models import EnrollmentApplication, EnrollmentStatus
from app.modules.enrollment.repository import InvalidStatusTransitionError
from app.modules.enrollment.schemas import EnrollmentListItem
from app.modules.students.models import Student
from app.modules.students.repository import StudentRepository

logger = logging.getLogger(__name__)


class EnrollmentServiceError(Exception):
    """Base exception for enrollment service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ApplicationNotFoundError(EnrollmentServiceError):
    """Raised when an application is not found."""

    def __init__(self, application_id: UUID | None = None):
        message = (
            f"Application {application_id} not found" if application_id else "Application not found"
        )
        super().__init__(
            message=message,
            error_code="APPLICATION_NOT_FOUND",
            status_code=404,
        )


class CannotDecideApplicationError(EnrollmentServiceError):
    """Raised when application cannot have a decision made (wrong status)."""

    def __init__(self, current_status: str, action: str):
        super().__init__(
            message=f"Cannot {action} application in status: {current_status}. "
            "Application must be in 'pending' status.",
            error_code="CANNOT_DECIDE_APPLICATION",
            status_code=409,
        )


class RegistrationCodeUnavailableError(EnrollmentServiceError):
    """Raised when no registration code could be secured. Nothing was written."""

    def __init__(self, message: str, error_code: str = "REGISTRATION_CODE_CHECK_FAILED"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=503,
        )


class StudentProvisioningError(EnrollmentServiceError):
    """Raised when the student record could not be created. The application stays pending."""

    def __init__(self, message: str, error_code: str = "STUDENT_PROVISIONING_FAILED"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=409 if error_code == "REGISTRATION_CONFLICT" else 500,
        )


class PartialTransitionError(EnrollmentServiceError):
    """
    Raised when the student was created but the application status update failed.

    The application is still pending while a roster record already points at it.
    """

    def __init__(self, application_id: UUID, student_id: UUID, registration_code: str, detail: str):
        self.application_id = application_id
        self.student_id = student_id
        self.registration_code = registration_code
        super().__init__(
            message=(
                f"Student {student_id} was created with registration code "
                f"{registration_code}, but application {application_id} could not be "
                f"marked as approved: {detail}"
            ),
            error_code="PARTIAL_TRANSITION",
            status_code=500,
        )


class StatusUpdateError(EnrollmentServiceError):
    """Raised when an application status update fails in the store."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="STATUS_UPDATE_FAILED",
            status_code=500,
        )


@dataclass
class ApprovalOutcome:
    """Result of a completed approval."""

    application_id: UUID
    student_id: UUID
    registration_code: str
    warning: str | None = None

    @property
    def outcome(self) -> str:
        return "warning" if self.warning else "success"


async def _get_pending_application(
    db: AsyncSession, application_id: UUID, action: str
) -> EnrollmentApplication:
    application = await repository.get_by_id(db, application_id)

    if not application:
        logger.warning(f"Application not found: {application_id}")
        raise ApplicationNotFoundError(application_id)

    if application.status != EnrollmentStatus.PENDING:
        logger.warning(
            f"Cannot {action} application {application_id}: status={application.status.value}"
        )
        raise CannotDecideApplicationError(application.status.value, action)

    return application


async def admin_list_pending(db: AsyncSession) -> list[EnrollmentListItem]:
    """
    Get pending applications for the review screen, newest first.

    Served from the cache when present; a miss re-fetches and refills it.
    """
    cached = await cache.get_pending()
    if cached is not None:
        logger.debug(f"Pending review list served from cache ({len(cached)} items)")
        return cached

    applications = await repository.list_pending(db)
    items = [EnrollmentListItem.model_validate(app) for app in applications]
    await cache.store_pending(items)

    return items


async def admin_get_application_detail(
    db: AsyncSession,
    application_id: UUID,
) -> EnrollmentApplication:
    """
    Get complete application details for admin review.

    Raises:
        ApplicationNotFoundError: If application doesn't exist
    """
    logger.info(f"Admin getting application detail: {application_id}")

    application = await repository.get_by_id(db, application_id)

    if not application:
        logger.warning(f"Application not found: {application_id}")
        raise ApplicationNotFoundError(application_id)

    return application


async def admin_get_enrolled_students(db: AsyncSession, application_id: UUID) -> list[Student]:
    """
    Get roster records created from an application, oldest first.

    A pending application with a student here is the leftover of a partial
    transition; approving it again would enroll the applicant twice.
    """
    students = await StudentRepository.get_by_origin_application_id(db, application_id)
    if len(students) > 1:
        logger.warning(f"Application {application_id} has {len(students)} student records")
    return students


async def _generate_registration_code(db: AsyncSession) -> str:
    async def code_taken(candidate: str) -> bool:
        return await StudentRepository.registration_code_exists(db, candidate)

    try:
        return await generate_unique_identifier(registration_code_candidate, code_taken)
    except IdentifierExhaustedError as e:
        raise RegistrationCodeUnavailableError(
            f"Could not find a free registration code: {e}",
            error_code="REGISTRATION_CODE_EXHAUSTED",
        ) from e
    except Exception as e:
        # Never assume a code is free when the check itself failed
        logger.error(f"Registration code check failed: {e}", exc_info=True)
        raise RegistrationCodeUnavailableError(
            f"Could not verify registration code uniqueness: {e}"
        ) from e


async def _create_student(
    db: AsyncSession, application: EnrollmentApplication, registration_code: str
) -> Student:
    try:
        return await StudentRepository.create(
            db,
            registration_code=registration_code,
            full_name=get_full_name(application),
            email=application.email,
            national_id=application.national_id,
            photo_url=application.selfie_url,
            origin_application_id=application.id,
        )
    except IntegrityError as e:
        with contextlib.suppress(Exception):
            await db.rollback()
        logger.error(f"Student insert conflict for application {application.id}: {e}")
        raise StudentProvisioningError(
            f"Student record conflicts with an existing one: {e.orig}",
            error_code="REGISTRATION_CONFLICT",
        ) from e
    except Exception as e:
        with contextlib.suppress(Exception):
            await db.rollback()
        logger.error(f"Student provisioning failed: {e}", exc_info=True)
        raise StudentProvisioningError(
            f"Failed to create student record: {e}. The application is still pending."
        ) from e


async def admin_approve_application(
    db: AsyncSession,
    application_id: UUID,
    admin_id: UUID,
) -> ApprovalOutcome:
    """
    Approve an application and enroll the student.

    Steps run in order and each commits on its own:
    1. Generate a registration code not held by any student
    2. Create the student roster record
    3. Update application status to APPROVED
    4. Send the enrollment email (failure becomes a warning)
    5. Invalidate the pending review cache

    Args:
        db: Database session
        application_id: UUID of the application
        admin_id: UUID of the admin approving

    Returns:
        ApprovalOutcome with the new student and its registration code

    Raises:
        ApplicationNotFoundError: If application doesn't exist
        CannotDecideApplicationError: If application is not pending
        RegistrationCodeUnavailableError: If no code could be secured (nothing written)
        StudentProvisioningError: If the roster insert failed (nothing written)
        PartialTransitionError: If the student exists but the status update failed
    """
    logger.info(f"Admin {admin_id} approving application {application_id}")

    application = await _get_pending_application(db, application_id, "approve")

    registration_code = await _generate_registration_code(db)

    student = await _create_student(db, application, registration_code)
    student_id = student.id
    logger.info(f"Created student {student_id} ({registration_code}) for {application_id}")

    try:
        await repository.update_status(db, application_id, EnrollmentStatus.APPROVED)
    except Exception as e:
        with contextlib.suppress(Exception):
            await db.rollback()
        logger.error(
            f"Partial transition: student {student_id} created but application "
            f"{application_id} is not approved: {e}",
            exc_info=True,
        )
        raise PartialTransitionError(application_id, student_id, registration_code, str(e)) from e

    logger.info(f"Application {application_id} approved by {admin_id}")

    outcome = ApprovalOutcome(
        application_id=application_id,
        student_id=student_id,
        registration_code=registration_code,
    )

    # Send enrollment email (non-blocking)
    try:
        sent = await send_enrollment_approved(
            to_email=application.email,
            student_name=get_full_name(application),
            registration_code=registration_code,
        )
        if sent:
            logger.info(f"Sent enrollment email to {application.email}")
        else:
            outcome.warning = "Student enrolled, but the enrollment email could not be sent."
    except Exception as e:
        logger.error(f"Failed to send enrollment email: {e}", exc_info=True)
        outcome.warning = f"Student enrolled, but the enrollment email failed: {e}"

    await cache.invalidate_pending()

    return outcome


async def admin_reject_application(
    db: AsyncSession,
    application_id: UUID,
    admin_id: UUID,
) -> EnrollmentApplication:
    """
    Reject an application.

    No registration code, no student record and no email.

    Raises:
        ApplicationNotFoundError: If application doesn't exist
        CannotDecideApplicationError: If application is not pending
        StatusUpdateError: If the store rejected the update
    """
    logger.info(f"Admin {admin_id} rejecting application {application_id}")

    await _get_pending_application(db, application_id, "reject")

    try:
        updated = await repository.update_status(db, application_id, EnrollmentStatus.REJECTED)
    except InvalidStatusTransitionError as e:
        logger.error(f"Status transition error: {e}")
        raise CannotDecideApplicationError(e.current_status.value, "reject") from e
    except Exception as e:
        with contextlib.suppress(Exception):
            await db.rollback()
        logger.error(f"Failed to reject application {application_id}: {e}", exc_info=True)
        raise StatusUpdateError(f"Failed to reject application: {e}") from e

    logger.info(f"Application {application_id} rejected")

    await cache.invalidate_pending()

    return updated
