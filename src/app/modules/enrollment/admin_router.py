"""
Enrollment Admin Router

API endpoints for school administrators to decide enrollment applications.
All endpoints require authentication and the admin role.

Endpoints:
- GET /admin/enrollments - Pending applications, newest first
- GET /admin/enrollments/{id} - Application details
- POST /admin/enrollments/{id}/approve - Approve and enroll the student
- POST /admin/enrollments/{id}/reject - Reject application

Every decision ends in exactly one of: success, success with a
non-blocking warning (approve only), or an error response with
{"error": <code>, "message": <text>} detail.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminUser, get_current_admin_user
from app.core.database import get_db
from app.core.rate_limit import RateLimitExceeded, check_rate_limit
from app.modules.enrollment import service
from app.modules.enrollment.models import EnrollmentStatus
from app.modules.enrollment.schemas import (
    ApproveResponse,
    EnrolledStudentSummary,
    EnrollmentDetailResponse,
    EnrollmentListResponse,
    RejectResponse,
)
from app.modules.enrollment.service import (
    EnrollmentServiceError,
    PartialTransitionError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# Rate limits for admin action endpoints
RATE_LIMIT_APPROVE = (10, 60)  # 10 approvals per minute
RATE_LIMIT_REJECT = (10, 60)  # 10 rejections per minute


async def _check_admin_rate_limit(
    admin: AdminUser,
    action: str,
    limit: int,
    window_seconds: int,
) -> None:
    """
    Check rate limit for an admin action.

    Raises:
        RateLimitExceeded: If rate limit is exceeded
    """
    key = f"admin:enrollment:{action}:{admin.id}"
    allowed = await check_rate_limit(key, limit, window_seconds)

    if not allowed:
        logger.warning(
            f"Rate limit exceeded for admin {admin.id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
        raise RateLimitExceeded(limit, window_seconds)


def _handle_service_error(e: EnrollmentServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    detail = {
        "error": e.error_code,
        "message": e.message,
    }
    if isinstance(e, PartialTransitionError):
        detail["student_id"] = str(e.student_id)
        detail["registration_code"] = e.registration_code

    raise HTTPException(status_code=e.status_code, detail=detail) from e


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


@router.get(
    "",
    response_model=EnrollmentListResponse,
    summary="List Pending Applications",
    description="""
Get enrollment applications awaiting a decision, newest first.

**Access:** Admin only
""",
    responses={
        401: {"description": "Unauthorized - invalid or missing token"},
        403: {"description": "Forbidden - not an admin"},
    },
)
async def list_pending_applications(
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> EnrollmentListResponse:
    try:
        applications = await service.admin_list_pending(db)
        logger.info(f"Admin {admin.id} listed pending applications: total={len(applications)}")
        return EnrollmentListResponse(applications=applications, total=len(applications))

    except EnrollmentServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error listing pending applications: {e}")
        raise _internal_error() from e


@router.get(
    "/{application_id}",
    response_model=EnrollmentDetailResponse,
    summary="Get Application Details",
    description="""
Get every submitted field of an enrollment application: personal data,
documents, address, education history, photo reference and motivation,
plus any student records already created from it. A pending application
that lists a student was left behind by a partial transition.

**Access:** Admin only
""",
    responses={
        401: {"description": "Unauthorized - invalid or missing token"},
        403: {"description": "Forbidden - not an admin"},
        404: {"description": "Application not found"},
    },
)
async def get_application_detail(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> EnrollmentDetailResponse:
    try:
        application = await service.admin_get_application_detail(db, application_id)
        students = await service.admin_get_enrolled_students(db, application_id)

        logger.info(f"Admin {admin.id} viewed application {application_id}")

        detail = EnrollmentDetailResponse.model_validate(application)
        detail.students = [EnrolledStudentSummary.model_validate(s) for s in students]
        return detail

    except EnrollmentServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error getting application detail: {e}")
        raise _internal_error() from e


@router.post(
    "/{application_id}/approve",
    response_model=ApproveResponse,
    summary="Approve Application and Enroll Student",
    description="""
Approve an application and enroll the student.

Steps:
1. Generates a registration code not held by any student
2. Creates the student roster record
3. Updates application status to `approved`
4. Sends the enrollment email with the registration code

**Outcome:**
- `success`: all steps completed
- `warning`: student enrolled, but the email could not be sent

**Failures:**
- `REGISTRATION_CODE_CHECK_FAILED` / `REGISTRATION_CODE_EXHAUSTED` /
  `STUDENT_PROVISIONING_FAILED` / `REGISTRATION_CONFLICT`: nothing was
  written, the application is still pending and can be approved again
- `PARTIAL_TRANSITION`: the student was created but the application is
  still pending; the response names the student and code

**Access:** Admin only
""",
    responses={
        401: {"description": "Unauthorized - invalid or missing token"},
        403: {"description": "Forbidden - not an admin"},
        404: {"description": "Application not found"},
        409: {"description": "Application not pending, or registration conflict"},
        429: {"description": "Rate limit exceeded"},
        500: {"description": "Student provisioning failed or partial transition"},
        503: {"description": "Registration code could not be secured"},
    },
)
async def approve_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> ApproveResponse:
    await _check_admin_rate_limit(admin, "approve", *RATE_LIMIT_APPROVE)

    try:
        result = await service.admin_approve_application(db, application_id, admin.id)

        logger.info(
            f"Admin {admin.id} approved application {application_id}. "
            f"Student: {result.student_id}, code: {result.registration_code}, "
            f"outcome: {result.outcome}"
        )

        if result.warning:
            message = "Application approved. Student enrolled with a warning."
        else:
            message = "Application approved. Student enrolled and notified."

        return ApproveResponse(
            id=result.application_id,
            status=EnrollmentStatus.APPROVED,
            outcome=result.outcome,
            student_id=result.student_id,
            registration_code=result.registration_code,
            message=message,
            warning=result.warning,
        )

    except EnrollmentServiceError as e:
        logger.warning(f"Approval of {application_id} failed: {e.error_code} - {e.message}")
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error approving application: {e}")
        raise _internal_error() from e


@router.post(
    "/{application_id}/reject",
    response_model=RejectResponse,
    summary="Reject Application",
    description="""
Reject an enrollment application.

No registration code is generated, no student is created and no email is sent.

**Access:** Admin only
""",
    responses={
        401: {"description": "Unauthorized - invalid or missing token"},
        403: {"description": "Forbidden - not an admin"},
        404: {"description": "Application not found"},
        409: {"description": "Application not pending"},
        429: {"description": "Rate limit exceeded"},
        500: {"description": "Status update failed"},
    },
)
async def reject_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> RejectResponse:
    await _check_admin_rate_limit(admin, "reject", *RATE_LIMIT_REJECT)

    try:
        application = await service.admin_reject_application(db, application_id, admin.id)

        logger.info(f"Admin {admin.id} rejected application {application_id}")

        return RejectResponse(id=application.id, status=application.status)

    except EnrollmentServiceError as e:
        logger.warning(f"Rejection of {application_id} failed: {e.error_code} - {e.message}")
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error rejecting application: {e}")
        raise _internal_error() from e
