"""
Enrollment Shared Helpers

Small functions shared by the service and the admin router.
"""

from app.modules.enrollment.models import EnrollmentApplication


def get_full_name(application: EnrollmentApplication) -> str:
    """
    Build the roster name from an application.

    Args:
        application: The enrollment application

    Returns:
        First and last name joined by a single space
    """
    return f"{application.first_name} {application.last_name}".strip()
