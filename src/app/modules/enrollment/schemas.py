"""
Enrollment Schemas

Pydantic schemas for the admin enrollment review endpoints.
"""

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.modules.enrollment.models import EnrollmentStatus


class EnrollmentListItem(BaseModel):
    """Application summary for the pending review list."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Application UUID")
    first_name: str = Field(..., description="Applicant first name")
    last_name: str = Field(..., description="Applicant last name")
    email: str = Field(..., description="Applicant email")
    national_id: str = Field(..., description="National document number (CPF)")
    education_level: str | None = Field(None, description="Declared education level")
    status: EnrollmentStatus = Field(..., description="Current application status")
    created_at: datetime = Field(..., description="When the application was submitted")


class EnrollmentListResponse(BaseModel):
    """Pending applications, newest first."""

    applications: list[EnrollmentListItem] = Field(..., description="Pending applications")
    total: int = Field(..., ge=0, description="Number of pending applications")


class EnrolledStudentSummary(BaseModel):
    """Roster record created from an application."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    registration_code: str
    full_name: str
    created_at: datetime


class EnrollmentDetailResponse(BaseModel):
    """Complete application details for admin review."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: EnrollmentStatus

    # Personal information
    first_name: str
    last_name: str
    email: str
    birth_date: date | None = None
    phone: str | None = None

    # Documents
    national_id: str
    id_document_number: str | None = None
    id_document_issuer: str | None = None

    # Address
    postal_code: str | None = None
    street: str | None = None
    street_number: str | None = None
    complement: str | None = None
    district: str | None = None
    city: str | None = None
    state: str | None = None

    # Education
    education_level: str | None = None
    last_school_name: str | None = None
    school_type: str | None = None
    high_school_completion_year: int | None = None

    selfie_url: str | None = None
    motivation: str | None = None

    created_at: datetime
    updated_at: datetime

    # More than one entry means an approval was retried after a partial transition
    students: list[EnrolledStudentSummary] = Field(default_factory=list)


class ApproveResponse(BaseModel):
    """Response after approving an application.

    `outcome` is "warning" when the student was enrolled but the
    notification email could not be sent.
    """

    id: UUID = Field(..., description="Application UUID")
    status: EnrollmentStatus = Field(..., description="Updated status (approved)")
    outcome: Literal["success", "warning"] = Field(..., description="Approval outcome")
    student_id: UUID = Field(..., description="Newly created student UUID")
    registration_code: str = Field(..., description="Registration code assigned to the student")
    message: str = Field(..., description="Human readable result")
    warning: str | None = Field(None, description="Non-blocking problem, if any")


class RejectResponse(BaseModel):
    """Response after rejecting an application."""

    id: UUID = Field(..., description="Application UUID")
    status: EnrollmentStatus = Field(..., description="Updated status (rejected)")
    message: str = Field(
        default="Application rejected.",
        description="Success message",
    )
