"""
Enrollment Models

Database model for enrollment applications submitted through the
student portal. Applications are immutable once submitted; only the
status moves, and only forward.
"""

import enum
from datetime import date

from sqlalchemy import Date, Enum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel


class EnrollmentStatus(str, enum.Enum):
    """Status of an enrollment application."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EnrollmentApplication(BaseModel):
    """
    Enrollment application awaiting an admission decision.

    Approval creates a Student roster record (see the students module);
    the application keeps its own copy of the submitted data.
    """

    __tablename__ = "enrollment_applications"

    # Personal information
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Documents (CPF, RG and issuing body)
    national_id: Mapped[str] = mapped_column(String(20), nullable=False)
    id_document_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    id_document_issuer: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Address
    postal_code: Mapped[str | None] = mapped_column(String(10), nullable=True)
    street: Mapped[str | None] = mapped_column(String(200), nullable=True)
    street_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    complement: Mapped[str | None] = mapped_column(String(100), nullable=True)
    district: Mapped[str | None] = mapped_column(String(100), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(2), nullable=True)

    # Education
    education_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_school_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    school_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    high_school_completion_year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Face photo reference and free text
    selfie_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    motivation: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[EnrollmentStatus] = mapped_column(
        Enum(
            EnrollmentStatus,
            name="enrollment_status",
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=EnrollmentStatus.PENDING,
    )

    __table_args__ = (
        Index("ix_enrollment_applications_status", "status"),
        Index("ix_enrollment_applications_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<EnrollmentApplication(id={self.id}, status={self.status})>"
