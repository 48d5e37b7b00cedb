"""
Student Models

Roster records created when an enrollment application is approved.
"""

import uuid

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel


class Student(BaseModel):
    """
    Student roster record.

    registration_code (the RA shown to the student) is unique by
    check-then-insert in the admission flow, not by a database constraint.
    """

    __tablename__ = "students"

    registration_code: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
    )

    full_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    national_id: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    photo_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    class_group: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Reference to the application this record was created from
    # ON DELETE SET NULL: the roster record outlives the application
    origin_application_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("enrollment_applications.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_students_registration_code", "registration_code"),
        Index("ix_students_origin_application_id", "origin_application_id"),
    )

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, registration_code={self.registration_code})>"
