"""
Student Repository

Database operations for the student roster.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.students.models import Student

logger = logging.getLogger(__name__)


class StudentRepository:
    """Repository for student database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        registration_code: str,
        full_name: str,
        email: str,
        national_id: str,
        photo_url: str | None = None,
        origin_application_id: UUID | None = None,
    ) -> Student:
        """
        Create and commit a new student record.

        Commits immediately: the admission flow has no transaction spanning
        the roster insert and the application status update.

        Args:
            db: Database session
            registration_code: Unique human-facing code (RA)
            full_name: First and last name
            email: Student email
            national_id: National document number (CPF)
            photo_url: Face photo reference (optional)
            origin_application_id: Application this record came from (optional)

        Returns:
            Created Student instance
        """
        student = Student(
            registration_code=registration_code,
            full_name=full_name,
            email=email,
            national_id=national_id,
            photo_url=photo_url,
            origin_application_id=origin_application_id,
            is_active=True,
        )

        db.add(student)
        await db.commit()
        await db.refresh(student)

        logger.info(f"Created student: {student.id} - {student.registration_code}")
        return student

    @staticmethod
    async def registration_code_exists(db: AsyncSession, registration_code: str) -> bool:
        """Check whether any student already holds this registration code."""
        result = await db.execute(
            select(Student.id).where(Student.registration_code == registration_code).limit(1)
        )
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def get_by_origin_application_id(
        db: AsyncSession, application_id: UUID
    ) -> list[Student]:
        """
        Get students created from an application.

        More than one row means an approval was retried after a partial failure.
        """
        result = await db.execute(
            select(Student)
            .where(Student.origin_application_id == application_id)
            .order_by(Student.created_at)
        )
        return list(result.scalars().all())
