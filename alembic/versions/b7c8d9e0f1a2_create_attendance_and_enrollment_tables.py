"""create attendance and enrollment tables

Revision ID: b7c8d9e0f1a2
Revises:
Create Date: 2026-10-17 09:00:00.000000

This migration:
1. Creates attendance_tokens (append-only check-in tokens)
2. Creates enrollment_applications with the enrollment_status enum
3. Creates students with an indexed, non-unique registration_code

registration_code deliberately has no unique constraint: uniqueness is
checked by the admission flow before insert.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "b7c8d9e0f1a2"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create attendance_tokens, enrollment_applications and students."""
    op.create_table(
        "attendance_tokens",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token", sa.String(length=128), nullable=False),
        # Set by the minting process clock, not by the database
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token", name="uq_attendance_tokens_token"),
    )
    op.create_index(
        "ix_attendance_tokens_expires_at", "attendance_tokens", ["expires_at"], unique=False
    )
    op.create_index(
        "ix_attendance_tokens_created_at", "attendance_tokens", ["created_at"], unique=False
    )

    enrollment_status_enum = postgresql.ENUM(
        "pending",
        "approved",
        "rejected",
        name="enrollment_status",
        create_type=False,
    )
    enrollment_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "enrollment_applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        # Personal information
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        # Documents
        sa.Column("national_id", sa.String(length=20), nullable=False),
        sa.Column("id_document_number", sa.String(length=20), nullable=True),
        sa.Column("id_document_issuer", sa.String(length=20), nullable=True),
        # Address
        sa.Column("postal_code", sa.String(length=10), nullable=True),
        sa.Column("street", sa.String(length=200), nullable=True),
        sa.Column("street_number", sa.String(length=20), nullable=True),
        sa.Column("complement", sa.String(length=100), nullable=True),
        sa.Column("district", sa.String(length=100), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=2), nullable=True),
        # Education
        sa.Column("education_level", sa.String(length=50), nullable=True),
        sa.Column("last_school_name", sa.String(length=200), nullable=True),
        sa.Column("school_type", sa.String(length=20), nullable=True),
        sa.Column("high_school_completion_year", sa.Integer(), nullable=True),
        sa.Column("selfie_url", sa.String(length=500), nullable=True),
        sa.Column("motivation", sa.Text(), nullable=True),
        sa.Column(
            "status",
            enrollment_status_enum,
            nullable=False,
            server_default="pending",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_enrollment_applications_status", "enrollment_applications", ["status"], unique=False
    )
    op.create_index(
        "ix_enrollment_applications_created_at",
        "enrollment_applications",
        ["created_at"],
        unique=False,
    )

    op.create_table(
        "students",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("registration_code", sa.String(length=16), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("national_id", sa.String(length=20), nullable=False),
        sa.Column("photo_url", sa.String(length=500), nullable=True),
        sa.Column("class_group", sa.String(length=50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("origin_application_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["origin_application_id"],
            ["enrollment_applications.id"],
            name="fk_students_origin_application_id",
            ondelete="SET NULL",
        ),
    )
    op.create_index(
        "ix_students_registration_code", "students", ["registration_code"], unique=False
    )
    op.create_index(
        "ix_students_origin_application_id", "students", ["origin_application_id"], unique=False
    )


def downgrade() -> None:
    """Drop the tables and the enrollment_status enum."""
    op.drop_index("ix_students_origin_application_id", table_name="students")
    op.drop_index("ix_students_registration_code", table_name="students")
    op.drop_table("students")

    op.drop_index("ix_enrollment_applications_created_at", table_name="enrollment_applications")
    op.drop_index("ix_enrollment_applications_status", table_name="enrollment_applications")
    op.drop_table("enrollment_applications")
    postgresql.ENUM(name="enrollment_status").drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_attendance_tokens_created_at", table_name="attendance_tokens")
    op.drop_index("ix_attendance_tokens_expires_at", table_name="attendance_tokens")
    op.drop_table("attendance_tokens")
