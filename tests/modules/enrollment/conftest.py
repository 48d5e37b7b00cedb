"""
Fixtures for enrollment tests.
"""

from datetime import UTC, date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID, uuid4

import pytest

from app.modules.enrollment.models import EnrollmentApplication, EnrollmentStatus
from app.modules.students.models import Student


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.rollback = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def admin_id():
    """Return a consistent admin UUID for testing."""
    return UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture
def application_id():
    """Return a consistent application UUID for testing."""
    return uuid4()


def build_application(application_id, status=EnrollmentStatus.PENDING, **overrides):
    app = MagicMock(spec=EnrollmentApplication)
    app.id = application_id
    app.first_name = "Maria"
    app.last_name = "Souza"
    app.email = "maria.souza@example.com"
    app.birth_date = date(2007, 5, 14)
    app.phone = "+5511987654321"
    app.national_id = "123.456.789-09"
    app.id_document_number = "12.345.678-9"
    app.id_document_issuer = "SSP/SP"
    app.postal_code = "01310-100"
    app.street = "Avenida Paulista"
    app.street_number = "1000"
    app.complement = None
    app.district = "Bela Vista"
    app.city = "Sao Paulo"
    app.state = "SP"
    app.education_level = "ensino_medio"
    app.last_school_name = "EE Prof. Joao Silva"
    app.school_type = "publica"
    app.high_school_completion_year = 2024
    app.selfie_url = "https://cdn.example.com/selfies/maria.jpg"
    app.motivation = "Quero me preparar para o vestibular."
    app.status = status
    app.created_at = datetime.now(UTC) - timedelta(days=1)
    app.updated_at = datetime.now(UTC) - timedelta(days=1)
    for key, value in overrides.items():
        setattr(app, key, value)
    return app


@pytest.fixture
def application_factory():
    return build_application


@pytest.fixture
def pending_application(application_id):
    """Create a sample pending application."""
    return build_application(application_id)


@pytest.fixture
def approved_application(application_id):
    """Create a sample application that was already approved."""
    return build_application(application_id, status=EnrollmentStatus.APPROVED)


@pytest.fixture
def created_student(application_id):
    student = MagicMock(spec=Student)
    student.id = uuid4()
    student.registration_code = "48372026"
    student.origin_application_id = application_id
    return student


@pytest.fixture
def mock_cache():
    """Replace the pending review cache used by the service."""
    with patch("app.modules.enrollment.service.cache") as cache:
        cache.get_pending = AsyncMock(return_value=None)
        cache.store_pending = AsyncMock()
        cache.invalidate_pending = AsyncMock()
        yield cache
