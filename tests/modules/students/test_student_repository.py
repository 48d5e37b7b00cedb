"""
Tests for the student roster repository.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.modules.students.models import Student
from app.modules.students.repository import StudentRepository


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.add = MagicMock()
    return db


def scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.mark.asyncio
async def test_create_commits_student(mock_db):
    application_id = uuid4()

    student = await StudentRepository.create(
        mock_db,
        registration_code="48372026",
        full_name="Maria Souza",
        email="maria.souza@example.com",
        national_id="123.456.789-09",
        origin_application_id=application_id,
    )

    assert isinstance(student, Student)
    assert student.registration_code == "48372026"
    assert student.origin_application_id == application_id
    assert student.is_active is True
    assert student.photo_url is None
    mock_db.add.assert_called_once_with(student)
    mock_db.commit.assert_awaited_once()
    mock_db.refresh.assert_awaited_once_with(student)


@pytest.mark.asyncio
async def test_registration_code_taken(mock_db):
    mock_db.execute = AsyncMock(return_value=scalar_result(uuid4()))

    assert await StudentRepository.registration_code_exists(mock_db, "48372026") is True


@pytest.mark.asyncio
async def test_registration_code_free(mock_db):
    mock_db.execute = AsyncMock(return_value=scalar_result(None))

    assert await StudentRepository.registration_code_exists(mock_db, "48372026") is False


@pytest.mark.asyncio
async def test_registration_code_check_propagates_errors(mock_db):
    mock_db.execute = AsyncMock(side_effect=ConnectionError("db down"))

    with pytest.raises(ConnectionError):
        await StudentRepository.registration_code_exists(mock_db, "48372026")


@pytest.mark.asyncio
async def test_students_for_application(mock_db):
    rows = [MagicMock(spec=Student), MagicMock(spec=Student)]
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    mock_db.execute = AsyncMock(return_value=result)

    students = await StudentRepository.get_by_origin_application_id(mock_db, uuid4())

    assert students == rows
