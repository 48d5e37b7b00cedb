"""
Unit tests for the enrollment repository layer.

These tests focus on the status state machine and update_status.
"""

from unittest.mock import AsyncMock

import pytest

from app.modules.enrollment.models import EnrollmentStatus
from app.modules.enrollment.repository import (
    VALID_STATUS_TRANSITIONS,
    InvalidStatusTransitionError,
    update_status,
)


class TestStatusTransitions:
    """Tests for status transition state machine."""

    def test_pending_can_be_decided(self):
        valid = VALID_STATUS_TRANSITIONS[EnrollmentStatus.PENDING]
        assert valid == {EnrollmentStatus.APPROVED, EnrollmentStatus.REJECTED}

    def test_terminal_states_have_no_transitions(self):
        """Decisions are final."""
        assert VALID_STATUS_TRANSITIONS[EnrollmentStatus.APPROVED] == set()
        assert VALID_STATUS_TRANSITIONS[EnrollmentStatus.REJECTED] == set()

    def test_all_statuses_are_in_transition_map(self):
        for status in EnrollmentStatus:
            assert status in VALID_STATUS_TRANSITIONS


class TestInvalidStatusTransitionError:
    def test_error_message_contains_both_statuses(self):
        error = InvalidStatusTransitionError(EnrollmentStatus.APPROVED, EnrollmentStatus.REJECTED)

        assert "approved" in str(error)
        assert "rejected" in str(error)
        assert error.current_status == EnrollmentStatus.APPROVED
        assert error.new_status == EnrollmentStatus.REJECTED

    def test_is_value_error(self):
        error = InvalidStatusTransitionError(EnrollmentStatus.REJECTED, EnrollmentStatus.APPROVED)
        assert isinstance(error, ValueError)


class TestUpdateStatus:
    @pytest.mark.asyncio
    async def test_pending_to_approved(self, mock_db, application_id, pending_application):
        mock_db.get = AsyncMock(return_value=pending_application)

        result = await update_status(mock_db, application_id, EnrollmentStatus.APPROVED)

        assert result.status == EnrollmentStatus.APPROVED
        mock_db.commit.assert_awaited_once()
        mock_db.refresh.assert_awaited_once_with(pending_application)

    @pytest.mark.asyncio
    async def test_pending_to_rejected(self, mock_db, application_id, pending_application):
        mock_db.get = AsyncMock(return_value=pending_application)

        result = await update_status(mock_db, application_id, EnrollmentStatus.REJECTED)

        assert result.status == EnrollmentStatus.REJECTED

    @pytest.mark.asyncio
    async def test_terminal_status_is_final(self, mock_db, application_id, approved_application):
        mock_db.get = AsyncMock(return_value=approved_application)

        with pytest.raises(InvalidStatusTransitionError):
            await update_status(mock_db, application_id, EnrollmentStatus.REJECTED)

        mock_db.commit.assert_not_awaited()
        assert approved_application.status == EnrollmentStatus.APPROVED

    @pytest.mark.asyncio
    async def test_reapplying_same_status_is_rejected(
        self, mock_db, application_id, approved_application
    ):
        mock_db.get = AsyncMock(return_value=approved_application)

        with pytest.raises(InvalidStatusTransitionError):
            await update_status(mock_db, application_id, EnrollmentStatus.APPROVED)

        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_application(self, mock_db, application_id):
        mock_db.get = AsyncMock(return_value=None)

        with pytest.raises(ValueError, match="not found"):
            await update_status(mock_db, application_id, EnrollmentStatus.APPROVED)
