"""
Attendance Schemas

Pydantic schemas for the live attendance display.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.modules.attendance.display import DisplayPhase


class DisplaySnapshotResponse(BaseModel):
    """State of a live attendance display.

    Pushed over the display WebSocket on every change and countdown tick.
    """

    model_config = ConfigDict(from_attributes=True)

    display_id: str = Field(..., description="Identifier of the display instance")
    phase: DisplayPhase = Field(..., description="State machine phase")
    token: str | None = Field(None, description="Human-visible check-in token")
    checkin_url: str | None = Field(None, description="Payload to encode in the QR code")
    expires_at: datetime | None = Field(None, description="When the token stops being accepted")
    seconds_left: int = Field(..., ge=0, description="Countdown, never negative")
    countdown: str = Field(..., description="Countdown formatted as M:SS")
    error: str | None = Field(None, description="Operator-visible error message")
    error_code: str | None = Field(None, description="Machine-readable error category")


class CurrentTokenResponse(BaseModel):
    """Response for GET /attendance/current-token."""

    token: str = Field(..., description="Check-in token")
    checkin_url: str = Field(..., description="Payload to encode in the QR code")
    created_at: datetime = Field(..., description="When the token was minted")
    expires_at: datetime = Field(..., description="When the token stops being accepted")
    seconds_left: int = Field(..., ge=0, description="Seconds until expiry")
    countdown: str = Field(..., description="Seconds left formatted as M:SS")
