"""
Attendance Token Manager

Discovery and minting of the live check-in token.

Discovery always runs before minting: every display first looks for a token
another display already minted and adopts it. Two displays that both miss
in the same narrow window will both mint; both tokens stay valid and the
displays converge on the newest one at their next rediscovery. There is no
lock or lease across displays.

Error categories:
- Discovery failure: logged and treated as "no live token"
- Mint failure: raised as TokenMintError for the caller to surface
"""

import logging
import math
import secrets
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, settings
from app.core.database import async_session_maker
from app.modules.attendance import repository
from app.modules.attendance.encoder import build_checkin_url

logger = logging.getLogger(__name__)

# 16 bytes -> 22 URL-safe characters
TOKEN_BYTES = 16

# Failures that mean "the store did not answer", as opposed to programming errors
STORE_ERRORS = (SQLAlchemyError, OSError)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def generate_attendance_token() -> str:
    """Opaque, unguessable, URL-safe token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


class AttendanceServiceError(Exception):
    """Base exception for attendance service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class TokenMintError(AttendanceServiceError):
    """Raised when a new token could not be persisted."""

    def __init__(self, detail: str):
        super().__init__(
            message=f"Could not create a check-in code: {detail}",
            error_code="TOKEN_MINT_FAILED",
            status_code=503,
        )


@dataclass(frozen=True)
class TokenPolicy:
    """Timing and addressing rules for check-in tokens."""

    window_seconds: int
    guard_band_seconds: int
    low_water_mark_seconds: int
    portal_base_url: str

    @classmethod
    def from_settings(cls, config: Settings) -> "TokenPolicy":
        return cls(
            window_seconds=config.token_window_seconds,
            guard_band_seconds=config.guard_band_seconds,
            low_water_mark_seconds=config.low_water_mark_seconds,
            portal_base_url=config.portal_base_url,
        )

    @property
    def lifetime(self) -> timedelta:
        return timedelta(seconds=self.window_seconds + self.guard_band_seconds)


@dataclass(frozen=True)
class ActiveToken:
    """In-memory view of a stored token."""

    token: str
    created_at: datetime
    expires_at: datetime

    def seconds_left(self, now: datetime) -> int:
        """Whole seconds until expiry, floored at 0."""
        remaining = (self.expires_at - now).total_seconds()
        return max(0, math.floor(remaining))


class AttendanceTokenManager:
    """
    Finds or creates the live check-in token.

    Stateless across calls: each operation opens its own session, so one
    manager can be shared by every display in the process.
    """

    def __init__(
        self,
        session_factory: SessionFactory = async_session_maker,
        policy: TokenPolicy | None = None,
        token_factory: Callable[[], str] = generate_attendance_token,
        clock: Clock = utc_now,
    ):
        self.session_factory = session_factory
        self.policy = policy or TokenPolicy.from_settings(settings)
        self.token_factory = token_factory
        self.clock = clock

    def checkin_url(self, token: ActiveToken) -> str:
        return build_checkin_url(token.token, self.policy.portal_base_url)

    async def discover(self, *, min_remaining_seconds: int = 0) -> ActiveToken | None:
        """
        Find the newest token that outlives now + min_remaining_seconds.

        Store failures are logged and reported as a miss so the caller
        proceeds to mint.
        """
        threshold = self.clock() + timedelta(seconds=min_remaining_seconds)

        try:
            async with self.session_factory() as db:
                found = await repository.get_live_token(db, threshold)
        except STORE_ERRORS as e:
            logger.warning(f"Token discovery failed, treating as no live token: {e}")
            return None

        if found is None:
            logger.info("No live attendance token found")
            return None

        logger.info(f"Adopting live attendance token expiring at {found.expires_at.isoformat()}")
        return ActiveToken(
            token=found.token,
            created_at=found.created_at,
            expires_at=found.expires_at,
        )

    async def mint(self) -> ActiveToken:
        """
        Create and persist a new token.

        Raises:
            TokenMintError: If the insert failed
        """
        created_at = self.clock()
        expires_at = created_at + self.policy.lifetime
        token = self.token_factory()

        try:
            async with self.session_factory() as db:
                await repository.create_token(db, token, created_at, expires_at)
        except STORE_ERRORS as e:
            logger.error(f"Failed to persist attendance token: {e}", exc_info=True)
            raise TokenMintError(str(e)) from e

        logger.info(f"Minted attendance token expiring at {expires_at.isoformat()}")
        return ActiveToken(token=token, created_at=created_at, expires_at=expires_at)

    async def acquire(self, *, min_remaining_seconds: int = 0) -> ActiveToken:
        """
        Discover a live token, minting one on miss.

        Raises:
            TokenMintError: If discovery missed and the mint failed
        """
        found = await self.discover(min_remaining_seconds=min_remaining_seconds)
        if found is not None:
            return found
        return await self.mint()
