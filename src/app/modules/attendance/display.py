"""
Live Attendance Display

Per-display state machine for the check-in code screen.

Lifecycle:
    UNINITIALIZED --mount--> DISCOVERING --hit--> ACTIVE
                                   |
                                  miss/failure
                                   v
                                MINTING --ok--> ACTIVE
                                   |
                                 failure
                                   v
                                 ERROR  (retried on the next heartbeat)

Two timers run while mounted, both owned by the display and removed on
unmount:
- countdown: recomputes seconds_left every tick; never increases within
  one active token, floors at 0
- heartbeat: when seconds_left <= low water mark, rediscovers (and mints
  only if nothing fresher exists)

A heartbeat tick that fires while a previous discovery/mint is still in
flight is ignored. Results that arrive after unmount are discarded, and no
store write is started after unmount.
"""

import enum
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.core.config import settings
from app.core.scheduler import add_interval_job, remove_job
from app.modules.attendance.encoder import format_countdown
from app.modules.attendance.manager import (
    ActiveToken,
    AttendanceTokenManager,
    TokenMintError,
)

logger = logging.getLogger(__name__)

JOB_PREFIX = "attendance_display"


class DisplayPhase(str, enum.Enum):
    """Phase of a display's token state machine."""

    UNINITIALIZED = "uninitialized"
    DISCOVERING = "discovering"
    MINTING = "minting"
    ACTIVE = "active"
    ERROR = "error"


@dataclass(frozen=True)
class DisplaySnapshot:
    """What the screen should show right now."""

    display_id: str
    phase: DisplayPhase
    token: str | None
    checkin_url: str | None
    expires_at: datetime | None
    seconds_left: int
    countdown: str
    error: str | None = None
    error_code: str | None = None


class AttendanceDisplay:
    """One running check-in screen."""

    def __init__(
        self,
        manager: AttendanceTokenManager,
        scheduler: AsyncIOScheduler,
        *,
        heartbeat_interval_seconds: int = settings.heartbeat_interval_seconds,
        countdown_interval_seconds: int = settings.countdown_interval_seconds,
        on_change: Callable[[DisplaySnapshot], None] | None = None,
        display_id: str | None = None,
    ):
        self.manager = manager
        self.scheduler = scheduler
        self.heartbeat_interval_seconds = heartbeat_interval_seconds
        self.countdown_interval_seconds = countdown_interval_seconds
        self.on_change = on_change
        self.display_id = display_id or uuid.uuid4().hex

        self.phase = DisplayPhase.UNINITIALIZED
        self.token: ActiveToken | None = None
        self.error: str | None = None
        self.error_code: str | None = None

        self._seconds_left = 0
        self._mounted = False
        self._in_flight = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def heartbeat_job_id(self) -> str:
        return f"{JOB_PREFIX}:{self.display_id}:heartbeat"

    @property
    def countdown_job_id(self) -> str:
        return f"{JOB_PREFIX}:{self.display_id}:countdown"

    async def mount(self) -> None:
        """Start both timers and run the initial discovery."""
        if self._mounted:
            logger.warning(f"Display {self.display_id} already mounted")
            return

        self._mounted = True
        logger.info(f"Mounting attendance display {self.display_id}")

        add_interval_job(
            self.scheduler,
            self.countdown_job_id,
            self.countdown_tick,
            seconds=self.countdown_interval_seconds,
        )
        add_interval_job(
            self.scheduler,
            self.heartbeat_job_id,
            self.heartbeat_tick,
            seconds=self.heartbeat_interval_seconds,
        )

        await self.refresh()

    def unmount(self) -> None:
        """Cancel both timers. Later results are discarded."""
        if not self._mounted:
            return

        self._mounted = False
        remove_job(self.scheduler, self.countdown_job_id)
        remove_job(self.scheduler, self.heartbeat_job_id)
        logger.info(f"Unmounted attendance display {self.display_id}")

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    async def countdown_tick(self) -> None:
        if not self._mounted or self.token is None:
            return
        self._update_seconds_left()
        self._notify()

    async def heartbeat_tick(self) -> None:
        if not self._mounted:
            return

        if self._in_flight:
            logger.debug(f"Display {self.display_id}: heartbeat skipped, refresh in flight")
            return

        seconds_left = self._update_seconds_left()
        if seconds_left <= self.manager.policy.low_water_mark_seconds:
            logger.info(
                f"Display {self.display_id}: {seconds_left}s left, rediscovering check-in token"
            )
            await self.refresh(rediscovery=True)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    async def refresh(self, *, rediscovery: bool = False) -> None:
        """
        Discover a live token, minting on miss.

        On rediscovery only tokens that outlive the low water mark are
        adopted, so a display never re-adopts the token it is rotating away
        from but still picks up one freshly minted by another display.
        """
        if not self._mounted or self._in_flight:
            return

        self._in_flight = True
        try:
            self._set_phase(DisplayPhase.DISCOVERING)
            min_remaining = self.manager.policy.low_water_mark_seconds if rediscovery else 0
            found = await self.manager.discover(min_remaining_seconds=min_remaining)

            if not self._mounted:
                logger.debug(f"Display {self.display_id}: discarding discovery after unmount")
                return

            if found is not None:
                self._activate(found)
                return

            self._set_phase(DisplayPhase.MINTING)
            try:
                minted = await self.manager.mint()
            except TokenMintError as e:
                if self._mounted:
                    self._fail(e)
                return

            if not self._mounted:
                logger.debug(f"Display {self.display_id}: discarding minted token after unmount")
                return

            self._activate(minted)
        finally:
            self._in_flight = False

    def _activate(self, token: ActiveToken) -> None:
        now = self.manager.clock()
        if self.token is None or token.token != self.token.token:
            # New active session; the countdown restarts from the new expiry
            self._seconds_left = token.seconds_left(now)
        else:
            self._seconds_left = min(self._seconds_left, token.seconds_left(now))

        self.token = token
        self.error = None
        self.error_code = None
        self.phase = DisplayPhase.ACTIVE
        self._notify()

    def _fail(self, error: TokenMintError) -> None:
        logger.error(f"Display {self.display_id}: {error.message}")
        self.token = None
        self._seconds_left = 0
        self.error = error.message
        self.error_code = error.error_code
        self.phase = DisplayPhase.ERROR
        self._notify()

    def _set_phase(self, phase: DisplayPhase) -> None:
        self.phase = phase
        self._notify()

    def _update_seconds_left(self) -> int:
        if self.token is None:
            self._seconds_left = 0
        else:
            computed = self.token.seconds_left(self.manager.clock())
            self._seconds_left = min(self._seconds_left, computed)
        return self._seconds_left

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    @property
    def seconds_left(self) -> int:
        return self._seconds_left

    def snapshot(self) -> DisplaySnapshot:
        token = self.token
        return DisplaySnapshot(
            display_id=self.display_id,
            phase=self.phase,
            token=token.token if token else None,
            checkin_url=self.manager.checkin_url(token) if token else None,
            expires_at=token.expires_at if token else None,
            seconds_left=self._seconds_left,
            countdown=format_countdown(self._seconds_left),
            error=self.error,
            error_code=self.error_code,
        )

    def _notify(self) -> None:
        if self.on_change is None or not self._mounted:
            return
        try:
            self.on_change(self.snapshot())
        except Exception as e:
            logger.error(f"Display {self.display_id}: change listener failed: {e}", exc_info=True)
