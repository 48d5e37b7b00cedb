"""
Fixtures for attendance tests.

The token store is an in-memory stand-in for the repository module with the
same filter and ordering rules as the SQL queries.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.modules.attendance.manager import AttendanceTokenManager, TokenPolicy

EPOCH = datetime(2026, 3, 2, 8, 0, 0, tzinfo=UTC)

PORTAL = "https://portal.example.edu"


def at(seconds: float) -> datetime:
    """Instant `seconds` after the test epoch."""
    return EPOCH + timedelta(seconds=seconds)


class FakeClock:
    """Settable clock; t is seconds since EPOCH."""

    def __init__(self, t: float = 0):
        self.t = t

    def __call__(self) -> datetime:
        return at(self.t)

    def set(self, t: float) -> None:
        self.t = t


class FakeTokenStore:
    """In-memory replacement for app.modules.attendance.repository."""

    def __init__(self):
        self.rows: list[SimpleNamespace] = []
        self.discover_calls = 0
        self.create_calls = 0
        self.fail_discovery = False
        self.fail_mint = False
        # When set, get_live_token waits on it before answering
        self.discovery_gate: asyncio.Event | None = None
        # When set, create_token waits on it before inserting
        self.mint_gate: asyncio.Event | None = None

    def seed(self, token: str, created_at: datetime, expires_at: datetime) -> None:
        self.rows.append(SimpleNamespace(token=token, created_at=created_at, expires_at=expires_at))

    async def get_live_token(self, db, not_expired_at):
        self.discover_calls += 1
        if self.discovery_gate is not None:
            await self.discovery_gate.wait()
        if self.fail_discovery:
            raise OperationalError("SELECT", {}, Exception("connection refused"))

        live = [row for row in self.rows if row.expires_at > not_expired_at]
        if not live:
            return None
        return max(live, key=lambda row: row.created_at)

    async def create_token(self, db, token, created_at, expires_at):
        self.create_calls += 1
        if self.fail_mint:
            raise OperationalError("INSERT", {}, Exception("connection refused"))
        if self.mint_gate is not None:
            await self.mint_gate.wait()
        row = SimpleNamespace(token=token, created_at=created_at, expires_at=expires_at)
        self.rows.append(row)
        return row


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def instant():
    """Converts test seconds to datetimes."""
    return at


@pytest.fixture
def store(monkeypatch):
    fake = FakeTokenStore()
    monkeypatch.setattr("app.modules.attendance.manager.repository", fake)
    return fake


@pytest.fixture
def session_factory():
    """Session factory whose sessions are plain mocks; the store ignores them."""

    @asynccontextmanager
    async def factory():
        yield AsyncMock()

    return factory


@pytest.fixture
def policy():
    return TokenPolicy(
        window_seconds=7200,
        guard_band_seconds=10,
        low_water_mark_seconds=10,
        portal_base_url=PORTAL,
    )


@pytest.fixture
def token_names():
    """Deterministic token factory: T1, T2, ..."""
    counter = iter(range(1, 1000))
    return lambda: f"T{next(counter)}"


@pytest.fixture
def manager(store, session_factory, policy, token_names, clock):
    return AttendanceTokenManager(
        session_factory=session_factory,
        policy=policy,
        token_factory=token_names,
        clock=clock,
    )


@pytest.fixture
def mock_scheduler():
    """Scheduler mock; jobs are never run automatically."""
    scheduler = MagicMock()
    scheduler.add_job = MagicMock()
    scheduler.remove_job = MagicMock()
    return scheduler
