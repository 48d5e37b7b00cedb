"""
Tests for the attendance token manager.

These tests verify:
- Discovery adopts a live token and never mints while one exists
- The expiry boundary (expired tokens are never returned)
- Minting computes expiry from one clock reading
- Store failures: discovery degrades to a miss, mint raises TokenMintError
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.modules.attendance.manager import (
    ActiveToken,
    AttendanceTokenManager,
    TokenMintError,
    TokenPolicy,
    generate_attendance_token,
)


class TestDiscovery:
    @pytest.mark.asyncio
    async def test_live_token_is_returned_without_minting(self, manager, store, clock, instant):
        clock.set(1000)
        store.seed("seeded", created_at=instant(0), expires_at=instant(1060))

        found = await manager.acquire()

        assert found.token == "seeded"
        assert found.expires_at == instant(1060)
        assert store.create_calls == 0
        assert len(store.rows) == 1

    @pytest.mark.asyncio
    async def test_token_expired_one_second_ago_is_not_returned(
        self, manager, store, clock, instant
    ):
        clock.set(500)
        store.seed("old", created_at=instant(0), expires_at=instant(499))

        assert await manager.discover() is None

    @pytest.mark.asyncio
    async def test_token_expiring_in_one_second_is_returned(self, manager, store, clock, instant):
        clock.set(500)
        store.seed("fresh", created_at=instant(0), expires_at=instant(501))

        found = await manager.discover()

        assert found is not None
        assert found.token == "fresh"

    @pytest.mark.asyncio
    async def test_token_expiring_exactly_now_is_dead(self, manager, store, clock, instant):
        clock.set(500)
        store.seed("edge", created_at=instant(0), expires_at=instant(500))

        assert await manager.discover() is None

    @pytest.mark.asyncio
    async def test_newest_live_token_wins(self, manager, store, clock, instant):
        clock.set(100)
        store.seed("older", created_at=instant(0), expires_at=instant(7210))
        store.seed("newer", created_at=instant(50), expires_at=instant(7260))

        found = await manager.discover()

        assert found.token == "newer"

    @pytest.mark.asyncio
    async def test_min_remaining_excludes_tokens_about_to_expire(
        self, manager, store, clock, instant
    ):
        clock.set(7201)
        store.seed("T1", created_at=instant(0), expires_at=instant(7210))

        assert await manager.discover() is not None
        assert await manager.discover(min_remaining_seconds=10) is None

    @pytest.mark.asyncio
    async def test_discovery_failure_is_treated_as_miss(self, manager, store):
        store.fail_discovery = True

        assert await manager.discover() is None

    @pytest.mark.asyncio
    async def test_discovery_failure_then_mint(self, manager, store):
        store.fail_discovery = True

        token = await manager.acquire()

        assert token.token == "T1"
        assert store.create_calls == 1


class TestMint:
    @pytest.mark.asyncio
    async def test_mint_sets_window_plus_guard_band(self, manager, store, instant):
        token = await manager.mint()

        assert token.token == "T1"
        assert token.created_at == instant(0)
        assert token.expires_at == instant(7210)
        assert store.rows[0].expires_at == instant(7210)

    @pytest.mark.asyncio
    async def test_acquire_mints_on_empty_store(self, manager, store):
        token = await manager.acquire()

        assert token.token == "T1"
        assert store.discover_calls == 1
        assert store.create_calls == 1

    @pytest.mark.asyncio
    async def test_mint_failure_raises(self, manager, store):
        store.fail_mint = True

        with pytest.raises(TokenMintError) as exc_info:
            await manager.mint()

        assert exc_info.value.error_code == "TOKEN_MINT_FAILED"
        assert exc_info.value.status_code == 503
        assert "connection refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_mint_writes_through_repository_session(self, policy, clock):
        db = MagicMock()
        session_cm = MagicMock()
        session_cm.__aenter__ = AsyncMock(return_value=db)
        session_cm.__aexit__ = AsyncMock(return_value=False)
        manager = AttendanceTokenManager(
            session_factory=lambda: session_cm,
            policy=policy,
            token_factory=lambda: "abc",
            clock=clock,
        )

        with pytest.MonkeyPatch.context() as mp:
            create_token = AsyncMock()
            mp.setattr("app.modules.attendance.manager.repository.create_token", create_token)
            await manager.mint()

        create_token.assert_awaited_once()
        args = create_token.await_args.args
        assert args[0] is db
        assert args[1] == "abc"


class TestTokenValues:
    def test_generated_tokens_are_url_safe_and_distinct(self):
        tokens = {generate_attendance_token() for _ in range(50)}

        assert len(tokens) == 50
        for token in tokens:
            assert len(token) == 22
            assert all(c.isalnum() or c in "-_" for c in token)

    def test_seconds_left_floors_at_zero(self, instant):
        token = ActiveToken(token="t", created_at=instant(0), expires_at=instant(10))

        assert token.seconds_left(instant(0)) == 10
        assert token.seconds_left(instant(9.5)) == 0
        assert token.seconds_left(instant(20)) == 0

    def test_checkin_url(self, manager, instant):
        token = ActiveToken(token="T9", created_at=instant(0), expires_at=instant(10))

        assert manager.checkin_url(token) == "https://portal.example.edu/checkin?t=T9"

    def test_policy_lifetime(self):
        policy = TokenPolicy(
            window_seconds=60,
            guard_band_seconds=0,
            low_water_mark_seconds=5,
            portal_base_url="https://p",
        )

        assert policy.lifetime.total_seconds() == 60
