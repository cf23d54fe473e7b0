"""Tests for the IdleSessionReaper expiry logic.

The reaper runs every minute and ends sessions idle beyond
idle_timeout_minutes, handing each expired session to a callback.
"""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from shell_bot.cleanup import IdleSessionReaper

OWNER = 42
CHAT = 42


def _build_reaper(driver, idle_timeout_minutes: int = 30, on_expired=None) -> IdleSessionReaper:
    return IdleSessionReaper(
        driver=driver,
        idle_timeout_minutes=idle_timeout_minutes,
        on_expired=on_expired or AsyncMock(),
    )


class TestExpireIdleSessions:
    """Verify that sessions idle beyond the timeout are ended and reported."""

    @pytest.mark.asyncio
    async def test_expires_session_idle_beyond_timeout(self, driver, tmp_path):
        """A session idle for 31 min (timeout=30) is ended and reported."""
        session = driver.store.start(OWNER, CHAT, str(tmp_path))
        session.last_activity_at = datetime.now(UTC) - timedelta(minutes=31)
        on_expired = AsyncMock()
        reaper = _build_reaper(driver, idle_timeout_minutes=30, on_expired=on_expired)

        await reaper._expire_idle_sessions()

        on_expired.assert_awaited_once_with(session)
        assert driver.store.get(OWNER) is None

    @pytest.mark.asyncio
    async def test_keeps_active_session(self, driver, tmp_path):
        """A session idle for 5 min (timeout=30) stays."""
        session = driver.store.start(OWNER, CHAT, str(tmp_path))
        session.last_activity_at = datetime.now(UTC) - timedelta(minutes=5)
        on_expired = AsyncMock()
        reaper = _build_reaper(driver, idle_timeout_minutes=30, on_expired=on_expired)

        await reaper._expire_idle_sessions()

        on_expired.assert_not_awaited()
        assert driver.store.get(OWNER) is session

    @pytest.mark.asyncio
    async def test_callback_failure_does_not_stop_reaper(self, driver, tmp_path):
        """A failing notification must not keep other sessions from expiring."""
        for owner in (1, 2):
            session = driver.store.start(owner, owner, str(tmp_path))
            session.last_activity_at = datetime.now(UTC) - timedelta(hours=2)
        on_expired = AsyncMock(side_effect=RuntimeError("chat gone"))
        reaper = _build_reaper(driver, idle_timeout_minutes=30, on_expired=on_expired)

        await reaper._expire_idle_sessions()

        assert on_expired.await_count == 2
        assert driver.store.get(1) is None
        assert driver.store.get(2) is None


class TestReaperLifecycle:
    @pytest.mark.asyncio
    async def test_disabled_when_timeout_zero(self, driver):
        reaper = _build_reaper(driver, idle_timeout_minutes=0)

        reaper.start()

        assert reaper._task is None
        await reaper.stop()

    @pytest.mark.asyncio
    async def test_start_and_stop(self, driver):
        reaper = _build_reaper(driver, idle_timeout_minutes=30)

        with patch("shell_bot.cleanup._CLEANUP_INTERVAL_SECONDS", 3600):
            reaper.start()
            assert reaper._task is not None
            await asyncio.sleep(0)
            await reaper.stop()

        assert reaper._task.cancelled()
