"""Background task that ends terminal sessions nobody is using.

Every minute, removes sessions whose last command is older than the
configured idle timeout and hands each one to a callback so the chat side
can mark its panel as expired. Sessions with a command still running are
left alone.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import timedelta

from shell_bot.driver import SessionDriver
from shell_bot.session_store import Session

logger = logging.getLogger(__name__)

_CLEANUP_INTERVAL_SECONDS = 60


class IdleSessionReaper:
    """Background task that ends sessions idle beyond the timeout."""

    def __init__(
        self,
        driver: SessionDriver,
        idle_timeout_minutes: int,
        on_expired: Callable[[Session], Awaitable[None]],
    ):
        self._driver = driver
        self._idle_timeout_minutes = idle_timeout_minutes
        self._on_expired = on_expired
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        if self._idle_timeout_minutes <= 0:
            logger.info("Idle session expiry disabled")
            return
        self._task = asyncio.create_task(self._cleanup_loop())
        logger.info(
            "Idle session reaper started (timeout=%s min)", self._idle_timeout_minutes
        )

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(_CLEANUP_INTERVAL_SECONDS)
            await self._expire_idle_sessions()

    async def _expire_idle_sessions(self) -> None:
        """End all sessions that have been idle too long."""
        expired = self._driver.expire_idle_sessions(
            timedelta(minutes=self._idle_timeout_minutes)
        )
        for session in expired:
            try:
                await self._on_expired(session)
            except Exception as exc:
                logger.warning(
                    "Failed to notify user %s about session expiry: %s", session.owner, exc
                )
