"""In-memory registry of terminal sessions, at most one per owner.

All mutating methods are synchronous. Under a single asyncio event loop that
makes every check-then-insert atomic, so two concurrent /session requests
from the same user can never both succeed.
"""

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from shellops_shared.schemas.session import HistoryEntry
from shell_bot.errors import AlreadyActiveSessionError, PermissionDeniedError

logger = logging.getLogger(__name__)


class Session:
    """Per-owner state emulating a persistent interactive shell."""

    def __init__(
        self,
        owner: int,
        channel: int,
        current_dir: str,
        render_target: Any = None,
    ) -> None:
        self.owner = owner
        self.channel = channel
        # The virtual cwd. Only a verified `cd` may change it.
        self.current_dir = current_dir
        self.history: list[HistoryEntry] = []
        # Owned by the renderer (the session panel message).
        self.render_target = render_target
        self.created_at = datetime.now(UTC)
        self.last_activity_at = self.created_at
        # Serializes command execution for this session.
        self.lock = asyncio.Lock()

    def touch(self) -> None:
        self.last_activity_at = datetime.now(UTC)

    def idle_for(self, now: datetime | None = None) -> timedelta:
        return (now or datetime.now(UTC)) - self.last_activity_at

    def __repr__(self) -> str:
        return f"Session(owner={self.owner}, channel={self.channel}, current_dir={self.current_dir!r})"


class SessionStore:
    """Owner-keyed session registry. The underlying map is never exposed."""

    def __init__(self) -> None:
        self._sessions: dict[int, Session] = {}

    def start(
        self,
        owner: int,
        channel: int,
        initial_dir: str,
        render_target: Any = None,
    ) -> Session:
        """Create the owner's session.

        Raises:
            AlreadyActiveSessionError: the owner already has a session.
        """
        if owner in self._sessions:
            raise AlreadyActiveSessionError(owner)

        session = Session(owner, channel, initial_dir, render_target)
        self._sessions[owner] = session
        logger.info("Terminal session started for user %s in %r", owner, initial_dir)
        return session

    def end(self, owner: int, requester: int) -> Session | None:
        """Remove the owner's session and return it, or None if there was none.

        Raises:
            PermissionDeniedError: requester is not the owner. The session
                stays active.
        """
        if requester != owner:
            logger.info("User %s tried to end the session of user %s", requester, owner)
            raise PermissionDeniedError(owner, requester)

        session = self._sessions.pop(owner, None)
        if session is not None:
            logger.info("Terminal session ended for user %s", owner)
        return session

    def get(self, owner: int) -> Session | None:
        return self._sessions.get(owner)

    def expire_idle(self, max_idle: timedelta) -> list[Session]:
        """Remove and return sessions idle longer than max_idle.

        Sessions with a command in flight are skipped, however long it runs.
        """
        now = datetime.now(UTC)
        expired = [
            session
            for session in self._sessions.values()
            if session.idle_for(now) > max_idle and not session.lock.locked()
        ]
        for session in expired:
            del self._sessions[session.owner]
            logger.info(
                "Terminal session for user %s expired after %s idle",
                session.owner,
                session.idle_for(now),
            )
        return expired

    def __len__(self) -> int:
        return len(self._sessions)
