"""Orchestration between chat requests and the execution engine.

Handlers call the driver; the driver looks up the session, runs the command
through the executor, updates session state and history, and returns a
display-ready outcome. It knows nothing about Telegram.
"""

import logging
from datetime import timedelta

from shellops_shared.schemas.command import CommandOutcome, CommandResult
from shellops_shared.schemas.session import DirectoryReport
from shell_bot import history
from shell_bot.errors import (
    AlreadyActiveSessionError,
    DirectoryNotFoundError,
    SessionStartError,
)
from shell_bot.executor import CommandExecutor
from shell_bot.process import run_exec
from shell_bot.resolver import DirectoryResolver
from shell_bot.session_store import Session, SessionStore

logger = logging.getLogger(__name__)

# Typed inside a session, reports the virtual cwd instead of executing anything.
DEBUG_DIR_COMMAND = "debug-dir"


class SessionDriver:
    """Runs one-shot commands and drives per-owner terminal sessions."""

    def __init__(
        self,
        store: SessionStore,
        executor: CommandExecutor,
        resolver: DirectoryResolver,
        run_output_max_length: int = 1000,
        session_output_max_length: int = 1900,
        history_summary_length: int = 200,
    ) -> None:
        self.store = store
        self._executor = executor
        self._resolver = resolver
        self._run_output_max_length = run_output_max_length
        self._session_output_max_length = session_output_max_length
        self._history_summary_length = history_summary_length

    async def run_one_shot(self, command: str) -> CommandOutcome:
        """Execute a command in the process's own directory. No session involved."""
        try:
            working_dir = await self._resolver.resolve_process_dir()
        except DirectoryNotFoundError:
            # Let the process inherit whatever cwd it gets.
            working_dir = None

        result = await self._executor.execute(command, working_dir)
        return self._build_outcome(command, result, self._run_output_max_length)

    async def start_session(
        self,
        owner: int,
        channel: int,
        render_target: object = None,
    ) -> Session:
        """Start a session rooted at the process's working directory.

        Raises:
            AlreadyActiveSessionError: the owner already has a session.
            SessionStartError: the starting directory could not be verified.
        """
        # Fail fast before spawning anything; store.start re-checks atomically.
        if self.store.get(owner) is not None:
            raise AlreadyActiveSessionError(owner)

        try:
            initial_dir = await self._resolver.resolve_process_dir()
        except DirectoryNotFoundError as exc:
            logger.error("Could not determine a starting directory for user %s: %s", owner, exc)
            raise SessionStartError(
                f"Could not determine the starting directory: {exc}"
            ) from exc

        return self.store.start(owner, channel, initial_dir, render_target)

    def end_session(self, owner: int, requester: int) -> Session | None:
        """End the owner's session.

        Raises:
            PermissionDeniedError: requester is not the owner.
        """
        return self.store.end(owner, requester)

    def expire_idle_sessions(self, max_idle: timedelta) -> list[Session]:
        return self.store.expire_idle(max_idle)

    async def handle_message(
        self,
        text: str,
        owner: int,
        channel: int,
    ) -> CommandOutcome | DirectoryReport | None:
        """Process a chat message as a session command.

        Returns None when the message does not belong to an active session
        in this channel; such messages are ignored without a reply.
        """
        session = self.store.get(owner)
        if session is None:
            return None
        if session.channel != channel:
            logger.debug(
                "Ignoring message from user %s in chat %s (session is in chat %s)",
                owner,
                channel,
                session.channel,
            )
            return None

        # Commands from one owner run strictly one after another, so a cd is
        # always applied before the next command reads current_dir.
        async with session.lock:
            if self.store.get(owner) is not session:
                logger.info("Session for user %s ended while a command was queued", owner)
                return None

            session.touch()

            if text.strip() == DEBUG_DIR_COMMAND:
                return await self.inspect_directory(session)

            result = await self._executor.execute(text, session.current_dir)

            if result.new_working_dir is not None:
                session.current_dir = result.new_working_dir
                history.record(session, text, f"Changed directory to: {result.new_working_dir}")
            else:
                history.record(
                    session,
                    text,
                    history.truncate_output(result.stdout, self._history_summary_length),
                )

            session.touch()
            return self._build_outcome(
                text,
                result,
                self._session_output_max_length,
                current_dir=session.current_dir,
            )

    async def inspect_directory(self, session: Session) -> DirectoryReport:
        """Report the session directory, whether it exists, and its listing."""
        current_dir = session.current_dir
        exists = await self._resolver.is_directory(current_dir)
        if not exists:
            return DirectoryReport(current_dir=current_dir, exists=False)

        try:
            output = await run_exec("ls", "-la", current_dir)
        except OSError as exc:
            logger.warning("Listing %r failed: %s", current_dir, exc)
            return DirectoryReport(current_dir=current_dir, exists=True, error=str(exc))

        return DirectoryReport(
            current_dir=current_dir,
            exists=True,
            listing=output.stdout,
            error=None if output.ok else output.stderr.strip() or None,
        )

    def _build_outcome(
        self,
        command: str,
        result: CommandResult,
        max_length: int,
        current_dir: str | None = None,
    ) -> CommandOutcome:
        stdout = history.truncate_output(result.stdout, max_length)
        stderr = history.truncate_output(result.stderr, max_length)
        return CommandOutcome(
            command=command,
            result=result,
            stdout=stdout,
            stderr=stderr,
            current_dir=current_dir,
            truncated=stdout != result.stdout or stderr != result.stderr,
        )
