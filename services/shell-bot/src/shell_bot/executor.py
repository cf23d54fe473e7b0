"""Runs a single command line against a virtual working directory.

The executor owns every special case that exists because there is no
persistent shell behind a session:

- `cd` is intercepted and answered by the DirectoryResolver. It never reaches
  a generic subprocess, where it would change nothing.
- `pwd` echoes the virtual cwd, which is authoritative.
- A bare `ls` becomes `ls -la` so listings are always legible in chat.

Everything else runs as one shell process whose cwd is the virtual cwd.
"""

import logging
import os
import shlex

from shellops_shared.schemas.command import CommandResult
from shell_bot.errors import DirectoryNotFoundError
from shell_bot.process import run_shell
from shell_bot.resolver import DirectoryResolver

logger = logging.getLogger(__name__)

_VERBOSE_LISTING = "ls -la"


def parse_cd_target(command: str) -> str | None:
    """Return the target of a `cd` command line, or None for other commands.

    A bare `cd` targets the home directory. Quotes follow shell-word rules,
    so `cd "my dir"` targets `my dir`; an unquoted target with spaces is
    taken literally.
    """
    parts = command.strip().split(maxsplit=1)
    if not parts or parts[0] != "cd":
        return None
    if len(parts) == 1:
        return "~"

    raw_target = parts[1].strip()
    try:
        words = shlex.split(raw_target)
    except ValueError:
        # Unbalanced quotes.
        return raw_target
    if len(words) == 1:
        return words[0]
    return raw_target


class CommandExecutor:
    """Executes command lines and folds every failure into the result."""

    def __init__(
        self,
        resolver: DirectoryResolver,
        timeout_seconds: float | None = None,
    ) -> None:
        self._resolver = resolver
        self._timeout_seconds = timeout_seconds

    async def execute(self, command: str, working_dir: str | None = None) -> CommandResult:
        """Run one command line as if typed at a shell sitting in working_dir.

        Never raises. Non-zero exits, spawn failures and timeouts end up in
        the returned stderr.
        """
        stripped = command.strip()

        if stripped == "ls":
            command = _VERBOSE_LISTING

        if stripped == "pwd":
            return self._print_working_dir(working_dir)

        cd_target = parse_cd_target(command)
        if cd_target is not None:
            return await self._change_directory(cd_target, working_dir)

        logger.info("Executing %r in %r", command, working_dir or "<process cwd>")
        try:
            output = await run_shell(command, cwd=working_dir, timeout=self._timeout_seconds)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to start %r in %r: %s", command, working_dir, exc)
            return CommandResult(stderr=str(exc))

        stderr = output.stderr
        if output.timed_out:
            stderr += f"\nCommand timed out after {self._timeout_seconds} seconds"
        elif output.returncode != 0:
            logger.info("Command %r exited with status %s", command, output.returncode)
            if not stderr.strip():
                stderr = f"Command exited with status {output.returncode}"

        return CommandResult(stdout=output.stdout, stderr=stderr.lstrip("\n"))

    def _print_working_dir(self, working_dir: str | None) -> CommandResult:
        if working_dir:
            return CommandResult(stdout=working_dir)
        try:
            return CommandResult(stdout=os.getcwd())
        except FileNotFoundError as exc:
            return CommandResult(
                stdout="Unable to determine the current directory",
                stderr=str(exc),
            )

    async def _change_directory(self, target: str, working_dir: str | None) -> CommandResult:
        logger.info("Resolving cd %r from %r", target, working_dir)
        try:
            new_dir = await self._resolver.resolve_cd(target, working_dir)
        except DirectoryNotFoundError as exc:
            return CommandResult(stderr=str(exc))
        return CommandResult(new_working_dir=new_dir)
