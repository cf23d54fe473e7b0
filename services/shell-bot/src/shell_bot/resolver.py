"""Directory resolution for `cd`.

There is no long-running shell to remember a working directory, so each
`cd` is answered by a throwaway process: change into the session directory,
change into the target, print where we ended up. The directories travel as
positional arguments to `sh -c`, so names with spaces or shell
metacharacters are never re-parsed by the shell.
"""

import logging
import os

from shell_bot.errors import DirectoryNotFoundError
from shell_bot.process import run_exec

logger = logging.getLogger(__name__)

# $1 is the starting directory, $2 the target. CDPATH would make cd print
# the directory it picked, which would corrupt the pwd output.
_RESOLVE_SCRIPT = 'unset CDPATH; cd -- "$1" && cd -- "$2" && pwd'


class DirectoryResolver:
    """Computes and verifies the result of a `cd` against a virtual cwd."""

    async def resolve_cd(self, target: str, working_dir: str | None) -> str:
        """Return the absolute directory `cd target` would land in.

        Raises:
            DirectoryNotFoundError: the target does not resolve to an
                existing directory. The caller's state must stay untouched.
        """
        if target.startswith("/"):
            candidate = target
        elif target == "~" or target.startswith("~/"):
            candidate = os.path.expanduser(target)
        else:
            # Relative, including "." and "..".
            if working_dir:
                start_dir = working_dir
            else:
                try:
                    start_dir = os.getcwd()
                except FileNotFoundError as exc:
                    raise DirectoryNotFoundError(target) from exc
            candidate = await self._resolve_relative(target, start_dir)

        if not await self.is_directory(candidate):
            logger.info("cd target %r resolved to %r, which is not a directory", target, candidate)
            raise DirectoryNotFoundError(target)

        return candidate

    async def resolve_process_dir(self) -> str:
        """Return the process's own working directory, verified to exist.

        Used as the starting point of new sessions and one-shot runs.
        """
        try:
            current_dir = os.getcwd()
        except FileNotFoundError as exc:
            # The directory was removed out from under the process.
            raise DirectoryNotFoundError(".") from exc

        if not await self.is_directory(current_dir):
            raise DirectoryNotFoundError(current_dir)
        return current_dir

    async def is_directory(self, path: str) -> bool:
        try:
            output = await run_exec("test", "-d", path)
        except OSError as exc:
            logger.warning("Directory check for %r failed to run: %s", path, exc)
            return False
        return output.ok

    async def _resolve_relative(self, target: str, start_dir: str) -> str:
        try:
            output = await run_exec("sh", "-c", _RESOLVE_SCRIPT, "sh", start_dir, target)
        except OSError as exc:
            logger.warning("Failed to resolve %r from %r: %s", target, start_dir, exc)
            raise DirectoryNotFoundError(target) from exc

        resolved = output.stdout.rstrip("\n")
        if not output.ok or not resolved:
            logger.info(
                "Could not resolve %r from %r: %s", target, start_dir, output.stderr.strip()
            )
            raise DirectoryNotFoundError(target)
        return resolved
