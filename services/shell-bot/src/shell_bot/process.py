"""Async process spawning with captured output.

Both helpers return a ProcessOutput and never raise on a non-zero exit.
Spawn failures (missing executable, vanished cwd) propagate as OSError so
callers can decide how to report them.

Every child runs in its own process group so that a timeout can kill the
whole tree, not just the intermediate shell.
"""

import asyncio
import logging
import os
import signal

from shellops_shared.schemas.command import ProcessOutput

logger = logging.getLogger(__name__)

# Pipe read size.
_READ_CHUNK = 64 * 1024


async def run_shell(
    command: str,
    cwd: str | None = None,
    timeout: float | None = None,
) -> ProcessOutput:
    """Run a command line through the system shell."""
    process = await asyncio.create_subprocess_shell(
        command,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
        start_new_session=True,
    )
    return await _collect(process, timeout)


async def run_exec(
    *args: str,
    cwd: str | None = None,
    timeout: float | None = None,
) -> ProcessOutput:
    """Run an argument vector directly, without shell interpolation."""
    process = await asyncio.create_subprocess_exec(
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
        start_new_session=True,
    )
    return await _collect(process, timeout)


async def _collect(
    process: asyncio.subprocess.Process,
    timeout: float | None,
) -> ProcessOutput:
    stdout = bytearray()
    stderr = bytearray()
    # Output read before a timeout must survive the kill, so the readers are
    # shielded from wait_for's cancellation and awaited again afterwards.
    completion = asyncio.gather(
        _drain(process.stdout, stdout),
        _drain(process.stderr, stderr),
        process.wait(),
    )
    try:
        await asyncio.wait_for(asyncio.shield(completion), timeout=timeout)
    except TimeoutError:
        logger.warning("Process %s timed out after %ss, killing it", process.pid, timeout)
        _kill_group(process)
        await completion
        return ProcessOutput(
            returncode=None,
            stdout=_decode(stdout),
            stderr=_decode(stderr),
            timed_out=True,
        )

    return ProcessOutput(
        returncode=process.returncode,
        stdout=_decode(stdout),
        stderr=_decode(stderr),
    )


async def _drain(stream: asyncio.StreamReader, buffer: bytearray) -> None:
    while chunk := await stream.read(_READ_CHUNK):
        buffer.extend(chunk)


def _kill_group(process: asyncio.subprocess.Process) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        # Already gone.
        pass


def _decode(data: bytes | bytearray | None) -> str:
    return bytes(data).decode("utf-8", errors="replace") if data else ""
