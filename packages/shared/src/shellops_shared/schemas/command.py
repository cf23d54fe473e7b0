"""Command execution data transfer objects."""

from pydantic import BaseModel


class ProcessOutput(BaseModel):
    """Captured output of one OS process.

    returncode is None only when the process was killed after a timeout
    before it reported an exit status.
    """

    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


class CommandResult(BaseModel):
    """Full, untruncated result of executing one command line.

    new_working_dir is set only by a successful `cd`.
    """

    stdout: str = ""
    stderr: str = ""
    new_working_dir: str | None = None


class CommandOutcome(BaseModel):
    """What the renderer receives for every processed command.

    stdout/stderr are already truncated for display; the full text is on
    result. current_dir is the session directory after the command, or None
    in one-shot mode.
    """

    command: str
    result: CommandResult
    stdout: str
    stderr: str
    current_dir: str | None = None
    truncated: bool = False

    @property
    def changed_directory(self) -> bool:
        return self.result.new_working_dir is not None
