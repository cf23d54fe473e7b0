"""Exceptions raised by the session engine.

Only session lifecycle decisions surface to callers as exceptions. Command
failures never do: the executor folds them into CommandResult.stderr.
"""


class SessionError(Exception):
    """Base class for user-facing session failures."""


class AlreadyActiveSessionError(SessionError):
    def __init__(self, owner: int) -> None:
        super().__init__(
            "You already have an active terminal session. End it before starting a new one."
        )
        self.owner = owner


class PermissionDeniedError(SessionError):
    def __init__(self, owner: int, requester: int) -> None:
        super().__init__("Only the user who started the session can end it.")
        self.owner = owner
        self.requester = requester


class SessionStartError(SessionError):
    """The starting directory for a new session could not be verified."""


class DirectoryNotFoundError(Exception):
    """A `cd` target does not resolve to an existing directory."""

    def __init__(self, target: str) -> None:
        super().__init__(f"cd: {target}: No such file or directory")
        self.target = target
