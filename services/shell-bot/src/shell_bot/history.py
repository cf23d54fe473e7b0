"""Session history and output truncation."""

from shellops_shared.schemas.session import HistoryEntry
from shell_bot.session_store import Session

TRUNCATION_MARKER = "\n... (output truncated)"

_DEFAULT_DISPLAY_LIMIT = 5


def truncate_output(text: str, max_length: int) -> str:
    """Cut text to max_length characters and append TRUNCATION_MARKER.

    Text that already fits is returned unchanged.
    """
    if len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_MARKER


def record(session: Session, command: str, result_summary: str) -> HistoryEntry:
    """Append a command to the session history."""
    entry = HistoryEntry(command=command, result_summary=result_summary)
    session.history.append(entry)
    return entry


def recent_history(session: Session, limit: int = _DEFAULT_DISPLAY_LIMIT) -> list[HistoryEntry]:
    """Return the last `limit` entries, oldest first."""
    if limit <= 0:
        return []
    return session.history[-limit:]


def format_history(session: Session, limit: int = _DEFAULT_DISPLAY_LIMIT) -> str:
    """Numbered list of recent commands, most recent last. Empty if none."""
    return "\n".join(
        f"{index}. {entry.command}"
        for index, entry in enumerate(recent_history(session, limit), start=1)
    )
