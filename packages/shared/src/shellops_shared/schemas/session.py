"""Session-related data transfer objects."""

from pydantic import BaseModel


class HistoryEntry(BaseModel):
    """One executed command in a session's history."""

    command: str
    result_summary: str = ""


class DirectoryReport(BaseModel):
    """Diagnostic snapshot of a session's working directory (`debug-dir`)."""

    current_dir: str
    exists: bool
    listing: str = ""
    # Set when the listing could not be produced.
    error: str | None = None
