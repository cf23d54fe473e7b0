"""Response formatting for Telegram HTML messages.

Command output is arbitrary text, so everything user- or process-supplied is
passed through html.escape before being wrapped in tags.
"""

import html
from datetime import UTC, datetime

from shellops_shared.message_splitter import split_message
from shellops_shared.schemas.command import CommandOutcome
from shellops_shared.schemas.session import DirectoryReport
from shell_bot import history
from shell_bot.session_store import Session

_NO_OUTPUT_TEXT = "Command executed with no output."


def format_pre(text: str) -> str:
    """Wrap raw text in an escaped <pre> block."""
    return f"<pre>{html.escape(text)}</pre>"


def format_code(text: str) -> str:
    return f"<code>{html.escape(text)}</code>"


def format_age(dt: datetime) -> str:
    """Return a human-readable age string like '5m ago', '3h ago', '2d ago'."""
    now = datetime.now(UTC)
    delta_seconds = (now - dt).total_seconds()

    if delta_seconds < 0:
        return "just now"

    minutes = int(delta_seconds // 60)
    hours = int(delta_seconds // 3600)
    days = int(delta_seconds // 86400)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    return f"{days}d ago"


def format_run_result(outcome: CommandOutcome) -> str:
    """Format a one-shot /run result: the command, then stdout and stderr."""
    lines = ["<b>Command</b>", format_pre(outcome.command)]

    if outcome.stdout:
        lines.extend(["<b>Output</b>", format_pre(outcome.stdout)])
    if outcome.stderr:
        lines.extend(["<b>Errors</b>", format_pre(outcome.stderr)])
    if not outcome.stdout and not outcome.stderr:
        lines.append(_NO_OUTPUT_TEXT)

    return "\n".join(lines)


def format_session_reply(outcome: CommandOutcome) -> str:
    """Format the reply to a command typed inside a session."""
    if outcome.changed_directory:
        return f"Directory changed to: {format_code(outcome.result.new_working_dir)}"

    parts = []
    if outcome.stdout:
        parts.append(f"Output:\n{format_pre(outcome.stdout)}")
    if outcome.stderr:
        parts.append(f"Errors:\n{format_pre(outcome.stderr)}")
    if not parts:
        return _NO_OUTPUT_TEXT
    return "\n".join(parts)


def format_full_output(outcome: CommandOutcome) -> str:
    """Plain-text, untruncated transcript for the attachment of large results."""
    sections = [f"$ {outcome.command}"]
    if outcome.current_dir:
        sections.append(f"# in {outcome.current_dir}")
    if outcome.result.stdout:
        sections.extend(["", outcome.result.stdout.rstrip("\n")])
    if outcome.result.stderr:
        sections.extend(["", "--- stderr ---", outcome.result.stderr.rstrip("\n")])
    return "\n".join(sections) + "\n"


def format_session_panel(session: Session, history_limit: int, status: str | None = None) -> str:
    """Build the session panel that is edited after every command.

    Args:
        session: The session to display.
        history_limit: How many recent commands to list.
        status: Replaces the usage hint, e.g. when the session has ended.
    """
    recent = history.format_history(session, history_limit)
    lines = [
        "<b>Terminal session</b>",
        "",
        "<b>Current directory</b>",
        format_pre(session.current_dir),
        "<b>Recent commands</b>",
        html.escape(recent) if recent else "None",
        "",
        f"Started: {format_age(session.created_at)}",
    ]

    if status:
        lines.extend(["", f"<i>{html.escape(status)}</i>"])
    else:
        lines.extend([
            "",
            "Send a message in this chat to run it as a command. "
            "Use the button below or /end to close the session.",
        ])

    return "\n".join(lines)


def format_directory_report(report: DirectoryReport) -> list[str]:
    """Format a debug-dir report as one or more messages."""
    messages = [
        f"Session directory: {format_code(report.current_dir)}",
        "The directory exists." if report.exists else "The directory does not exist.",
    ]
    if report.error:
        messages.append(f"Error while listing the directory:\n{format_pre(report.error)}")
    for chunk in split_message(report.listing):
        messages.append(f"Directory contents:\n{format_pre(chunk)}")
    return messages
