"""Handlers for /run, /session, and /end commands."""

import logging
import uuid

from telegram import Message, Update
from telegram.ext import ContextTypes

from shellops_shared.schemas.command import CommandOutcome
from shell_bot.driver import SessionDriver
from shell_bot.errors import SessionError
from shell_bot.formatters import format_full_output, format_run_result
from shell_bot.keyboards import rerun_keyboard
from shell_bot.renderers.session_panel import SessionPanelRenderer

logger = logging.getLogger(__name__)

# Telegram message character limit.
MAX_MESSAGE_LENGTH = 4096

# Rerun buttons older than this many commands stop working.
_MAX_RERUN_COMMANDS = 500


def _command_argument(message: Message) -> str:
    """Return everything after the /command word, with inner spacing preserved."""
    parts = (message.text or "").split(maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else ""


def _remember_command(context: ContextTypes.DEFAULT_TYPE, command: str) -> str:
    """Store a command for its "Run again" button and return the token."""
    commands: dict[str, str] = context.bot_data.setdefault("rerun_commands", {})
    token = uuid.uuid4().hex[:16]
    commands[token] = command
    while len(commands) > _MAX_RERUN_COMMANDS:
        commands.pop(next(iter(commands)))
    return token


async def send_full_output(message: Message, outcome: CommandOutcome) -> None:
    """Attach the untruncated output as a text file."""
    try:
        await message.reply_document(
            document=format_full_output(outcome).encode("utf-8"),
            filename="output.txt",
            caption="Full output",
        )
    except Exception as exc:
        logger.warning("Failed to send full output for %r: %s", outcome.command, exc)


def fit_message(text: str) -> str:
    """Keep a formatted reply under Telegram's limit.

    HTML escaping can push truncated output past 4096 characters; in that
    case the attachment carries the output instead.
    """
    if len(text) <= MAX_MESSAGE_LENGTH:
        return text
    return "The output is too long to display. See the attached file."


async def run_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Execute a single command outside any session.

    Usage: /run <command>
    Example: /run df -h
    """
    command = _command_argument(update.message)
    if not command:
        await update.message.reply_text("Usage: /run <command>\nExample: /run df -h")
        return

    driver: SessionDriver = context.bot_data["driver"]
    outcome = await driver.run_one_shot(command)
    text = format_run_result(outcome)

    token = _remember_command(context, command)
    await update.message.reply_text(
        fit_message(text),
        parse_mode="HTML",
        reply_markup=rerun_keyboard(token),
    )
    if outcome.truncated or len(text) > MAX_MESSAGE_LENGTH:
        await send_full_output(update.message, outcome)


async def session_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Start an interactive terminal session in the current chat."""
    driver: SessionDriver = context.bot_data["driver"]
    renderer: SessionPanelRenderer = context.bot_data["panel_renderer"]
    owner = update.effective_user.id

    try:
        session = await driver.start_session(owner, update.effective_chat.id)
    except SessionError as exc:
        await update.message.reply_text(str(exc))
        return

    try:
        await renderer.send(session)
    except Exception as exc:
        # Without a panel the session is still usable; tell the user in plain text.
        logger.exception("Failed to send session panel for user %s: %s", owner, exc)
        await update.message.reply_text(
            f"Terminal session started in {session.current_dir}. "
            "Send messages in this chat to run commands, /end to finish."
        )


async def end_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """End the caller's terminal session."""
    driver: SessionDriver = context.bot_data["driver"]
    renderer: SessionPanelRenderer = context.bot_data["panel_renderer"]
    owner = update.effective_user.id

    session = driver.end_session(owner, owner)
    if session is None:
        await update.message.reply_text("You have no active terminal session. Use /session to start one.")
        return

    await renderer.close(session, "This terminal session has ended.")
    await update.message.reply_text("Terminal session ended.")
