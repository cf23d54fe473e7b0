"""Default message handler: runs plain text as a session command.

This is the primary interaction path inside a session:
1. User sends a plain text message in the chat where their session lives.
2. The driver executes it against the session's directory.
3. The session panel is redrawn and the result is sent as a reply.

Messages from users without a session, or from a different chat than the
session's, are ignored without a reply.
"""

import logging

from telegram import Update
from telegram.constants import ChatAction
from telegram.ext import ContextTypes

from shellops_shared.schemas.session import DirectoryReport
from shell_bot.commands.terminal import MAX_MESSAGE_LENGTH, fit_message, send_full_output
from shell_bot.driver import SessionDriver
from shell_bot.formatters import format_directory_report, format_session_reply
from shell_bot.renderers.session_panel import SessionPanelRenderer

logger = logging.getLogger(__name__)


async def default_message_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route a plain text message to the sender's terminal session."""
    if update.message is None or update.message.text is None:
        return
    if update.effective_user is None or update.effective_user.is_bot:
        return

    driver: SessionDriver = context.bot_data["driver"]
    owner = update.effective_user.id
    chat_id = update.effective_chat.id

    session = driver.store.get(owner)
    if session is None or session.channel != chat_id:
        return

    await context.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)

    outcome = await driver.handle_message(update.message.text, owner, chat_id)
    if outcome is None:
        return

    if isinstance(outcome, DirectoryReport):
        for part in format_directory_report(outcome):
            await update.message.reply_text(part, parse_mode="HTML")
        return

    renderer: SessionPanelRenderer = context.bot_data["panel_renderer"]
    await renderer.refresh(session)

    text = format_session_reply(outcome)
    await update.message.reply_text(fit_message(text), parse_mode="HTML")
    if outcome.truncated or len(text) > MAX_MESSAGE_LENGTH:
        await send_full_output(update.message, outcome)
