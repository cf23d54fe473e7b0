"""Inline keyboard callback query handler.

Callback data format: "<action>:<payload>"
Examples:
  "end_session:123456789"  -- end the terminal session of user 123456789
  "rerun:<token>"          -- run a /run command again
"""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from shell_bot.commands.terminal import (
    MAX_MESSAGE_LENGTH,
    fit_message,
    send_full_output,
)
from shell_bot.driver import SessionDriver
from shell_bot.errors import PermissionDeniedError
from shell_bot.formatters import format_run_result
from shell_bot.keyboards import rerun_keyboard
from shell_bot.renderers.session_panel import SessionPanelRenderer

logger = logging.getLogger(__name__)


async def callback_query_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route callback query to the appropriate action handler."""
    query = update.callback_query

    if not query.data:
        await query.answer()
        return

    action, _, payload = query.data.partition(":")

    # Each handler answers the query itself, since a rejection is shown as
    # the answer's alert text.
    if action == "end_session":
        await _handle_end_session(query, context, payload)
    elif action == "rerun":
        await _handle_rerun(query, context, payload)
    else:
        await query.answer()
        await query.edit_message_text(f"Unknown action: {action}")


async def _handle_end_session(query, context, owner_payload: str) -> None:
    """End a session from its panel button. Only the owner may do this."""
    driver: SessionDriver = context.bot_data["driver"]
    renderer: SessionPanelRenderer = context.bot_data["panel_renderer"]

    try:
        owner = int(owner_payload)
    except ValueError:
        await query.answer("Invalid session.", show_alert=True)
        return

    try:
        session = driver.end_session(owner, query.from_user.id)
    except PermissionDeniedError as exc:
        await query.answer(str(exc), show_alert=True)
        return

    await query.answer()
    if session is None:
        await query.edit_message_reply_markup(reply_markup=None)
        return

    await renderer.close(session, "This terminal session has ended.")


async def _handle_rerun(query, context, token: str) -> None:
    """Run a one-shot command again and replace the result message."""
    commands: dict[str, str] = context.bot_data.get("rerun_commands", {})
    command = commands.get(token)
    if command is None:
        await query.answer("This command is no longer available. Use /run again.", show_alert=True)
        return

    await query.answer()

    driver: SessionDriver = context.bot_data["driver"]
    outcome = await driver.run_one_shot(command)
    text = format_run_result(outcome)

    try:
        await query.edit_message_text(
            fit_message(text),
            parse_mode="HTML",
            reply_markup=rerun_keyboard(token),
        )
    except Exception as exc:
        logger.warning("Failed to update rerun result for %r: %s", command, exc)
        return

    if (outcome.truncated or len(text) > MAX_MESSAGE_LENGTH) and query.message is not None:
        await send_full_output(query.message, outcome)
