"""Handlers for /start and /help commands."""

from telegram import Update
from telegram.ext import ContextTypes

_HELP_TEXT = """
<b>Shell Bot - Commands</b>

<b>One-shot</b>:
<code>/run &lt;command&gt;</code> - Run a command in the bot's directory

<b>Sessions</b>:
<code>/session</code> - Start an interactive terminal session in this chat
<code>/end</code> - End your terminal session

Inside a session, every message you send in this chat runs as a command.
<code>cd</code> and <code>pwd</code> work as in a real shell; the directory
is remembered between commands.
<code>debug-dir</code> - Show the session directory and its contents

<b>General</b>:
<code>/help</code> - Show this message
"""


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Send a welcome message."""
    await update.message.reply_text(
        f"Welcome, {update.effective_user.first_name}! "
        "Use /run to execute a single command or /session to open a terminal session.\n\n"
        "Send /help for the full command list."
    )


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Send the full command reference."""
    await update.message.reply_text(_HELP_TEXT, parse_mode="HTML")
