"""Shell bot entry point: handler registration and polling/webhook startup.

Supports two modes controlled by the BOT_MODE environment variable:
- polling (default): long-poll Telegram for updates. No domain or server needed.
  Use this for local development.
- webhook: Telegram pushes updates to your public HTTPS URL. Use for production.
  Requires WEBHOOK_DOMAIN and WEBHOOK_SECRET to be set.
"""

import asyncio
import logging

from telegram import BotCommand, Update
from telegram.error import NetworkError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from shell_bot.cleanup import IdleSessionReaper
from shell_bot.commands.start import help_command, start_command
from shell_bot.commands.terminal import end_command, run_command, session_command
from shell_bot.config import settings
from shell_bot.driver import SessionDriver
from shell_bot.executor import CommandExecutor
from shell_bot.handlers.callback import callback_query_handler
from shell_bot.handlers.message import default_message_handler
from shell_bot.renderers.session_panel import SessionPanelRenderer
from shell_bot.resolver import DirectoryResolver
from shell_bot.session_store import Session, SessionStore

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)-5s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Global error handler: catches unhandled exceptions from all handlers.

    Logs the full traceback and sends a user-friendly message so the user
    is never left staring at silence after a failed command.
    """
    logger.exception(
        "Unhandled exception while processing update",
        exc_info=context.error,
    )

    # Non-update errors (e.g. polling failures), nothing to reply to.
    if not isinstance(update, Update) or update.effective_message is None:
        return

    if isinstance(context.error, NetworkError):
        text = "Telegram could not be reached. Please try again in a moment."
    else:
        text = "Something went wrong. Please try again later."

    await update.effective_message.reply_text(text)


def build_driver() -> SessionDriver:
    """Wire the execution engine from settings."""
    resolver = DirectoryResolver()
    executor = CommandExecutor(resolver, timeout_seconds=settings.command_timeout_seconds)
    return SessionDriver(
        store=SessionStore(),
        executor=executor,
        resolver=resolver,
        run_output_max_length=settings.run_output_max_length,
        session_output_max_length=settings.session_output_max_length,
        history_summary_length=settings.history_summary_length,
    )


def build_application() -> Application:
    """Create and configure the python-telegram-bot Application."""
    application = (
        Application.builder()
        .token(settings.bot_token)
        # Long-running commands must not hold up other users' updates;
        # per-session ordering is enforced by the session lock.
        .concurrent_updates(True)
        .build()
    )

    # Make shared dependencies available to all handlers.
    application.bot_data["driver"] = build_driver()
    application.bot_data["panel_renderer"] = SessionPanelRenderer(
        application.bot, history_limit=settings.history_display_limit
    )
    application.bot_data["rerun_commands"] = {}

    # Command handlers
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("run", run_command))
    application.add_handler(CommandHandler("session", session_command))
    application.add_handler(CommandHandler("end", end_command))

    # Inline keyboard callback handler.
    application.add_handler(CallbackQueryHandler(callback_query_handler))

    # Default text message handler, must be registered last.
    application.add_handler(
        MessageHandler(filters.TEXT & ~filters.COMMAND, default_message_handler)
    )

    application.add_error_handler(error_handler)

    return application


_USER_COMMANDS = [
    BotCommand("run", "Run a single shell command"),
    BotCommand("session", "Start an interactive terminal session"),
    BotCommand("end", "End your terminal session"),
    BotCommand("help", "Show all commands"),
]


async def main() -> None:
    """Start the bot in polling or webhook mode depending on BOT_MODE.

    Both modes launch the idle session reaper as a background task.
    """
    application = build_application()
    renderer: SessionPanelRenderer = application.bot_data["panel_renderer"]

    async def _on_session_expired(session: Session) -> None:
        await renderer.close(session, "This terminal session expired after inactivity.")

    reaper = IdleSessionReaper(
        driver=application.bot_data["driver"],
        idle_timeout_minutes=settings.session_idle_timeout_minutes,
        on_expired=_on_session_expired,
    )

    async with application:
        await application.bot.set_my_commands(_USER_COMMANDS)
        await application.start()
        reaper.start()

        if settings.bot_mode == "webhook":
            webhook_url = f"https://{settings.webhook_domain}/webhook"
            await application.updater.start_webhook(
                listen="0.0.0.0",
                port=8080,
                url_path="/webhook",
                webhook_url=webhook_url,
                secret_token=settings.webhook_secret,
            )
            logger.info("Bot running in webhook mode at %s", webhook_url)
        else:
            await application.updater.start_polling(drop_pending_updates=True)
            logger.info("Bot running in polling mode (no webhook required)")

        # Run forever until the process is killed.
        try:
            await asyncio.Event().wait()
        finally:
            await reaper.stop()
            await application.updater.stop()
            await application.stop()


if __name__ == "__main__":
    asyncio.run(main())
