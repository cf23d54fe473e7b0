"""Live session panel rendered as a single, repeatedly edited Telegram message.

The panel shows the session's current directory and its most recent
commands. It is sent once when the session starts and edited after every
command; its (chat_id, message_id) is stored as the session's render_target.

Telegram constraints that shape this design:
- editMessageText fails if the new text is identical to the old one.
- The panel message may be deleted by the user at any time.
"""

import logging

from telegram import Bot
from telegram.error import BadRequest, TimedOut

from shell_bot.formatters import format_session_panel
from shell_bot.keyboards import end_session_keyboard
from shell_bot.session_store import Session

logger = logging.getLogger(__name__)


class SessionPanelRenderer:
    """Sends and edits the panel message of terminal sessions.

    Usage:
        renderer = SessionPanelRenderer(bot)
        await renderer.send(session)
        ...
        await renderer.refresh(session)
        ...
        await renderer.close(session, "Session ended.")
    """

    def __init__(self, bot: Bot, history_limit: int = 5) -> None:
        self._bot = bot
        self._history_limit = history_limit

    async def send(self, session: Session) -> None:
        """Send the initial panel into the session's chat."""
        message = await self._bot.send_message(
            chat_id=session.channel,
            text=format_session_panel(session, self._history_limit),
            parse_mode="HTML",
            reply_markup=end_session_keyboard(session.owner),
        )
        session.render_target = (session.channel, message.message_id)

    async def refresh(self, session: Session) -> None:
        """Redraw the panel with the current directory and history."""
        await self._edit(
            session,
            format_session_panel(session, self._history_limit),
            keep_keyboard=True,
        )

    async def close(self, session: Session, status: str) -> None:
        """Redraw the panel one last time, without the End button."""
        await self._edit(
            session,
            format_session_panel(session, self._history_limit, status=status),
            keep_keyboard=False,
        )

    async def _edit(self, session: Session, text: str, keep_keyboard: bool) -> None:
        """Edit the panel message, handling common errors.

        Panel updates are cosmetic, so failures are logged and swallowed;
        they must never fail the command that triggered them.
        """
        if session.render_target is None:
            return

        chat_id, message_id = session.render_target
        reply_markup = end_session_keyboard(session.owner) if keep_keyboard else None

        try:
            await self._bot.edit_message_text(
                chat_id=chat_id,
                message_id=message_id,
                text=text,
                parse_mode="HTML",
                reply_markup=reply_markup,
            )
        except BadRequest as exc:
            error_msg = str(exc).lower()
            if "message is not modified" in error_msg:
                # Content identical, safe to ignore.
                pass
            elif "message to edit not found" in error_msg:
                logger.warning("Session panel for user %s was deleted", session.owner)
                session.render_target = None
            else:
                logger.warning("Failed to edit session panel: %s", exc)
        except TimedOut:
            logger.warning("Telegram edit timed out, panel will catch up on the next command")
        except Exception:
            logger.exception("Unexpected error editing session panel")
