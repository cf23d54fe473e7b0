"""Inline keyboard builders for shell bot interactions.

Callback data format: "<action>:<payload>", at most 64 bytes (Telegram limit).
"""

from telegram import InlineKeyboardButton, InlineKeyboardMarkup


def end_session_keyboard(owner_id: int) -> InlineKeyboardMarkup:
    """Keyboard attached to the session panel."""
    return InlineKeyboardMarkup([
        [InlineKeyboardButton("End session", callback_data=f"end_session:{owner_id}")]
    ])


def rerun_keyboard(token: str) -> InlineKeyboardMarkup:
    """Keyboard attached to a one-shot /run result.

    The command itself does not fit in callback data, so the payload is a
    token pointing into bot_data.
    """
    return InlineKeyboardMarkup([
        [InlineKeyboardButton("Run again", callback_data=f"rerun:{token}")]
    ])
