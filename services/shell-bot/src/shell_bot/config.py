"""Shell bot configuration loaded from environment variables."""

from shellops_shared.config import SharedSettings


class BotSettings(SharedSettings):
    """All settings required by the shell bot service."""

    bot_token: str

    # Set BOT_MODE=polling for local development (no domain or webhook needed).
    # Set BOT_MODE=webhook for production (requires webhook_domain + webhook_secret).
    bot_mode: str = "polling"

    webhook_secret: str = ""
    webhook_domain: str = ""  # e.g. "shell.example.com"

    # Display budgets for command output, in characters. Telegram caps a
    # message at 4096, and the result is wrapped with headers and <pre> tags.
    run_output_max_length: int = 1000
    session_output_max_length: int = 1900
    history_summary_length: int = 200
    history_display_limit: int = 5

    # Kill a command after this many seconds. None lets commands run forever.
    command_timeout_seconds: float | None = None

    # Minutes without a command before a session is ended automatically.
    # 0 disables idle expiry.
    session_idle_timeout_minutes: int = 60


settings = BotSettings()
