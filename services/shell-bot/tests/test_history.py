"""Tests for history recording and output truncation."""

from shell_bot.history import (
    TRUNCATION_MARKER,
    format_history,
    record,
    recent_history,
    truncate_output,
)
from shell_bot.session_store import Session


def _make_session() -> Session:
    return Session(owner=1, channel=1, current_dir="/home/user")


class TestTruncateOutput:
    def test_short_text_unchanged(self):
        assert truncate_output("hello", 10) == "hello"

    def test_text_at_limit_unchanged(self):
        text = "x" * 1000
        assert truncate_output(text, 1000) == text

    def test_long_output_cut_with_single_marker(self):
        """5,000 characters against a 1,000 budget: cut, marked exactly once."""
        text = "a" * 5000

        truncated = truncate_output(text, 1000)

        assert len(truncated) <= 1000 + len(TRUNCATION_MARKER)
        assert truncated.count(TRUNCATION_MARKER) == 1
        assert truncated.startswith("a" * 1000)
        assert truncated.endswith(TRUNCATION_MARKER)

    def test_empty_text(self):
        assert truncate_output("", 10) == ""


class TestHistory:
    def test_record_appends_in_order(self):
        session = _make_session()

        record(session, "ls", "file.txt")
        record(session, "cd logs", "Changed directory to: /home/user/logs")

        assert [entry.command for entry in session.history] == ["ls", "cd logs"]
        assert session.history[1].result_summary == "Changed directory to: /home/user/logs"

    def test_display_bounded_but_full_history_kept(self):
        session = _make_session()
        for index in range(8):
            record(session, f"echo {index}", str(index))

        recent = recent_history(session)

        assert len(session.history) == 8
        assert [entry.command for entry in recent] == [f"echo {index}" for index in range(3, 8)]

    def test_format_history_numbered_most_recent_last(self):
        session = _make_session()
        for index in range(7):
            record(session, f"echo {index}", "")

        assert format_history(session) == (
            "1. echo 2\n2. echo 3\n3. echo 4\n4. echo 5\n5. echo 6"
        )

    def test_format_history_empty(self):
        assert format_history(_make_session()) == ""
