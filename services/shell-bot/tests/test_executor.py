"""Tests for CommandExecutor: the never-raising single-command runner.

Verifies that:
1. cd, pwd and bare ls get their special handling.
2. Every kind of failure ends up in stderr instead of raising.
3. Commands run in the virtual working directory they are given.
"""

from unittest.mock import AsyncMock, patch

import pytest

from shell_bot.executor import CommandExecutor, parse_cd_target
from shell_bot.resolver import DirectoryResolver


@pytest.fixture
def executor() -> CommandExecutor:
    return CommandExecutor(DirectoryResolver())


# ---------------------------------------------------------------------------
# Tests: cd target parsing
# ---------------------------------------------------------------------------


class TestParseCdTarget:
    """parse_cd_target decides which lines are intercepted as cd."""

    def test_plain_target(self):
        assert parse_cd_target("cd logs") == "logs"

    def test_surrounding_whitespace(self):
        assert parse_cd_target("  cd   logs  ") == "logs"

    def test_bare_cd_means_home(self):
        assert parse_cd_target("cd") == "~"

    def test_quoted_target_is_unquoted(self):
        assert parse_cd_target('cd "my dir"') == "my dir"

    def test_unquoted_spaces_taken_literally(self):
        assert parse_cd_target("cd my dir") == "my dir"

    def test_unbalanced_quote_taken_literally(self):
        assert parse_cd_target('cd "oops') == '"oops'

    def test_tab_separated_target(self):
        assert parse_cd_target("cd\tlogs") == "logs"

    def test_other_commands_are_not_cd(self):
        assert parse_cd_target("cdrecord -v") is None
        assert parse_cd_target("echo cd foo") is None


# ---------------------------------------------------------------------------
# Tests: special-cased commands
# ---------------------------------------------------------------------------


class TestSpecialCommands:
    """pwd, cd and bare ls never take the generic subprocess path unchanged."""

    @pytest.mark.asyncio
    async def test_pwd_echoes_virtual_cwd_without_spawning(self, executor):
        with patch("shell_bot.executor.run_shell", new_callable=AsyncMock) as mock_run:
            result = await executor.execute("pwd", "/srv/app")

        mock_run.assert_not_called()
        assert result.stdout == "/srv/app"
        assert result.stderr == ""
        assert result.new_working_dir is None

    @pytest.mark.asyncio
    async def test_pwd_twice_is_stable(self, executor, tmp_path):
        first = await executor.execute("pwd", str(tmp_path))
        second = await executor.execute("pwd", str(tmp_path))

        assert first.stdout == second.stdout == str(tmp_path)

    @pytest.mark.asyncio
    async def test_pwd_without_working_dir_uses_process_cwd(self, executor, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        result = await executor.execute("pwd", None)

        assert result.stdout == str(tmp_path)

    @pytest.mark.asyncio
    async def test_bare_ls_is_verbose(self, executor, tmp_path):
        (tmp_path / "readme.md").write_text("hi")

        result = await executor.execute("ls", str(tmp_path))

        lines = result.stdout.splitlines()
        assert any(line.endswith("readme.md") for line in lines)
        # Only the long listing shows the "." entry.
        assert any(line.endswith(" .") for line in lines)

    @pytest.mark.asyncio
    async def test_ls_with_arguments_is_untouched(self, executor, tmp_path):
        (tmp_path / "readme.md").write_text("hi")

        result = await executor.execute("ls -1", str(tmp_path))

        assert result.stdout.strip() == "readme.md"

    @pytest.mark.asyncio
    async def test_cd_success_sets_new_working_dir(self, executor, tmp_path):
        (tmp_path / "projects").mkdir()

        result = await executor.execute("cd projects", str(tmp_path))

        assert result.new_working_dir == str(tmp_path / "projects")
        assert result.stdout == ""
        assert result.stderr == ""

    @pytest.mark.asyncio
    async def test_cd_failure_reports_in_stderr(self, executor, tmp_path):
        result = await executor.execute("cd does-not-exist", str(tmp_path))

        assert result.new_working_dir is None
        assert result.stderr == "cd: does-not-exist: No such file or directory"

    @pytest.mark.asyncio
    async def test_cd_never_reaches_generic_subprocess(self, executor, tmp_path):
        with patch("shell_bot.executor.run_shell", new_callable=AsyncMock) as mock_run:
            await executor.execute("cd ..", str(tmp_path))

        mock_run.assert_not_called()


# ---------------------------------------------------------------------------
# Tests: generic execution and failure capture
# ---------------------------------------------------------------------------


class TestGenericExecution:
    """Everything else runs in a shell with cwd set to the virtual cwd."""

    @pytest.mark.asyncio
    async def test_runs_in_working_dir(self, executor, tmp_path):
        (tmp_path / "marker.txt").write_text("found me")

        result = await executor.execute("cat marker.txt", str(tmp_path))

        assert result.stdout == "found me"
        assert result.stderr == ""

    @pytest.mark.asyncio
    async def test_shell_features_available(self, executor, tmp_path):
        result = await executor.execute("echo one two | wc -w", str(tmp_path))

        assert result.stdout.strip() == "2"

    @pytest.mark.asyncio
    async def test_non_zero_exit_keeps_partial_output(self, executor, tmp_path):
        result = await executor.execute("echo partial; echo oops >&2; exit 3", str(tmp_path))

        assert result.stdout == "partial\n"
        assert result.stderr == "oops\n"

    @pytest.mark.asyncio
    async def test_silent_failure_reports_exit_status(self, executor, tmp_path):
        result = await executor.execute("exit 4", str(tmp_path))

        assert result.stderr == "Command exited with status 4"

    @pytest.mark.asyncio
    async def test_vanished_working_dir_does_not_raise(self, executor, tmp_path):
        result = await executor.execute("echo hi", str(tmp_path / "gone"))

        assert result.stdout == ""
        assert result.stderr != ""

    @pytest.mark.asyncio
    async def test_timeout_kills_command(self, tmp_path):
        executor = CommandExecutor(DirectoryResolver(), timeout_seconds=0.3)

        result = await executor.execute("sleep 5", str(tmp_path))

        assert "timed out after 0.3 seconds" in result.stderr

    @pytest.mark.asyncio
    async def test_timeout_keeps_output_written_before_kill(self, tmp_path):
        executor = CommandExecutor(DirectoryResolver(), timeout_seconds=1)

        result = await executor.execute("echo hello; sleep 5", str(tmp_path))

        assert result.stdout == "hello\n"
        assert "timed out after 1 seconds" in result.stderr

    @pytest.mark.asyncio
    async def test_relative_cd_with_vanished_process_cwd_does_not_raise(
        self, executor, tmp_path, monkeypatch
    ):
        gone = tmp_path / "gone"
        gone.mkdir()
        monkeypatch.chdir(gone)
        gone.rmdir()

        result = await executor.execute("cd foo", None)

        assert result.new_working_dir is None
        assert result.stderr == "cd: foo: No such file or directory"
