"""Unit tests for shell execution utilities."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from ghupdater.utils.shell import CommandResult, run_command


class TestCommandResult:
    """Tests for CommandResult."""

    def test_success(self) -> None:
        """Exit code 0 is success."""
        assert CommandResult(stdout="", stderr="", returncode=0).success is True
        assert CommandResult(stdout="", stderr="", returncode=1).success is False


class TestRunCommand:
    """Tests for run_command."""

    @patch("ghupdater.utils.shell.subprocess.run")
    def test_captures_output(self, mock_run: MagicMock) -> None:
        """Output and exit code are returned."""
        mock_run.return_value = MagicMock(stdout="out", stderr="err", returncode=3)

        result = run_command(["tool", "--flag"], cwd=Path("/srv/app"))

        assert result == CommandResult(stdout="out", stderr="err", returncode=3)
        args, kwargs = mock_run.call_args
        assert args[0] == ["tool", "--flag"]
        assert kwargs["capture_output"] is True
        assert kwargs["text"] is True
        assert kwargs["cwd"] == Path("/srv/app")
        assert kwargs["env"] is None
        assert "shell" not in kwargs

    @patch("ghupdater.utils.shell.subprocess.run")
    def test_non_zero_exit_is_returned(self, mock_run: MagicMock) -> None:
        """A failing command is reported through returncode, not raised."""
        mock_run.return_value = MagicMock(stdout="", stderr="boom", returncode=1)

        result = run_command(["false"])

        assert not result.success
        assert result.stderr == "boom"
        assert mock_run.call_args.kwargs["check"] is False

    @patch("ghupdater.utils.shell.subprocess.run")
    def test_timeout_propagates(self, mock_run: MagicMock) -> None:
        """TimeoutExpired is left to the caller."""
        mock_run.side_effect = subprocess.TimeoutExpired(["sleep", "9"], 1.0)

        with pytest.raises(subprocess.TimeoutExpired):
            run_command(["sleep", "9"], timeout=1.0)

    def test_runs_real_command(self) -> None:
        """A real command runs without a shell."""
        result = run_command(["echo", "hello world"])

        assert result.success
        assert result.stdout.strip() == "hello world"

    def test_env_extends_inherited_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Extra variables are visible next to inherited ones."""
        monkeypatch.setenv("GHUPDATER_TEST_INHERITED", "kept")

        result = run_command(
            ["sh", "-c", 'echo "$GHUPDATER_TEST_INHERITED $GHUPDATER_TEST_EXTRA"'],
            env={"GHUPDATER_TEST_EXTRA": "added"},
        )

        assert result.stdout.strip() == "kept added"
