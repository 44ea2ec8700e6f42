"""Unit tests for the main CLI application."""

from ghupdater import __version__
from ghupdater.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


class TestMainApp:
    """Tests for global options."""

    def test_version(self) -> None:
        """--version prints the version and exits."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"ghupdater version {__version__}" in result.stdout

    def test_help_lists_commands(self) -> None:
        """--help lists every command."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("run", "check", "plan", "logs", "unlock"):
            assert command in result.stdout

    def test_missing_config(self, tmp_path) -> None:
        """Commands exit with code 1 when the config file is missing."""
        result = runner.invoke(app, ["--config", str(tmp_path / "none.toml"), "run"])

        assert result.exit_code == 1
        assert "Config not found" in result.output
