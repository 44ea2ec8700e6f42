"""Unit tests for the check command."""

import json
from pathlib import Path
from unittest.mock import patch

from ghupdater.cli.main import app
from ghupdater.core.errors import RemoteFetchError
from ghupdater.remote.base import ReleaseInfo
from typer.testing import CliRunner

runner = CliRunner()

INFO = ReleaseInfo(tag="v1.2.0", artifact_url="https://example.test/app.zip")


class TestCheckCommand:
    """Tests for ghupdater check."""

    def test_update_available(self, config_file: Path) -> None:
        """A newer release is reported."""
        with patch("ghupdater.cli.commands.check.Updater") as mock_updater:
            mock_updater.return_value.check.return_value = (INFO, True)
            result = runner.invoke(app, ["--config", str(config_file), "check"])

        assert result.exit_code == 0
        assert "Update available: 1.0.0 -> v1.2.0" in result.stdout

    def test_up_to_date(self, config_file: Path) -> None:
        """An older or equal release is reported as up to date."""
        with patch("ghupdater.cli.commands.check.Updater") as mock_updater:
            mock_updater.return_value.check.return_value = (INFO, False)
            result = runner.invoke(app, ["--config", str(config_file), "check"])

        assert result.exit_code == 0
        assert "Up to date" in result.stdout

    def test_json_output(self, config_file: Path) -> None:
        """--json prints installed and latest versions."""
        with patch("ghupdater.cli.commands.check.Updater") as mock_updater:
            mock_updater.return_value.check.return_value = (INFO, True)
            result = runner.invoke(app, ["--config", str(config_file), "check", "--json"])

        data = json.loads(result.stdout)
        assert data == {
            "installed": "1.0.0",
            "latest": "v1.2.0",
            "update_available": True,
            "artifact_url": "https://example.test/app.zip",
        }

    def test_fetch_error(self, config_file: Path) -> None:
        """Fetch failures exit with code 1."""
        with patch("ghupdater.cli.commands.check.Updater") as mock_updater:
            mock_updater.return_value.check.side_effect = RemoteFetchError("HTTP 403")
            result = runner.invoke(app, ["--config", str(config_file), "check"])

        assert result.exit_code == 1
        assert "HTTP 403" in result.output
