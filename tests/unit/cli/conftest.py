"""Fixtures for CLI tests."""

from pathlib import Path

import pytest


@pytest.fixture
def config_file(tmp_path: Path, install_root: Path) -> Path:
    """Config file pointing at install_root."""
    path = tmp_path / "config.toml"
    path.write_text(
        f"""version = "1.0.0"
root = "{install_root}"

[repository]
owner = "acme"
name = "app"

[retry]
lock_delay = 0
download_delay = 0
"""
    )
    return path
