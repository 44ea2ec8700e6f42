"""Path management for ghupdater.

Two kinds of locations are handled here:

- The XDG configuration directory holding the default config file
  (~/.config/ghupdater/config.toml).
- The staging layout under an install root, which is owned by a run
  for as long as it holds the lock:

    <root>/update.lock          lock marker
    <root>/update/              staging root (downloaded archive)
    <root>/update/log/          flushed run logs
    <root>/update/extract/      archive extraction target
"""

import os
from dataclasses import dataclass
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "ghupdater"

LOCK_FILENAME = "update.lock"
STAGING_DIRNAME = "update"
LOG_DIRNAME = "log"
EXTRACT_DIRNAME = "extract"

# Staging folders are private to the updater
STAGING_DIR_MODE = 0o700


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/ghupdater/ (or XDG_CONFIG_HOME/ghupdater/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/ghupdater/config.toml.
    """
    return get_config_dir() / "config.toml"


def ensure_dir(path: Path, name: str, mode: int = STAGING_DIR_MODE) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.
        mode: Permission bits for newly created directories.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(mode=mode, parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


@dataclass(frozen=True, slots=True)
class StagingLayout:
    """Fixed locations of the lock marker and staging folders under a root.

    Attributes:
        root: Install root being updated.
        repository: Repository name, used for the archive file and the
            renamed extraction directory.
    """

    root: Path
    repository: str

    @property
    def lock_path(self) -> Path:
        """Path to the lock marker file."""
        return self.root / LOCK_FILENAME

    @property
    def staging_dir(self) -> Path:
        """Path to the staging root."""
        return self.root / STAGING_DIRNAME

    @property
    def log_dir(self) -> Path:
        """Path to the flushed log folder."""
        return self.staging_dir / LOG_DIRNAME

    @property
    def extract_dir(self) -> Path:
        """Path to the archive extraction target."""
        return self.staging_dir / EXTRACT_DIRNAME

    @property
    def archive_path(self) -> Path:
        """Path to the downloaded (or re-archived) release zip."""
        return self.staging_dir / f"{self.repository}.zip"

    @property
    def release_root(self) -> Path:
        """Path to the renamed top-level directory of the extracted release."""
        return self.extract_dir / self.repository
