"""Updater configuration and settings.

This module provides the configuration model and I/O functions for an
update run. Configuration is stored as TOML, by default in
~/.config/ghupdater/config.toml:

    version = "1.2.0"
    root = "/srv/app"

    [repository]
    owner = "acme"
    name = "app"

    [exclude.source]
    paths = ["storage", ".env"]
"""

import os
import tomllib
from pathlib import Path
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ghupdater.core.context import CleanupPolicy
from ghupdater.core.errors import ConfigError, ConfigNotFoundError, ConfigParseError
from ghupdater.core.paths import LOCK_FILENAME, STAGING_DIRNAME, get_config_path

TOKEN_ENV_VAR = "GITHUB_TOKEN"

# Always kept out of the installed-tree walk: VCS data and the updater's own state
BUILTIN_SOURCE_PATHS: tuple[str, ...] = (".git", STAGING_DIRNAME, LOCK_FILENAME)

# Never copied from a release into the installed tree
BUILTIN_RELEASE_FILENAMES: tuple[str, ...] = (".gitignore", ".gitkeep")


class RepositoryConfig(BaseModel):
    """Release registry coordinates.

    Attributes:
        owner: GitHub user or organisation.
        name: Repository name.
        token: Personal access token. Falls back to $GITHUB_TOKEN.
    """

    model_config = ConfigDict(extra="forbid")

    owner: Annotated[str, Field(min_length=1, description="Repository owner")]
    name: Annotated[str, Field(min_length=1, description="Repository name")]
    token: Annotated[str | None, Field(description="Access token")] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject names that would escape the staging folder."""
        if os.sep in v or v in (".", ".."):
            msg = f"Invalid repository name: {v!r}"
            raise ValueError(msg)
        return v

    @property
    def effective_token(self) -> str | None:
        """Configured token, or the GITHUB_TOKEN environment variable."""
        return self.token or os.environ.get(TOKEN_ENV_VAR) or None


class ExclusionConfig(BaseModel):
    """Exclusions for one side of the diff.

    Attributes:
        paths: Paths (absolute, or relative to the tree root) skipped with
            their whole subtree.
        filenames: File base names skipped wherever they appear.
    """

    model_config = ConfigDict(extra="forbid")

    paths: Annotated[list[str], Field(default_factory=list, description="Excluded paths")]
    filenames: Annotated[
        list[str], Field(default_factory=list, description="Excluded file names")
    ]


class ExcludeConfig(BaseModel):
    """Source (installed tree) and release exclusions."""

    model_config = ConfigDict(extra="forbid")

    source: Annotated[ExclusionConfig, Field(default_factory=ExclusionConfig)]
    release: Annotated[ExclusionConfig, Field(default_factory=ExclusionConfig)]


class RetryConfig(BaseModel):
    """Fixed retry counts and delays.

    Attributes:
        lock_attempts: Lock acquisition attempts.
        lock_delay: Seconds between lock attempts.
        download_retries: Extra download attempts after the first failure.
        download_delay: Seconds between download attempts.
    """

    model_config = ConfigDict(extra="forbid")

    lock_attempts: Annotated[int, Field(ge=1, le=10)] = 3
    lock_delay: Annotated[float, Field(ge=0)] = 10.0
    download_retries: Annotated[int, Field(ge=0, le=10)] = 3
    download_delay: Annotated[float, Field(ge=0)] = 5.0


class NotifyConfig(BaseModel):
    """Failure notification by email.

    Notification is enabled only when both admin and mailer are set.

    Attributes:
        admin: Recipient address.
        mailer: Sender address.
        smtp_host: SMTP server host.
        smtp_port: SMTP server port.
    """

    model_config = ConfigDict(extra="forbid")

    admin: str | None = None
    mailer: str | None = None
    smtp_host: str = "localhost"
    smtp_port: Annotated[int, Field(ge=1, le=65535)] = 25

    @property
    def enabled(self) -> bool:
        """True when both recipient and sender are configured."""
        return bool(self.admin and self.mailer)


class UpdaterConfig(BaseModel):
    """Configuration for an update run.

    Attributes:
        version: Version currently installed in root.
        root: Install root to update. Defaults to the working directory.
        repository: Release registry coordinates.
        exclude: Source and release exclusions.
        clear: If False, re-archive the applied release after a run.
        max_logs: Number of flushed log files to keep.
        info: Free-form text included in failure notifications.
        cleanup_policy: How a failed cleanup affects the final status.
        post_upgrade: Command (argument vector) run in root after a
            successful apply, e.g. ["pip", "install", "-r", "requirements.txt"].
        retry: Retry counts and delays.
        notify: Failure notification settings.
    """

    model_config = ConfigDict(extra="forbid")

    version: Annotated[str, Field(min_length=1, description="Installed version")]
    root: Annotated[Path | None, Field(description="Install root")] = None
    repository: Annotated[RepositoryConfig, Field(description="Release registry")]
    exclude: Annotated[ExcludeConfig, Field(default_factory=ExcludeConfig)]
    clear: bool = True
    max_logs: Annotated[int, Field(ge=1, description="Flushed log files to keep")] = 30
    info: str = ""
    cleanup_policy: CleanupPolicy = CleanupPolicy.WARN
    post_upgrade: Annotated[list[str], Field(default_factory=list)]
    retry: Annotated[RetryConfig, Field(default_factory=RetryConfig)]
    notify: Annotated[NotifyConfig, Field(default_factory=NotifyConfig)]

    @property
    def effective_root(self) -> Path:
        """Configured root, or the current working directory."""
        return self.root if self.root is not None else Path.cwd()


def load_config(path: Path | None = None) -> UpdaterConfig:
    """Load updater configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default path.

    Returns:
        Validated UpdaterConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return UpdaterConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def save_config(config: UpdaterConfig, path: Path | None = None) -> Path:
    """Save updater configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The UpdaterConfig object to save.
        path: Path to save the config. If None, uses the default path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    from tempfile import NamedTemporaryFile

    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json", exclude_none=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def require_config(path: Path | None = None) -> UpdaterConfig:
    """Load configuration or exit with helpful error message.

    This is a convenience wrapper around load_config() that handles
    common error cases by printing user-friendly messages and exiting.

    Args:
        path: Optional custom config path.

    Returns:
        Loaded and validated UpdaterConfig.

    Raises:
        typer.Exit: If the configuration cannot be loaded.
    """
    import typer

    from ghupdater.utils.formatting import print_error, print_info

    config_path = path or get_config_path()
    try:
        return load_config(config_path)
    except ConfigNotFoundError as e:
        print_error(f"Config not found: {config_path}")
        print_info("Create it with at least 'version' and a [repository] table.")
        raise typer.Exit(code=1) from e
    except ConfigError as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(code=1) from e
