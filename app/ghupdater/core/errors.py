"""Exception hierarchy for update runs.

Every failure during a run that holds the lock is terminal for that run.
The pipeline maps these exceptions onto a final Status.
"""


class UpdaterError(Exception):
    """Base exception for all updater errors."""


class LockUnavailable(UpdaterError):
    """Raised when another run holds the lock marker."""


class StagingIOError(UpdaterError):
    """Raised when staging folders or files cannot be created, read or written."""


class RemoteFetchError(UpdaterError):
    """Raised when release metadata or the artifact cannot be fetched."""


class ArchiveError(UpdaterError):
    """Raised when the downloaded archive is corrupt or cannot be extracted."""


class ApplyError(UpdaterError):
    """Raised when the release tree cannot be applied to the install root."""


class ConfigError(UpdaterError):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file cannot be parsed."""
