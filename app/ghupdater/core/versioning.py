"""Release version comparison."""

from packaging.version import InvalidVersion, Version

from ghupdater.core.errors import ConfigError, RemoteFetchError


def parse_version(value: str) -> Version:
    """Parse a version string, tolerating a leading "v" as in release tags.

    Raises:
        InvalidVersion: If the string is not a valid version.
    """
    text = value.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    return Version(text)


def is_newer(remote: str, local: str) -> bool:
    """Check whether a release tag is strictly newer than the installed version.

    Args:
        remote: Release tag from the registry (e.g. "v1.3.0").
        local: Installed version (e.g. "1.2.0").

    Returns:
        True only if remote > local.

    Raises:
        RemoteFetchError: If the release tag is not a valid version.
        ConfigError: If the installed version is not a valid version.
    """
    try:
        remote_version = parse_version(remote)
    except InvalidVersion as e:
        raise RemoteFetchError(f"Release tag is not a valid version: {remote!r}") from e
    try:
        local_version = parse_version(local)
    except InvalidVersion as e:
        raise ConfigError(f"Installed version is not a valid version: {local!r}") from e
    return remote_version > local_version
