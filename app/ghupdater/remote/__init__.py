"""Release registry and archive collaborators."""

from ghupdater.remote.archive import ZipExtractor, archive_release
from ghupdater.remote.base import Extractor, ReleaseInfo, ReleaseSource
from ghupdater.remote.github import GitHubReleaseSource

__all__ = [
    "Extractor",
    "GitHubReleaseSource",
    "ReleaseInfo",
    "ReleaseSource",
    "ZipExtractor",
    "archive_release",
]
