"""Abstract interfaces for release collaborators.

The update pipeline only talks to these interfaces: a ReleaseSource
that reports the latest release and fetches its artifact, and an
Extractor that unpacks the artifact.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ReleaseInfo:
    """The two release fields the pipeline consumes.

    Attributes:
        tag: Release tag, compared against the installed version.
        artifact_url: URL of the downloadable release archive.
    """

    tag: str
    artifact_url: str

    def __post_init__(self) -> None:
        """Validate release data after initialization."""
        if not self.tag:
            msg = "Release tag cannot be empty"
            raise ValueError(msg)
        if not self.artifact_url:
            msg = "Artifact URL cannot be empty"
            raise ValueError(msg)


class ReleaseSource(ABC):
    """Abstract base class for release registries.

    Example:
        >>> source = GitHubReleaseSource(token="...")
        >>> info = source.fetch_latest("acme", "app")
        >>> source.download(info.artifact_url, Path("update/app.zip"))
    """

    @abstractmethod
    def fetch_latest(self, owner: str, repo: str) -> ReleaseInfo:
        """Fetch the latest release of a repository.

        Args:
            owner: Repository owner.
            repo: Repository name.

        Returns:
            ReleaseInfo of the latest release.

        Raises:
            RemoteFetchError: If the metadata cannot be fetched or is malformed.
        """

    @abstractmethod
    def download(self, url: str, destination: Path) -> Path:
        """Download a release artifact to a local file.

        Args:
            url: Artifact URL.
            destination: File to write; replaced if it exists.

        Returns:
            The destination path.

        Raises:
            RemoteFetchError: If the download fails.
        """


class Extractor(ABC):
    """Abstract base class for archive extractors."""

    @abstractmethod
    def extract(self, archive: Path, destination: Path) -> str:
        """Extract an archive into a directory.

        Args:
            archive: Archive file.
            destination: Directory to extract into; replaced if it exists.

        Returns:
            Name of the single top-level directory the archive produced.

        Raises:
            ArchiveError: If the archive is corrupt, unsafe, or does not
                contain exactly one top-level directory.
        """
