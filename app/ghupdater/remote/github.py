"""GitHub Releases client.

Fetches the latest release of a repository through the GitHub REST API
and downloads its zipball.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from ghupdater import __version__
from ghupdater.core.errors import RemoteFetchError
from ghupdater.remote.base import ReleaseInfo, ReleaseSource
from ghupdater.tree.delete import recursive_delete

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"

DEFAULT_TIMEOUT = 30.0
DOWNLOAD_CHUNK_SIZE = 65536


class GitHubReleaseSource(ReleaseSource):
    """Release source backed by the GitHub REST API.

    Attributes:
        _api_url: Base URL of the API.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        api_url: str = GITHUB_API_URL,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the GitHubReleaseSource.

        Args:
            token: Personal access token; anonymous access when None.
            api_url: Base URL of the API.
            client: Preconfigured HTTP client. A new one is created when
                omitted.
            timeout: Request timeout in seconds for a created client.
        """
        self._api_url = api_url.rstrip("/")
        self._client = client if client is not None else httpx.Client(timeout=timeout)
        self._headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": f"ghupdater/{__version__}",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> GitHubReleaseSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def fetch_latest(self, owner: str, repo: str) -> ReleaseInfo:
        """Fetch tag and zipball URL of the latest release.

        Args:
            owner: Repository owner.
            repo: Repository name.

        Returns:
            ReleaseInfo with tag_name and zipball_url.

        Raises:
            RemoteFetchError: On transport errors, non-200 responses,
                invalid JSON, or missing fields.
        """
        url = f"{self._api_url}/repos/{owner}/{repo}/releases/latest"
        try:
            response = self._client.get(url, headers=self._headers)
        except httpx.HTTPError as e:
            raise RemoteFetchError(f"Cannot reach {url}: {e}") from e

        if response.status_code != 200:
            msg = f"Release query returned HTTP {response.status_code}: {url}"
            raise RemoteFetchError(msg)

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteFetchError(f"Release response is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise RemoteFetchError("Release response is not a JSON object")

        tag = data.get("tag_name")
        zip_url = data.get("zipball_url")
        if not isinstance(tag, str) or not tag or not isinstance(zip_url, str) or not zip_url:
            raise RemoteFetchError("Release response lacks tag_name or zipball_url")

        logger.debug("Latest release of %s/%s is %s", owner, repo, tag)
        return ReleaseInfo(tag=tag, artifact_url=zip_url)

    def download(self, url: str, destination: Path) -> Path:
        """Stream an artifact to destination, following redirects.

        A stale destination file is removed first; a partial file is
        removed on failure.

        Args:
            url: Artifact URL.
            destination: File to write.

        Returns:
            The destination path.

        Raises:
            RemoteFetchError: If the file cannot be prepared, the request
                fails, or the final response is not HTTP 200.
        """
        if destination.exists() and not recursive_delete(destination):
            raise RemoteFetchError(f"Cannot delete existing download {destination}")

        try:
            with self._client.stream(
                "GET", url, headers=self._headers, follow_redirects=True
            ) as response:
                if response.status_code != 200:
                    msg = f"Download returned HTTP {response.status_code}: {url}"
                    raise RemoteFetchError(msg)
                with open(destination, "wb") as f:
                    for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                        f.write(chunk)
        except (httpx.HTTPError, OSError) as e:
            recursive_delete(destination)
            raise RemoteFetchError(f"Download failed: {e}") from e
        except RemoteFetchError:
            recursive_delete(destination)
            raise

        return destination
