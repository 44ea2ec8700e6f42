"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import io
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest
from ghupdater.core.config import UpdaterConfig
from ghupdater.core.errors import RemoteFetchError
from ghupdater.remote.base import ReleaseInfo, ReleaseSource

ZIPBALL_TOP = "acme-app-3f2a9c1"


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create files (and their parent folders) below root.

    Keys ending with "/" create empty directories.
    """
    root.mkdir(parents=True, exist_ok=True)
    for relative, content in files.items():
        target = root / relative
        if relative.endswith("/"):
            target.mkdir(parents=True, exist_ok=True)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    return root


def make_zipball(
    files: dict[str, str],
    top: str = ZIPBALL_TOP,
    compression: int = zipfile.ZIP_STORED,
) -> bytes:
    """Build a GitHub-style zipball with a single top-level folder."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as zf:
        zf.writestr(f"{top}/", "")
        for relative, content in files.items():
            zf.writestr(f"{top}/{relative}", content)
    return buffer.getvalue()


def break_deflate_stream(payload: bytes, member: str) -> bytes:
    """Make the deflate data of one zipball member undecodable.

    The first byte of the stream is set to a reserved block type, so
    reading the member fails in zlib rather than on the CRC check.
    """
    with zipfile.ZipFile(io.BytesIO(payload)) as zf:
        offset = zf.getinfo(member).header_offset
    data = bytearray(payload)
    name_len = int.from_bytes(data[offset + 26 : offset + 28], "little")
    extra_len = int.from_bytes(data[offset + 28 : offset + 30], "little")
    data[offset + 30 + name_len + extra_len] = 0xFF
    return bytes(data)


class FakeReleaseSource(ReleaseSource):
    """In-memory release source recording its calls."""

    def __init__(
        self,
        tag: str = "1.1.0",
        payload: bytes = b"",
        fail_downloads: int = 0,
    ) -> None:
        self.tag = tag
        self.payload = payload
        self.fail_downloads = fail_downloads
        self.fetch_calls = 0
        self.download_calls = 0

    def fetch_latest(self, owner: str, repo: str) -> ReleaseInfo:
        self.fetch_calls += 1
        return ReleaseInfo(tag=self.tag, artifact_url=f"https://example.test/{owner}/{repo}.zip")

    def download(self, url: str, destination: Path) -> Path:
        self.download_calls += 1
        if self.download_calls <= self.fail_downloads:
            raise RemoteFetchError(f"HTTP 502 for {url}")
        destination.write_bytes(self.payload)
        return destination


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    """Install root with a small installed tree."""
    return write_tree(
        tmp_path / "site",
        {
            "index.php": "old index",
            "lib/util.php": "old util",
            "lib/legacy/old.php": "legacy",
        },
    )


@pytest.fixture
def make_config(install_root: Path) -> Callable[..., UpdaterConfig]:
    """Factory for configs pointing at install_root with instant retries."""

    def _make(**overrides: object) -> UpdaterConfig:
        data: dict[str, object] = {
            "version": "1.0.0",
            "root": str(install_root),
            "repository": {"owner": "acme", "name": "app"},
            "retry": {"lock_delay": 0, "download_delay": 0},
        }
        data.update(overrides)
        return UpdaterConfig.model_validate(data)

    return _make


@pytest.fixture
def tree_writer() -> Callable[[Path, dict[str, str]], Path]:
    """The write_tree helper."""
    return write_tree


@pytest.fixture
def zipball() -> Callable[..., bytes]:
    """The make_zipball helper."""
    return make_zipball


@pytest.fixture
def release_source() -> type[FakeReleaseSource]:
    """The FakeReleaseSource class."""
    return FakeReleaseSource


@pytest.fixture
def broken_zipball() -> Callable[[dict[str, str], str], bytes]:
    """Deflated zipball whose given member has undecodable data."""

    def _make(files: dict[str, str], member: str) -> bytes:
        payload = make_zipball(files, compression=zipfile.ZIP_DEFLATED)
        return break_deflate_stream(payload, f"{ZIPBALL_TOP}/{member}")

    return _make
