"""Zip archive handling.

Extracts downloaded release zipballs and re-archives an applied release
when staging is kept (``clear = false``).
"""

import logging
import os
import zipfile
import zlib
from collections.abc import Iterable
from pathlib import Path

from ghupdater.core.errors import ArchiveError
from ghupdater.remote.base import Extractor
from ghupdater.tree.delete import recursive_delete

logger = logging.getLogger(__name__)


class ZipExtractor(Extractor):
    """Extractor for zip archives such as GitHub zipballs."""

    def extract(self, archive: Path, destination: Path) -> str:
        """Extract a zip archive and report its top-level directory.

        Args:
            archive: Zip file to extract.
            destination: Directory to extract into. Removed first if it
                already exists.

        Returns:
            Name of the single top-level directory in the archive.

        Raises:
            ArchiveError: If the archive or its compressed data is corrupt,
                a member is encrypted or uses an unsupported compression
                method, a member would land outside destination, or the
                archive does not have exactly one top-level directory.
        """
        if destination.exists() and not recursive_delete(destination):
            raise ArchiveError(f"Cannot delete existing extract folder {destination}")

        try:
            with zipfile.ZipFile(archive) as zf:
                names = zf.namelist()
                top_level = _single_top_level(names)
                _check_members(names, destination)
                zf.extractall(destination)
        except zipfile.BadZipFile as e:
            raise ArchiveError(f"Zip file is corrupt: {archive}") from e
        except (zlib.error, EOFError) as e:
            raise ArchiveError(f"Zip data is damaged: {archive}: {e}") from e
        except RuntimeError as e:
            raise ArchiveError(f"Zip member cannot be extracted: {archive}: {e}") from e
        except OSError as e:
            raise ArchiveError(f"Extraction of {archive} failed: {e}") from e

        if not (destination / top_level).is_dir():
            raise ArchiveError(f"Top-level entry {top_level} is not a directory")

        logger.debug("Extracted %s into %s (top level: %s)", archive, destination, top_level)
        return top_level


def _single_top_level(names: list[str]) -> str:
    """Return the only top-level directory name of an archive listing."""
    tops = {name.split("/", 1)[0] for name in names if name.split("/", 1)[0]}
    if len(tops) != 1:
        raise ArchiveError(f"Expected one top-level directory, found {len(tops)}")
    top = tops.pop()
    if not any(name.startswith(top + "/") for name in names):
        raise ArchiveError(f"Top-level entry {top} is not a directory")
    return top


def _check_members(names: list[str], destination: Path) -> None:
    """Reject members that would be written outside destination."""
    base = os.path.realpath(destination)
    for name in names:
        target = os.path.realpath(os.path.join(base, name))
        if target != base and not target.startswith(base + os.sep):
            raise ArchiveError(f"Archive member escapes extraction folder: {name}")


def archive_release(
    release_root: Path,
    relative_paths: Iterable[str],
    archive_path: Path,
    top_level: str,
) -> Path:
    """Zip selected paths of a release tree under a single top-level folder.

    Args:
        release_root: Root of the extracted release tree.
        relative_paths: Release-relative paths (leading separator) to include.
        archive_path: Zip file to create. An incomplete file is removed
            on failure.
        top_level: Name of the folder wrapping the archived paths.

    Returns:
        The archive path.

    Raises:
        ArchiveError: If the archive cannot be written.
    """
    base = str(release_root).rstrip(os.sep)
    try:
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(f"{top_level}/", "")
            for relative in relative_paths:
                source = base + relative
                arcname = top_level + relative.replace(os.sep, "/")
                if os.path.isdir(source):
                    zf.writestr(f"{arcname}/", "")
                elif os.path.isfile(source):
                    zf.write(source, arcname)
    except OSError as e:
        recursive_delete(archive_path)
        raise ArchiveError(f"Cannot create archive {archive_path}: {e}") from e
    return archive_path
