"""Release tree applier.

Writes a release tree over an installed tree according to a
DiffResult, then deletes obsolete installed paths. Fails fast: the
first error aborts the apply and leaves the installed tree partially
upgraded.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass

from ghupdater.core.context import RunLog
from ghupdater.core.errors import ApplyError
from ghupdater.tree.delete import recursive_delete
from ghupdater.tree.models import DiffResult

logger = logging.getLogger(__name__)

# Permission bits for directories created in the installed tree
INSTALL_DIR_MODE = 0o755


@dataclass(frozen=True, slots=True)
class ApplyReport:
    """Summary of an apply run.

    Attributes:
        created: Directories created in the installed tree.
        written: Existing files whose content was replaced.
        copied: New files copied into the installed tree.
        deleted: Obsolete paths removed from the installed tree.
        dry_run: Whether the apply only simulated changes.
    """

    created: tuple[str, ...] = ()
    written: tuple[str, ...] = ()
    copied: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()
    dry_run: bool = False

    @property
    def total(self) -> int:
        """Total number of operations."""
        return len(self.created) + len(self.written) + len(self.copied) + len(self.deleted)


class TreeApplier:
    """Applies a DiffResult from a release tree onto an installed tree.

    For every release path, in order:

    - directory: created in the installed tree (with parents) if missing;
    - file: if the installed counterpart is a file, its content is
      replaced with the release content; otherwise the release file is
      copied in. An installed directory at that path is an error.

    Afterwards every ``to_delete`` entry is removed recursively.

    Attributes:
        _log: Run log receiving one entry per operation.
        _dry_run: If True, record planned operations without touching disk.
    """

    def __init__(self, log: RunLog | None = None, dry_run: bool = False) -> None:
        """Initialize the TreeApplier.

        Args:
            log: Run log to record operations in. A private log is used
                when omitted.
            dry_run: If True, report what would change without changing it.
        """
        self._log = log if log is not None else RunLog()
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Check if applier is in dry-run mode."""
        return self._dry_run

    def apply(
        self,
        release_root: str | os.PathLike[str],
        source_root: str | os.PathLike[str],
        diff: DiffResult,
    ) -> ApplyReport:
        """Apply a diff from release_root onto source_root.

        Args:
            release_root: Root of the extracted release tree.
            source_root: Root of the installed tree to update.
            diff: Result of compute_diff for the two trees.

        Returns:
            ApplyReport listing the absolute installed paths touched.

        Raises:
            ApplyError: On the first directory, write, copy or delete failure.
        """
        release_base = os.fspath(release_root).rstrip(os.sep)
        source_base = os.fspath(source_root).rstrip(os.sep)

        created: list[str] = []
        written: list[str] = []
        copied: list[str] = []
        deleted: list[str] = []

        for relative in diff.to_apply:
            release_path = release_base + relative
            source_path = source_base + relative

            if os.path.isdir(release_path):
                if not os.path.isdir(source_path):
                    self._create_dir(source_path)
                    created.append(source_path)
            elif os.path.isfile(release_path):
                if os.path.isfile(source_path):
                    self._write_content(release_path, source_path)
                    written.append(source_path)
                else:
                    self._copy_file(release_path, source_path)
                    copied.append(source_path)

        for relative in diff.to_delete:
            delete_path = source_base + relative
            self._delete(delete_path)
            deleted.append(delete_path)

        logger.debug(
            "Applied %d created, %d written, %d copied, %d deleted (dry_run=%s)",
            len(created),
            len(written),
            len(copied),
            len(deleted),
            self._dry_run,
        )
        return ApplyReport(
            created=tuple(created),
            written=tuple(written),
            copied=tuple(copied),
            deleted=tuple(deleted),
            dry_run=self._dry_run,
        )

    def _create_dir(self, path: str) -> None:
        if self._dry_run:
            self._log.log(f"Dry-run: would create folder. {path}")
            return
        try:
            os.makedirs(path, mode=INSTALL_DIR_MODE, exist_ok=True)
        except OSError as e:
            self._log.warning(f"Folder cannot be created. {path}")
            msg = f"Cannot create directory {path}: {e}"
            raise ApplyError(msg) from e
        self._log.log(f"Folder created. {path}")

    def _write_content(self, release_path: str, source_path: str) -> None:
        if self._dry_run:
            self._log.log(f"Dry-run: would overwrite {source_path} from {release_path}")
            return
        try:
            with open(release_path, "rb") as f:
                content = f.read()
        except OSError as e:
            self._log.warning(f"Failed to retrieve update content. {release_path}")
            msg = f"Cannot read release file {release_path}: {e}"
            raise ApplyError(msg) from e
        try:
            with open(source_path, "wb") as f:
                size = f.write(content)
        except OSError as e:
            self._log.warning(f"Failed to write update content. {source_path}")
            msg = f"Cannot write installed file {source_path}: {e}"
            raise ApplyError(msg) from e
        self._log.log(f"{size} bytes written from {release_path} to {source_path}")

    def _copy_file(self, release_path: str, source_path: str) -> None:
        if self._dry_run:
            self._log.log(f"Dry-run: would copy {release_path} to {source_path}")
            return
        if os.path.isdir(source_path):
            self._log.warning(f"Installed folder is in the way of a release file. {source_path}")
            msg = f"Cannot copy {release_path} over directory {source_path}"
            raise ApplyError(msg)
        try:
            shutil.copy(release_path, source_path)
        except OSError as e:
            self._log.warning(f"Failed to copy update content. {source_path}")
            msg = f"Cannot copy {release_path} to {source_path}: {e}"
            raise ApplyError(msg) from e
        self._log.log(f"Copied {release_path} to {source_path}")

    def _delete(self, path: str) -> None:
        if self._dry_run:
            self._log.log(f"Dry-run: would delete {path}")
            return
        if not recursive_delete(path):
            self._log.warning(f"Failed to delete {path}")
            msg = f"Cannot delete obsolete path {path}"
            raise ApplyError(msg)
        self._log.log(f"Deleted {path}")
