"""Run log persistence.

Flushes the in-memory RunLog of a run to a timestamp-named text file in
the staging log folder, prunes old log files beyond a retention count,
and keeps the folder closed to web access via an .htaccess file.
"""

import logging
import os
from datetime import datetime
from pathlib import Path

from ghupdater.core.context import RunLog
from ghupdater.core.errors import StagingIOError
from ghupdater.tree.delete import recursive_delete
from ghupdater.tree.mapper import map_tree
from ghupdater.tree.models import ExclusionRule

logger = logging.getLogger(__name__)

ACCESS_FILENAME = ".htaccess"
ACCESS_CONTENT = "Order Deny,Allow\nDeny from all"

LOG_SUFFIX = ".txt"
LOG_NAME_FORMAT = "%Y-%m-%d_%H-%M-%S"


def ensure_access_file(log_dir: Path, log: RunLog) -> Path:
    """Create or repair the access-control file of the log folder.

    Args:
        log_dir: Log folder.
        log: Run log to record the change in.

    Returns:
        Path to the access-control file.

    Raises:
        StagingIOError: If the file cannot be written.
    """
    access_path = log_dir / ACCESS_FILENAME
    try:
        if access_path.read_text(encoding="utf-8") == ACCESS_CONTENT:
            return access_path
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug("Cannot read %s: %s", access_path, e)

    try:
        access_path.write_text(ACCESS_CONTENT, encoding="utf-8")
    except OSError as e:
        log.warning(f"{ACCESS_FILENAME} file cannot be created. {access_path}")
        raise StagingIOError(f"Cannot write {access_path}: {e}") from e
    log.log(f"{ACCESS_FILENAME} file created. {access_path}")
    return access_path


def list_log_files(log_dir: Path) -> list[Path]:
    """List flushed log files, oldest first.

    Args:
        log_dir: Log folder.

    Returns:
        Log file paths sorted by name (names are timestamps).
    """
    paths = map_tree(log_dir, ExclusionRule(filenames=frozenset({ACCESS_FILENAME})))
    return sorted(
        (Path(p) for p in paths if p.endswith(LOG_SUFFIX) and os.path.isfile(p)),
        key=lambda p: p.name,
    )


def prune_logs(log_dir: Path, max_logs: int, log: RunLog) -> list[Path]:
    """Delete the oldest log files so that a new one fits in max_logs.

    Args:
        log_dir: Log folder.
        max_logs: Number of log files to keep, including the next one.
        log: Run log to record deletions in.

    Returns:
        Paths that were deleted.
    """
    log_files = list_log_files(log_dir)
    if len(log_files) < max_logs:
        log.log("No excess log files to delete")
        return []

    log.log("Deleting excess log files")
    deleted: list[Path] = []
    while len(log_files) >= max_logs:
        oldest = log_files.pop(0)
        log.log(f"Deleting log file: {oldest}")
        if recursive_delete(oldest):
            deleted.append(oldest)
        else:
            log.warning(f"Failed to delete log file: {oldest}")
    return deleted


def flush_log(log: RunLog, log_dir: Path, max_logs: int) -> Path:
    """Prune old log files, then write the run log to a new dated file.

    Args:
        log: Run log to flush.
        log_dir: Log folder.
        max_logs: Number of log files to keep.

    Returns:
        Path of the written log file.

    Raises:
        StagingIOError: If the log file cannot be written.
    """
    prune_logs(log_dir, max_logs, log)
    log.log("Saving log file")

    log_path = _next_log_path(log_dir)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path.write_text(log.render() + "\n", encoding="utf-8")
    except OSError as e:
        raise StagingIOError(f"Cannot write log file {log_path}: {e}") from e
    return log_path


def _next_log_path(log_dir: Path) -> Path:
    """Return a timestamp-named log path that does not exist yet."""
    stem = datetime.now().strftime(LOG_NAME_FORMAT)
    candidate = log_dir / f"{stem}{LOG_SUFFIX}"
    counter = 1
    while candidate.exists():
        candidate = log_dir / f"{stem}-{counter}{LOG_SUFFIX}"
        counter += 1
    return candidate
