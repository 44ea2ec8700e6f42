"""Run context and outcome models.

A run carries one explicit RunContext through every step (locking,
diffing, applying, cleanup) instead of sharing mutable instance state.
The context holds the configuration, the staging layout and the
append-only RunLog; steps that learn something new (the release tag,
the applied paths) return an updated copy of the context.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ghupdater.core.config import UpdaterConfig
    from ghupdater.core.paths import StagingLayout

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class Status(str, Enum):
    """Externally observable outcome of a run.

    Attributes:
        STARTED: Run has been initialized but has not finished.
        UPDATED: A newer release was applied to the install root.
        LATEST: The install root is already at the latest release.
        ERROR: The run failed.
        BUSY: Another run holds the lock.
    """

    STARTED = "started"
    UPDATED = "updated"
    LATEST = "latest"
    ERROR = "error"
    BUSY = "busy"

    @property
    def code(self) -> int:
        """Numeric status code, HTTP-flavoured."""
        return _STATUS_CODES[self]


_STATUS_CODES: dict[Status, int] = {
    Status.STARTED: 100,
    Status.UPDATED: 200,
    Status.LATEST: 204,
    Status.ERROR: 500,
    Status.BUSY: 504,
}


class CleanupPolicy(str, Enum):
    """How a failed staging cleanup affects the run outcome.

    Attributes:
        WARN: Keep the main status and flag the result with cleanup_failed.
        DOWNGRADE: Flag the result and turn the status into ERROR.
    """

    WARN = "warn"
    DOWNGRADE = "downgrade"


@dataclass(frozen=True, slots=True)
class LogEntry:
    """Single diagnostic message recorded during a run.

    Attributes:
        timestamp: When the message was recorded (local time, tz-aware).
        message: Human-readable message; may span several lines.
    """

    timestamp: datetime
    message: str

    def format(self) -> str:
        """Render as ``YYYY-MM-DD HH:MM:SS: message``."""
        return f"{self.timestamp.strftime(TIMESTAMP_FORMAT)}: {self.message}"


class RunLog:
    """Append-only, in-memory log of a single run.

    Every entry is mirrored to the standard logging system so that
    ``--verbose`` shows progress live; the full list is flushed to a
    dated file once the run ends.
    """

    def __init__(self) -> None:
        self._entries: list[LogEntry] = []

    def log(self, message: str, level: int = logging.INFO) -> LogEntry:
        """Record a message.

        Args:
            message: Message text.
            level: Level used when mirroring to the logging system.

        Returns:
            The recorded entry.
        """
        entry = LogEntry(timestamp=datetime.now().astimezone(), message=message)
        self._entries.append(entry)
        logger.log(level, "%s", message)
        return entry

    def warning(self, message: str) -> LogEntry:
        """Record a message mirrored at WARNING level."""
        return self.log(message, level=logging.WARNING)

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        """Snapshot of all entries recorded so far."""
        return tuple(self._entries)

    def render(self) -> str:
        """Render all entries, one per line."""
        return "\n".join(entry.format() for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True, slots=True)
class RunContext:
    """Explicit state threaded through every step of a run.

    Attributes:
        config: Validated updater configuration.
        layout: Lock and staging locations under the install root.
        log: Append-only run log shared by all copies of the context.
        release: Release tag fetched from the registry, once known.
        applied: Release-relative paths that were applied to the root.
    """

    config: UpdaterConfig
    layout: StagingLayout
    log: RunLog = field(default_factory=RunLog)
    release: str | None = None
    applied: tuple[str, ...] = ()

    def with_release(self, release: str) -> RunContext:
        """Return a copy carrying the fetched release tag."""
        return replace(self, release=release)

    def with_applied(self, applied: tuple[str, ...]) -> RunContext:
        """Return a copy carrying the applied release-relative paths."""
        return replace(self, applied=applied)


@dataclass(frozen=True, slots=True)
class RunResult:
    """Final outcome of a run.

    Attributes:
        status: Terminal status of the run.
        release: Release tag seen during the run, if any.
        cleanup_failed: Whether staging cleanup reported errors.
        log_path: File the run log was flushed to, if flushing succeeded.
        entries: All log entries of the run.
    """

    status: Status
    release: str | None = None
    cleanup_failed: bool = False
    log_path: Path | None = None
    entries: tuple[LogEntry, ...] = ()

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status.value,
            "code": self.status.code,
            "release": self.release,
            "cleanup_failed": self.cleanup_failed,
            "log_path": str(self.log_path) if self.log_path is not None else None,
        }
