"""Filesystem marker lock guarding an install root.

A zero-length ``update.lock`` file at the install root is the only
witness of a run in progress. The marker is created exclusively, so
two runs against the same root cannot both hold it. There is no owner
token and no staleness detection: a marker left behind by a crashed
run blocks later runs until it is removed by hand (``ghupdater unlock``).
"""

import logging
import os
import time
from collections.abc import Callable
from enum import Enum

from ghupdater.core.context import RunLog
from ghupdater.core.errors import LockUnavailable, StagingIOError
from ghupdater.core.paths import StagingLayout, ensure_dir
from ghupdater.tree.delete import recursive_delete

logger = logging.getLogger(__name__)


class LockState(str, Enum):
    """Lifecycle state of a LockManager."""

    IDLE = "idle"
    ACQUIRING = "acquiring"
    HELD = "held"
    RELEASING = "releasing"


class LockManager:
    """Acquires and releases the marker lock of an install root.

    Example:
        >>> lock = LockManager(layout, log)
        >>> lock.acquire()
        >>> try:
        ...     run_update()
        ... finally:
        ...     lock.release(cleanup)
    """

    def __init__(
        self,
        layout: StagingLayout,
        log: RunLog,
        *,
        attempts: int = 3,
        delay: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the LockManager.

        Args:
            layout: Staging layout of the install root.
            log: Run log receiving lock events.
            attempts: Number of exclusive-create attempts.
            delay: Seconds to wait between attempts.
            sleep: Sleep function, injectable for tests.
        """
        self._layout = layout
        self._log = log
        self._attempts = attempts
        self._delay = delay
        self._sleep = sleep
        self._state = LockState.IDLE

    @property
    def state(self) -> LockState:
        """Current lifecycle state."""
        return self._state

    @property
    def held(self) -> bool:
        """True while this manager holds the lock."""
        return self._state == LockState.HELD

    def acquire(self) -> None:
        """Ensure staging folders exist, then create the lock marker.

        Raises:
            StagingIOError: If a staging folder cannot be created, or the
                marker could not be created although none exists.
            LockUnavailable: If the marker still exists after all attempts.
        """
        self._state = LockState.ACQUIRING
        try:
            self._ensure_folders()
        except StagingIOError:
            self._state = LockState.IDLE
            raise

        lock_path = self._layout.lock_path
        for attempt in range(1, self._attempts + 1):
            if self._try_create(str(lock_path)):
                self._state = LockState.HELD
                self._log.log("Update lock acquired.")
                return
            if attempt < self._attempts:
                self._log.log(f"Failed to acquire update lock. Retry in {self._delay:g} seconds.")
                self._sleep(self._delay)

        self._state = LockState.IDLE
        if lock_path.exists():
            self._log.log("Failed to acquire update lock.")
            raise LockUnavailable(f"Lock marker exists: {lock_path}")
        msg = f"Cannot create lock marker {lock_path}"
        raise StagingIOError(msg)

    def release(self, cleanup: Callable[[], bool] | None = None) -> bool:
        """Run staging cleanup, then remove the lock marker.

        Never raises: failures are recorded in the run log.

        Args:
            cleanup: Callable performing staging cleanup; returns whether
                it succeeded.

        Returns:
            True if cleanup succeeded (or there was none).
        """
        self._state = LockState.RELEASING
        cleaned = True
        if cleanup is not None:
            try:
                cleaned = cleanup()
            except OSError as e:
                self._log.warning(f"Cleanup raised: {e}")
                cleaned = False
        if not cleaned:
            self._log.warning("Cleanup process failed.")

        self._log.log("Releasing update lock.")
        lock_path = self._layout.lock_path
        if not lock_path.exists():
            self._log.warning("Update lock unavailable.")
        elif recursive_delete(lock_path):
            self._log.log("Update lock released.")
        else:
            self._log.warning(f"Failed to remove lock marker {lock_path}")

        self._state = LockState.IDLE
        return cleaned

    def _ensure_folders(self) -> None:
        """Create the staging root and log folder."""
        for path, name in (
            (self._layout.staging_dir, "update"),
            (self._layout.log_dir, "log"),
        ):
            existed = path.is_dir()
            try:
                ensure_dir(path, name)
            except RuntimeError as e:
                self._log.warning(f"{name.capitalize()} folder cannot be created. {path}")
                raise StagingIOError(str(e)) from e
            if not existed:
                self._log.log(f"{name.capitalize()} folder created. {path}")

    def _try_create(self, path: str) -> bool:
        """Atomically create the marker file if it does not exist."""
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
        except FileExistsError:
            return False
        except OSError as e:
            logger.debug("Cannot create lock marker %s: %s", path, e)
            return False
        os.close(fd)
        return True
