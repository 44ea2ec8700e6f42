"""Post-upgrade hooks.

A hook runs once after a release has been applied to the install root,
e.g. to reinstall dependencies. It never runs for LATEST, BUSY or
failed runs.
"""

import logging
import shlex
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from ghupdater.core.context import RunContext
from ghupdater.core.errors import ApplyError
from ghupdater.utils.shell import run_command

logger = logging.getLogger(__name__)


class PostUpgradeHook(ABC):
    """Abstract base class for post-upgrade hooks."""

    @abstractmethod
    def run(self, context: RunContext) -> None:
        """Run the hook after a successful apply.

        Args:
            context: Context of the current run.

        Raises:
            ApplyError: If the hook fails. The run ends with ERROR.
        """


class CommandHook(PostUpgradeHook):
    """Runs a command given as an argument vector, without a shell.

    The command sees GHUPDATER_ROOT and GHUPDATER_RELEASE in its environment.

    Attributes:
        argv: Command and arguments.
        cwd: Working directory; the install root when None.
        timeout: Seconds before the command is killed.
    """

    def __init__(
        self,
        argv: Sequence[str],
        cwd: Path | None = None,
        timeout: float = 600.0,
    ) -> None:
        if not argv:
            msg = "Post-upgrade command cannot be empty"
            raise ValueError(msg)
        self.argv = list(argv)
        self.cwd = cwd
        self.timeout = timeout

    def run(self, context: RunContext) -> None:
        cwd = self.cwd if self.cwd is not None else context.layout.root
        command = shlex.join(self.argv)
        context.log.log(f"Running post-upgrade command: {command}")

        try:
            result = run_command(
                self.argv,
                cwd=cwd,
                env={
                    "GHUPDATER_ROOT": str(context.layout.root),
                    "GHUPDATER_RELEASE": context.release or "",
                },
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            context.log.warning(f"Post-upgrade command could not run: {e}")
            raise ApplyError(f"Post-upgrade command failed: {command}") from e

        logger.debug("Post-upgrade command exited with %d", result.returncode)
        if result.stdout.strip():
            context.log.log(result.stdout.strip())
        if not result.success:
            if result.stderr.strip():
                context.log.warning(result.stderr.strip())
            context.log.warning(f"Post-upgrade command exited with code {result.returncode}")
            raise ApplyError(f"Post-upgrade command failed: {command}")

        context.log.log("Post-upgrade command completed.")
