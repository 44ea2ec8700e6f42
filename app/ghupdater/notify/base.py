"""Abstract base class for failure notifiers."""

from abc import ABC, abstractmethod

from ghupdater.core.context import RunContext, Status


class Notifier(ABC):
    """Delivers the outcome of a failed run to an administrator.

    Implementations must not raise: a notification failure is recorded
    in the run log and never changes the run outcome.
    """

    @abstractmethod
    def notify(self, context: RunContext, status: Status) -> bool:
        """Send a notification for a finished run.

        Args:
            context: Context of the finished run, including its log.
            status: Final status of the run.

        Returns:
            True if the notification was delivered.
        """
