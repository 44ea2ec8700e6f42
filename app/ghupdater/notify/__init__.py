"""Failure notification."""

from ghupdater.notify.base import Notifier
from ghupdater.notify.mail import EmailNotifier

__all__ = ["EmailNotifier", "Notifier"]
