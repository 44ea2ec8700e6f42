"""SMTP email notifier.

Sends an HTML report listing run metadata and every log entry of the
run.
"""

from __future__ import annotations

import html
import logging
import smtplib
from email.message import EmailMessage

from ghupdater.core.config import NotifyConfig
from ghupdater.core.context import RunContext, Status
from ghupdater.notify.base import Notifier

logger = logging.getLogger(__name__)

SMTP_TIMEOUT = 30.0


class EmailNotifier(Notifier):
    """Notifier sending an HTML email over SMTP.

    Attributes:
        recipient: Administrator address.
        sender: From address.
        host: SMTP server host.
        port: SMTP server port.
    """

    def __init__(
        self,
        recipient: str,
        sender: str,
        host: str = "localhost",
        port: int = 25,
    ) -> None:
        self.recipient = recipient
        self.sender = sender
        self.host = host
        self.port = port

    @classmethod
    def from_config(cls, config: NotifyConfig) -> EmailNotifier | None:
        """Create a notifier from configuration.

        Args:
            config: Notification settings.

        Returns:
            EmailNotifier, or None when admin or mailer is not configured.
        """
        if not config.admin or not config.mailer:
            return None
        return cls(config.admin, config.mailer, config.smtp_host, config.smtp_port)

    def notify(self, context: RunContext, status: Status) -> bool:
        message = self.build_message(context, status)
        logger.debug("Sending notification to %s via %s:%d", self.recipient, self.host, self.port)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT) as smtp:
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            context.log.warning(f"Failed to send notification to {self.recipient}: {e}")
            return False
        context.log.log(f"Notification sent to {self.recipient}.")
        return True

    def build_message(self, context: RunContext, status: Status) -> EmailMessage:
        """Build the notification email for a run.

        Args:
            context: Context of the finished run.
            status: Final status of the run.

        Returns:
            Message with a plain-text body and an HTML alternative.
        """
        repository = context.config.repository
        subject = f"Update of {repository.owner}/{repository.name} failed ({status.code})"

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = self.recipient
        message.set_content(f"{subject}\n\n{context.log.render()}\n")
        message.add_alternative(_render_html(context, status), subtype="html")
        return message


def _render_html(context: RunContext, status: Status) -> str:
    """Render run metadata and log entries as an HTML table."""
    config = context.config
    rows = [
        ("Username", config.repository.owner),
        ("Repository", config.repository.name),
        ("Plugin Version", config.version),
        ("Release", context.release or "-"),
        ("Status", f"{status.value} ({status.code})"),
        ("Additional Info", config.info or "-"),
    ]
    lines = ["<html><body>", "<table border=\"1\" cellpadding=\"4\" cellspacing=\"0\">"]
    for label, value in rows:
        lines.append(f"<tr><th align=\"left\">{label}</th><td>{html.escape(value)}</td></tr>")
    lines.append("<tr><th align=\"left\" colspan=\"2\">Log</th></tr>")
    for entry in context.log.entries:
        lines.append(f"<tr><td colspan=\"2\">{html.escape(entry.format())}</td></tr>")
    lines.append("</table>")
    lines.append("</body></html>")
    return "\n".join(lines)
