"""Notification channel.

League components tell people about applied transactions, draft turns and
initialization failures through a ``Notifier``. Sending is fire-and-forget:
a failed send is logged and never raised to the caller or retried.

Implementations:
- LoggingNotifier: writes the message to the log (default, and for tests)
- SmtpNotifier: sends mail through an SMTP relay
"""

import logging
import smtplib
from collections.abc import Iterable
from email.message import EmailMessage
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send_email(self, to: str, subject: str, body: str) -> None: ...


class LoggingNotifier:
    """Records messages instead of sending them."""

    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []

    def send_email(self, to: str, subject: str, body: str) -> None:
        self.sent.append((to, subject, body))
        logger.info(f"Notification to {to}: {subject}")


class SmtpNotifier:
    """Sends plain-text mail through an SMTP relay."""

    def __init__(self, host: str, port: int = 25, sender: str = "commissioner@localhost", timeout: float = 10.0):
        self.host = host
        self.port = port
        self.sender = sender
        self.timeout = timeout

    def send_email(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.send_message(message)
            logger.info(f"Sent '{subject}' to {to}")
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send '{subject}' to {to}: {e}")


def notify_all(notifier: Notifier | None, recipients: Iterable[str], subject: str, body: str) -> int:
    """Send one message to each recipient; returns how many sends were attempted.

    Exceptions from third-party notifiers are logged per recipient so one bad
    address does not stop the rest.
    """
    if notifier is None:
        return 0
    attempted = 0
    for recipient in dict.fromkeys(recipients):
        attempted += 1
        try:
            notifier.send_email(recipient, subject, body)
        except Exception:
            logger.exception(f"Notifier failed for {recipient}")
    return attempted
