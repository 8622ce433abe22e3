"""Email transport interface."""

from typing import Protocol

from compliance.core.reminders import SendResult


class EmailSender(Protocol):
    """Interface for sending a single HTML email."""

    def send(self, to: str, subject: str, html: str) -> SendResult:
        """Send one message. Failures are returned, not raised."""
        ...
