"""Resend adapter - HTTP email API."""

import logging

import requests

from compliance.core.reminders import SendResult

logger = logging.getLogger(__name__)

API_URL = "https://api.resend.com/emails"


class ResendEmailSender:
    """
    Sends email through the Resend HTTP API.

    Implements EmailSender protocol. Transport failures are returned as a
    failed SendResult so one bad recipient never stops a batch.
    """

    def __init__(self, api_key: str, sender: str, session: requests.Session | None = None):
        self.api_key = api_key
        self.sender = sender
        self._session = session or requests.Session()

    def send(self, to: str, subject: str, html: str) -> SendResult:
        try:
            resp = self._session.post(
                API_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"from": self.sender, "to": to, "subject": subject, "html": html},
                timeout=30,
            )
        except requests.RequestException as e:
            logger.error(f"Email to {to} failed: {e}")
            return SendResult(ok=False, error=str(e))

        if resp.ok:
            logger.debug(f"Email sent to {to}")
            return SendResult(ok=True)

        try:
            message = resp.json().get("message") or "Send failed"
        except ValueError:
            message = resp.text or f"HTTP {resp.status_code}"
        logger.error(f"Email to {to} rejected: {message}")
        return SendResult(ok=False, error=message)
