"""Notification log interface."""

from datetime import datetime
from typing import Protocol

from compliance.core.reminders import NotificationLogEntry


class NotificationLog(Protocol):
    """Interface for the append-only log of delivered reminders."""

    def query(self, task_id: str, start: datetime, end: datetime) -> list[NotificationLogEntry]:
        """Entries for a task with sent_at inside [start, end]."""
        ...

    def insert(self, entry: NotificationLogEntry) -> None:
        """Append an entry."""
        ...
