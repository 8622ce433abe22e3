"""Ports - interfaces/protocols for external dependencies."""

from .task_repo import TaskFilter, TaskRepository
from .notification_log import NotificationLog
from .email_sender import EmailSender
from .calendar_sync import CalendarSync
from .organization_directory import Organization, OrganizationDirectory
from .rate_limit_store import RateLimitStore

__all__ = [
    "TaskFilter",
    "TaskRepository",
    "NotificationLog",
    "EmailSender",
    "CalendarSync",
    "Organization",
    "OrganizationDirectory",
    "RateLimitStore",
]
