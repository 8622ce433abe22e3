"""Adapters - I/O implementations of ports."""

from .supabase import (
    RepositoryError,
    SupabaseClient,
    SupabaseNotificationLog,
    SupabaseOrganizationDirectory,
    SupabaseTaskRepository,
)
from .resend_email import ResendEmailSender
from .google_calendar import GoogleCalendarSync
from .memory import (
    InMemoryNotificationLog,
    InMemoryOrganizationDirectory,
    InMemoryRateLimitStore,
    InMemoryTaskRepository,
)

__all__ = [
    "RepositoryError",
    "SupabaseClient",
    "SupabaseNotificationLog",
    "SupabaseOrganizationDirectory",
    "SupabaseTaskRepository",
    "ResendEmailSender",
    "GoogleCalendarSync",
    "InMemoryNotificationLog",
    "InMemoryOrganizationDirectory",
    "InMemoryRateLimitStore",
    "InMemoryTaskRepository",
]
