"""Functional core - pure business logic with no I/O."""

from .tasks import (
    ComplianceTask,
    Recurrence,
    UrgencyLevel,
    urgency_level,
    urgency_message,
    is_reminder_eligible,
    sort_by_urgency,
    next_deadline,
)
from .reminders import ClientRecipient, NotificationLogEntry, ReminderResult, select_tasks_for_reminder
from .ratelimit import RateLimitCounter, check_window
from .calendar import SyncAction, SyncResult, build_calendar_event
from .validation import TaskInput, ValidationError, validate_task

__all__ = [
    # Tasks
    "ComplianceTask",
    "Recurrence",
    "UrgencyLevel",
    "urgency_level",
    "urgency_message",
    "is_reminder_eligible",
    "sort_by_urgency",
    "next_deadline",
    # Reminders
    "ClientRecipient",
    "NotificationLogEntry",
    "ReminderResult",
    "select_tasks_for_reminder",
    # Rate limiting
    "RateLimitCounter",
    "check_window",
    # Calendar
    "SyncAction",
    "SyncResult",
    "build_calendar_event",
    # Validation
    "TaskInput",
    "ValidationError",
    "validate_task",
]
