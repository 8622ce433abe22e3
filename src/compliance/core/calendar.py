"""Pure calendar event building - no I/O dependencies."""

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from .tasks import ComplianceTask


class SyncAction(Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class SyncResult:
    """Outcome of pushing a task to an external calendar."""

    success: bool
    event_id: str | None = None
    reason: str | None = None
    error: str | None = None
    html_link: str | None = None


def event_summary(task: ComplianceTask) -> str:
    if task.client_name:
        return f"{task.name} - {task.client_name}"
    return task.name


def build_calendar_event(task: ComplianceTask, reminder_days: list[int]) -> dict:
    """
    Build an all-day Google Calendar event body for a task.

    Pure function - no I/O. The end date is exclusive, so it is the day after
    the deadline. Each reminder day becomes a popup override in minutes.
    """
    lines = [f"Category: {task.category.label}"]
    if task.client_name:
        lines.append(f"Client: {task.client_name}")
    if task.description:
        lines.append(f"\n{task.description}")

    return {
        "summary": event_summary(task),
        "description": "\n".join(lines),
        "start": {"date": task.deadline.isoformat()},
        "end": {"date": (task.deadline + timedelta(days=1)).isoformat()},
        "reminders": {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": days * 24 * 60} for days in reminder_days],
        },
    }
