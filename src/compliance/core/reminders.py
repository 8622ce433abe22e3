"""Pure reminder selection and email rendering - no I/O dependencies."""

import html
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone

from .tasks import ComplianceTask, format_deadline, is_reminder_eligible

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MAX_CLIENT_RECIPIENTS = 50
MAX_SUBJECT_LENGTH = 200
MAX_BODY_LENGTH = 5000


@dataclass
class NotificationLogEntry:
    """One successfully delivered reminder."""

    task_id: str
    user_id: str | None
    organization_id: str | None
    channel: str = "email"
    sent_at: datetime | None = None
    status: str = "sent"

    @classmethod
    def from_api(cls, data: dict) -> "NotificationLogEntry":
        sent_at = None
        if data.get("sent_at"):
            sent_at = datetime.fromisoformat(data["sent_at"].replace("Z", "+00:00"))
        return cls(
            task_id=data["task_id"],
            user_id=data.get("user_id"),
            organization_id=data.get("organization_id"),
            channel=data.get("channel", "email"),
            sent_at=sent_at,
            status=data.get("status", "sent"),
        )


@dataclass
class SendResult:
    """Result of a single outbound email."""

    ok: bool
    error: str | None = None


@dataclass
class ReminderResult:
    """Aggregate outcome of a reminder batch."""

    sent: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> dict:
        result = {"success": True, "sent": self.sent, "failed": self.failed}
        if self.skipped:
            result["skipped"] = self.skipped
        if self.errors:
            result["errors"] = self.errors
        if self.message:
            result["message"] = self.message
        return result


@dataclass
class ClientRecipient:
    """An external client receiving an admin-composed reminder."""

    email: str
    name: str
    tasks: list[str] = field(default_factory=list)


def day_bounds(today: date) -> tuple[datetime, datetime]:
    """Start and end of a calendar day, in UTC."""
    return (
        datetime.combine(today, time.min, tzinfo=timezone.utc),
        datetime.combine(today, time.max, tzinfo=timezone.utc),
    )


def select_tasks_for_reminder(tasks: list[ComplianceTask], today: date) -> list[ComplianceTask]:
    """
    Filter to tasks inside the reminder window.

    Pure function - no I/O. Tenant scoping is the caller's query.
    """
    return [t for t in tasks if is_reminder_eligible(t.deadline, t.completed, today)]


def wants_email(task: ComplianceTask) -> bool:
    """Whether the task owner has an address and has not opted out."""
    return bool(task.owner and task.owner.email and task.owner.notify_email)


def render_task_reminder(task: ComplianceTask) -> tuple[str, str]:
    """Subject and HTML body for a task owner's reminder."""
    name = html.escape(task.owner.full_name if task.owner and task.owner.full_name else "User")
    subject = f"Reminder: {task.name} is due soon"
    body = (
        f"<p>Hello {name},</p>"
        f"<p>Your task <b>{html.escape(task.name)}</b> is due on {format_deadline(task.deadline)}.</p>"
    )
    return subject, body


def render_client_reminder(recipient: ClientRecipient, body: str) -> str:
    """HTML body for an admin-composed client reminder."""
    task_list = ""
    if recipient.tasks:
        items = "".join(f"<li>{html.escape(t)}</li>" for t in recipient.tasks)
        task_list = f"<h3>Your Pending Tasks:</h3><ul>{items}</ul>"

    text = html.escape(body).replace("\n", "<br>")
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #1a365d;">Compliance Reminder</h2>
  <p>Dear {html.escape(recipient.name)},</p>
  <div style="white-space: pre-wrap;">{text}</div>
  {task_list}
  <hr style="margin: 20px 0; border: none; border-top: 1px solid #e2e8f0;">
  <p style="color: #718096; font-size: 12px;">This is an automated reminder from Compliance Tracker.</p>
</div>
""".strip()


def validate_client_request(recipients: list[ClientRecipient], subject: str, body: str) -> list[str]:
    """Check a client reminder request. Returns error messages, empty if valid."""
    errors = []
    if not recipients:
        errors.append("At least one recipient is required")
    elif len(recipients) > MAX_CLIENT_RECIPIENTS:
        errors.append(f"At most {MAX_CLIENT_RECIPIENTS} recipients per request")

    for r in recipients:
        if not EMAIL_PATTERN.match(r.email):
            errors.append(f"Invalid email address: {r.email}")
        if not r.name.strip():
            errors.append(f"Recipient name is required for {r.email}")

    if not subject or len(subject) > MAX_SUBJECT_LENGTH:
        errors.append(f"Subject must be 1-{MAX_SUBJECT_LENGTH} characters")
    if not body or len(body) > MAX_BODY_LENGTH:
        errors.append(f"Body must be 1-{MAX_BODY_LENGTH} characters")
    return errors
