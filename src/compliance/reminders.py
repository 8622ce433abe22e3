"""Reminder batches: deduplicated task reminders and admin client mail.

Recipients are processed one at a time with a fixed pause between sends to
stay under the email provider's limits. A failure for one recipient is
recorded and the batch moves on.
"""

import logging
import time
from collections.abc import Callable
from datetime import date, datetime, timezone

from .core.reminders import (
    ClientRecipient,
    NotificationLogEntry,
    ReminderResult,
    day_bounds,
    render_client_reminder,
    render_task_reminder,
    select_tasks_for_reminder,
    validate_client_request,
    wants_email,
)
from .core.tasks import ComplianceTask
from .core.validation import ValidationError
from .ports.email_sender import EmailSender
from .ports.notification_log import NotificationLog

logger = logging.getLogger(__name__)

DEFAULT_SEND_DELAY = 0.5


def already_notified_today(log: NotificationLog, task_id: str, today: date) -> bool:
    """Whether a reminder for this task was logged at any time today."""
    start, end = day_bounds(today)
    return len(log.query(task_id, start, end)) > 0


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def record_notification(
    log: NotificationLog,
    task: ComplianceTask,
    channel: str = "email",
    sent_at: datetime | None = None,
) -> NotificationLogEntry:
    """Log a delivered reminder. Only call after the send succeeded."""
    entry = NotificationLogEntry(
        task_id=task.id,
        user_id=task.user_id,
        organization_id=task.organization_id,
        channel=channel,
        sent_at=_utc(sent_at or datetime.now(timezone.utc)),
        status="sent",
    )
    log.insert(entry)
    return entry


def send_task_reminders(
    tasks: list[ComplianceTask],
    log: NotificationLog,
    sender: EmailSender,
    today: date,
    now: datetime | None = None,
    delay: float = DEFAULT_SEND_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> ReminderResult:
    """
    Email owners of tasks in the reminder window, at most once per task per day.

    Log lookups and writes go straight to the notification log: if it is
    unreachable the error propagates and the batch stops.
    """
    result = ReminderResult()
    candidates = [t for t in select_tasks_for_reminder(tasks, today) if wants_email(t)]
    logger.info(f"Tasks to notify: {len(candidates)}")

    first = True
    for task in candidates:
        if already_notified_today(log, task.id, today):
            logger.debug(f"Skipping task {task.id}, already reminded today")
            result.skipped += 1
            continue

        if not first:
            sleep(delay)
        first = False

        subject, body = render_task_reminder(task)
        outcome = sender.send(task.owner.email, subject, body)
        if not outcome.ok:
            logger.error(f"Failed to send to {task.owner.email}: {outcome.error}")
            result.failed += 1
            result.errors.append(f"{task.owner.email}: {outcome.error or 'Send failed'}")
            continue

        record_notification(log, task, sent_at=now)
        result.sent += 1

    logger.info(f"Reminders sent: {result.sent}, failed: {result.failed}, skipped: {result.skipped}")
    return result


def send_client_reminders(
    sender: EmailSender,
    recipients: list[ClientRecipient],
    subject: str,
    body: str,
    delay: float = DEFAULT_SEND_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> ReminderResult:
    """Send an admin-composed reminder to each client. Raises ValidationError on bad input."""
    errors = validate_client_request(recipients, subject, body)
    if errors:
        raise ValidationError(errors)

    logger.info(f"Sending client reminders to {len(recipients)} recipients")
    result = ReminderResult()
    for i, recipient in enumerate(recipients):
        if i:
            sleep(delay)

        outcome = sender.send(recipient.email, subject, render_client_reminder(recipient, body))
        if outcome.ok:
            result.sent += 1
        else:
            logger.error(f"Failed to send to {recipient.email}: {outcome.error}")
            result.failed += 1
            result.errors.append(f"{recipient.email}: {outcome.error or 'Send failed'}")

    return result
