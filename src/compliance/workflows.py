"""Shared workflow layer between the CLI and the scheduler.

Wires ports to adapters from config and runs the multi-step operations:
adding tasks, completing/reopening with calendar sync, and the two reminder
triggers.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone

from .adapters.google_calendar import GoogleCalendarSync
from .adapters.memory import InMemoryRateLimitStore
from .adapters.resend_email import ResendEmailSender
from .adapters.supabase import (
    SupabaseClient,
    SupabaseNotificationLog,
    SupabaseOrganizationDirectory,
    SupabaseTaskRepository,
)
from .config import Config
from .core.calendar import SyncAction
from .core.reminders import ClientRecipient, ReminderResult
from .core.tasks import REMINDER_WINDOW_DAYS, ComplianceTask, Recurrence, default_tasks, parse_category
from .core.validation import TaskInput, ValidationError, validate_task
from .lifecycle import CompletionResult, complete_task, reopen_task
from .ports.calendar_sync import CalendarSync
from .ports.email_sender import EmailSender
from .ports.notification_log import NotificationLog
from .ports.organization_directory import OrganizationDirectory
from .ports.task_repo import TaskFilter, TaskRepository
from .ratelimit import RateLimiter
from .reminders import DEFAULT_SEND_DELAY, send_client_reminders, send_task_reminders

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Adapters behind each port."""

    tasks: TaskRepository
    notification_log: NotificationLog
    email: EmailSender
    organizations: OrganizationDirectory
    calendar: CalendarSync | None = None


def build_services(config: Config) -> Services:
    """Build Supabase/Resend/Google adapters from config."""
    client = SupabaseClient(config)
    config.require("resend_api_key")
    calendar = GoogleCalendarSync(
        token_folder=config.google_token_folder,
        calendar_id=config.google_calendar_id,
        reminder_days=config.calendar_reminder_days,
        sync_enabled=config.calendar_sync_enabled,
        client_secret_file=config.google_client_secret_file,
    )
    return Services(
        tasks=SupabaseTaskRepository(client),
        notification_log=SupabaseNotificationLog(client),
        email=ResendEmailSender(config.resend_api_key, config.email_from),
        organizations=SupabaseOrganizationDirectory(client),
        calendar=calendar,
    )


# ============== Calendar ==============


def sync_calendar(
    repo: TaskRepository,
    calendar: CalendarSync | None,
    task: ComplianceTask,
    action: SyncAction,
) -> ComplianceTask:
    """
    Best-effort calendar sync. Failures are logged, never raised.

    Returns the task with its google_event_id updated.
    """
    if calendar is None:
        return task

    try:
        result = calendar.sync(task, action)
    except Exception as e:
        logger.warning(f"Calendar sync ({action.value}) for task {task.id} failed: {e}")
        return task

    if not result.success:
        logger.warning(f"Calendar sync ({action.value}) for task {task.id}: {result.reason or result.error}")
        return task

    if action is SyncAction.CREATE and result.event_id:
        repo.update(task.id, {"google_event_id": result.event_id})
        return replace(task, google_event_id=result.event_id)
    if action is SyncAction.DELETE:
        repo.update(task.id, {"google_event_id": None})
        return replace(task, google_event_id=None)
    return task


# ============== Task lifecycle ==============


def add_task(
    repo: TaskRepository,
    data: TaskInput,
    user_id: str | None = None,
    organization_id: str | None = None,
    calendar: CalendarSync | None = None,
) -> ComplianceTask:
    """Validate and store a new task. Raises ValidationError."""
    errors = validate_task(data)
    if errors:
        raise ValidationError(errors)

    task = ComplianceTask(
        id="",
        name=data.name.strip(),
        category=parse_category(data.category),
        deadline=data.deadline,
        recurrence=Recurrence(data.recurrence),
        description=data.description or None,
        client_name=data.client_name or None,
        client_phone=data.client_phone or None,
        client_email=data.client_email or None,
        user_id=user_id,
        organization_id=organization_id,
    )
    created = repo.insert(task)
    return sync_calendar(repo, calendar, created, SyncAction.CREATE)


def complete(
    repo: TaskRepository,
    task: ComplianceTask,
    now: datetime,
    calendar: CalendarSync | None = None,
) -> CompletionResult:
    """Complete a task, drop its calendar event and add one for the successor."""
    result = complete_task(repo, task, now)
    if result.already_completed:
        return result

    if result.task.google_event_id:
        result.task = sync_calendar(repo, calendar, result.task, SyncAction.DELETE)
    if result.successor:
        result.successor = sync_calendar(repo, calendar, result.successor, SyncAction.CREATE)
    return result


def reopen(
    repo: TaskRepository,
    task: ComplianceTask,
    calendar: CalendarSync | None = None,
) -> ComplianceTask:
    """Reopen a task and put it back on the calendar."""
    reopened = reopen_task(repo, task)
    if not reopened.google_event_id:
        reopened = sync_calendar(repo, calendar, reopened, SyncAction.CREATE)
    return reopened


def find_task(repo: TaskRepository, task_filter: TaskFilter, task_id: str) -> ComplianceTask | None:
    """Look a task up by id (or unique id prefix) inside a scope."""
    matches = [t for t in repo.read(task_filter) if t.id == task_id or t.id.startswith(task_id)]
    exact = [t for t in matches if t.id == task_id]
    if exact:
        return exact[0]
    if len(matches) == 1:
        return matches[0]
    return None


def seed_default_tasks(
    repo: TaskRepository,
    today: date,
    user_id: str | None = None,
    organization_id: str | None = None,
) -> list[ComplianceTask]:
    """Insert the starter set of statutory tasks for a new account."""
    return [
        repo.insert(replace(t, user_id=user_id, organization_id=organization_id))
        for t in default_tasks(today)
    ]


# ============== Reminder triggers ==============


@dataclass
class TriggerRequest:
    """
    Reminder trigger parameters.

    Manual runs target one user, or the caller's organization. Automated runs
    target every organization scheduled for the current UTC minute.
    """

    target_user_id: str | None = None
    organization_id: str | None = None
    automated: bool = False


class ReminderTrigger:
    """Entry point for the task reminder job, with its own rate limiter."""

    def __init__(
        self,
        services: Services,
        limiter: RateLimiter,
        delay: float = DEFAULT_SEND_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.services = services
        self.limiter = limiter
        self.delay = delay
        self.sleep = sleep

    def run(self, request: TriggerRequest, caller_key: str, now: datetime | None = None) -> ReminderResult:
        """Send due reminders. Raises RateLimitExceeded when the caller is throttled."""
        now = now or datetime.now(timezone.utc)
        self.limiter.enforce(caller_key, now)

        today = now.date()
        task_filter = TaskFilter(
            completed=False,
            deadline_from=today,
            deadline_to=today + timedelta(days=REMINDER_WINDOW_DAYS),
        )

        if request.automated:
            reminder_time = now.strftime("%H:%M")
            orgs = self.services.organizations.scheduled_for(reminder_time)
            if not orgs:
                logger.info(f"No organizations scheduled for {reminder_time} UTC")
                return ReminderResult(message="No scheduled orgs")
            task_filter.organization_ids = [o.id for o in orgs]
            logger.info(f"Automated scan for {len(orgs)} organization(s)")
        elif request.target_user_id:
            task_filter.user_id = request.target_user_id
        elif request.organization_id:
            task_filter.organization_ids = [request.organization_id]
        else:
            raise ValueError("A manual trigger needs a target user or organization")

        tasks = self.services.tasks.read(task_filter)
        return send_task_reminders(
            tasks,
            self.services.notification_log,
            self.services.email,
            today,
            now=now,
            delay=self.delay,
            sleep=self.sleep,
        )


class ClientReminderTrigger:
    """Entry point for admin-composed client mail, with its own rate limiter."""

    def __init__(
        self,
        sender: EmailSender,
        limiter: RateLimiter,
        delay: float = DEFAULT_SEND_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.sender = sender
        self.limiter = limiter
        self.delay = delay
        self.sleep = sleep

    def run(
        self,
        recipients: list[ClientRecipient],
        subject: str,
        body: str,
        caller_key: str,
        now: datetime | None = None,
    ) -> ReminderResult:
        now = now or datetime.now(timezone.utc)
        self.limiter.enforce(caller_key, now)
        return send_client_reminders(
            self.sender, recipients, subject, body, delay=self.delay, sleep=self.sleep
        )


def build_triggers(config: Config, services: Services) -> tuple[ReminderTrigger, ClientReminderTrigger]:
    """Build both triggers with independently configured in-process limiters."""
    window = timedelta(seconds=config.rate_limit_window)
    reminder = ReminderTrigger(
        services,
        RateLimiter(InMemoryRateLimitStore(), config.task_reminder_limit, window),
        delay=config.send_delay,
    )
    client = ClientReminderTrigger(
        services.email,
        RateLimiter(InMemoryRateLimitStore(), config.client_reminder_limit, window),
        delay=config.send_delay,
    )
    return reminder, client
