"""Tests for the shared workflow layer."""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from compliance.adapters.google_calendar import GoogleCalendarSync
from compliance.adapters.memory import (
    InMemoryNotificationLog,
    InMemoryOrganizationDirectory,
    InMemoryRateLimitStore,
    InMemoryTaskRepository,
)
from compliance.config import Config
from compliance.core.calendar import SyncAction, SyncResult
from compliance.core.reminders import ClientRecipient, SendResult
from compliance.core.tasks import ComplianceTask, Owner, PredefinedCategory, Recurrence
from compliance.core.validation import TaskInput, ValidationError
from compliance.ports.organization_directory import Organization
from compliance.ports.task_repo import TaskFilter
from compliance.ratelimit import RateLimiter, RateLimitExceeded
from compliance.workflows import (
    ClientReminderTrigger,
    ReminderTrigger,
    Services,
    TriggerRequest,
    add_task,
    build_services,
    build_triggers,
    complete,
    find_task,
    reopen,
    seed_default_tasks,
)

NOW = datetime(2025, 1, 15, 3, 30, tzinfo=timezone.utc)
TODAY = NOW.date()


def make_task(id, days, user="u1", org="o1", **kwargs):
    return ComplianceTask(
        id=id,
        name=f"Task {id}",
        category=PredefinedCategory.GST,
        deadline=TODAY + timedelta(days=days),
        user_id=user,
        organization_id=org,
        owner=Owner(email=f"{user}@example.com", full_name=user),
        **kwargs,
    )


@pytest.fixture
def sender():
    mock = MagicMock()
    mock.send.return_value = SendResult(ok=True)
    return mock


@pytest.fixture
def services(sender):
    repo = InMemoryTaskRepository(
        [
            make_task("a", 1, user="u1", org="o1"),
            make_task("b", 2, user="u2", org="o1"),
            make_task("c", 3, user="u3", org="o2"),
            make_task("d", 20, user="u1", org="o1"),
            make_task("e", -1, user="u1", org="o1"),
        ]
    )
    orgs = InMemoryOrganizationDirectory(
        [
            Organization(id="o1", is_automation_enabled=True, reminder_time="03:30"),
            Organization(id="o2", is_automation_enabled=True, reminder_time="09:00"),
        ]
    )
    return Services(
        tasks=repo,
        notification_log=InMemoryNotificationLog(),
        email=sender,
        organizations=orgs,
    )


def make_trigger(services, limit=5):
    limiter = RateLimiter(InMemoryRateLimitStore(), limit, timedelta(seconds=60))
    return ReminderTrigger(services, limiter, delay=0, sleep=MagicMock())


def recipients_of(sender):
    return [c.args[0] for c in sender.send.call_args_list]


class TestReminderTrigger:
    def test_manual_organization_scope(self, services, sender):
        result = make_trigger(services).run(TriggerRequest(organization_id="o1"), "ip", NOW)
        assert result.sent == 2
        assert recipients_of(sender) == ["u1@example.com", "u2@example.com"]

    def test_manual_user_scope(self, services, sender):
        result = make_trigger(services).run(TriggerRequest(target_user_id="u3"), "ip", NOW)
        assert result.sent == 1
        assert recipients_of(sender) == ["u3@example.com"]

    def test_automated_uses_scheduled_orgs(self, services, sender):
        result = make_trigger(services).run(TriggerRequest(automated=True), "cron", NOW)
        assert result.sent == 2
        assert "u3@example.com" not in recipients_of(sender)

    def test_automated_no_orgs(self, services, sender):
        later = NOW + timedelta(minutes=1)
        result = make_trigger(services).run(TriggerRequest(automated=True), "cron", later)
        assert result.sent == 0
        assert result.message == "No scheduled orgs"
        sender.send.assert_not_called()

    def test_manual_without_scope_rejected(self, services):
        with pytest.raises(ValueError):
            make_trigger(services).run(TriggerRequest(), "ip", NOW)

    def test_rerun_same_day_deduplicated(self, services, sender):
        trigger = make_trigger(services)
        trigger.run(TriggerRequest(organization_id="o1"), "ip", NOW)
        second = trigger.run(TriggerRequest(organization_id="o1"), "ip", NOW + timedelta(hours=1))
        assert second.sent == 0
        assert second.skipped == 2
        assert sender.send.call_count == 2

    def test_rate_limited(self, services):
        trigger = make_trigger(services, limit=2)
        trigger.run(TriggerRequest(organization_id="o1"), "ip", NOW)
        trigger.run(TriggerRequest(organization_id="o1"), "ip", NOW)
        with pytest.raises(RateLimitExceeded):
            trigger.run(TriggerRequest(organization_id="o1"), "ip", NOW)


class TestClientReminderTrigger:
    def test_runs_and_limits(self, sender):
        limiter = RateLimiter(InMemoryRateLimitStore(), 1, timedelta(seconds=60))
        trigger = ClientReminderTrigger(sender, limiter, delay=0, sleep=MagicMock())
        recipients = [ClientRecipient("ravi@example.com", "Ravi")]

        result = trigger.run(recipients, "Subject", "Body", "ip", NOW)
        assert result.sent == 1

        with pytest.raises(RateLimitExceeded):
            trigger.run(recipients, "Subject", "Body", "ip", NOW)


def test_build_triggers_uses_separate_limits(services):
    config = Config(task_reminder_limit=5, client_reminder_limit=10, rate_limit_window=30, send_delay=0.25)
    reminder, client = build_triggers(config, services)
    assert reminder.limiter.max_per_window == 5
    assert client.limiter.max_per_window == 10
    assert reminder.limiter.store is not client.limiter.store
    assert reminder.limiter.window == timedelta(seconds=30)
    assert reminder.delay == 0.25


class TestAddTask:
    def test_valid(self):
        repo = InMemoryTaskRepository()
        data = TaskInput(name="  GSTR-9 Annual  ", category="gst", deadline=date(2025, 12, 31), recurrence="yearly")
        task = add_task(repo, data, user_id="u1", organization_id="o1")
        assert task.id in repo.tasks
        assert task.name == "GSTR-9 Annual"
        assert task.recurrence == Recurrence.YEARLY
        assert task.organization_id == "o1"

    def test_invalid_raises(self):
        repo = InMemoryTaskRepository()
        data = TaskInput(name="ab", category="", deadline=None, client_phone="12345")
        with pytest.raises(ValidationError) as exc:
            add_task(repo, data)
        assert len(exc.value.messages) == 4
        assert not repo.tasks

    def test_creates_calendar_event(self):
        repo = InMemoryTaskRepository()
        calendar = MagicMock()
        calendar.sync.return_value = SyncResult(success=True, event_id="evt-1")
        data = TaskInput(name="PUC Renewal", category="transport", deadline=date(2025, 3, 1))

        task = add_task(repo, data, calendar=calendar)

        assert task.google_event_id == "evt-1"
        assert repo.tasks[task.id].google_event_id == "evt-1"
        assert calendar.sync.call_args.args[1] is SyncAction.CREATE


class TestCompleteWithCalendar:
    def test_deletes_event_and_creates_successor_event(self):
        repo = InMemoryTaskRepository()
        task = repo.insert(make_task("", 2, recurrence=Recurrence.MONTHLY, google_event_id="evt-old"))
        calendar = MagicMock()
        calendar.sync.side_effect = [
            SyncResult(success=True),
            SyncResult(success=True, event_id="evt-new"),
        ]

        result = complete(repo, task, NOW, calendar)

        actions = [c.args[1] for c in calendar.sync.call_args_list]
        assert actions == [SyncAction.DELETE, SyncAction.CREATE]
        assert repo.tasks[task.id].google_event_id is None
        assert repo.tasks[result.successor.id].google_event_id == "evt-new"

    def test_calendar_failure_does_not_fail_completion(self):
        repo = InMemoryTaskRepository()
        task = repo.insert(make_task("", 2, google_event_id="evt-old"))
        calendar = MagicMock()
        calendar.sync.return_value = SyncResult(success=False, reason="no_google_connection")

        result = complete(repo, task, NOW, calendar)

        assert result.task.completed is True
        assert repo.tasks[task.id].google_event_id == "evt-old"

    @patch("compliance.adapters.google_calendar.GoogleCalendarSync._build_service")
    def test_calendar_timeout_still_returns_result(self, mock_build):
        service = MagicMock()
        mock_build.return_value = service
        service.events().delete().execute.side_effect = TimeoutError("timed out")
        service.events().insert().execute.side_effect = TimeoutError("timed out")
        repo = InMemoryTaskRepository()
        task = repo.insert(make_task("", 2, recurrence=Recurrence.MONTHLY, google_event_id="evt-old"))

        result = complete(repo, task, NOW, GoogleCalendarSync(token_folder="/tmp/test"))

        assert result.task.completed is True
        assert result.successor is not None
        assert repo.tasks[task.id].completed is True
        assert repo.tasks[task.id].google_event_id == "evt-old"
        assert len(repo.tasks) == 2

    def test_raising_calendar_is_contained(self):
        repo = InMemoryTaskRepository()
        calendar = MagicMock()
        calendar.sync.side_effect = ConnectionError("reset")
        data = TaskInput(name="PUC Renewal", category="transport", deadline=date(2025, 3, 1))

        task = add_task(repo, data, calendar=calendar)

        assert task.google_event_id is None
        assert task.id in repo.tasks

    def test_already_completed_skips_calendar(self):
        repo = InMemoryTaskRepository()
        task = repo.insert(make_task("", 2, completed=True, completed_at=NOW))
        calendar = MagicMock()

        result = complete(repo, task, NOW, calendar)

        assert result.already_completed is True
        calendar.sync.assert_not_called()

    def test_reopen_recreates_event(self):
        repo = InMemoryTaskRepository()
        task = repo.insert(make_task("", 2, completed=True, completed_at=NOW))
        calendar = MagicMock()
        calendar.sync.return_value = SyncResult(success=True, event_id="evt-2")

        reopened = reopen(repo, task, calendar)

        assert reopened.completed is False
        assert reopened.google_event_id == "evt-2"


def test_find_task_by_prefix():
    repo = InMemoryTaskRepository([make_task("abc123", 1), make_task("abd456", 1)])

    assert find_task(repo, TaskFilter(), "abc").id == "abc123"
    assert find_task(repo, TaskFilter(), "ab") is None
    assert find_task(repo, TaskFilter(), "zzz") is None


def test_seed_default_tasks():
    repo = InMemoryTaskRepository()
    created = seed_default_tasks(repo, TODAY, user_id="u1", organization_id="o1")
    assert len(created) == 6
    assert all(t.user_id == "u1" and t.organization_id == "o1" for t in repo.tasks.values())


def test_build_services_passes_calendar_flag():
    config = Config(
        supabase_url="https://proj.supabase.co",
        supabase_service_role_key="service-key",
        resend_api_key="re_123",
        calendar_sync_enabled=False,
    )
    services = build_services(config)

    result = services.calendar.sync(make_task("t1", 2), SyncAction.CREATE)

    assert result.success is False
    assert result.reason == "sync_disabled"
