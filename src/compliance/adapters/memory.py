"""In-process adapters for single-instance deployments and tests."""

import uuid
from dataclasses import replace
from datetime import datetime

from compliance.core.ratelimit import RateLimitCounter
from compliance.core.reminders import NotificationLogEntry
from compliance.core.tasks import ComplianceTask
from compliance.ports.organization_directory import Organization
from compliance.ports.task_repo import TaskFilter


class InMemoryTaskRepository:
    """Implements TaskRepository protocol with a dict keyed by task id."""

    def __init__(self, tasks: list[ComplianceTask] | None = None):
        self.tasks: dict[str, ComplianceTask] = {}
        for task in tasks or []:
            self.insert(task)

    def read(self, task_filter: TaskFilter) -> list[ComplianceTask]:
        result = []
        for t in self.tasks.values():
            if task_filter.organization_ids and t.organization_id not in task_filter.organization_ids:
                continue
            if task_filter.user_id and t.user_id != task_filter.user_id:
                continue
            if task_filter.completed is not None and t.completed != task_filter.completed:
                continue
            if task_filter.deadline_from and t.deadline < task_filter.deadline_from:
                continue
            if task_filter.deadline_to and t.deadline > task_filter.deadline_to:
                continue
            result.append(t)
        return sorted(result, key=lambda t: t.deadline)

    def insert(self, task: ComplianceTask) -> ComplianceTask:
        stored = replace(task, id=task.id or uuid.uuid4().hex)
        self.tasks[stored.id] = stored
        return stored

    def update(self, task_id: str, changes: dict) -> None:
        task = self.tasks[task_id]
        if "completed_at" in changes and isinstance(changes["completed_at"], str):
            changes = {**changes, "completed_at": datetime.fromisoformat(changes["completed_at"])}
        self.tasks[task_id] = replace(task, **changes)


class InMemoryNotificationLog:
    """Implements NotificationLog protocol with a list."""

    def __init__(self):
        self.entries: list[NotificationLogEntry] = []

    def query(self, task_id: str, start: datetime, end: datetime) -> list[NotificationLogEntry]:
        return [
            e for e in self.entries
            if e.task_id == task_id and e.sent_at is not None and start <= e.sent_at <= end
        ]

    def insert(self, entry: NotificationLogEntry) -> None:
        self.entries.append(entry)


class InMemoryOrganizationDirectory:
    """Implements OrganizationDirectory protocol with a fixed list."""

    def __init__(self, organizations: list[Organization] | None = None):
        self.organizations = organizations or []

    def scheduled_for(self, reminder_time: str) -> list[Organization]:
        return [
            o for o in self.organizations
            if o.is_automation_enabled and o.reminder_time == reminder_time
        ]


class InMemoryRateLimitStore:
    """Implements RateLimitStore protocol. Counters live only in this process."""

    def __init__(self):
        self._counters: dict[str, RateLimitCounter] = {}

    def get(self, key: str) -> RateLimitCounter | None:
        return self._counters.get(key)

    def set(self, key: str, counter: RateLimitCounter) -> None:
        self._counters[key] = counter

    def reset(self, key: str) -> None:
        self._counters.pop(key, None)
