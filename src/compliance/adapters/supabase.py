"""Supabase adapter - PostgREST HTTP client for tasks, notification logs and organizations."""

import logging
from datetime import datetime, timezone

import requests

from compliance.config import Config, load_config
from compliance.core.reminders import NotificationLogEntry
from compliance.core.tasks import ComplianceTask
from compliance.ports.organization_directory import Organization
from compliance.ports.task_repo import TaskFilter

logger = logging.getLogger(__name__)

TASK_SELECT = "*,profiles!tasks_user_id_fkey(email,full_name,notify_email)"


class RepositoryError(Exception):
    """Raised when the backing store cannot be reached or rejects a request."""

    pass


class SupabaseClient:
    """
    Thin PostgREST client using the service role key.

    No business logic - just I/O. Row-level security and tenant isolation are
    enforced by the platform; callers always pass their tenant scope.
    """

    def __init__(self, config: Config | None = None, session: requests.Session | None = None):
        self.config = config or load_config()
        self.config.require("supabase_url", "supabase_service_role_key")
        self.base_url = f"{self.config.supabase_url}/rest/v1"
        self._session = session or requests.Session()
        key = self.config.supabase_service_role_key
        self._session.headers.update(
            {
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            }
        )

    def request(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]] | None = None,
        json: dict | None = None,
        prefer: str | None = None,
    ) -> list | None:
        """Make a PostgREST request. Raises RepositoryError on any failure."""
        headers = {"Prefer": prefer} if prefer else None
        try:
            resp = self._session.request(
                method,
                f"{self.base_url}/{table}",
                params=params,
                json=json,
                headers=headers,
                timeout=30,
            )
        except requests.RequestException as e:
            raise RepositoryError(f"{method} {table} failed: {e}") from e

        if not resp.ok:
            raise RepositoryError(f"{method} {table} returned {resp.status_code}: {resp.text}")

        if not resp.content:
            return None
        return resp.json()


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class SupabaseTaskRepository:
    """Implements TaskRepository protocol over the `tasks` table."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    def read(self, task_filter: TaskFilter) -> list[ComplianceTask]:
        params = [("select", TASK_SELECT), ("order", "deadline.asc")]
        if task_filter.organization_ids:
            params.append(("organization_id", f"in.({','.join(task_filter.organization_ids)})"))
        if task_filter.user_id:
            params.append(("user_id", f"eq.{task_filter.user_id}"))
        if task_filter.completed is not None:
            params.append(("completed", f"eq.{str(task_filter.completed).lower()}"))
        if task_filter.deadline_from:
            params.append(("deadline", f"gte.{task_filter.deadline_from.isoformat()}"))
        if task_filter.deadline_to:
            params.append(("deadline", f"lte.{task_filter.deadline_to.isoformat()}"))

        rows = self.client.request("GET", "tasks", params=params) or []
        return [ComplianceTask.from_api(row) for row in rows]

    def insert(self, task: ComplianceTask) -> ComplianceTask:
        rows = self.client.request("POST", "tasks", json=task.to_api(), prefer="return=representation")
        if not rows:
            raise RepositoryError("Insert into tasks returned no row")
        created = ComplianceTask.from_api(rows[0])
        created.owner = task.owner
        return created

    def update(self, task_id: str, changes: dict) -> None:
        self.client.request("PATCH", "tasks", params=[("id", f"eq.{task_id}")], json=changes)


class SupabaseNotificationLog:
    """Implements NotificationLog protocol over the `notification_logs` table."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    def query(self, task_id: str, start: datetime, end: datetime) -> list[NotificationLogEntry]:
        params = [
            ("select", "task_id,user_id,organization_id,channel,sent_at,status"),
            ("task_id", f"eq.{task_id}"),
            ("sent_at", f"gte.{_iso(start)}"),
            ("sent_at", f"lte.{_iso(end)}"),
        ]
        rows = self.client.request("GET", "notification_logs", params=params) or []
        return [NotificationLogEntry.from_api(row) for row in rows]

    def insert(self, entry: NotificationLogEntry) -> None:
        payload = {
            "task_id": entry.task_id,
            "user_id": entry.user_id,
            "organization_id": entry.organization_id,
            "channel": entry.channel,
            "status": entry.status,
        }
        if entry.sent_at:
            payload["sent_at"] = _iso(entry.sent_at)
        self.client.request("POST", "notification_logs", json=payload)


class SupabaseOrganizationDirectory:
    """Implements OrganizationDirectory protocol over the `organizations` table."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    def scheduled_for(self, reminder_time: str) -> list[Organization]:
        params = [
            ("select", "id,name,is_automation_enabled,reminder_time"),
            ("is_automation_enabled", "eq.true"),
            ("reminder_time", f"eq.{reminder_time}"),
        ]
        rows = self.client.request("GET", "organizations", params=params) or []
        return [
            Organization(
                id=row["id"],
                name=row.get("name", ""),
                is_automation_enabled=bool(row.get("is_automation_enabled")),
                reminder_time=row.get("reminder_time", ""),
            )
            for row in rows
        ]
