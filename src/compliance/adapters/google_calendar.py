"""Google Calendar API adapter - mirrors tasks as all-day events."""

import logging
from pathlib import Path

from compliance.core.calendar import SyncAction, SyncResult, build_calendar_event
from compliance.core.tasks import ComplianceTask

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.events"]


class GoogleCalendarSync:
    """
    Creates, updates and deletes calendar events for tasks.

    Implements CalendarSync protocol. Every outcome is returned as a
    SyncResult with a reason code; nothing is raised to the caller.
    """

    def __init__(
        self,
        token_folder: str,
        calendar_id: str = "primary",
        reminder_days: list[int] | None = None,
        sync_enabled: bool = True,
        client_secret_file: str = "",
    ):
        self.token_folder = token_folder
        self.calendar_id = calendar_id
        self.reminder_days = reminder_days or [1]
        self.sync_enabled = sync_enabled
        self.client_secret_file = client_secret_file
        self._token_path = Path(token_folder).expanduser() / "token.json"

    def _get_credentials(self):
        """Load credentials from token.json, refreshing if needed."""
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials

        if not self._token_path.exists():
            logger.warning("No Google token.json - run 'compliance cal-auth'")
            return None

        creds = Credentials.from_authorized_user_file(str(self._token_path), SCOPES)

        if creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
                self._token_path.write_text(creds.to_json())
                self._token_path.chmod(0o600)
            except Exception as e:
                logger.warning(f"Failed to refresh Google token: {e}")
                return None

        return creds

    def _build_service(self):
        """Build a Google Calendar API service."""
        from googleapiclient.discovery import build

        creds = self._get_credentials()
        if not creds:
            return None
        return build("calendar", "v3", credentials=creds)

    def authenticate(self) -> bool:
        """Run the OAuth flow and store token.json. Returns True on success."""
        from google_auth_oauthlib.flow import InstalledAppFlow

        if not self.client_secret_file:
            logger.error("No client secret file configured")
            return False

        secret_path = Path(self.client_secret_file).expanduser()
        if not secret_path.exists():
            logger.error(f"Client secret file not found: {secret_path}")
            return False

        flow = InstalledAppFlow.from_client_secrets_file(str(secret_path), SCOPES)
        creds = flow.run_local_server(port=0)

        self._token_path.parent.mkdir(parents=True, exist_ok=True)
        self._token_path.write_text(creds.to_json())
        self._token_path.chmod(0o600)
        return True

    def sync(self, task: ComplianceTask, action: SyncAction) -> SyncResult:
        """Push one task change to the calendar."""
        from googleapiclient.errors import HttpError

        if not self.sync_enabled:
            return SyncResult(success=False, reason="sync_disabled")

        try:
            service = self._build_service()
        except Exception as e:
            logger.warning(f"Could not build Google Calendar service: {e}")
            service = None
        if not service:
            return SyncResult(success=False, reason="no_google_connection")

        logger.info(f"Syncing task {task.id} to calendar {self.calendar_id} ({action.value})")
        events = service.events()

        try:
            if action is SyncAction.CREATE:
                body = build_calendar_event(task, self.reminder_days)
                created = events.insert(calendarId=self.calendar_id, body=body).execute()
                return SyncResult(success=True, event_id=created["id"], html_link=created.get("htmlLink"))

            if not task.google_event_id:
                return SyncResult(success=False, reason="missing_event_id")

            if action is SyncAction.UPDATE:
                body = build_calendar_event(task, self.reminder_days)
                events.update(calendarId=self.calendar_id, eventId=task.google_event_id, body=body).execute()
                return SyncResult(success=True, event_id=task.google_event_id)

            try:
                events.delete(calendarId=self.calendar_id, eventId=task.google_event_id).execute()
            except HttpError as e:
                # Already gone
                if e.resp.status != 404:
                    raise
            return SyncResult(success=True)

        except HttpError as e:
            logger.error(f"Calendar {action.value} failed for task {task.id}: {e}")
            return SyncResult(success=False, reason="api_error", error=str(e))
        except Exception as e:
            logger.error(f"Calendar {action.value} failed for task {task.id}: {type(e).__name__}: {e}")
            return SyncResult(success=False, reason="api_error", error=str(e) or type(e).__name__)
