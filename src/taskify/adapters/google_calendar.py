"""Google Calendar API adapter - mirrors tasks as calendar events."""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

from taskify.core.tasks import Task

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.events"]
TASK_ID_PROPERTY = "taskifyTaskId"
EVENT_DURATION = timedelta(hours=1)

# Google Calendar event colour ids
PRIORITY_COLORS = {
    "URGENT": "11",  # red
    "HIGH": "6",  # orange
    "MEDIUM": "5",  # yellow
    "LOW": "2",  # green
}
DEFAULT_COLOR = "9"


def task_to_event(task: Task, timezone: str = "UTC", now: datetime | None = None) -> dict:
    """Build the Calendar API event body for a task.

    Naive datetimes are local time; the event is written in `timezone`.
    """
    start = (task.due_date or now or datetime.now()).astimezone(ZoneInfo(timezone))
    end = start + EVENT_DURATION
    return {
        "summary": task.title,
        "description": (
            f"{task.description}\n\n"
            f"Priority: {task.priority.value}\n"
            f"Status: {task.status.value}\n"
            f"Quadrant: {task.quadrant.value}"
        ),
        "start": {"dateTime": start.isoformat(), "timeZone": timezone},
        "end": {"dateTime": end.isoformat(), "timeZone": timezone},
        "colorId": PRIORITY_COLORS.get(task.priority.value, DEFAULT_COLOR),
        "extendedProperties": {
            "private": {
                TASK_ID_PROPERTY: task.id,
                "taskifyPriority": task.priority.value,
                "taskifyStatus": task.status.value,
                "taskifyQuadrant": task.quadrant.value,
            }
        },
    }


class GoogleCalendarSync:
    """
    Writes task events to Google Calendar via the API.

    Implements CalendarSync protocol. API errors propagate; retry and
    best-effort handling belong to CalendarSyncDispatcher.
    """

    def __init__(
        self,
        token_dir: Path | str,
        client_secret_file: str = "",
        calendar_id: str = "primary",
        timezone: str = "UTC",
    ):
        self.client_secret_file = client_secret_file
        self.calendar_id = calendar_id
        self.timezone = timezone
        self._token_path = Path(token_dir).expanduser() / "token.json"

    def _get_credentials(self):
        """Load credentials from token.json, refreshing if needed."""
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials

        if not self._token_path.exists():
            logger.info("No Google token - run 'taskify cal-auth' to enable calendar sync")
            return None

        creds = Credentials.from_authorized_user_file(str(self._token_path), SCOPES)

        if creds.expired and creds.refresh_token:
            creds.refresh(Request())
            self._token_path.write_text(creds.to_json())
            self._token_path.chmod(0o600)

        return creds

    def _build_service(self):
        """Build a Google Calendar API service, or None when not signed in."""
        from googleapiclient.discovery import build

        creds = self._get_credentials()
        if not creds:
            return None
        return build("calendar", "v3", credentials=creds)

    def is_signed_in(self) -> bool:
        return self._token_path.exists()

    def authenticate(self) -> bool:
        """Run OAuth flow. Returns True on success."""
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

    def _event_body(self, task: Task) -> dict:
        return task_to_event(task, self.timezone, now=datetime.now(ZoneInfo(self.timezone)))

    def find_event_id(self, service, task_id: str) -> str | None:
        """Look up the event tagged with a task id."""
        result = (
            service.events()
            .list(
                calendarId=self.calendar_id,
                privateExtendedProperty=f"{TASK_ID_PROPERTY}={task_id}",
                maxResults=1,
            )
            .execute()
        )
        items = result.get("items", [])
        return items[0]["id"] if items else None

    def upsert_task(self, task: Task) -> str | None:
        """Create the task's event, or update it if one exists."""
        service = self._build_service()
        if not service:
            return None

        body = self._event_body(task)
        event_id = self.find_event_id(service, task.id)
        if event_id:
            service.events().update(calendarId=self.calendar_id, eventId=event_id, body=body).execute()
            logger.info(f"Updated calendar event {event_id} for {task.id}")
            return event_id

        created = service.events().insert(calendarId=self.calendar_id, body=body).execute()
        logger.info(f"Created calendar event {created['id']} for {task.id}")
        return created["id"]

    def remove_task(self, task_id: str) -> bool:
        """Delete the task's event. A missing event counts as removed."""
        from googleapiclient.errors import HttpError

        service = self._build_service()
        if not service:
            return False

        event_id = self.find_event_id(service, task_id)
        if not event_id:
            return True

        try:
            service.events().delete(calendarId=self.calendar_id, eventId=event_id).execute()
        except HttpError as e:
            if e.resp.status not in (404, 410):
                raise
        logger.info(f"Deleted calendar event {event_id} for {task_id}")
        return True
