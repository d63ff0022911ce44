"""Tests for Google Calendar adapter."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

import pytest
from googleapiclient.errors import HttpError

from taskify.adapters.google_calendar import TASK_ID_PROPERTY, GoogleCalendarSync, task_to_event
from taskify.core.quadrants import EisenhowerQuadrant, TaskPriority
from taskify.core.tasks import Task


@pytest.fixture
def task():
    return Task(
        id="task-007",
        title="Ship release",
        user_id="user-a",
        description="v1.2",
        priority=TaskPriority.URGENT,
        quadrant=EisenhowerQuadrant.URGENT_IMPORTANT,
        due_date=datetime(2025, 1, 16, 17, 0),
    )


@pytest.fixture
def adapter(tmp_path):
    return GoogleCalendarSync(token_dir=tmp_path, calendar_id="primary", timezone="UTC")


def http_error(status):
    resp = MagicMock()
    resp.status = status
    resp.reason = "error"
    return HttpError(resp, b"{}")


class TestTaskToEvent:
    def test_event_at_due_date(self, task):
        event = task_to_event(task, "America/Toronto")

        start = datetime(2025, 1, 16, 17, 0).astimezone(ZoneInfo("America/Toronto"))
        assert event["summary"] == "Ship release"
        assert event["start"] == {"dateTime": start.isoformat(), "timeZone": "America/Toronto"}
        assert event["end"]["dateTime"] == (start + timedelta(hours=1)).isoformat()
        assert event["colorId"] == "11"
        assert event["extendedProperties"]["private"][TASK_ID_PROPERTY] == "task-007"
        assert "Priority: URGENT" in event["description"]

    def test_local_due_date_keeps_its_instant(self, task):
        event = task_to_event(task, "Asia/Tokyo")
        expected = datetime(2025, 1, 16, 17, 0).astimezone()

        start = datetime.fromisoformat(event["start"]["dateTime"])
        assert start.utcoffset() == timedelta(hours=9)
        assert start == expected

    def test_undated_task_uses_now(self, task):
        task.due_date = None
        now = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)
        event = task_to_event(task, now=now)
        assert event["start"]["dateTime"] == "2025-01-15T09:00:00+00:00"


class TestGoogleCalendarSync:
    def test_token_path(self, adapter, tmp_path):
        assert adapter._token_path == tmp_path / "token.json"
        assert not adapter.is_signed_in()

    def test_signed_in_with_token(self, adapter, tmp_path):
        (tmp_path / "token.json").write_text("{}")
        assert adapter.is_signed_in()

    def test_not_signed_in_skips(self, adapter, task):
        assert adapter.upsert_task(task) is None

    def test_authenticate_without_secret_fails(self, adapter):
        assert adapter.authenticate() is False

    @patch("taskify.adapters.google_calendar.GoogleCalendarSync._build_service")
    def test_upsert_inserts_new_event(self, mock_build, adapter, task):
        service = MagicMock()
        mock_build.return_value = service
        service.events().list().execute.return_value = {"items": []}
        service.events().insert().execute.return_value = {"id": "evt-1"}

        assert adapter.upsert_task(task) == "evt-1"
        service.events().list.assert_called_with(
            calendarId="primary",
            privateExtendedProperty="taskifyTaskId=task-007",
            maxResults=1,
        )
        service.events().update.assert_not_called()

    @patch("taskify.adapters.google_calendar.GoogleCalendarSync._build_service")
    def test_upsert_updates_existing_event(self, mock_build, adapter, task):
        service = MagicMock()
        mock_build.return_value = service
        service.events().list().execute.return_value = {"items": [{"id": "evt-9"}]}

        assert adapter.upsert_task(task) == "evt-9"
        _, kwargs = service.events().update.call_args
        assert kwargs["eventId"] == "evt-9"
        assert kwargs["body"]["summary"] == "Ship release"

    @patch("taskify.adapters.google_calendar.GoogleCalendarSync._build_service")
    def test_remove_deletes_event(self, mock_build, adapter):
        service = MagicMock()
        mock_build.return_value = service
        service.events().list().execute.return_value = {"items": [{"id": "evt-9"}]}

        assert adapter.remove_task("task-007") is True
        service.events().delete.assert_called_with(calendarId="primary", eventId="evt-9")

    @patch("taskify.adapters.google_calendar.GoogleCalendarSync._build_service")
    def test_remove_without_event_is_success(self, mock_build, adapter):
        service = MagicMock()
        mock_build.return_value = service
        service.events().list().execute.return_value = {"items": []}

        assert adapter.remove_task("task-007") is True
        service.events().delete.assert_not_called()

    @patch("taskify.adapters.google_calendar.GoogleCalendarSync._build_service")
    def test_remove_already_gone_is_success(self, mock_build, adapter):
        service = MagicMock()
        mock_build.return_value = service
        service.events().list().execute.return_value = {"items": [{"id": "evt-9"}]}
        service.events().delete().execute.side_effect = http_error(410)

        assert adapter.remove_task("task-007") is True

    @patch("taskify.adapters.google_calendar.GoogleCalendarSync._build_service")
    def test_remove_other_errors_propagate(self, mock_build, adapter):
        service = MagicMock()
        mock_build.return_value = service
        service.events().list().execute.return_value = {"items": [{"id": "evt-9"}]}
        service.events().delete().execute.side_effect = http_error(500)

        with pytest.raises(HttpError):
            adapter.remove_task("task-007")
