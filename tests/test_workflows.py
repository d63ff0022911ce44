"""Tests for the shared workflow layer."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from taskify.config import DATA_DIR, Config, QuadrantPolicy
from taskify.core.errors import InvalidInput, TaskNotFoundError
from taskify.core.quadrants import EisenhowerQuadrant, TaskPriority
from taskify.core.tasks import TaskStatus
from taskify.sync import CalendarSyncDispatcher
from taskify.workflows import (
    create_task,
    delete_task,
    get_matrix,
    get_store,
    list_tasks,
    move_task_to_quadrant,
    plan_pomodoro,
    set_status,
    start_task_pomodoro,
    update_task,
)

Q1 = EisenhowerQuadrant.URGENT_IMPORTANT
Q2 = EisenhowerQuadrant.NOT_URGENT_IMPORTANT
Q3 = EisenhowerQuadrant.URGENT_NOT_IMPORTANT
Q4 = EisenhowerQuadrant.NOT_URGENT_NOT_IMPORTANT


@pytest.fixture
def config(tmp_path):
    return Config(data_dir=str(tmp_path))


@pytest.fixture
def store(config):
    return get_store(config)


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 9, 0)


@pytest.fixture
def sync():
    return MagicMock(spec=CalendarSyncDispatcher)


class TestGetStore:
    def test_uses_configured_dir(self, tmp_path):
        store = get_store(Config(data_dir=str(tmp_path)))
        assert store.data_dir == tmp_path

    def test_expands_user_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        store = get_store(Config(data_dir="~/some/data"))
        assert "~" not in str(store.data_dir)
        assert store.data_dir == Path.home() / "some" / "data"

    def test_falls_back_to_default(self):
        assert Config(data_dir="").data_path == DATA_DIR


class TestCreateTask:
    def test_suggests_quadrant(self, store, now):
        task = create_task(
            store, "user-a", "Ship", priority=TaskPriority.HIGH, due_date=now + timedelta(days=1), now=now
        )
        assert task.quadrant == Q1
        assert task.quadrant_overridden is False
        assert task.id == "task-001"

    def test_explicit_quadrant_is_override(self, store, now):
        task = create_task(store, "user-a", "Ship", priority=TaskPriority.HIGH, quadrant=Q4, now=now)
        assert task.quadrant == Q4
        assert task.quadrant_overridden is True

    def test_explicit_quadrant_matching_suggestion_is_not_override(self, store, now):
        task = create_task(store, "user-a", "Ship", priority=TaskPriority.HIGH, quadrant=Q2, now=now)
        assert task.quadrant_overridden is False

    def test_aware_due_date_stored_as_local_time(self, store):
        due = datetime.now(timezone.utc) + timedelta(days=1)
        task = create_task(store, "user-a", "Ship", priority=TaskPriority.HIGH, due_date=due)
        assert task.due_date.tzinfo is None
        assert task.due_date == due.astimezone().replace(tzinfo=None)
        assert task.quadrant == Q1
        assert store.get(task.id, "user-a").due_date == task.due_date

    def test_strips_title(self, store):
        assert create_task(store, "user-a", "  Ship  ").title == "Ship"

    def test_empty_title_rejected_before_store(self, store, sync):
        with pytest.raises(InvalidInput):
            create_task(store, "user-a", "   ", sync=sync)
        assert store.list_for_user("user-a") == []
        sync.task_saved.assert_not_called()

    def test_syncs_after_save(self, store, sync):
        task = create_task(store, "user-a", "Ship", sync=sync)
        sync.task_saved.assert_called_once_with(task)


class TestUpdateTask:
    def test_recomputes_when_not_overridden(self, store, now):
        task = create_task(store, "user-a", "Ship", priority=TaskPriority.LOW, now=now)
        assert task.quadrant == Q4

        updated = update_task(store, "user-a", task.id, due_date=now + timedelta(days=1), now=now)
        assert updated.quadrant == Q3

    def test_preserve_policy_keeps_manual_quadrant(self, store, now):
        task = create_task(store, "user-a", "Ship", priority=TaskPriority.LOW, quadrant=Q3, now=now)

        updated = update_task(
            store, "user-a", task.id, priority=TaskPriority.URGENT, policy=QuadrantPolicy.PRESERVE, now=now
        )
        assert updated.quadrant == Q3
        assert updated.quadrant_overridden is True

    def test_recompute_policy_drops_override(self, store, now):
        task = create_task(store, "user-a", "Ship", priority=TaskPriority.LOW, quadrant=Q1, now=now)

        updated = update_task(
            store,
            "user-a",
            task.id,
            priority=TaskPriority.HIGH,
            policy=QuadrantPolicy.RECOMPUTE,
            now=now,
        )
        assert updated.quadrant == Q2
        assert updated.quadrant_overridden is False

    def test_explicit_quadrant_wins(self, store, now):
        task = create_task(store, "user-a", "Ship", priority=TaskPriority.LOW, now=now)
        updated = update_task(
            store,
            "user-a",
            task.id,
            priority=TaskPriority.HIGH,
            quadrant=Q3,
            policy=QuadrantPolicy.RECOMPUTE,
            now=now,
        )
        assert updated.quadrant == Q3
        assert updated.quadrant_overridden is True

    def test_title_only_edit_keeps_quadrant(self, store, now):
        task = create_task(store, "user-a", "Ship", quadrant=Q1, now=now)
        updated = update_task(store, "user-a", task.id, title="Ship it", policy=QuadrantPolicy.RECOMPUTE, now=now)
        assert updated.quadrant == Q1
        assert updated.title == "Ship it"

    def test_clear_due_date(self, store, now):
        task = create_task(
            store, "user-a", "Ship", priority=TaskPriority.HIGH, due_date=now + timedelta(days=1), now=now
        )
        updated = update_task(store, "user-a", task.id, due_date=None, now=now)
        assert updated.due_date is None
        assert updated.quadrant == Q2

    def test_empty_title_rejected(self, store):
        task = create_task(store, "user-a", "Ship")
        with pytest.raises(InvalidInput):
            update_task(store, "user-a", task.id, title="")
        assert store.get(task.id, "user-a").title == "Ship"

    def test_missing_task_does_not_sync(self, store, sync):
        with pytest.raises(TaskNotFoundError):
            update_task(store, "user-a", "task-404", title="x", sync=sync)
        sync.task_saved.assert_not_called()

    def test_other_users_task_not_found(self, store):
        task = create_task(store, "user-a", "Ship")
        with pytest.raises(TaskNotFoundError):
            update_task(store, "user-b", task.id, title="Mine now")


class TestSyncIsBestEffort:
    def test_calendar_failure_does_not_block_save(self, store):
        calendar = MagicMock()
        calendar.upsert_task.side_effect = RuntimeError("calendar down")
        dispatcher = CalendarSyncDispatcher(calendar, retries=1, sleep=lambda s: None)

        task = create_task(store, "user-a", "Ship", sync=dispatcher)

        assert store.get(task.id, "user-a") is not None
        assert calendar.upsert_task.call_count == 2


class TestMoveAndStatus:
    def test_move_marks_override(self, store, now):
        task = create_task(store, "user-a", "Ship", now=now)
        moved = move_task_to_quadrant(store, "user-a", task.id, Q1, now=now)
        assert moved.quadrant == Q1
        assert moved.quadrant_overridden is True

    def test_set_status(self, store, sync):
        task = create_task(store, "user-a", "Ship")
        done = set_status(store, "user-a", task.id, TaskStatus.COMPLETED, sync=sync)
        assert done.status is TaskStatus.COMPLETED
        sync.task_saved.assert_called_with(done)


class TestDeleteTask:
    def test_deletes_and_syncs(self, store, sync):
        task = create_task(store, "user-a", "Ship")
        delete_task(store, "user-a", task.id, sync=sync)
        assert store.get(task.id, "user-a") is None
        sync.task_deleted.assert_called_once_with(task.id)

    def test_missing_task_does_not_sync(self, store, sync):
        with pytest.raises(TaskNotFoundError):
            delete_task(store, "user-a", "task-404", sync=sync)
        sync.task_deleted.assert_not_called()


class TestQueries:
    @pytest.fixture
    def populated(self, store, now):
        create_task(store, "user-a", "Ship", priority=TaskPriority.HIGH, due_date=now + timedelta(days=2), now=now)
        create_task(store, "user-a", "Plan", priority=TaskPriority.HIGH, now=now)
        done = create_task(store, "user-a", "Old", priority=TaskPriority.HIGH, now=now)
        set_status(store, "user-a", done.id, TaskStatus.COMPLETED)
        create_task(store, "user-b", "Not mine", now=now)
        return store

    def test_matrix_hides_done(self, populated):
        matrix = get_matrix(populated, "user-a")
        assert [t.title for t in matrix[Q1]] == ["Ship"]
        assert [t.title for t in matrix[Q2]] == ["Plan"]
        assert matrix[Q4] == []

    def test_matrix_include_done(self, populated):
        matrix = get_matrix(populated, "user-a", include_done=True)
        assert [t.title for t in matrix[Q2]] == ["Plan", "Old"]

    def test_list_in_matrix_order(self, populated):
        assert [t.title for t in list_tasks(populated, "user-a")] == ["Ship", "Plan"]

    def test_list_filters(self, populated):
        assert [t.title for t in list_tasks(populated, "user-a", quadrant=Q2)] == ["Plan"]
        assert [t.title for t in list_tasks(populated, "user-a", query="old", include_done=True)] == ["Old"]


class TestPomodoroPlanning:
    def test_plan(self, store, config, now):
        task = create_task(store, "user-a", "Ship")
        plan = plan_pomodoro(store, "user-a", task.id, 90, config, now=now)
        assert plan.task.id == task.id
        assert plan.schedule.work_session_count == 4

    def test_uses_configured_durations(self, store, tmp_path, now):
        config = Config(data_dir=str(tmp_path), pomodoro_work_minutes=50)
        task = create_task(store, "user-a", "Ship")
        plan = plan_pomodoro(store, "user-a", task.id, 90, config, now=now)
        assert plan.schedule.work_session_count == 2

    def test_refuses_completed_task(self, store, config):
        task = create_task(store, "user-a", "Ship")
        set_status(store, "user-a", task.id, TaskStatus.COMPLETED)
        with pytest.raises(InvalidInput):
            plan_pomodoro(store, "user-a", task.id, 30, config)

    def test_invalid_minutes(self, store, config):
        task = create_task(store, "user-a", "Ship")
        with pytest.raises(InvalidInput):
            plan_pomodoro(store, "user-a", task.id, 0, config)

    def test_start_marks_in_progress(self, store, config, sync):
        task = create_task(store, "user-a", "Ship")
        plan = start_task_pomodoro(store, "user-a", task.id, 30, config, sync=sync)
        assert plan.task.status is TaskStatus.IN_PROGRESS
        assert store.get(task.id, "user-a").status is TaskStatus.IN_PROGRESS
        sync.task_saved.assert_called_once()
