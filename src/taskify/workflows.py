"""Shared workflow layer between CLI and Telegram.

Each function loads or mutates tasks through a TaskStore, applies the
classification rules, and hands successful mutations to calendar sync.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path

from .adapters.json_task_store import JsonTaskStore
from .config import Config, QuadrantPolicy
from .core.errors import InvalidInput, TaskNotFoundError
from .core.pomodoro import PomodoroSchedule, build_schedule
from .core.quadrants import EisenhowerQuadrant, TaskPriority, classify
from .core.tasks import (
    Task,
    TaskStatus,
    filter_active,
    filter_by_quadrant,
    group_by_quadrant,
    search_tasks,
    to_local_naive,
    sort_by_quadrant,
)
from .ports import TaskStore
from .sync import CalendarSyncDispatcher

logger = logging.getLogger(__name__)

_UNSET = object()


def get_store(config: Config) -> JsonTaskStore:
    """Resolve the task store from config."""
    return JsonTaskStore(Path(config.data_path))


def _require(store: TaskStore, user_id: str, task_id: str) -> Task:
    task = store.get(task_id, user_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    return task


def _notify_saved(sync: CalendarSyncDispatcher | None, task: Task) -> None:
    if sync is not None:
        sync.task_saved(task)


def create_task(
    store: TaskStore,
    user_id: str,
    title: str,
    description: str = "",
    priority: TaskPriority = TaskPriority.MEDIUM,
    due_date: datetime | None = None,
    quadrant: EisenhowerQuadrant | None = None,
    sync: CalendarSyncDispatcher | None = None,
    now: datetime | None = None,
) -> Task:
    """Create a task, suggesting its quadrant unless the caller picked one."""
    if not title.strip():
        raise InvalidInput("Task title cannot be empty")

    if due_date is not None:
        due_date = to_local_naive(due_date)
    suggested = classify(priority, due_date, now)
    chosen = quadrant or suggested
    task = store.create(
        Task(
            id="",
            title=title.strip(),
            user_id=user_id,
            description=description,
            priority=priority,
            due_date=due_date,
            quadrant=chosen,
            quadrant_overridden=chosen != suggested,
        )
    )
    logger.info(f"Created {task.id} in {task.quadrant.value}")
    _notify_saved(sync, task)
    return task


def update_task(
    store: TaskStore,
    user_id: str,
    task_id: str,
    *,
    title: str | None = None,
    description: str | None = None,
    priority: TaskPriority | None = None,
    due_date=_UNSET,
    status: TaskStatus | None = None,
    quadrant: EisenhowerQuadrant | None = None,
    policy: QuadrantPolicy = QuadrantPolicy.PRESERVE,
    sync: CalendarSyncDispatcher | None = None,
    now: datetime | None = None,
) -> Task:
    """
    Apply edits to a task.

    Pass due_date=None to clear the due date; leave it out to keep it.
    When priority or due date change, the quadrant follows the classifier
    unless the user picked it by hand and the policy says to preserve that.
    An explicit quadrant always wins.
    """
    task = _require(store, user_id, task_id)
    changes = {}

    if title is not None:
        if not title.strip():
            raise InvalidInput("Task title cannot be empty")
        changes["title"] = title.strip()
    if description is not None:
        changes["description"] = description
    if priority is not None:
        changes["priority"] = priority
    if due_date is not _UNSET:
        changes["due_date"] = to_local_naive(due_date) if due_date else None
    if status is not None:
        changes["status"] = status

    updated = replace(task, **changes)
    suggested = updated.suggested_quadrant(now)

    if quadrant is not None:
        updated.quadrant = quadrant
        updated.quadrant_overridden = quadrant != suggested
    elif updated.priority != task.priority or updated.due_date != task.due_date:
        if not task.quadrant_overridden or policy is QuadrantPolicy.RECOMPUTE:
            updated.quadrant = suggested
            updated.quadrant_overridden = False

    saved = store.update(updated)
    _notify_saved(sync, saved)
    return saved


def move_task_to_quadrant(
    store: TaskStore,
    user_id: str,
    task_id: str,
    quadrant: EisenhowerQuadrant,
    sync: CalendarSyncDispatcher | None = None,
    now: datetime | None = None,
) -> Task:
    """Put a task in a quadrant by hand."""
    return update_task(store, user_id, task_id, quadrant=quadrant, sync=sync, now=now)


def set_status(
    store: TaskStore,
    user_id: str,
    task_id: str,
    status: TaskStatus,
    sync: CalendarSyncDispatcher | None = None,
) -> Task:
    return update_task(store, user_id, task_id, status=status, sync=sync)


def delete_task(
    store: TaskStore,
    user_id: str,
    task_id: str,
    sync: CalendarSyncDispatcher | None = None,
) -> None:
    store.delete(task_id, user_id)
    logger.info(f"Deleted {task_id}")
    if sync is not None:
        sync.task_deleted(task_id)


def get_matrix(
    store: TaskStore,
    user_id: str,
    include_done: bool = False,
) -> dict[EisenhowerQuadrant, list[Task]]:
    """The user's tasks grouped by quadrant, each quadrant sorted by due date."""
    tasks = store.list_for_user(user_id)
    if not include_done:
        tasks = filter_active(tasks)
    return group_by_quadrant(sort_by_quadrant(tasks))


def list_tasks(
    store: TaskStore,
    user_id: str,
    quadrant: EisenhowerQuadrant | None = None,
    include_done: bool = False,
    query: str | None = None,
) -> list[Task]:
    """The user's tasks in matrix order, optionally filtered."""
    tasks = store.list_for_user(user_id)
    if not include_done:
        tasks = filter_active(tasks)
    if quadrant is not None:
        tasks = filter_by_quadrant(tasks, quadrant)
    if query:
        tasks = search_tasks(tasks, query)
    return sort_by_quadrant(tasks)


@dataclass
class PomodoroPlan:
    """A task paired with the schedule to work through it."""

    task: Task
    schedule: PomodoroSchedule


def plan_pomodoro(
    store: TaskStore,
    user_id: str,
    task_id: str,
    estimated_minutes: int,
    config: Config,
    now: datetime | None = None,
) -> PomodoroPlan:
    """Build a schedule for working on a task. Finished tasks are refused."""
    task = _require(store, user_id, task_id)
    if not task.is_active:
        raise InvalidInput(f"Task {task_id} is {task.status.value.lower()}")
    schedule = build_schedule(estimated_minutes, config.pomodoro(), now)
    return PomodoroPlan(task=task, schedule=schedule)


def start_task_pomodoro(
    store: TaskStore,
    user_id: str,
    task_id: str,
    estimated_minutes: int,
    config: Config,
    sync: CalendarSyncDispatcher | None = None,
    now: datetime | None = None,
) -> PomodoroPlan:
    """Plan a Pomodoro for a task and mark the task in progress."""
    plan = plan_pomodoro(store, user_id, task_id, estimated_minutes, config, now)
    if plan.task.status is TaskStatus.TODO:
        plan.task = set_status(store, user_id, task_id, TaskStatus.IN_PROGRESS, sync=sync)
    return plan
