"""Functional core - pure business logic with no I/O."""

from .errors import InvalidInput, InvalidTransition, TaskifyError, TaskNotFoundError
from .quadrants import (
    EisenhowerQuadrant,
    TaskPriority,
    classify,
    days_until_deadline,
    deadline_urgency_text,
    quadrant_reason,
)
from .pomodoro import PomodoroConfiguration, PomodoroSchedule, Session, SessionType, build_schedule
from .timer import PomodoroTimer, ScheduleCompleted, SessionCompleted, TimerState, TimerStatus
from .tasks import Task, TaskStatus, group_by_quadrant, search_tasks, sort_by_quadrant

__all__ = [
    # Errors
    "TaskifyError",
    "InvalidInput",
    "InvalidTransition",
    "TaskNotFoundError",
    # Quadrants
    "EisenhowerQuadrant",
    "TaskPriority",
    "classify",
    "quadrant_reason",
    "days_until_deadline",
    "deadline_urgency_text",
    # Pomodoro
    "PomodoroConfiguration",
    "PomodoroSchedule",
    "Session",
    "SessionType",
    "build_schedule",
    # Timer
    "PomodoroTimer",
    "TimerState",
    "TimerStatus",
    "SessionCompleted",
    "ScheduleCompleted",
    # Tasks
    "Task",
    "TaskStatus",
    "group_by_quadrant",
    "search_tasks",
    "sort_by_quadrant",
]
