"""Ports - interfaces/protocols for external collaborators."""

from .task_store import TaskStore
from .identity import Identity
from .calendar_sync import CalendarSync

__all__ = [
    "TaskStore",
    "Identity",
    "CalendarSync",
]
