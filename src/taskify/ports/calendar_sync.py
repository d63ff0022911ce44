"""Calendar sync interface."""

from typing import Protocol

from taskify.core.tasks import Task


class CalendarSync(Protocol):
    """Interface for mirroring tasks into an external calendar."""

    def upsert_task(self, task: Task) -> str | None:
        """Create or update the event for a task. Returns the event id, or None if skipped."""
        ...

    def remove_task(self, task_id: str) -> bool:
        """Delete the event for a task. Returns True if nothing is left behind."""
        ...
