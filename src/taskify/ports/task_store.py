"""Task store interface."""

from typing import Protocol

from taskify.core.tasks import Task


class TaskStore(Protocol):
    """Interface for persisting tasks, scoped by owner."""

    def create(self, task: Task) -> Task:
        """Persist a new task. Returns it with its assigned id."""
        ...

    def get(self, task_id: str, user_id: str) -> Task | None:
        """Fetch one task owned by user_id. Returns None if not found."""
        ...

    def update(self, task: Task) -> Task:
        """Overwrite an existing task. Raises TaskNotFoundError if missing."""
        ...

    def delete(self, task_id: str, user_id: str) -> None:
        """Remove a task. Raises TaskNotFoundError if missing."""
        ...

    def list_for_user(self, user_id: str) -> list[Task]:
        """All tasks owned by user_id."""
        ...
