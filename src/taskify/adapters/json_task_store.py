"""File-based task storage adapter."""

import json
import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from taskify.core.errors import TaskNotFoundError
from taskify.core.tasks import Task

logger = logging.getLogger(__name__)


class JsonTaskStore:
    """
    JSON file task storage.

    Implements TaskStore protocol. All users' tasks live in one file together
    with the id counter; every call re-reads the file.
    """

    def __init__(self, data_dir: Path | str, filename: str = "tasks.json"):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.data_dir / filename

    def _load(self) -> dict:
        if not self.path.exists():
            return {"counter": 0, "tasks": []}
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Task file {self.path} is corrupt: {e}") from e
        data.setdefault("counter", 0)
        data.setdefault("tasks", [])
        return data

    def _save(self, data: dict) -> None:
        # Write-then-rename so a crash never leaves a half-written file
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, indent=2))
        tmp.replace(self.path)

    def _all(self, data: dict) -> list[Task]:
        return [Task.from_dict(item) for item in data["tasks"]]

    def create(self, task: Task) -> Task:
        """Persist a new task with the next task-NNN id."""
        data = self._load()
        data["counter"] += 1
        now = datetime.now()
        created = replace(task, id=f"task-{data['counter']:03d}", created_at=now, updated_at=now)
        data["tasks"].append(created.to_dict())
        self._save(data)
        logger.debug(f"Created {created.id} for {created.user_id}")
        return created

    def get(self, task_id: str, user_id: str) -> Task | None:
        data = self._load()
        return next(
            (t for t in self._all(data) if t.id == task_id and t.user_id == user_id),
            None,
        )

    def update(self, task: Task) -> Task:
        data = self._load()
        for i, item in enumerate(data["tasks"]):
            if item["id"] == task.id and item["user_id"] == task.user_id:
                updated = replace(task, updated_at=datetime.now())
                data["tasks"][i] = updated.to_dict()
                self._save(data)
                return updated
        raise TaskNotFoundError(task.id)

    def delete(self, task_id: str, user_id: str) -> None:
        data = self._load()
        remaining = [
            item for item in data["tasks"]
            if not (item["id"] == task_id and item["user_id"] == user_id)
        ]
        if len(remaining) == len(data["tasks"]):
            raise TaskNotFoundError(task_id)
        data["tasks"] = remaining
        self._save(data)
        logger.debug(f"Deleted {task_id} for {user_id}")

    def list_for_user(self, user_id: str) -> list[Task]:
        data = self._load()
        return [t for t in self._all(data) if t.user_id == user_id]
