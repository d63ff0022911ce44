"""Pure task domain logic - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .errors import InvalidInput
from .quadrants import (
    QUADRANT_ORDER,
    EisenhowerQuadrant,
    TaskPriority,
    classify,
    days_until_deadline,
    is_important,
    is_urgent,
)


class TaskStatus(Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass
class Task:
    """A task with its Eisenhower quadrant."""

    id: str
    title: str
    user_id: str
    priority: TaskPriority = TaskPriority.MEDIUM
    quadrant: EisenhowerQuadrant = EisenhowerQuadrant.NOT_URGENT_NOT_IMPORTANT
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    due_date: datetime | None = None
    # True when the user picked the quadrant instead of accepting the suggestion
    quadrant_overridden: bool = False
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def is_active(self) -> bool:
        return self.status in (TaskStatus.TODO, TaskStatus.IN_PROGRESS)

    def is_important(self) -> bool:
        return is_important(self.priority)

    def is_urgent(self, now: datetime | None = None) -> bool:
        return is_urgent(self.due_date, now)

    def suggested_quadrant(self, now: datetime | None = None) -> EisenhowerQuadrant:
        """Quadrant the classifier would pick for the current priority and due date."""
        return classify(self.priority, self.due_date, now)

    def days_until_due(self, now: datetime | None = None) -> int | None:
        """Days until due date (negative if overdue)."""
        return days_until_deadline(self.due_date, now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "user_id": self.user_id,
            "priority": self.priority.value,
            "status": self.status.value,
            "quadrant": self.quadrant.value,
            "quadrant_overridden": self.quadrant_overridden,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from its stored representation."""
        due = to_local_naive(datetime.fromisoformat(data["due_date"])) if data.get("due_date") else None
        now = datetime.now()
        return cls(
            id=data["id"],
            title=data["title"],
            user_id=data["user_id"],
            description=data.get("description", ""),
            priority=TaskPriority(data.get("priority", TaskPriority.MEDIUM.value)),
            status=TaskStatus(data.get("status", TaskStatus.TODO.value)),
            quadrant=EisenhowerQuadrant(
                data.get("quadrant", EisenhowerQuadrant.NOT_URGENT_NOT_IMPORTANT.value)
            ),
            quadrant_overridden=data.get("quadrant_overridden", False),
            due_date=due,
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else now,
            updated_at=datetime.fromisoformat(data["updated_at"]) if data.get("updated_at") else now,
        )


def filter_active(tasks: list[Task]) -> list[Task]:
    """Drop completed and cancelled tasks."""
    return [t for t in tasks if t.is_active]


def filter_by_quadrant(tasks: list[Task], quadrant: EisenhowerQuadrant) -> list[Task]:
    return [t for t in tasks if t.quadrant == quadrant]


def filter_overdue(tasks: list[Task], now: datetime | None = None) -> list[Task]:
    """Filter to active tasks past their due date."""
    now = now or datetime.now()
    return [t for t in tasks if t.is_active and t.due_date and t.due_date < now]


def group_by_quadrant(tasks: list[Task]) -> dict[EisenhowerQuadrant, list[Task]]:
    """
    Build the Eisenhower matrix.

    Every quadrant is present, in matrix order, even when empty.
    Pure function - no I/O.
    """
    matrix: dict[EisenhowerQuadrant, list[Task]] = {q: [] for q in QUADRANT_ORDER}
    for task in tasks:
        matrix[task.quadrant].append(task)
    return matrix


def sort_by_quadrant(tasks: list[Task]) -> list[Task]:
    """
    Sort tasks by quadrant (Do First first) then due date (soonest first).

    Tasks without a due date go last within their quadrant.
    """

    def sort_key(t: Task) -> tuple[int, int, datetime]:
        has_no_date = 1 if t.due_date is None else 0
        return (QUADRANT_ORDER.index(t.quadrant), has_no_date, t.due_date or datetime.max)

    return sorted(tasks, key=sort_key)


def search_tasks(tasks: list[Task], query: str) -> list[Task]:
    """Case-insensitive match on title or description."""
    needle = query.lower()
    return [t for t in tasks if needle in t.title.lower() or needle in t.description.lower()]


def to_local_naive(value: datetime) -> datetime:
    """Aware datetimes become naive local time; naive ones pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_due_date(raw: str) -> datetime:
    """
    Parse a due date typed by a user.

    YYYY-MM-DD means the end of that day. Full ISO datetimes may carry an
    offset; they are converted to naive local time like every stored date.

    Raises:
        InvalidInput: raw is not a date.
    """
    raw = raw.strip()
    try:
        due = datetime.fromisoformat(raw)
    except ValueError:
        raise InvalidInput(f"Invalid date: {raw} (use YYYY-MM-DD or YYYY-MM-DDTHH:MM)")
    if len(raw) == 10:
        due = due.replace(hour=23, minute=59)
    return to_local_naive(due)
