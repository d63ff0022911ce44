"""Eisenhower matrix classification - pure functions, no I/O."""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

URGENCY_WINDOW = timedelta(days=3)


class TaskPriority(Enum):
    """Task priority, lowest to highest."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class EisenhowerQuadrant(Enum):
    """
    Eisenhower quadrant.

    URGENT_IMPORTANT: Do First
    NOT_URGENT_IMPORTANT: Schedule
    URGENT_NOT_IMPORTANT: Delegate
    NOT_URGENT_NOT_IMPORTANT: Eliminate
    """

    URGENT_IMPORTANT = "URGENT_IMPORTANT"
    NOT_URGENT_IMPORTANT = "NOT_URGENT_IMPORTANT"
    URGENT_NOT_IMPORTANT = "URGENT_NOT_IMPORTANT"
    NOT_URGENT_NOT_IMPORTANT = "NOT_URGENT_NOT_IMPORTANT"

    @property
    def info(self) -> "QuadrantInfo":
        return QUADRANT_INFO[self]

    @classmethod
    def parse(cls, raw: str) -> "EisenhowerQuadrant":
        """Parse a quadrant from its name or a 1-4 shorthand (Q1..Q4)."""
        key = raw.strip().upper().replace("-", "_")
        shorthand = {"1": 0, "Q1": 0, "2": 1, "Q2": 1, "3": 2, "Q3": 2, "4": 3, "Q4": 3}
        if key in shorthand:
            return QUADRANT_ORDER[shorthand[key]]
        return cls(key)


@dataclass(frozen=True)
class QuadrantInfo:
    """Display metadata for a quadrant."""

    title: str
    subtitle: str


QUADRANT_INFO = {
    EisenhowerQuadrant.URGENT_IMPORTANT: QuadrantInfo("Do First", "Urgent & Important"),
    EisenhowerQuadrant.NOT_URGENT_IMPORTANT: QuadrantInfo("Schedule", "Important, Not Urgent"),
    EisenhowerQuadrant.URGENT_NOT_IMPORTANT: QuadrantInfo("Delegate", "Urgent, Not Important"),
    EisenhowerQuadrant.NOT_URGENT_NOT_IMPORTANT: QuadrantInfo(
        "Eliminate", "Neither Urgent nor Important"
    ),
}

# Matrix order, most pressing first
QUADRANT_ORDER = [
    EisenhowerQuadrant.URGENT_IMPORTANT,
    EisenhowerQuadrant.NOT_URGENT_IMPORTANT,
    EisenhowerQuadrant.URGENT_NOT_IMPORTANT,
    EisenhowerQuadrant.NOT_URGENT_NOT_IMPORTANT,
]


def is_important(priority: TaskPriority) -> bool:
    """HIGH and URGENT priorities are important."""
    return priority in (TaskPriority.HIGH, TaskPriority.URGENT)


def is_urgent(due_date: datetime | None, now: datetime | None = None) -> bool:
    """Due within the urgency window (or overdue) = urgent. No due date is never urgent."""
    if due_date is None:
        return False
    now = now or datetime.now()
    return due_date <= now + URGENCY_WINDOW


def classify(
    priority: TaskPriority,
    due_date: datetime | None,
    now: datetime | None = None,
) -> EisenhowerQuadrant:
    """
    Suggest an Eisenhower quadrant from priority and due date.

    Pure function - no I/O. The result is advisory: callers decide whether it
    replaces a quadrant the user picked by hand.
    """
    important = is_important(priority)
    urgent = is_urgent(due_date, now)

    if urgent and important:
        return EisenhowerQuadrant.URGENT_IMPORTANT
    elif not urgent and important:
        return EisenhowerQuadrant.NOT_URGENT_IMPORTANT
    elif urgent and not important:
        return EisenhowerQuadrant.URGENT_NOT_IMPORTANT
    else:
        return EisenhowerQuadrant.NOT_URGENT_NOT_IMPORTANT


_REASONS = {
    EisenhowerQuadrant.URGENT_IMPORTANT: "High priority with urgent deadline - Do First!",
    EisenhowerQuadrant.NOT_URGENT_IMPORTANT: "High priority but not urgent - Schedule it",
    EisenhowerQuadrant.URGENT_NOT_IMPORTANT: "Urgent but low priority - Delegate if possible",
    EisenhowerQuadrant.NOT_URGENT_NOT_IMPORTANT: "Not urgent and low priority - Do later or eliminate",
}


def quadrant_reason(
    priority: TaskPriority,
    due_date: datetime | None,
    now: datetime | None = None,
) -> str:
    """Human-readable explanation of the suggested quadrant."""
    return _REASONS[classify(priority, due_date, now)]


def days_until_deadline(due_date: datetime | None, now: datetime | None = None) -> int | None:
    """Whole days until the deadline, rounded up (negative if overdue, 0 if due today)."""
    if due_date is None:
        return None
    now = now or datetime.now()
    return math.ceil((due_date - now).total_seconds() / 86400)


def deadline_urgency_text(due_date: datetime | None, now: datetime | None = None) -> str:
    """Short description of how close the deadline is."""
    days = days_until_deadline(due_date, now)

    if days is None:
        return "No deadline set"
    elif days < 0:
        return f"Overdue by {abs(days)} day(s)"
    elif days == 0:
        return "Due today!"
    elif days == 1:
        return "Due tomorrow"
    elif days <= URGENCY_WINDOW.days:
        return f"Due in {days} days (Urgent)"
    else:
        return f"Due in {days} days"
