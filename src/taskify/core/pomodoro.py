"""Pomodoro schedule planning - pure functions, no I/O."""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from .errors import InvalidInput


class SessionType(Enum):
    """Kind of Pomodoro interval."""

    WORK = "work"
    BREAK = "break"
    LONG_BREAK = "longBreak"

    @property
    def is_break(self) -> bool:
        return self is not SessionType.WORK


def _require_positive(name: str, value) -> None:
    # bool is an int subclass; True is not a duration
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInput(f"{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class PomodoroConfiguration:
    """Durations in minutes. Standard Pomodoro: 25/5/15, long break every 4 sessions."""

    work_duration: int = 25
    break_duration: int = 5
    long_break_duration: int = 15
    sessions_before_long_break: int = 4

    def __post_init__(self):
        _require_positive("work_duration", self.work_duration)
        _require_positive("break_duration", self.break_duration)
        _require_positive("long_break_duration", self.long_break_duration)
        _require_positive("sessions_before_long_break", self.sessions_before_long_break)


@dataclass(frozen=True)
class Session:
    """One interval of a schedule, tagged with the work session it belongs to."""

    session_number: int
    type: SessionType
    duration_minutes: int

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60


@dataclass(frozen=True)
class PomodoroSchedule:
    """Immutable plan of work and break sessions for one estimate."""

    sessions: tuple[Session, ...]
    total_duration_minutes: int
    estimated_completion_time: datetime

    @property
    def work_session_count(self) -> int:
        return sum(1 for s in self.sessions if s.type is SessionType.WORK)

    def __len__(self) -> int:
        return len(self.sessions)


def build_schedule(
    estimated_minutes: int,
    config: PomodoroConfiguration | None = None,
    now: datetime | None = None,
) -> PomodoroSchedule:
    """
    Plan work/break sessions covering an estimated amount of work.

    A break follows every work session except the last one, so a schedule
    always ends on work. Every `sessions_before_long_break`-th break is long.

    Pure function - no I/O.

    Raises:
        InvalidInput: estimated_minutes is not a positive integer.
    """
    _require_positive("estimated_minutes", estimated_minutes)
    config = config or PomodoroConfiguration()

    work_count = math.ceil(estimated_minutes / config.work_duration)
    sessions = []

    for i in range(work_count):
        number = i + 1
        sessions.append(Session(number, SessionType.WORK, config.work_duration))

        if i < work_count - 1:
            if number % config.sessions_before_long_break == 0:
                sessions.append(Session(number, SessionType.LONG_BREAK, config.long_break_duration))
            else:
                sessions.append(Session(number, SessionType.BREAK, config.break_duration))

    total = sum(s.duration_minutes for s in sessions)
    now = now or datetime.now()

    return PomodoroSchedule(
        sessions=tuple(sessions),
        total_duration_minutes=total,
        estimated_completion_time=now + timedelta(minutes=total),
    )


def format_time(seconds: int) -> str:
    """Format seconds as MM:SS."""
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def session_type_name(session_type: SessionType) -> str:
    """Display name for a session type."""
    names = {
        SessionType.WORK: "Focus Time",
        SessionType.BREAK: "Short Break",
        SessionType.LONG_BREAK: "Long Break",
    }
    return names[session_type]


def motivational_message(session_type: SessionType) -> str:
    messages = {
        SessionType.WORK: "Stay focused! You can do this!",
        SessionType.BREAK: "Take a short break. Stretch and relax!",
        SessionType.LONG_BREAK: "Great work! Take a longer break. You earned it!",
    }
    return messages[session_type]
