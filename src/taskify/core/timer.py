"""Pomodoro timer state machine - no clock, no sleeping, no I/O.

The timer is driven from outside: a presentation layer calls `tick()` once per
elapsed second and forwards user intents (pause, resume, stop). Observers are
notified synchronously when a session or the whole schedule finishes.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .errors import InvalidInput, InvalidTransition
from .pomodoro import PomodoroSchedule, Session, SessionType

logger = logging.getLogger(__name__)


class TimerStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass(frozen=True)
class TimerState:
    """Read-only snapshot of the timer."""

    status: TimerStatus
    current_session_index: int
    remaining_seconds: int
    current_session_type: SessionType | None = None


@dataclass(frozen=True)
class SessionCompleted:
    """A session's countdown reached zero."""

    session: Session
    index: int

    @property
    def was_work(self) -> bool:
        return self.session.type is SessionType.WORK


@dataclass(frozen=True)
class ScheduleCompleted:
    """Every session of the schedule has finished."""

    schedule: PomodoroSchedule


TimerEvent = SessionCompleted | ScheduleCompleted
TimerListener = Callable[[TimerEvent], None]


class PomodoroTimer:
    """
    Countdown over a PomodoroSchedule.

    idle -> running <-> paused -> completed; stop/cancel return to idle from
    anywhere. With `auto_advance` the next session starts running right away;
    otherwise the timer waits paused until the caller resumes it.
    """

    def __init__(self, auto_advance: bool = False, listeners: list[TimerListener] | None = None):
        self.auto_advance = auto_advance
        self._listeners: list[TimerListener] = list(listeners or [])
        self._schedule: PomodoroSchedule | None = None
        self._status = TimerStatus.IDLE
        self._index = 0
        self._remaining = 0

    # ---- queries ----

    @property
    def status(self) -> TimerStatus:
        return self._status

    @property
    def schedule(self) -> PomodoroSchedule | None:
        return self._schedule

    @property
    def current_session(self) -> Session | None:
        if self._schedule is None:
            return None
        return self._schedule.sessions[self._index]

    @property
    def state(self) -> TimerState:
        session = self.current_session
        return TimerState(
            status=self._status,
            current_session_index=self._index,
            remaining_seconds=self._remaining,
            current_session_type=session.type if session else None,
        )

    def subscribe(self, listener: TimerListener) -> None:
        self._listeners.append(listener)

    # ---- transitions ----

    def start(self, schedule: PomodoroSchedule) -> TimerState:
        """Begin the first session of a fresh schedule."""
        if self._status not in (TimerStatus.IDLE, TimerStatus.COMPLETED):
            raise InvalidTransition("start", self._status.value)
        if not schedule.sessions:
            raise InvalidInput("Schedule has no sessions")

        self._schedule = schedule
        self._index = 0
        self._remaining = schedule.sessions[0].duration_seconds
        self._status = TimerStatus.RUNNING
        logger.debug(f"Timer started: {len(schedule)} sessions, {schedule.total_duration_minutes} min")
        return self.state

    def tick(self) -> TimerState:
        """Advance the countdown by one second."""
        if self._status is not TimerStatus.RUNNING:
            raise InvalidTransition("tick", self._status.value)

        self._remaining -= 1
        if self._remaining <= 0:
            self._remaining = 0
            self._session_complete()
        return self.state

    def pause(self) -> TimerState:
        if self._status is not TimerStatus.RUNNING:
            raise InvalidTransition("pause", self._status.value)
        self._status = TimerStatus.PAUSED
        return self.state

    def resume(self) -> TimerState:
        if self._status is not TimerStatus.PAUSED:
            raise InvalidTransition("resume", self._status.value)
        self._status = TimerStatus.RUNNING
        return self.state

    def advance(self) -> TimerState:
        """Move to the next session, or complete the schedule after the last one."""
        if self._status not in (TimerStatus.RUNNING, TimerStatus.PAUSED):
            raise InvalidTransition("advance", self._status.value)

        next_index = self._index + 1
        if next_index >= len(self._schedule.sessions):
            schedule = self._schedule
            self._reset()
            self._status = TimerStatus.COMPLETED
            logger.debug("Timer completed all sessions")
            self._emit(ScheduleCompleted(schedule))
            return self.state

        self._index = next_index
        self._remaining = self._schedule.sessions[next_index].duration_seconds
        self._status = TimerStatus.RUNNING if self.auto_advance else TimerStatus.PAUSED
        return self.state

    def stop(self) -> TimerState:
        """Discard the schedule and return to idle. Always succeeds."""
        if self._status is not TimerStatus.IDLE:
            logger.debug(f"Timer stopped while {self._status.value}")
        self._reset()
        self._status = TimerStatus.IDLE
        return self.state

    def cancel(self) -> TimerState:
        return self.stop()

    # ---- internals ----

    def _session_complete(self) -> None:
        finished = SessionCompleted(self._schedule.sessions[self._index], self._index)
        self._emit(finished)
        # A listener may have stopped the timer
        if self._status is TimerStatus.RUNNING:
            self.advance()

    def _reset(self) -> None:
        self._schedule = None
        self._index = 0
        self._remaining = 0

    def _emit(self, event: TimerEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
