"""Terminal driver for the Pomodoro timer.

Feeds the timer one tick per second, prints the countdown, and turns
Ctrl+C and between-session prompts into pause/resume/stop calls.
"""

import logging
import time
from typing import Callable

import click

from .core.pomodoro import PomodoroSchedule, format_time, motivational_message, session_type_name
from .core.timer import PomodoroTimer, ScheduleCompleted, SessionCompleted, TimerEvent, TimerStatus

logger = logging.getLogger(__name__)


def describe_event(event: TimerEvent) -> str:
    """User-facing text for a timer notification."""
    if isinstance(event, ScheduleCompleted):
        return "Congratulations! You completed all Pomodoro sessions for this task!"
    if event.was_work:
        return "Focus session complete! Great work! Time for a break."
    return "Break time over! Ready to get back to work?"


class PomodoroRunner:
    """Runs a schedule to completion (or until the user stops it)."""

    def __init__(
        self,
        timer: PomodoroTimer,
        sleep: Callable[[float], None] = time.sleep,
        echo: Callable[..., None] = click.echo,
        confirm: Callable[..., bool] = click.confirm,
    ):
        self.timer = timer
        self._sleep = sleep
        self._echo = echo
        self._confirm = confirm
        self._last_event: TimerEvent | None = None
        timer.subscribe(self._on_event)

    def _on_event(self, event: TimerEvent) -> None:
        self._last_event = event
        self._echo("")
        self._echo(describe_event(event))

    def _announce_session(self) -> None:
        session = self.timer.current_session
        total = len(self.timer.schedule)
        self._echo(
            f"[{self.timer.state.current_session_index + 1}/{total}] "
            f"{session_type_name(session.type)} - {session.duration_minutes} min. "
            f"{motivational_message(session.type)}"
        )

    def _render(self) -> None:
        session = self.timer.current_session
        remaining = format_time(self.timer.state.remaining_seconds)
        self._echo(f"\r  {session_type_name(session.type):12} {remaining}", nl=False)

    def _next_session_prompt(self) -> str:
        if isinstance(self._last_event, SessionCompleted) and self._last_event.was_work:
            return "Start break?"
        return "Start working?"

    def _handle_interrupt(self) -> None:
        if self.timer.status is TimerStatus.RUNNING:
            self.timer.pause()
        self._echo("")
        if self._confirm("Stop the Pomodoro session?", default=False):
            self.timer.stop()
            self._echo("Pomodoro stopped.")
        elif self.timer.status is TimerStatus.PAUSED:
            self.timer.resume()

    def run(self, schedule: PomodoroSchedule) -> TimerStatus:
        """Drive the timer through the schedule. Returns the final status."""
        self.timer.start(schedule)
        self._announce_session()
        session_index = 0

        while self.timer.status in (TimerStatus.RUNNING, TimerStatus.PAUSED):
            try:
                if self.timer.status is TimerStatus.PAUSED:
                    # Waiting between sessions (auto-advance off)
                    if self._confirm(self._next_session_prompt(), default=True):
                        self.timer.resume()
                    else:
                        self.timer.stop()
                        self._echo("Pomodoro stopped.")
                    continue

                if self.timer.state.current_session_index != session_index:
                    session_index = self.timer.state.current_session_index
                    self._announce_session()

                self._render()
                self._sleep(1)
                self.timer.tick()
            except KeyboardInterrupt:
                self._handle_interrupt()

        logger.debug(f"Pomodoro runner finished: {self.timer.status.value}")
        return self.timer.status
