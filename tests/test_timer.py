"""Tests for the Pomodoro timer state machine."""

from datetime import datetime

import pytest

from taskify.core.errors import InvalidTransition
from taskify.core.pomodoro import PomodoroConfiguration, SessionType, build_schedule
from taskify.core.timer import PomodoroTimer, ScheduleCompleted, SessionCompleted, TimerStatus


@pytest.fixture
def config():
    # One-minute sessions keep tick counts small
    return PomodoroConfiguration(work_duration=1, break_duration=1, long_break_duration=2)


@pytest.fixture
def schedule(config):
    # work, break, work
    return build_schedule(2, config, now=datetime(2025, 1, 15, 9, 0))


@pytest.fixture
def events():
    return []


@pytest.fixture
def timer(events):
    return PomodoroTimer(listeners=[events.append])


def tick_n(timer, n):
    for _ in range(n):
        timer.tick()


class TestStart:
    def test_starts_running_first_session(self, timer, schedule):
        state = timer.start(schedule)

        assert state.status is TimerStatus.RUNNING
        assert state.current_session_index == 0
        assert state.remaining_seconds == 60
        assert state.current_session_type is SessionType.WORK

    def test_cannot_start_twice(self, timer, schedule):
        timer.start(schedule)
        with pytest.raises(InvalidTransition):
            timer.start(schedule)

    def test_can_restart_after_completion(self, config):
        timer = PomodoroTimer()
        timer.start(build_schedule(1, config))
        tick_n(timer, 60)
        assert timer.status is TimerStatus.COMPLETED

        timer.start(build_schedule(1, config))
        assert timer.status is TimerStatus.RUNNING


class TestTick:
    def test_counts_down(self, timer, schedule):
        timer.start(schedule)
        state = timer.tick()
        assert state.remaining_seconds == 59

    def test_tick_while_idle_raises(self, timer):
        with pytest.raises(InvalidTransition):
            timer.tick()

    def test_tick_while_paused_raises_and_keeps_state(self, timer, schedule):
        timer.start(schedule)
        timer.tick()
        timer.pause()

        with pytest.raises(InvalidTransition):
            timer.tick()
        assert timer.state.remaining_seconds == 59
        assert timer.status is TimerStatus.PAUSED

    def test_session_end_waits_paused_without_auto_advance(self, timer, schedule, events):
        timer.start(schedule)
        tick_n(timer, 60)

        assert events == [SessionCompleted(schedule.sessions[0], 0)]
        assert events[0].was_work
        state = timer.state
        assert state.status is TimerStatus.PAUSED
        assert state.current_session_index == 1
        assert state.current_session_type is SessionType.BREAK
        assert state.remaining_seconds == 60

    def test_auto_advance_keeps_running(self, schedule, events):
        timer = PomodoroTimer(auto_advance=True, listeners=[events.append])
        timer.start(schedule)
        tick_n(timer, 60)

        assert timer.status is TimerStatus.RUNNING
        assert timer.state.current_session_index == 1

    def test_runs_whole_schedule(self, schedule, events):
        timer = PomodoroTimer(auto_advance=True, listeners=[events.append])
        timer.start(schedule)
        tick_n(timer, 180)

        assert [type(e) for e in events] == [
            SessionCompleted,
            SessionCompleted,
            SessionCompleted,
            ScheduleCompleted,
        ]
        assert timer.status is TimerStatus.COMPLETED
        assert timer.schedule is None
        assert timer.state.remaining_seconds == 0


class TestSingleSession:
    def test_completes_with_one_schedule_event(self, config, timer, events):
        schedule = build_schedule(1, config)
        timer.start(schedule)
        tick_n(timer, 60)

        assert events == [SessionCompleted(schedule.sessions[0], 0), ScheduleCompleted(schedule)]
        assert timer.status is TimerStatus.COMPLETED

    def test_tick_after_completion_raises(self, config, timer):
        timer.start(build_schedule(1, config))
        tick_n(timer, 60)
        with pytest.raises(InvalidTransition):
            timer.tick()


class TestPauseResume:
    def test_pause_freezes_countdown(self, timer, schedule):
        timer.start(schedule)
        tick_n(timer, 5)
        timer.pause()
        state = timer.resume()

        assert state.status is TimerStatus.RUNNING
        assert state.remaining_seconds == 55

    def test_resume_while_running_raises(self, timer, schedule):
        timer.start(schedule)
        with pytest.raises(InvalidTransition) as exc:
            timer.resume()
        assert exc.value.operation == "resume"
        assert exc.value.status == "running"

    def test_pause_while_idle_raises(self, timer):
        with pytest.raises(InvalidTransition):
            timer.pause()


class TestAdvance:
    def test_advance_skips_to_next_session(self, timer, schedule):
        timer.start(schedule)
        state = timer.advance()
        assert state.current_session_index == 1
        assert state.status is TimerStatus.PAUSED

    def test_advance_past_last_completes(self, timer, schedule, events):
        timer.start(schedule)
        timer.advance()
        timer.advance()
        timer.advance()

        assert timer.status is TimerStatus.COMPLETED
        assert events == [ScheduleCompleted(schedule)]

    def test_advance_while_idle_raises(self, timer):
        with pytest.raises(InvalidTransition):
            timer.advance()


class TestStop:
    def test_stop_resets(self, timer, schedule):
        timer.start(schedule)
        tick_n(timer, 10)
        state = timer.stop()

        assert state.status is TimerStatus.IDLE
        assert state.current_session_index == 0
        assert state.remaining_seconds == 0
        assert timer.schedule is None

    def test_stop_while_idle_is_fine(self, timer):
        assert timer.stop().status is TimerStatus.IDLE

    def test_cancel_is_stop(self, timer, schedule):
        timer.start(schedule)
        timer.pause()
        assert timer.cancel().status is TimerStatus.IDLE

    def test_no_events_on_stop(self, timer, schedule, events):
        timer.start(schedule)
        timer.stop()
        assert events == []


class TestListeners:
    def test_subscribe(self, schedule, config):
        seen = []
        timer = PomodoroTimer()
        timer.subscribe(seen.append)
        timer.start(build_schedule(1, config))
        tick_n(timer, 60)
        assert len(seen) == 2

    def test_listener_can_stop_timer(self, schedule):
        timer = PomodoroTimer(auto_advance=True)
        timer.subscribe(lambda event: timer.stop())
        timer.start(schedule)
        tick_n(timer, 60)
        assert timer.status is TimerStatus.IDLE
