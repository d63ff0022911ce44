"""Best-effort calendar sync.

Task mutations never wait on, or fail because of, the calendar. Jobs run
inline (CLI) or on an APScheduler scheduler (bot), are retried with backoff,
and any error left after the last attempt is logged and dropped.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Callable

from apscheduler.triggers.date import DateTrigger

from .config import Config
from .core.tasks import Task
from .ports import CalendarSync

logger = logging.getLogger(__name__)


class CalendarSyncDispatcher:
    """Fire-and-forget front for a CalendarSync adapter."""

    def __init__(
        self,
        calendar: CalendarSync,
        retries: int = 2,
        backoff: float = 2.0,
        scheduler=None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.calendar = calendar
        self.retries = retries
        self.backoff = backoff
        self.scheduler = scheduler
        self._sleep = sleep

    def task_saved(self, task: Task) -> None:
        """Mirror a created or updated task."""
        self._submit(f"upsert {task.id}", self.calendar.upsert_task, task)

    def task_deleted(self, task_id: str) -> None:
        self._submit(f"remove {task_id}", self.calendar.remove_task, task_id)

    def _submit(self, label: str, func: Callable, arg) -> None:
        if self.scheduler is None:
            self._run_inline(label, func, arg)
        else:
            self.scheduler.add_job(self._run_scheduled, args=[label, func, arg, 0])

    def _run_inline(self, label: str, func: Callable, arg) -> None:
        for attempt in range(self.retries + 1):
            if self._attempt(label, func, arg, attempt):
                return
            if attempt < self.retries:
                self._sleep(self._delay(attempt))

    def _run_scheduled(self, label: str, func: Callable, arg, attempt: int) -> None:
        if self._attempt(label, func, arg, attempt) or attempt >= self.retries:
            return
        run_at = datetime.now() + timedelta(seconds=self._delay(attempt))
        self.scheduler.add_job(
            self._run_scheduled,
            DateTrigger(run_date=run_at),
            args=[label, func, arg, attempt + 1],
        )

    def _attempt(self, label: str, func: Callable, arg, attempt: int) -> bool:
        try:
            func(arg)
            return True
        except Exception as e:
            if attempt >= self.retries:
                logger.warning(f"Calendar sync failed ({label}), giving up: {e}")
            else:
                logger.info(f"Calendar sync failed ({label}), attempt {attempt + 1}: {e}")
            return False

    def _delay(self, attempt: int) -> float:
        return self.backoff * (2 ** attempt)


def get_calendar_sync(config: Config, scheduler=None) -> CalendarSyncDispatcher | None:
    """Build the dispatcher from config, or None when sync is disabled."""
    if not config.calendar_sync_enabled:
        return None

    from .adapters.google_calendar import GoogleCalendarSync

    calendar = GoogleCalendarSync(
        token_dir=config.token_dir,
        client_secret_file=config.google_client_secret_file,
        calendar_id=config.calendar_id,
        timezone=config.timezone,
    )
    return CalendarSyncDispatcher(
        calendar,
        retries=config.calendar_sync_retries,
        backoff=config.calendar_sync_backoff,
        scheduler=scheduler,
    )
