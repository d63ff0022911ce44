"""Per-chat Pomodoro timers for the Telegram bot."""

import logging
from dataclasses import dataclass, field

from .core.errors import InvalidTransition
from .core.pomodoro import PomodoroSchedule
from .core.tasks import Task
from .core.timer import PomodoroTimer, TimerEvent, TimerStatus

logger = logging.getLogger(__name__)


@dataclass
class ChatPomodoro:
    """One chat's running Pomodoro and the notifications not yet sent."""

    chat_id: int
    task: Task
    timer: PomodoroTimer
    pending: list[TimerEvent] = field(default_factory=list)

    def drain(self) -> list[TimerEvent]:
        events = list(self.pending)
        self.pending.clear()
        return events


class PomodoroRegistry:
    """
    At most one timer per chat.

    The bot's scheduler job calls tick_all() once per second; handlers call
    start/get/stop in between. Everything runs on the bot's event loop, so
    calls never overlap.
    """

    def __init__(self):
        self._chats: dict[int, ChatPomodoro] = {}

    def get(self, chat_id: int) -> ChatPomodoro | None:
        return self._chats.get(chat_id)

    def start(
        self,
        chat_id: int,
        task: Task,
        schedule: PomodoroSchedule,
        auto_advance: bool = False,
    ) -> ChatPomodoro:
        """Start a timer for a chat. Raises InvalidTransition if one is already active."""
        existing = self._chats.get(chat_id)
        if existing and existing.timer.status in (TimerStatus.RUNNING, TimerStatus.PAUSED):
            raise InvalidTransition("start", existing.timer.status.value)

        timer = PomodoroTimer(auto_advance=auto_advance)
        chat = ChatPomodoro(chat_id=chat_id, task=task, timer=timer)
        timer.subscribe(chat.pending.append)
        timer.start(schedule)
        self._chats[chat_id] = chat
        logger.info(f"Pomodoro started in chat {chat_id} for {task.id}")
        return chat

    def stop(self, chat_id: int) -> ChatPomodoro | None:
        chat = self._chats.pop(chat_id, None)
        if chat is not None:
            chat.timer.stop()
            logger.info(f"Pomodoro stopped in chat {chat_id}")
        return chat

    def tick_all(self) -> list[tuple[ChatPomodoro, list[TimerEvent]]]:
        """Tick every running timer. Returns chats that produced notifications."""
        notified = []
        for chat_id, chat in list(self._chats.items()):
            if chat.timer.status is TimerStatus.RUNNING:
                chat.timer.tick()
            events = chat.drain()
            if events:
                notified.append((chat, events))
            if chat.timer.status in (TimerStatus.COMPLETED, TimerStatus.IDLE):
                del self._chats[chat_id]
        return notified

    def __len__(self) -> int:
        return len(self._chats)
