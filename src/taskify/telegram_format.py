"""Telegram message formatting utilities."""

import telegramify_markdown

from .core.pomodoro import format_time, session_type_name
from .core.quadrants import QUADRANT_ORDER, EisenhowerQuadrant, deadline_urgency_text
from .core.tasks import Task
from .core.timer import ScheduleCompleted, TimerEvent, TimerState, TimerStatus

MAX_MESSAGE = 4000


async def send_markdown(bot_or_msg, text: str, *, chat_id: int | None = None, reply_markup=None):
    """Send markdown text to Telegram, converting to MarkdownV2.

    bot_or_msg: a Bot instance (pass chat_id) or an Update.message (calls reply_text).
    The keyboard, if any, is attached to the last chunk.
    """
    converted = telegramify_markdown.markdownify(text)
    chunks = [converted[i : i + MAX_MESSAGE] for i in range(0, len(converted), MAX_MESSAGE)]
    for n, chunk in enumerate(chunks):
        markup = reply_markup if n == len(chunks) - 1 else None
        if chat_id is not None:
            await bot_or_msg.send_message(
                chat_id=chat_id, text=chunk, parse_mode="MarkdownV2", reply_markup=markup
            )
        else:
            await bot_or_msg.reply_text(chunk, parse_mode="MarkdownV2", reply_markup=markup)


def format_task_line(task: Task) -> str:
    due = f" ({deadline_urgency_text(task.due_date)})" if task.due_date else ""
    return f"- `{task.id}` {task.title}{due}"


def format_task_list(tasks: list[Task]) -> str:
    if not tasks:
        return "No open tasks."
    lines = ["**Tasks**", ""]
    for task in tasks:
        lines.append(f"{format_task_line(task)} [{task.quadrant.info.title}]")
    return "\n".join(lines)


def format_matrix(matrix: dict[EisenhowerQuadrant, list[Task]]) -> str:
    sections = []
    for i, quadrant in enumerate(QUADRANT_ORDER):
        info = quadrant.info
        tasks = matrix.get(quadrant, [])
        body = "\n".join(format_task_line(t) for t in tasks) or "_No tasks in this quadrant_"
        sections.append(f"**Q{i + 1} {info.title}** - {info.subtitle}\n{body}")
    return "\n\n".join(sections)


def format_timer_state(state: TimerState, total_sessions: int | None = None) -> str:
    if state.status in (TimerStatus.IDLE, TimerStatus.COMPLETED) or state.current_session_type is None:
        return "No Pomodoro running."
    position = f" {state.current_session_index + 1}/{total_sessions}" if total_sessions else ""
    paused = " (paused)" if state.status is TimerStatus.PAUSED else ""
    return (
        f"**{session_type_name(state.current_session_type)}**{position}{paused}\n"
        f"`{format_time(state.remaining_seconds)}` remaining"
    )


def format_timer_event(event: TimerEvent, task: Task) -> str:
    if isinstance(event, ScheduleCompleted):
        return (
            "**Congratulations!**\n"
            f"You completed all {event.schedule.work_session_count} Pomodoro sessions for _{task.title}_!"
        )
    if event.was_work:
        return f"**Focus session {event.session.session_number} complete!**\nGreat work! Time for a break."
    return "**Break time over!**\nReady to get back to work?"
