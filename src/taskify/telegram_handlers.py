"""Telegram command handlers."""

import logging
from datetime import datetime

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import ContextTypes

from .adapters.local_identity import StaticIdentity
from .config import Config, load_config
from .core.errors import InvalidInput, InvalidTransition, TaskNotFoundError
from .core.pomodoro import session_type_name
from .core.quadrants import TaskPriority, quadrant_reason
from .core.tasks import TaskStatus, parse_due_date
from .core.timer import SessionCompleted, TimerStatus
from .telegram_format import (
    format_matrix,
    format_task_list,
    format_timer_event,
    format_timer_state,
    send_markdown,
)
from .telegram_states import PomodoroRegistry
from .workflows import create_task, get_matrix, get_store, list_tasks, plan_pomodoro, set_status

logger = logging.getLogger(__name__)

REGISTRY_KEY = "pomodoros"
SYNC_KEY = "calendar_sync"

HELP_TEXT = (
    "/tasks - List open tasks\n"
    "/matrix - Eisenhower matrix\n"
    "/add <title> [; priority] [; YYYY-MM-DD] - Create a task\n"
    "/pomodoro <task id> <minutes> - Start a Pomodoro\n"
    "/pause - Pause the timer\n"
    "/resume - Resume the timer\n"
    "/stop - Stop the timer\n"
    "/status - Timer status\n"
    "/help - Show all commands"
)


def identity_for(update: Update, config: Config) -> StaticIdentity:
    """Taskify user for a Telegram account."""
    if config.telegram_task_user:
        return StaticIdentity(config.telegram_task_user)
    return StaticIdentity(f"tg-{update.effective_user.id}")


def is_allowed(update: Update, allowed_users: list[int]) -> bool:
    """Allow-list check shared by command filters and button callbacks."""
    if not allowed_users:
        return True  # No restriction if no users configured
    user = update.effective_user
    if user is None:
        return False
    return user.id in allowed_users


def get_registry(context: ContextTypes.DEFAULT_TYPE) -> PomodoroRegistry:
    return context.bot_data.setdefault(REGISTRY_KEY, PomodoroRegistry())


def continue_keyboard(label: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [[
            InlineKeyboardButton(label, callback_data="pomo:resume"),
            InlineKeyboardButton("Stop", callback_data="pomo:stop"),
        ]]
    )


# ============== Simple Commands ==============


async def start_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start command."""
    await update.message.reply_text(
        "Hey! I'm Taskify. I keep your tasks in an Eisenhower matrix "
        "and run Pomodoro timers for them.\n\n" + HELP_TEXT
    )


async def help_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /help command."""
    await update.message.reply_text("Taskify Commands\n\n" + HELP_TEXT)


async def tasks_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /tasks command - open tasks, most pressing first."""
    config = load_config()
    user_id = identity_for(update, config).current_user_id()
    tasks = list_tasks(get_store(config), user_id)
    await send_markdown(update.message, format_task_list(tasks))


async def matrix_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /matrix command."""
    config = load_config()
    user_id = identity_for(update, config).current_user_id()
    await send_markdown(update.message, format_matrix(get_matrix(get_store(config), user_id)))


def parse_add_args(text: str) -> tuple[str, TaskPriority, datetime | None]:
    """Parse '<title> [; priority] [; YYYY-MM-DD]'."""
    parts = [p.strip() for p in text.split(";")]
    title = parts[0]
    priority = TaskPriority.MEDIUM
    due = None
    for part in parts[1:]:
        if not part:
            continue
        if part.upper() in TaskPriority.__members__:
            priority = TaskPriority[part.upper()]
            continue
        try:
            due = parse_due_date(part)
        except InvalidInput:
            raise InvalidInput(f"Not a priority or date: {part}")
    return title, priority, due


async def add_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /add command."""
    config = load_config()
    text = " ".join(context.args or [])
    if not text:
        await update.message.reply_text("Usage: /add <title> [; priority] [; YYYY-MM-DD]")
        return

    try:
        title, priority, due = parse_add_args(text)
        task = create_task(
            get_store(config),
            identity_for(update, config).current_user_id(),
            title,
            priority=priority,
            due_date=due,
            sync=context.bot_data.get(SYNC_KEY),
        )
    except InvalidInput as e:
        await update.message.reply_text(str(e))
        return

    await send_markdown(
        update.message,
        f"Created `{task.id}`: {task.title}\n"
        f"**{task.quadrant.info.title}** - {quadrant_reason(task.priority, task.due_date)}",
    )


# ============== Pomodoro ==============


async def pomodoro_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /pomodoro <task id> <minutes>."""
    config = load_config()
    args = context.args or []
    if len(args) != 2 or not args[1].isdigit():
        await update.message.reply_text("Usage: /pomodoro <task id> <minutes>")
        return

    task_id, minutes = args[0], int(args[1])
    user_id = identity_for(update, config).current_user_id()
    registry = get_registry(context)
    store = get_store(config)

    try:
        plan = plan_pomodoro(store, user_id, task_id, minutes, config)
        chat = registry.start(
            update.effective_chat.id, plan.task, plan.schedule, auto_advance=config.pomodoro_auto_advance
        )
    except TaskNotFoundError:
        await update.message.reply_text(f"Task not found: {task_id}")
        return
    except InvalidInput as e:
        await update.message.reply_text(str(e))
        return
    except InvalidTransition:
        await update.message.reply_text("A Pomodoro is already running. /stop it first.")
        return

    # Only touch the task once the timer is actually running
    if plan.task.status is TaskStatus.TODO:
        chat.task = set_status(
            store, user_id, task_id, TaskStatus.IN_PROGRESS, sync=context.bot_data.get(SYNC_KEY)
        )

    schedule = plan.schedule
    await send_markdown(
        update.message,
        f"**Pomodoro for {plan.task.title}**\n"
        f"{schedule.work_session_count} focus sessions, {schedule.total_duration_minutes} min total, "
        f"done around {schedule.estimated_completion_time.strftime('%H:%M')}.\n\n"
        + format_timer_state(chat.timer.state, len(schedule)),
    )


async def _timer_command(update: Update, context: ContextTypes.DEFAULT_TYPE, operation: str):
    chat = get_registry(context).get(update.effective_chat.id)
    if chat is None:
        await update.message.reply_text("No Pomodoro running.")
        return
    try:
        state = getattr(chat.timer, operation)()
    except InvalidTransition as e:
        await update.message.reply_text(str(e))
        return
    await send_markdown(update.message, format_timer_state(state, len(chat.timer.schedule)))


async def pause_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /pause command."""
    await _timer_command(update, context, "pause")


async def resume_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /resume command."""
    await _timer_command(update, context, "resume")


async def stop_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /stop command."""
    chat = get_registry(context).stop(update.effective_chat.id)
    if chat is None:
        await update.message.reply_text("No Pomodoro running.")
        return
    await update.message.reply_text(f"Pomodoro stopped for {chat.task.title}.")


async def status_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /status command - current countdown."""
    chat = get_registry(context).get(update.effective_chat.id)
    if chat is None:
        await update.message.reply_text("No Pomodoro running.")
        return
    await send_markdown(update.message, format_timer_state(chat.timer.state, len(chat.timer.schedule)))


async def pomodoro_button_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle the continue/stop buttons sent after a session ends."""
    query = update.callback_query
    if not is_allowed(update, load_config().telegram_allowed_users):
        logger.warning(f"Unauthorized button press from user {update.effective_user.id}")
        await query.answer("Unauthorized. This bot is private.", show_alert=True)
        return
    await query.answer()

    registry = get_registry(context)
    chat_id = update.effective_chat.id
    chat = registry.get(chat_id)
    if chat is None:
        await query.edit_message_reply_markup(reply_markup=None)
        return

    if query.data == "pomo:stop":
        registry.stop(chat_id)
        await query.edit_message_text("Pomodoro stopped.")
        return

    if chat.timer.status is TimerStatus.PAUSED:
        chat.timer.resume()
    await query.edit_message_reply_markup(reply_markup=None)
    await send_markdown(query.message, format_timer_state(chat.timer.state, len(chat.timer.schedule)))


# ============== Scheduled ==============


async def tick_pomodoros(bot, registry: PomodoroRegistry):
    """Advance every running timer by one second and send any notifications."""
    for chat, events in registry.tick_all():
        for event in events:
            markup = None
            if isinstance(event, SessionCompleted) and chat.timer.status is TimerStatus.PAUSED:
                upcoming = chat.timer.current_session
                label = f"Start {session_type_name(upcoming.type)}" if upcoming else "Continue"
                markup = continue_keyboard(label)
            try:
                await send_markdown(
                    bot, format_timer_event(event, chat.task), chat_id=chat.chat_id, reply_markup=markup
                )
            except Exception as e:
                logger.error(f"Failed to notify chat {chat.chat_id}: {e}")
