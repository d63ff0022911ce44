"""Taskify Telegram Bot."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from telegram import Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    MessageHandler,
    filters,
)

from .config import load_config
from .sync import get_calendar_sync
from .telegram_handlers import (
    REGISTRY_KEY,
    SYNC_KEY,
    add_handler,
    help_handler,
    is_allowed,
    matrix_handler,
    pause_handler,
    pomodoro_button_handler,
    pomodoro_handler,
    resume_handler,
    start_handler,
    status_handler,
    stop_handler,
    tasks_handler,
    tick_pomodoros,
)
from .telegram_states import PomodoroRegistry

logger = logging.getLogger(__name__)


class AuthFilter(filters.BaseFilter):
    """Filter to only allow authorized users."""

    def __init__(self, allowed_users: list[int]):
        super().__init__()
        self.allowed_users = allowed_users

    def check_update(self, update: Update) -> bool:
        return is_allowed(update, self.allowed_users)


def create_application(config=None) -> Application:
    """Create and configure the Telegram bot application."""
    if config is None:
        config = load_config()

    if not config.telegram_bot_token:
        raise ValueError(
            "TELEGRAM_BOT_TOKEN not configured. "
            "Get a token from @BotFather on Telegram and add it to taskify.conf"
        )

    app = Application.builder().token(config.telegram_bot_token).build()
    app.bot_data[REGISTRY_KEY] = PomodoroRegistry()

    auth_filter = AuthFilter(config.telegram_allowed_users)

    commands = {
        "start": start_handler,
        "help": help_handler,
        "tasks": tasks_handler,
        "matrix": matrix_handler,
        "add": add_handler,
        "pomodoro": pomodoro_handler,
        "pause": pause_handler,
        "resume": resume_handler,
        "stop": stop_handler,
        "status": status_handler,
    }
    for name, handler in commands.items():
        app.add_handler(CommandHandler(name, handler, filters=auth_filter))

    app.add_handler(CallbackQueryHandler(pomodoro_button_handler, pattern=r"^pomo:"))

    async def unauthorized_handler(update: Update, context):
        user = update.effective_user
        logger.warning(f"Unauthorized access attempt from user {user.id} ({user.username})")
        await update.message.reply_text(
            "Unauthorized. This bot is private.\n"
            "If you're the owner, add your Telegram user ID to TELEGRAM_ALLOWED_USERS in taskify.conf"
        )

    if config.telegram_allowed_users:
        app.add_handler(MessageHandler(~auth_filter & filters.ALL, unauthorized_handler))

    return app


def setup_scheduler(app: Application, config=None) -> AsyncIOScheduler:
    """Set up the timer tick job and, when enabled, calendar sync."""
    if config is None:
        config = load_config()

    scheduler = AsyncIOScheduler(timezone=config.timezone or "UTC")

    registry = app.bot_data.setdefault(REGISTRY_KEY, PomodoroRegistry())
    scheduler.add_job(
        tick_pomodoros,
        IntervalTrigger(seconds=1),
        args=[app.bot, registry],
        id="pomodoro_tick",
        max_instances=1,
        coalesce=True,
    )

    sync = get_calendar_sync(config, scheduler=scheduler)
    if sync is not None:
        app.bot_data[SYNC_KEY] = sync
        logger.info(f"Calendar sync enabled for calendar {config.calendar_id}")

    return scheduler


def run_bot():
    """Run the Telegram bot."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    config = load_config()
    app = create_application(config)
    scheduler = setup_scheduler(app, config)

    async def post_init(application: Application) -> None:
        """Start scheduler after event loop is running."""
        scheduler.start()
        logger.info("Scheduler started")

    app.post_init = post_init

    if config.telegram_allowed_users:
        logger.info(f"Bot authorized for users: {config.telegram_allowed_users}")
    else:
        logger.warning("No TELEGRAM_ALLOWED_USERS configured - bot is open to anyone!")

    logger.info("Starting Taskify Telegram bot...")

    app.run_polling(allowed_updates=Update.ALL_TYPES)
