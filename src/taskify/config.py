"""Configuration management for Taskify."""

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .core.errors import InvalidInput
from .core.pomodoro import PomodoroConfiguration

logger = logging.getLogger(__name__)

TASKIFY_HOME = Path(os.environ.get("TASKIFY_HOME", Path.home() / "taskify"))
CONFIG_FILE = TASKIFY_HOME / "config" / "taskify.conf"
SESSION_FILE = TASKIFY_HOME / "config" / ".session.json"
DATA_DIR = TASKIFY_HOME / "data"


class QuadrantPolicy(Enum):
    """What happens to a hand-picked quadrant when priority or due date changes."""

    PRESERVE = "preserve"  # keep the user's choice
    RECOMPUTE = "recompute"  # re-classify and drop the override


@dataclass
class Config:
    """Taskify configuration."""

    data_dir: str = ""
    # Pomodoro
    pomodoro_work_minutes: int = 25
    pomodoro_break_minutes: int = 5
    pomodoro_long_break_minutes: int = 15
    pomodoro_sessions_before_long_break: int = 4
    pomodoro_auto_advance: bool = False
    quadrant_policy: QuadrantPolicy = QuadrantPolicy.PRESERVE
    # Google Calendar sync
    calendar_sync_enabled: bool = False
    google_client_secret_file: str = ""
    google_token_dir: str = ""
    calendar_id: str = "primary"
    timezone: str = "UTC"
    calendar_sync_retries: int = 2
    calendar_sync_backoff: float = 2.0
    # Telegram bot settings
    telegram_bot_token: str = ""
    telegram_allowed_users: list[int] = field(default_factory=list)
    # Taskify user the bot acts as; empty = one user per Telegram account
    telegram_task_user: str = ""

    @property
    def data_path(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return DATA_DIR

    @property
    def token_dir(self) -> Path:
        if self.google_token_dir:
            return Path(self.google_token_dir).expanduser()
        return TASKIFY_HOME / "config" / "google"

    def pomodoro(self) -> PomodoroConfiguration:
        """Build the Pomodoro configuration. Raises InvalidInput on non-positive values."""
        return PomodoroConfiguration(
            work_duration=self.pomodoro_work_minutes,
            break_duration=self.pomodoro_break_minutes,
            long_break_duration=self.pomodoro_long_break_minutes,
            sessions_before_long_break=self.pomodoro_sessions_before_long_break,
        )


@dataclass
class UserSession:
    """The locally signed-in user."""

    user_id: str = ""
    username: str = ""

    def save(self) -> None:
        """Save session to file."""
        SESSION_FILE.parent.mkdir(parents=True, exist_ok=True)
        SESSION_FILE.write_text(json.dumps({"user_id": self.user_id, "username": self.username}))
        SESSION_FILE.chmod(0o600)

    @classmethod
    def load(cls) -> "UserSession":
        """Load session from file."""
        if not SESSION_FILE.exists():
            return cls()
        try:
            data = json.loads(SESSION_FILE.read_text())
            return cls(user_id=data.get("user_id", ""), username=data.get("username", ""))
        except (json.JSONDecodeError, KeyError):
            return cls()

    @staticmethod
    def clear() -> None:
        SESSION_FILE.unlink(missing_ok=True)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _parse_int(key: str, value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key.upper()}: {value!r}, using {default}")
        return default


def _unquote(value: str) -> str:
    """Strip quotes, or inline comments from unquoted values."""
    if value[:1] in ('"', "'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def parse_config(text: str) -> Config:
    """Parse KEY=value lines into a Config."""
    config = Config()

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "data_dir":
                config.data_dir = value
            case "pomodoro_work_minutes":
                config.pomodoro_work_minutes = _parse_int(key, value, config.pomodoro_work_minutes)
            case "pomodoro_break_minutes":
                config.pomodoro_break_minutes = _parse_int(key, value, config.pomodoro_break_minutes)
            case "pomodoro_long_break_minutes":
                config.pomodoro_long_break_minutes = _parse_int(
                    key, value, config.pomodoro_long_break_minutes
                )
            case "pomodoro_sessions_before_long_break":
                config.pomodoro_sessions_before_long_break = _parse_int(
                    key, value, config.pomodoro_sessions_before_long_break
                )
            case "pomodoro_auto_advance":
                config.pomodoro_auto_advance = _parse_bool(value)
            case "quadrant_policy":
                try:
                    config.quadrant_policy = QuadrantPolicy(value.lower())
                except ValueError:
                    logger.warning(f"Unknown QUADRANT_POLICY {value!r}, keeping 'preserve'")
            case "calendar_sync_enabled":
                config.calendar_sync_enabled = _parse_bool(value)
            case "google_client_secret_file":
                config.google_client_secret_file = value
            case "google_token_dir":
                config.google_token_dir = value
            case "calendar_id":
                config.calendar_id = value
            case "timezone":
                config.timezone = value
            case "calendar_sync_retries":
                config.calendar_sync_retries = max(0, _parse_int(key, value, config.calendar_sync_retries))
            case "calendar_sync_backoff":
                try:
                    config.calendar_sync_backoff = float(value)
                except ValueError:
                    logger.warning(f"Invalid number for CALENDAR_SYNC_BACKOFF: {value!r}")
            case "telegram_bot_token":
                config.telegram_bot_token = value
            case "telegram_allowed_users":
                config.telegram_allowed_users = [int(u.strip()) for u in value.split(",") if u.strip()]
            case "telegram_task_user":
                config.telegram_task_user = value

    return config


def load_config() -> Config:
    """Load configuration from taskify.conf file."""
    if not CONFIG_FILE.exists():
        return Config()
    return parse_config(CONFIG_FILE.read_text())


def validate_config(config: Config) -> list[str]:
    """Problems that would make commands fail later, as human-readable messages."""
    problems = []
    try:
        config.pomodoro()
    except InvalidInput as e:
        problems.append(f"Pomodoro settings: {e}")
    if config.calendar_sync_enabled and not config.google_client_secret_file:
        problems.append("CALENDAR_SYNC_ENABLED is set but GOOGLE_CLIENT_SECRET_FILE is empty")
    return problems
