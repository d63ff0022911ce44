"""Taskify CLI - tasks, Eisenhower matrix and Pomodoro timer."""

import json
import logging
import sys
from datetime import datetime

import click

from .adapters.local_identity import AuthenticationError, LocalIdentity
from .config import load_config, validate_config
from .core.errors import InvalidInput, InvalidTransition, TaskNotFoundError
from .core.pomodoro import build_schedule, session_type_name
from .core.quadrants import (
    QUADRANT_ORDER,
    EisenhowerQuadrant,
    TaskPriority,
    classify,
    deadline_urgency_text,
    quadrant_reason,
)
from .core.tasks import Task, TaskStatus, filter_overdue, parse_due_date
from .core.timer import PomodoroTimer, TimerStatus
from .pomodoro_runner import PomodoroRunner
from .sync import get_calendar_sync
from .workflows import (
    create_task,
    delete_task,
    get_matrix,
    get_store,
    list_tasks,
    move_task_to_quadrant,
    set_status,
    start_task_pomodoro,
    update_task,
)

PRIORITY_CHOICE = click.Choice([p.value for p in TaskPriority], case_sensitive=False)
STATUS_CHOICE = click.Choice([s.value for s in TaskStatus], case_sensitive=False)


def _parse_due(value: str | None) -> datetime | None:
    """Accept YYYY-MM-DD (end of that day) or an ISO datetime."""
    if value is None:
        return None
    try:
        return parse_due_date(value)
    except InvalidInput as e:
        raise click.BadParameter(str(e))


def _parse_quadrant(value: str | None) -> EisenhowerQuadrant | None:
    if value is None:
        return None
    try:
        return EisenhowerQuadrant.parse(value)
    except ValueError:
        raise click.BadParameter(f"Unknown quadrant: {value} (use Q1-Q4 or a quadrant name)")


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _user_id() -> str:
    try:
        return LocalIdentity().current_user_id()
    except AuthenticationError as e:
        _fail(str(e))


def _task_json(t: Task) -> dict:
    return {
        "id": t.id,
        "title": t.title,
        "description": t.description,
        "priority": t.priority.value,
        "status": t.status.value,
        "quadrant": t.quadrant.value,
        "quadrant_overridden": t.quadrant_overridden,
        "due_date": t.due_date.isoformat() if t.due_date else None,
    }


def _task_line(t: Task) -> str:
    due = f" ({deadline_urgency_text(t.due_date)})" if t.due_date else ""
    status = "" if t.status is TaskStatus.TODO else f" [{t.status.value.lower()}]"
    return f"{t.id:9} {t.priority.value:7} {t.title}{due}{status}"


@click.group()
@click.version_option(package_name="taskify")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Taskify - tasks, Eisenhower matrix and Pomodoro timer."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


# ============== Identity ==============


@main.command()
@click.argument("username")
def login(username: str):
    """Sign in as USERNAME on this machine."""
    try:
        user_id = LocalIdentity().login(username)
    except ValueError as e:
        _fail(str(e))
    click.echo(f"Signed in as {username} ({user_id})")


@main.command()
def logout():
    """Sign out."""
    LocalIdentity().logout()
    click.echo("Signed out.")


@main.command()
def whoami():
    """Show the signed-in user."""
    identity = LocalIdentity()
    if not identity.is_authenticated():
        click.echo("Not signed in.")
        return
    click.echo(f"{identity.session.username} ({identity.session.user_id})")


# ============== Tasks ==============


@main.command()
@click.argument("title")
@click.option("--description", "-m", default="", help="Task description")
@click.option("--priority", "-p", type=PRIORITY_CHOICE, default="MEDIUM", show_default=True)
@click.option("--due", "-d", default=None, help="Due date (YYYY-MM-DD or YYYY-MM-DDTHH:MM)")
@click.option("--quadrant", "-q", default=None, help="Override the suggested quadrant (Q1-Q4)")
def add(title: str, description: str, priority: str, due: str | None, quadrant: str | None):
    """Create a task."""
    config = load_config()
    user_id = _user_id()
    try:
        task = create_task(
            get_store(config),
            user_id,
            title,
            description=description,
            priority=TaskPriority(priority.upper()),
            due_date=_parse_due(due),
            quadrant=_parse_quadrant(quadrant),
            sync=get_calendar_sync(config),
        )
    except InvalidInput as e:
        _fail(str(e))

    click.echo(f"Created {task.id}: {task.title}")
    click.echo(f"Quadrant: {task.quadrant.info.title} ({task.quadrant.info.subtitle})")
    if not task.quadrant_overridden:
        click.echo(f"  {quadrant_reason(task.priority, task.due_date)}")


@main.command("list")
@click.option("--quadrant", "-q", default=None, help="Only this quadrant (Q1-Q4)")
@click.option("--all", "include_done", is_flag=True, help="Include completed and cancelled tasks")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_cmd(quadrant: str | None, include_done: bool, as_json: bool):
    """List tasks, most pressing first."""
    config = load_config()
    tasks = list_tasks(
        get_store(config), _user_id(), quadrant=_parse_quadrant(quadrant), include_done=include_done
    )

    if as_json:
        click.echo(json.dumps([_task_json(t) for t in tasks], indent=2))
        return

    if not tasks:
        click.echo("No tasks.")
        return

    for task in tasks:
        click.echo(f"[{task.quadrant.info.title:9}] {_task_line(task)}")


@main.command()
@click.argument("query")
@click.option("--all", "include_done", is_flag=True, help="Include completed and cancelled tasks")
def search(query: str, include_done: bool):
    """Search task titles and descriptions."""
    config = load_config()
    tasks = list_tasks(get_store(config), _user_id(), include_done=include_done, query=query)
    if not tasks:
        click.echo(f"No tasks matching '{query}'.")
        return
    for task in tasks:
        click.echo(_task_line(task))


@main.command()
@click.argument("task_id")
def show(task_id: str):
    """Show one task."""
    config = load_config()
    task = get_store(config).get(task_id, _user_id())
    if task is None:
        _fail(f"Task not found: {task_id}")

    info = task.quadrant.info
    click.echo(f"{task.id}: {task.title}")
    if task.description:
        click.echo(f"  {task.description}")
    click.echo(f"Priority: {task.priority.value}")
    click.echo(f"Status:   {task.status.value}")
    click.echo(f"Due:      {task.due_date.strftime('%Y-%m-%d %H:%M') if task.due_date else '-'}"
               f" ({deadline_urgency_text(task.due_date)})")
    click.echo(f"Quadrant: {info.title} ({info.subtitle})" + (" [manual]" if task.quadrant_overridden else ""))

    suggested = task.suggested_quadrant()
    if suggested != task.quadrant:
        click.echo(f"Suggested: {suggested.info.title} - {quadrant_reason(task.priority, task.due_date)}")


@main.command()
@click.argument("task_id")
@click.option("--title", default=None)
@click.option("--description", "-m", default=None)
@click.option("--priority", "-p", type=PRIORITY_CHOICE, default=None)
@click.option("--due", "-d", default=None, help="New due date (YYYY-MM-DD or YYYY-MM-DDTHH:MM)")
@click.option("--clear-due", is_flag=True, help="Remove the due date")
@click.option("--status", "-s", type=STATUS_CHOICE, default=None)
def edit(
    task_id: str,
    title: str | None,
    description: str | None,
    priority: str | None,
    due: str | None,
    clear_due: bool,
    status: str | None,
):
    """Edit a task."""
    config = load_config()
    kwargs = {}
    if clear_due:
        kwargs["due_date"] = None
    elif due is not None:
        kwargs["due_date"] = _parse_due(due)

    try:
        task = update_task(
            get_store(config),
            _user_id(),
            task_id,
            title=title,
            description=description,
            priority=TaskPriority(priority.upper()) if priority else None,
            status=TaskStatus(status.upper()) if status else None,
            policy=config.quadrant_policy,
            sync=get_calendar_sync(config),
            **kwargs,
        )
    except (TaskNotFoundError, InvalidInput) as e:
        _fail(str(e))

    click.echo(f"Updated {task.id}. Quadrant: {task.quadrant.info.title}")


@main.command()
@click.argument("task_id")
def done(task_id: str):
    """Mark a task completed."""
    config = load_config()
    try:
        set_status(get_store(config), _user_id(), task_id, TaskStatus.COMPLETED, sync=get_calendar_sync(config))
    except TaskNotFoundError as e:
        _fail(str(e))
    click.echo(f"✓ {task_id} completed")


@main.command()
@click.argument("task_id")
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation")
def rm(task_id: str, yes: bool):
    """Delete a task."""
    config = load_config()
    if not yes and not click.confirm(f"Delete {task_id}?"):
        return
    try:
        delete_task(get_store(config), _user_id(), task_id, sync=get_calendar_sync(config))
    except TaskNotFoundError as e:
        _fail(str(e))
    click.echo(f"Deleted {task_id}")


@main.command()
@click.argument("task_id")
@click.argument("quadrant")
def move(task_id: str, quadrant: str):
    """Move a task to QUADRANT (Q1-Q4) by hand."""
    config = load_config()
    try:
        task = move_task_to_quadrant(
            get_store(config), _user_id(), task_id, _parse_quadrant(quadrant), sync=get_calendar_sync(config)
        )
    except TaskNotFoundError as e:
        _fail(str(e))
    click.echo(f"Moved {task.id} to {task.quadrant.info.title}")


@main.command()
@click.option("--all", "include_done", is_flag=True, help="Include completed and cancelled tasks")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def matrix(include_done: bool, as_json: bool):
    """Show the Eisenhower matrix."""
    config = load_config()
    grouped = get_matrix(get_store(config), _user_id(), include_done=include_done)

    if as_json:
        click.echo(
            json.dumps({q.value: [_task_json(t) for t in grouped[q]] for q in QUADRANT_ORDER}, indent=2)
        )
        return

    for i, quadrant in enumerate(QUADRANT_ORDER):
        if i:
            click.echo()
        info = quadrant.info
        click.echo(f"### Q{i + 1} {info.title} - {info.subtitle}")
        tasks = grouped[quadrant]
        if not tasks:
            click.echo("  No tasks in this quadrant")
        for task in tasks:
            click.echo(f"  {_task_line(task)}")

    overdue = filter_overdue([t for tasks in grouped.values() for t in tasks])
    if overdue:
        click.echo(f"\n⚠ {len(overdue)} overdue: {', '.join(t.id for t in overdue)}")


@main.command("classify")
@click.option("--priority", "-p", type=PRIORITY_CHOICE, required=True)
@click.option("--due", "-d", default=None, help="Due date (YYYY-MM-DD or YYYY-MM-DDTHH:MM)")
def classify_cmd(priority: str, due: str | None):
    """Suggest a quadrant for a priority and due date."""
    prio = TaskPriority(priority.upper())
    due_date = _parse_due(due)
    quadrant = classify(prio, due_date)
    click.echo(f"{quadrant.info.title} ({quadrant.value})")
    click.echo(f"  {quadrant_reason(prio, due_date)}")
    click.echo(f"  {deadline_urgency_text(due_date)}")


# ============== Pomodoro ==============


@main.command()
@click.argument("minutes", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def schedule(minutes: int, as_json: bool):
    """Preview the Pomodoro schedule for MINUTES of work."""
    config = load_config()
    try:
        plan = build_schedule(minutes, config.pomodoro())
    except InvalidInput as e:
        _fail(str(e))

    if as_json:
        click.echo(
            json.dumps(
                {
                    "sessions": [
                        {"session_number": s.session_number, "type": s.type.value, "duration": s.duration_minutes}
                        for s in plan.sessions
                    ],
                    "total_duration": plan.total_duration_minutes,
                    "estimated_completion_time": plan.estimated_completion_time.isoformat(),
                },
                indent=2,
            )
        )
        return

    for s in plan.sessions:
        click.echo(f"  #{s.session_number} {session_type_name(s.type):12} {s.duration_minutes:3} min")
    click.echo(
        f"{plan.work_session_count} focus sessions, {plan.total_duration_minutes} min total, "
        f"done around {plan.estimated_completion_time.strftime('%H:%M')}"
    )


@main.command()
@click.argument("task_id")
@click.option("--minutes", "-n", type=int, required=True, help="Estimated minutes of work")
@click.option("--auto/--no-auto", "auto_advance", default=None,
              help="Start the next session without asking (default from config)")
def pomodoro(task_id: str, minutes: int, auto_advance: bool | None):
    """Run a Pomodoro timer for a task."""
    config = load_config()
    store = get_store(config)
    user_id = _user_id()
    sync = get_calendar_sync(config)

    try:
        plan = start_task_pomodoro(store, user_id, task_id, minutes, config, sync=sync)
    except (TaskNotFoundError, InvalidInput) as e:
        _fail(str(e))

    click.echo(f"Pomodoro for {plan.task.title}: {plan.schedule.work_session_count} focus sessions, "
               f"{plan.schedule.total_duration_minutes} min. Ctrl+C to pause.")

    if auto_advance is None:
        auto_advance = config.pomodoro_auto_advance
    runner = PomodoroRunner(PomodoroTimer(auto_advance=auto_advance))
    try:
        final = runner.run(plan.schedule)
    except InvalidTransition as e:
        _fail(str(e))

    if final is TimerStatus.COMPLETED and click.confirm(f"Mark {task_id} as completed?", default=False):
        set_status(store, user_id, task_id, TaskStatus.COMPLETED, sync=sync)
        click.echo(f"✓ {task_id} completed")


# ============== Integrations ==============


@main.command("cal-auth")
def cal_auth():
    """Authenticate with Google Calendar."""
    config = load_config()

    if not config.google_client_secret_file:
        _fail("GOOGLE_CLIENT_SECRET_FILE not set in taskify.conf")

    from .adapters.google_calendar import GoogleCalendarSync

    adapter = GoogleCalendarSync(
        token_dir=config.token_dir,
        client_secret_file=config.google_client_secret_file,
        calendar_id=config.calendar_id,
        timezone=config.timezone,
    )
    if adapter.authenticate():
        click.echo(f"✓ Token saved to {adapter._token_path}")
        if not config.calendar_sync_enabled:
            click.echo("Set CALENDAR_SYNC_ENABLED=true in taskify.conf to start syncing.")
    else:
        _fail("Authentication failed")


@main.command("check-config")
def check_config():
    """Validate taskify.conf."""
    config = load_config()
    problems = validate_config(config)
    if config.calendar_sync_enabled:
        from .adapters.google_calendar import GoogleCalendarSync

        if not GoogleCalendarSync(token_dir=config.token_dir).is_signed_in():
            problems.append("Google Calendar not authorized - run 'taskify cal-auth'")
    if not problems:
        click.echo("Config OK.")
        return
    for problem in problems:
        click.echo(f"  ✗ {problem}", err=True)
    sys.exit(1)


@main.command()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def bot(debug: bool):
    """Run the Telegram bot."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )

    try:
        from .telegram_bot import run_bot
        click.echo("Starting Taskify Telegram bot...")
        click.echo("Press Ctrl+C to stop")
        run_bot()
    except ImportError as e:
        click.echo("Error: Missing dependencies. Run 'pip install python-telegram-bot apscheduler'", err=True)
        click.echo(f"Details: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nBot stopped.")


if __name__ == "__main__":
    main()
