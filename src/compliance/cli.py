"""Compliance tracker CLI."""

import json
import logging
import sys
from datetime import date, datetime, timezone

import click

from .adapters.supabase import RepositoryError
from .config import Config, ConfigError, load_config
from .core.calendar import SyncAction
from .core.reminders import ClientRecipient
from .core.tasks import (
    ComplianceTask,
    Recurrence,
    category_id,
    filter_by_category,
    format_deadline,
    sort_by_urgency,
    summarize,
)
from .core.validation import TaskInput, ValidationError
from .ports.task_repo import TaskFilter
from .ratelimit import RateLimitExceeded
from .workflows import (
    Services,
    TriggerRequest,
    add_task,
    build_services,
    build_triggers,
    complete,
    find_task,
    reopen,
    seed_default_tasks,
    sync_calendar,
)

CLI_CALLER = "cli"


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _services(config: Config) -> Services:
    try:
        return build_services(config)
    except ConfigError as e:
        _fail(str(e))


def _scope(config: Config) -> TaskFilter:
    """Tenant scope from config: the configured organization and/or user."""
    return TaskFilter(
        organization_ids=[config.organization_id] if config.organization_id else [],
        user_id=config.user_id or None,
    )


def _lookup(services: Services, config: Config, task_id: str) -> ComplianceTask:
    task = find_task(services.tasks, _scope(config), task_id)
    if task is None:
        _fail(f"No task matching '{task_id}'")
    return task


def _task_json(t: ComplianceTask, today: date) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "category": category_id(t.category),
        "deadline": t.deadline.isoformat(),
        "recurrence": t.recurrence.value,
        "completed": t.completed,
        "completed_at": t.completed_at.isoformat() if t.completed_at else None,
        "urgency": t.urgency(today).value,
        "message": t.urgency_message(today),
        "client_name": t.client_name,
    }


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Compliance tracker - statutory deadlines and reminders."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if debug else logging.WARNING,
    )


@main.command()
@click.option("--category", "-c", default=None, help="Only this category (or 'all')")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tasks(category: str | None, as_json: bool):
    """List tasks by urgency."""
    config = load_config()
    services = _services(config)
    today = config.today()

    try:
        all_tasks = services.tasks.read(_scope(config))
    except RepositoryError as e:
        _fail(str(e))

    shown = sort_by_urgency(filter_by_category(all_tasks, category))

    if as_json:
        click.echo(json.dumps([_task_json(t, today) for t in shown], indent=2))
        return

    if not shown:
        click.echo("No tasks.")
        return

    for t in shown:
        mark = "x" if t.completed else " "
        level = t.urgency(today).value
        click.echo(f"[{mark}] {t.id[:8]}  {format_deadline(t.deadline)}  {level:8}  {t.name}  ({t.urgency_message(today)})")


@main.command()
def summary():
    """Show pending, urgent, due-soon and completed counts."""
    config = load_config()
    services = _services(config)

    try:
        all_tasks = services.tasks.read(_scope(config))
    except RepositoryError as e:
        _fail(str(e))

    s = summarize(all_tasks, config.today())
    click.echo(f"Pending:   {s.total}")
    click.echo(f"Urgent:    {s.urgent}")
    click.echo(f"Due soon:  {s.due_soon}")
    click.echo(f"Completed: {s.completed}")


@main.command()
@click.argument("name")
@click.option("--category", "-c", required=True, help="gst, income-tax, insurance, transport or a custom name")
@click.option("--deadline", "-d", required=True, help="YYYY-MM-DD")
@click.option(
    "--recurrence",
    "-r",
    type=click.Choice([r.value for r in Recurrence]),
    default=Recurrence.ONE_TIME.value,
)
@click.option("--description", default=None)
@click.option("--client-name", default=None)
@click.option("--client-phone", default=None)
@click.option("--client-email", default=None)
def add(name, category, deadline, recurrence, description, client_name, client_phone, client_email):
    """Add a task."""
    config = load_config()
    services = _services(config)

    try:
        deadline_date = date.fromisoformat(deadline)
    except ValueError:
        _fail(f"Invalid deadline '{deadline}', expected YYYY-MM-DD")

    data = TaskInput(
        name=name,
        category=category,
        deadline=deadline_date,
        recurrence=recurrence,
        description=description,
        client_name=client_name,
        client_phone=client_phone,
        client_email=client_email,
    )
    try:
        task = add_task(
            services.tasks,
            data,
            user_id=config.user_id or None,
            organization_id=config.organization_id or None,
            calendar=services.calendar,
        )
    except ValidationError as e:
        for message in e.messages:
            click.echo(f"  - {message}", err=True)
        sys.exit(1)
    except RepositoryError as e:
        _fail(str(e))

    click.echo(f"Added {task.id}: {task.name} (due {format_deadline(task.deadline)})")


@main.command("complete")
@click.argument("task_id")
def complete_cmd(task_id: str):
    """Mark a task completed (recurring tasks roll over)."""
    config = load_config()
    services = _services(config)

    try:
        task = _lookup(services, config, task_id)
        result = complete(services.tasks, task, datetime.now(timezone.utc), services.calendar)
    except RepositoryError as e:
        _fail(str(e))

    if result.already_completed:
        click.echo(f"{task.name} is already completed.")
        return

    click.echo(f"✓ Completed {task.name}")
    if result.successor:
        click.echo(f"  Next occurrence due {format_deadline(result.successor.deadline)} ({result.successor.id})")
    if result.rollover_error:
        click.echo(f"  Could not create next occurrence: {result.rollover_error}", err=True)


@main.command("reopen")
@click.argument("task_id")
def reopen_cmd(task_id: str):
    """Mark a completed task pending again."""
    config = load_config()
    services = _services(config)

    try:
        task = _lookup(services, config, task_id)
        reopen(services.tasks, task, services.calendar)
    except RepositoryError as e:
        _fail(str(e))

    click.echo(f"Reopened {task.name}")


@main.command()
def seed():
    """Add the starter set of statutory tasks."""
    config = load_config()
    services = _services(config)

    try:
        created = seed_default_tasks(
            services.tasks,
            config.today(),
            user_id=config.user_id or None,
            organization_id=config.organization_id or None,
        )
    except RepositoryError as e:
        _fail(str(e))

    for t in created:
        click.echo(f"  + {t.name} (due {format_deadline(t.deadline)})")


@main.command()
@click.option("--user", "target_user", default=None, help="Only this user's tasks")
@click.option("--automated", is_flag=True, help="Scan organizations scheduled for the current UTC minute")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def remind(target_user: str | None, automated: bool, as_json: bool):
    """Email reminders for tasks due within 5 days."""
    config = load_config()
    services = _services(config)
    trigger, _ = build_triggers(config, services)

    request = TriggerRequest(
        target_user_id=target_user,
        organization_id=config.organization_id or None,
        automated=automated,
    )
    try:
        result = trigger.run(request, CLI_CALLER)
    except (RateLimitExceeded, RepositoryError, ValueError) as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.message:
        click.echo(result.message)
    click.echo(f"Sent: {result.sent}  Failed: {result.failed}  Skipped: {result.skipped}")
    for error in result.errors:
        click.echo(f"  ✗ {error}", err=True)


def _parse_recipient(raw: str) -> ClientRecipient:
    """Parse EMAIL:NAME[:TASK1|TASK2]."""
    parts = raw.split(":", 2)
    if len(parts) < 2:
        raise click.BadParameter(f"'{raw}' must be EMAIL:NAME[:TASK1|TASK2]")
    tasks = [t.strip() for t in parts[2].split("|") if t.strip()] if len(parts) == 3 else []
    return ClientRecipient(email=parts[0].strip(), name=parts[1].strip(), tasks=tasks)


@main.command("remind-clients")
@click.option("--to", "recipients", multiple=True, required=True, help="EMAIL:NAME[:TASK1|TASK2], repeatable")
@click.option("--subject", "-s", required=True)
@click.option("--body", "-b", required=True)
def remind_clients(recipients: tuple[str, ...], subject: str, body: str):
    """Send a custom reminder to clients."""
    config = load_config()
    services = _services(config)
    _, trigger = build_triggers(config, services)

    parsed = [_parse_recipient(r) for r in recipients]
    try:
        result = trigger.run(parsed, subject, body, CLI_CALLER)
    except ValidationError as e:
        for message in e.messages:
            click.echo(f"  - {message}", err=True)
        sys.exit(1)
    except RateLimitExceeded as e:
        _fail(str(e))

    click.echo(f"Sent: {result.sent}  Failed: {result.failed}")
    for error in result.errors:
        click.echo(f"  ✗ {error}", err=True)


@main.command("cal-auth")
def cal_auth():
    """Authenticate with Google Calendar."""
    config = load_config()

    if not config.google_client_secret_file:
        _fail("GOOGLE_CLIENT_SECRET_FILE not set in compliance.conf")

    from .adapters.google_calendar import GoogleCalendarSync

    adapter = GoogleCalendarSync(
        token_folder=config.google_token_folder,
        client_secret_file=config.google_client_secret_file,
    )
    if adapter.authenticate():
        click.echo(f"✓ Token saved to {adapter._token_path}")
    else:
        _fail("Authentication failed")


@main.command("cal-sync")
@click.argument("task_id")
@click.option(
    "--action",
    "-a",
    type=click.Choice([a.value for a in SyncAction]),
    default=SyncAction.UPDATE.value,
)
def cal_sync(task_id: str, action: str):
    """Push one task to Google Calendar."""
    config = load_config()
    services = _services(config)
    if not config.calendar_sync_enabled or services.calendar is None:
        _fail("Calendar sync is disabled (CALENDAR_SYNC_ENABLED)")

    try:
        task = _lookup(services, config, task_id)
        updated = sync_calendar(services.tasks, services.calendar, task, SyncAction(action))
    except RepositoryError as e:
        _fail(str(e))

    click.echo(f"{task.name}: event {updated.google_event_id or '(none)'}")


@main.command()
def scheduler():
    """Run the automated reminder scheduler."""
    logging.getLogger().setLevel(logging.INFO)

    try:
        from .scheduler import run_scheduler
        click.echo("Starting reminder scheduler...")
        click.echo("Press Ctrl+C to stop")
        run_scheduler()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nScheduler stopped.")


if __name__ == "__main__":
    main()
