"""CLI entry point for spool."""

import json
import logging
import sys
from contextlib import contextmanager

import click

from spool.config import get_config
from spool.core import archive as archive_mod
from spool.core import queries as queries_mod
from spool.core import rebuild as rebuild_mod
from spool.core import state as state_mod
from spool.core import validate as validate_mod
from spool.errors import (
    ParseError,
    TaskNotFound,
    ValidationFailed,
    WorkspaceExists,
    WorkspaceNotFound,
)
from spool.store.context import SpoolContext, init_workspace
from spool.store.models import format_ts

EXIT_VALIDATION_FAILED = 1
EXIT_NOT_FOUND = 2
EXIT_IO_ERROR = 3
EXIT_EXISTS = 4

OUTPUT_FORMATS = ("table", "json", "ids")


def output_format(value: str) -> str:
    """Normalize a --format value; anything unrecognized renders as a table."""
    return value if value in OUTPUT_FORMATS else "table"


@contextmanager
def _handle_errors():
    try:
        yield
    except (WorkspaceNotFound, TaskNotFound) as e:
        click.echo(str(e), err=True)
        sys.exit(EXIT_NOT_FOUND)
    except WorkspaceExists as e:
        click.echo(str(e), err=True)
        sys.exit(EXIT_EXISTS)
    except (ParseError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_IO_ERROR)


def _get_ctx() -> SpoolContext:
    return SpoolContext.discover(get_config().repo_path)


@click.group()
def main():
    """spool - Git-native, event-sourced task tracker"""
    logging.basicConfig(
        level=get_config().log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("init")
def init_command():
    """Initialize .spool/ directory structure."""
    with _handle_errors():
        init_workspace(get_config().repo_path)
    click.echo("Created .spool/")
    click.echo("  .spool/events/     - Daily event logs")
    click.echo("  .spool/archive/    - Monthly rollups")
    click.echo("  .spool/.gitignore  - Ignores derived files")


# ── Query Commands ────────────────────────────────────────────────────────────


@main.command("list")
@click.option("--status", "-s", default="open", help="open, complete, or all")
@click.option("--assignee", "-a", default=None, help="Filter by assignee")
@click.option("--tag", "-t", default=None, help="Filter by tag")
@click.option("--priority", "-p", default=None, help="Filter by priority")
@click.option("--format", "-f", "fmt", default="table", help="table, json, or ids")
def list_command(status, assignee, tag, priority, fmt):
    """List tasks with optional filtering."""
    with _handle_errors():
        state = state_mod.load_or_materialize_state(_get_ctx())
    tasks = queries_mod.list_tasks(state, status, assignee, tag, priority)

    fmt = output_format(fmt)
    if fmt == "json":
        click.echo(json.dumps([t.to_dict() for t in tasks], indent=2, ensure_ascii=False))
        return
    if fmt == "ids":
        for task in tasks:
            click.echo(task.id)
        return

    if not tasks:
        click.echo("No tasks found.")
        return

    click.echo(f"{'ID':<15} {'PRIORITY':<10} {'ASSIGNEE':<12} TITLE")
    for task in tasks:
        title = task.title if len(task.title) <= 50 else task.title[:47] + "..."
        click.echo(
            f"{task.id:<15} {task.priority or '-':<10} {task.assignee or '-':<12} {title}"
        )


@main.command("show")
@click.argument("task_id")
@click.option("--events", is_flag=True, help="Show raw event history")
def show_command(task_id, events):
    """Show details of a specific task."""
    with _handle_errors():
        ctx = _get_ctx()
        task = queries_mod.get_task(state_mod.load_or_materialize_state(ctx), task_id)
        history = queries_mod.task_events(ctx, task_id) if events else []

    click.echo(f"ID:       {task.id}")
    click.echo(f"Title:    {task.title}")
    click.echo(f"Status:   {task.status.value.capitalize()}")
    if task.priority:
        click.echo(f"Priority: {task.priority}")
    if task.assignee:
        click.echo(f"Assignee: {task.assignee}")
    if task.tags:
        click.echo(f"Tags:     {', '.join(task.tags)}")
    if task.description is not None:
        click.echo("Description:\n  " + task.description.replace("\n", "\n  "))
    click.echo(
        f"Created:  {format_ts(task.created)} by {task.created_by} on {task.created_branch}"
    )
    click.echo(f"Updated:  {format_ts(task.updated)}")
    if task.completed:
        click.echo(f"Completed: {format_ts(task.completed)} ({task.resolution or 'done'})")
    if task.archived:
        click.echo(f"Archived: {task.archived}")
    if task.parent:
        click.echo(f"Parent:   {task.parent}")
    if task.blocks:
        click.echo(f"Blocks:   {', '.join(task.blocks)}")
    if task.blocked_by:
        click.echo(f"Blocked by: {', '.join(task.blocked_by)}")

    if task.comments:
        click.echo("\nComments:")
        for comment in task.comments:
            click.echo(f"  [{format_ts(comment.timestamp)} - {comment.actor}]")
            click.echo("  " + comment.body.replace("\n", "\n  "))
            if comment.ref:
                click.echo(f"  ref: {comment.ref}")
            click.echo()

    if events:
        click.echo("\nEvent History:")
        for e in history:
            click.echo(
                f"  {format_ts(e.timestamp)} {e.operation} by {e.actor} on {e.origin_branch}"
            )


# ── Maintenance Commands ──────────────────────────────────────────────────────


@main.command("rebuild")
def rebuild_command():
    """Rebuild .index.json and .state.json from events."""
    click.echo("Rebuilding index and state...")
    with _handle_errors():
        index, state = rebuild_mod.rebuild(_get_ctx())
    click.echo(f"  Wrote .index.json ({len(index.tasks)} tasks)")
    click.echo(f"  Wrote .state.json ({len(state.tasks)} tasks)")
    click.echo("Rebuild complete.")


@main.command("archive")
@click.option("--days", "-d", default=None, type=int, help="Days after completion to archive")
@click.option("--dry-run", is_flag=True, help="Show what would be archived without doing it")
def archive_command(days, dry_run):
    """Archive completed tasks older than N days."""
    config = get_config()
    if days is None:
        days = config.archive_days
    with _handle_errors():
        result = archive_mod.archive_tasks(
            _get_ctx(),
            days,
            dry_run=dry_run,
            actor=config.system_actor,
            default_branch=config.default_branch,
        )

    if not result.tasks:
        click.echo("No tasks to archive.")
        return
    if result.dry_run:
        click.echo(f"Would archive {len(result.tasks)} tasks:")
        for task in result.tasks:
            click.echo(f"  {task.id} - {task.title}")
        return

    click.echo(f"Archived {len(result.tasks)} tasks.")
    for month, count in result.months.items():
        click.echo(f"  {count} tasks to archive/{month}.jsonl")


@main.command("validate")
@click.option("--strict", is_flag=True, help="Fail on warnings too")
def validate_command(strict):
    """Validate event files for correctness."""
    with _handle_errors():
        ctx = _get_ctx()
    try:
        result = validate_mod.validate(ctx, strict=strict)
    except ValidationFailed as e:
        for line in validate_mod.format_report(e.result):
            click.echo(line)
        click.echo(str(e), err=True)
        sys.exit(EXIT_VALIDATION_FAILED)
    for line in validate_mod.format_report(result):
        click.echo(line)


# ── Browser Command ───────────────────────────────────────────────────────────


@main.command("ui")
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to listen on")
def ui_command(host, port):
    """Serve a read-only task browser."""
    from spool.web.app import run_server

    config = get_config()
    host = host or config.ui_host
    port = port or config.ui_port
    with _handle_errors():
        ctx = _get_ctx()
    click.echo(f"Serving tasks at http://{host}:{port}")
    run_server(ctx, host=host, port=port)


if __name__ == "__main__":
    main()
