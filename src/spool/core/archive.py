"""Archival rollup of completed tasks into monthly files.

Archiving is additive: the full history of each selected task is copied
into ``archive/YYYY-MM.jsonl`` and an archive event is appended to today's
daily log. The daily logs are never pruned.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from spool.core.state import materialize
from spool.integrations.git import current_branch_or_default
from spool.store.context import SpoolContext
from spool.store.models import (
    SCHEMA_VERSION,
    Event,
    Operation,
    Task,
    TaskStatus,
    utc_now,
)
from spool.store.reader import append_events, collect_events_by_task

logger = logging.getLogger(__name__)


@dataclass
class ArchiveResult:
    tasks: list[Task] = field(default_factory=list)
    months: dict[str, int] = field(default_factory=dict)
    dry_run: bool = False

    @property
    def task_ids(self) -> list[str]:
        return [t.id for t in self.tasks]


def month_key(ts: datetime) -> str:
    return ts.strftime("%Y-%m")


def select_archivable(tasks, cutoff: datetime) -> list[Task]:
    """Completed, not yet archived, completed before ``cutoff``; oldest first."""
    selected = [
        t
        for t in tasks
        if t.status == TaskStatus.COMPLETE
        and t.completed is not None
        and t.completed < cutoff
        and t.archived is None
    ]
    selected.sort(key=lambda t: t.completed)
    return selected


def archive_tasks(
    ctx: SpoolContext,
    days: int,
    dry_run: bool = False,
    now: datetime | None = None,
    actor: str = "@spool",
    default_branch: str = "main",
) -> ArchiveResult:
    """Archive tasks completed more than ``days`` days before ``now``."""
    now = (now or utc_now()).astimezone(timezone.utc)
    state = materialize(ctx)
    selected = select_archivable(state.tasks.values(), now - timedelta(days=days))

    by_month: dict[str, list[Task]] = {}
    for task in selected:
        by_month.setdefault(month_key(task.completed), []).append(task)
    result = ArchiveResult(
        tasks=selected,
        months={m: len(by_month[m]) for m in sorted(by_month)},
        dry_run=dry_run,
    )

    if not selected:
        logger.info("No tasks to archive")
        return result
    if dry_run:
        logger.info("Dry run: would archive %d tasks", len(selected))
        return result

    ctx.archive_dir.mkdir(parents=True, exist_ok=True)
    history = collect_events_by_task(ctx)

    for month in sorted(by_month):
        events = [e for task in by_month[month] for e in history.get(task.id, [])]
        written = append_events(ctx.archive_file_for(month), events)
        logger.debug("Wrote %d events to archive/%s", written, month)

    branch = current_branch_or_default(ctx.repo_root, default_branch)
    markers = [
        Event(
            schema_version=SCHEMA_VERSION,
            operation=Operation.ARCHIVE,
            task_id=task.id,
            timestamp=now,
            actor=actor,
            origin_branch=branch,
            data={"ref": month_key(task.completed)},
        )
        for task in selected
    ]
    append_events(ctx.event_file_for(now.strftime("%Y-%m-%d")), markers)

    logger.info("Archived %d tasks into %d rollups", len(selected), len(by_month))
    return result
