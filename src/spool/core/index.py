"""Index building: a compact per-task summary over the active logs.

Archive rollups are not scanned. Since archiving never prunes the daily
logs, the index may describe a superset of what is still "active": an
archived task keeps its entry, and its file list keeps naming the daily
logs its events were first written to.
"""

import json
import logging
from collections.abc import Iterable

from spool.core.state import dump_snapshot
from spool.store.context import SpoolContext
from spool.store.models import Event, Index, Operation, TaskIndex, TaskStatus, utc_now
from spool.store.reader import iter_events

logger = logging.getLogger(__name__)


def build_index_from(events: Iterable[tuple[str, Event]]) -> Index:
    """Fold (filename, event) pairs into an Index."""
    files: dict[str, dict[str, None]] = {}
    entries: dict[str, TaskIndex] = {}

    for filename, event in events:
        files.setdefault(event.task_id, {})[filename] = None
        date = event.timestamp.strftime("%Y-%m-%d")
        op = event.operation

        if op == Operation.CREATE:
            entries[event.task_id] = TaskIndex(
                status=TaskStatus.OPEN, created=date, updated=date
            )
            continue

        entry = entries.get(event.task_id)
        if entry is None:
            continue

        entry.updated = date
        if op == Operation.COMPLETE:
            entry.status = TaskStatus.COMPLETE
            entry.completed = date
        elif op == Operation.REOPEN:
            entry.status = TaskStatus.OPEN
            entry.completed = None
        elif op == Operation.ARCHIVE:
            entry.archived = event.payload.ref

    for task_id, entry in entries.items():
        entry.contributing_files = sorted(files.get(task_id, {}))

    return Index(tasks=entries, rebuilt_at=utc_now())


def build_index(ctx: SpoolContext) -> Index:
    index = build_index_from(iter_events(ctx.event_files()))
    logger.info("Indexed %d tasks", len(index.tasks))
    return index


def write_index(ctx: SpoolContext, index: Index) -> None:
    ctx.index_path.write_text(dump_snapshot(index.to_dict()), encoding="utf-8")


def load_or_build_index(ctx: SpoolContext) -> Index:
    """Read the cached index when present and readable, else build it."""
    if ctx.index_path.exists():
        try:
            with open(ctx.index_path, encoding="utf-8") as f:
                return Index.from_dict(json.load(f))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable %s: %s", ctx.index_path.name, e)
    return build_index(ctx)
