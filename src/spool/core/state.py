"""State materialization: replaying events into current task records."""

import json
import logging
from collections.abc import Iterable

from spool.store.context import SpoolContext
from spool.store.models import (
    Comment,
    Event,
    Operation,
    State,
    Task,
    TaskStatus,
    utc_now,
)
from spool.store.reader import iter_events, replay_order

logger = logging.getLogger(__name__)


def apply_event(tasks: dict[str, Task], event: Event) -> None:
    """Apply a single event to ``tasks`` in place.

    Only create may introduce a task. Every other operation on an id that
    has not been created is ignored.
    """
    op = event.operation
    payload = event.payload

    if op == Operation.CREATE:
        tasks[event.task_id] = Task(
            id=event.task_id,
            title=payload.title,
            description=payload.description,
            status=TaskStatus.OPEN,
            priority=payload.priority,
            tags=list(payload.tags),
            assignee=payload.assignee,
            created=event.timestamp,
            created_by=event.actor,
            created_branch=event.origin_branch,
            updated=event.timestamp,
            parent=payload.parent,
            blocks=list(payload.blocks),
            blocked_by=list(payload.blocked_by),
        )
        return

    task = tasks.get(event.task_id)
    if task is None:
        return

    if op == Operation.UPDATE:
        if payload.title is not None:
            task.title = payload.title
        if payload.description is not None:
            task.description = payload.description
        if payload.priority is not None:
            task.priority = payload.priority
        if payload.tags is not None:
            task.tags = list(payload.tags)
    elif op == Operation.ASSIGN:
        task.assignee = payload.to
    elif op == Operation.COMMENT:
        task.comments.append(
            Comment(
                timestamp=event.timestamp,
                actor=event.actor,
                body=payload.body,
                ref=payload.ref,
            )
        )
    elif op == Operation.LINK:
        _link(task, payload.rel, payload.target)
    elif op == Operation.UNLINK:
        _unlink(task, payload.rel, payload.target)
    elif op == Operation.COMPLETE:
        task.status = TaskStatus.COMPLETE
        task.completed = event.timestamp
        task.resolution = payload.resolution if payload.resolution is not None else "done"
    elif op == Operation.REOPEN:
        task.status = TaskStatus.OPEN
        task.completed = None
        task.resolution = None
    elif op == Operation.ARCHIVE:
        # Tag only; the task stays in the live map.
        task.archived = payload.ref

    task.updated = event.timestamp


def _link(task: Task, rel: str | None, target: str | None) -> None:
    if rel is None or target is None:
        return
    if rel == "blocks":
        if target not in task.blocks:
            task.blocks.append(target)
    elif rel == "blocked_by":
        if target not in task.blocked_by:
            task.blocked_by.append(target)
    elif rel == "parent":
        task.parent = target


def _unlink(task: Task, rel: str | None, target: str | None) -> None:
    if rel is None or target is None:
        return
    if rel == "blocks":
        task.blocks = [t for t in task.blocks if t != target]
    elif rel == "blocked_by":
        task.blocked_by = [t for t in task.blocked_by if t != target]
    elif rel == "parent":
        if task.parent == target:
            task.parent = None


def materialize_events(events: Iterable[Event]) -> State:
    """Pure fold of an ordered event sequence into a State."""
    tasks: dict[str, Task] = {}
    for event in events:
        apply_event(tasks, event)
    return State(tasks=tasks, rebuilt_at=utc_now())


def materialize(ctx: SpoolContext) -> State:
    """Replay archive rollups, then daily logs, into a fresh State."""
    state = materialize_events(event for _, event in iter_events(replay_order(ctx)))
    logger.info("Materialized %d tasks", len(state.tasks))
    return state


def load_or_materialize_state(ctx: SpoolContext) -> State:
    """Read the cached snapshot when present, else replay the logs."""
    if ctx.state_path.exists():
        try:
            with open(ctx.state_path, encoding="utf-8") as f:
                return State.from_dict(json.load(f))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable %s: %s", ctx.state_path.name, e)
    return materialize(ctx)


def dump_snapshot(data: dict) -> str:
    """Pretty-print a snapshot with a trailing newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_state(ctx: SpoolContext, state: State) -> None:
    ctx.state_path.write_text(dump_snapshot(state.to_dict()), encoding="utf-8")
