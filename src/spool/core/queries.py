"""Read-side queries over a materialized State."""

from spool.errors import TaskNotFound
from spool.store.context import SpoolContext
from spool.store.models import Event, State, Task, TaskStatus
from spool.store.reader import collect_events_by_task

DEFAULT_PRIORITY = "p3"


def list_tasks(
    state: State,
    status: str | None = "open",
    assignee: str | None = None,
    tag: str | None = None,
    priority: str | None = None,
) -> list[Task]:
    """Filter tasks and sort them by creation time. Unknown status means all."""
    tasks = []
    for task in state.tasks.values():
        if status == "open" and task.status != TaskStatus.OPEN:
            continue
        if status == "complete" and task.status != TaskStatus.COMPLETE:
            continue
        if assignee is not None and task.assignee != assignee:
            continue
        if tag is not None and tag not in task.tags:
            continue
        if priority is not None and task.priority != priority:
            continue
        tasks.append(task)
    tasks.sort(key=lambda t: (t.created, t.id))
    return tasks


def board_order(tasks: list[Task]) -> list[Task]:
    """Priority string first (unset counts as p3), then creation time."""
    return sorted(tasks, key=lambda t: (t.priority or DEFAULT_PRIORITY, t.created, t.id))


def get_task(state: State, task_id: str) -> Task:
    task = state.tasks.get(task_id)
    if task is None:
        raise TaskNotFound(task_id)
    return task


def task_events(ctx: SpoolContext, task_id: str) -> list[Event]:
    """Every active-log event recorded for ``task_id``, in discovery order."""
    return collect_events_by_task(ctx).get(task_id, [])
