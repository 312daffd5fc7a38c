"""Reading and appending newline-delimited JSON event logs."""

import json
import logging
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path

from spool.errors import ParseError
from spool.store.context import SpoolContext
from spool.store.models import Event

logger = logging.getLogger(__name__)


def parse_event_line(line: str) -> Event:
    """Decode one log line. Raises ValueError (incl. JSONDecodeError)."""
    return replace(Event.from_dict(json.loads(line)), source_line=line)


def read_events(path: Path) -> list[Event]:
    """Parse every non-blank line of ``path`` in order.

    Any bad line aborts the whole file with a ParseError carrying the
    1-based line number.
    """
    events = []
    # Split on \n only, so line numbers agree with validation.
    for line_number, chunk in enumerate(path.read_bytes().split(b"\n"), start=1):
        if not chunk.strip():
            continue
        try:
            events.append(parse_event_line(chunk.decode("utf-8")))
        except ValueError as e:
            raise ParseError(path.name, line_number, str(e)) from e
    logger.debug("Read %d events from %s", len(events), path)
    return events


def replay_order(ctx: SpoolContext) -> list[Path]:
    """Archive rollups first, then daily logs, each group in filename order."""
    return ctx.archive_files() + ctx.event_files()


def iter_events(files: Iterable[Path]):
    """Yield (filename, event) for every event in ``files``, in order."""
    for path in files:
        for event in read_events(path):
            yield path.name, event


def collect_events_by_task(ctx: SpoolContext) -> dict[str, list[Event]]:
    """Group every active-log event by task id, keeping discovery order."""
    by_task: dict[str, list[Event]] = {}
    for _, event in iter_events(ctx.event_files()):
        by_task.setdefault(event.task_id, []).append(event)
    return by_task


def encode_event(event: Event) -> str:
    """The original line for events read from disk, compact JSON otherwise."""
    if event.source_line is not None:
        return event.source_line
    return json.dumps(event.to_dict(), ensure_ascii=False, separators=(",", ":"))


def append_events(path: Path, events: Iterable[Event]) -> int:
    """Append events to ``path``, creating it if needed. Returns the count."""
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, "a", encoding="utf-8") as f:
        for event in events:
            f.write(encode_event(event) + "\n")
            count += 1
    return count
