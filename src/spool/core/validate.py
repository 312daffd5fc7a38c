"""Structural and referential validation of the event logs.

Validation never writes anything. Malformed lines are recorded as errors
and skipped; semantic problems (events before create, duplicate creates,
dangling links) are recorded as warnings. Only ``strict`` turns a
non-empty result into a failure.
"""

import json
import logging
from pathlib import Path

from spool.core.state import materialize_events
from spool.errors import ValidationFailed
from spool.store.context import SpoolContext
from spool.store.models import (
    EVENT_FIELDS,
    SCHEMA_VERSION,
    Event,
    Operation,
    ValidationResult,
    parse_ts,
)

logger = logging.getLogger(__name__)


class _Scan:
    def __init__(self):
        self.result = ValidationResult()
        self.created: set[str] = set()

    def error(self, msg: str):
        self.result.errors.append(msg)

    def warn(self, msg: str):
        self.result.warnings.append(msg)


def _check_file(path: Path, scan: _Scan) -> list[Event]:
    """Check every line of one log; return the events that parsed cleanly."""
    filename = path.name
    try:
        raw = path.read_bytes()
    except OSError as e:
        scan.error(f"Cannot open {filename}: {e}")
        return []

    events = []
    for line_number, chunk in enumerate(raw.split(b"\n"), start=1):
        loc = f"{filename}:{line_number}"
        try:
            line = chunk.decode("utf-8")
        except UnicodeDecodeError as e:
            scan.error(f"{loc}: Read error: {e}")
            continue
        if not line.strip():
            continue

        try:
            value = json.loads(line)
        except ValueError as e:
            scan.error(f"{loc}: Invalid JSON: {e}")
            continue

        errors_before = len(scan.result.errors)
        obj = value if isinstance(value, dict) else {}

        for key in EVENT_FIELDS:
            if key not in obj:
                scan.error(f"{loc}: Missing required field '{key}'")

        v = obj.get("v")
        if isinstance(v, int) and not isinstance(v, bool) and v >= 0 and v != SCHEMA_VERSION:
            scan.warn(f"{loc}: Unknown schema version {v}")

        op, task_id = obj.get("op"), obj.get("id")
        if isinstance(op, str) and isinstance(task_id, str):
            if op == Operation.CREATE.value:
                if task_id in scan.created:
                    scan.warn(f"{loc}: Duplicate create for task {task_id}")
                scan.created.add(task_id)
            elif task_id not in scan.created:
                scan.warn(f"{loc}: Event for task {task_id} before create")

        ts = obj.get("ts")
        if isinstance(ts, str):
            try:
                parse_ts(ts)
            except ValueError:
                scan.error(f"{loc}: Invalid timestamp format: {ts}")

        try:
            events.append(Event.from_dict(value))
        except ValueError as e:
            if len(scan.result.errors) == errors_before:
                scan.error(f"{loc}: Invalid event: {e}")

    return events


def _check_references(events: list[Event], scan: _Scan):
    state = materialize_events(events)
    for task_id in sorted(state.tasks):
        task = state.tasks[task_id]
        for ref in task.blocked_by:
            if ref not in state.tasks:
                scan.warn(f"Task {task.id} references non-existent blocked_by: {ref}")
        for ref in task.blocks:
            if ref not in state.tasks:
                scan.warn(f"Task {task.id} references non-existent blocks: {ref}")
        if task.parent is not None and task.parent not in state.tasks:
            scan.warn(f"Task {task.id} references non-existent parent: {task.parent}")


def collect_issues(ctx: SpoolContext) -> ValidationResult:
    """Scan daily logs then rollups, then check cross-references."""
    scan = _Scan()
    active = [e for path in ctx.event_files() for e in _check_file(path, scan)]
    archived = [e for path in ctx.archive_files() for e in _check_file(path, scan)]
    _check_references(archived + active, scan)
    logger.info(
        "Validation found %d errors, %d warnings",
        len(scan.result.errors),
        len(scan.result.warnings),
    )
    return scan.result


def enforce_strict(result: ValidationResult) -> None:
    if result.errors:
        raise ValidationFailed(result, error_count=len(result.errors))
    if result.warnings:
        raise ValidationFailed(result, warning_count=len(result.warnings))


def validate(ctx: SpoolContext, strict: bool = False) -> ValidationResult:
    result = collect_issues(ctx)
    if strict:
        enforce_strict(result)
    return result


def format_report(result: ValidationResult) -> list[str]:
    if result.ok:
        return ["Validation passed. No issues found."]
    lines = []
    if result.errors:
        lines.append(f"Errors ({len(result.errors)}):")
        lines.extend(f"  ERROR: {e}" for e in result.errors)
    if result.warnings:
        lines.append(f"Warnings ({len(result.warnings)}):")
        lines.extend(f"  WARN: {w}" for w in result.warnings)
    return lines
