"""Shared fixtures: temporary .spool workspaces and event log writers."""

import json
import tempfile
from pathlib import Path

import pytest

from spool.store.context import init_workspace


def build_event(op, task_id, ts="2024-01-01T10:00:00Z", by="@alice", branch="main", v=1, **d):
    return {"v": v, "op": op, "id": task_id, "ts": ts, "by": by, "branch": branch, "d": d}


@pytest.fixture
def event():
    """Builder for raw event dicts: event("create", "T1", title="x")."""
    return build_event


@pytest.fixture
def workspace():
    """An initialized .spool workspace inside a temp directory."""
    with tempfile.TemporaryDirectory() as tmp:
        yield init_workspace(Path(tmp))


@pytest.fixture
def write_log(workspace):
    """Write raw lines or event dicts to a daily log (or a rollup with archive=True)."""

    def _write(name, *entries, archive=False):
        directory = workspace.archive_dir if archive else workspace.events_dir
        path = directory / f"{name}.jsonl"
        with open(path, "a", encoding="utf-8") as f:
            for entry in entries:
                line = entry if isinstance(entry, str) else json.dumps(entry)
                f.write(line + "\n")
        return path

    return _write
