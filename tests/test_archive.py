"""Tests for archival rollup."""

import json
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from spool.core import archive as archive_mod
from spool.core import rebuild as rebuild_mod
from spool.core import state as state_mod
from spool.integrations.git import GitError

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def seeded(workspace, write_log, event):
    """Two tasks done in Jan/Feb, one done recently, one still open."""
    write_log("2024-01-01",
              event("create", "JAN", ts="2024-01-01T09:00:00Z", title="January"),
              event("create", "OPEN", ts="2024-01-01T09:30:00Z", title="Still open"))
    write_log("2024-01-20",
              event("comment", "JAN", ts="2024-01-20T09:00:00Z", body="almost"),
              event("complete", "JAN", ts="2024-01-20T10:00:00Z"))
    write_log("2024-02-02",
              event("create", "FEB", ts="2024-02-02T09:00:00Z", title="February"),
              event("complete", "FEB", ts="2024-02-10T09:00:00Z"))
    write_log("2024-06-10",
              event("create", "RECENT", ts="2024-06-10T09:00:00Z"),
              event("complete", "RECENT", ts="2024-06-12T09:00:00Z"))
    return workspace


@pytest.fixture(autouse=True)
def fixed_branch():
    with patch("spool.core.archive.current_branch_or_default", return_value="main") as m:
        yield m


class TestSelection:
    def test_nothing_to_archive(self, workspace, write_log, event):
        write_log("2024-06-01", event("create", "T1"))
        result = archive_mod.archive_tasks(workspace, 30, now=NOW)
        assert result.task_ids == []
        assert workspace.archive_files() == []

    def test_dry_run_reports_without_writing(self, seeded):
        before = {p.name: p.read_text() for p in seeded.event_files()}
        result = archive_mod.archive_tasks(seeded, 30, dry_run=True, now=NOW)
        assert result.dry_run
        assert result.task_ids == ["JAN", "FEB"]
        assert result.months == {"2024-01": 1, "2024-02": 1}
        assert seeded.archive_files() == []
        assert {p.name: p.read_text() for p in seeded.event_files()} == before

    def test_cutoff_excludes_recent(self, seeded):
        result = archive_mod.archive_tasks(seeded, 1, dry_run=True, now=NOW)
        assert "RECENT" in result.task_ids
        result = archive_mod.archive_tasks(seeded, 4, dry_run=True, now=NOW)
        assert "RECENT" not in result.task_ids


class TestArchive:
    def test_writes_monthly_rollups_with_full_history(self, seeded):
        result = archive_mod.archive_tasks(seeded, 30, now=NOW)
        assert result.task_ids == ["JAN", "FEB"]
        assert [p.name for p in seeded.archive_files()] == ["2024-01.jsonl", "2024-02.jsonl"]

        jan = [json.loads(line) for line in seeded.archive_file_for("2024-01").read_text().splitlines()]
        assert [(e["op"], e["id"]) for e in jan] == [
            ("create", "JAN"), ("comment", "JAN"), ("complete", "JAN"),
        ]

    def test_emits_archive_markers_to_today(self, seeded, fixed_branch):
        fixed_branch.return_value = "feature/cleanup"
        archive_mod.archive_tasks(seeded, 30, now=NOW, actor="@bot")
        today = seeded.event_file_for("2024-06-15")
        markers = [json.loads(line) for line in today.read_text().splitlines()]
        assert [(m["id"], m["d"]) for m in markers] == [
            ("JAN", {"ref": "2024-01"}), ("FEB", {"ref": "2024-02"}),
        ]
        assert all(m["op"] == "archive" and m["by"] == "@bot" for m in markers)
        assert all(m["branch"] == "feature/cleanup" for m in markers)
        assert markers[0]["ts"] == "2024-06-15T12:00:00Z"

    def test_active_logs_are_not_pruned(self, seeded):
        archive_mod.archive_tasks(seeded, 30, now=NOW)
        jan_log = seeded.event_file_for("2024-01-20").read_text()
        assert '"JAN"' in jan_log

    def test_archived_tasks_stay_materialized(self, seeded):
        archive_mod.archive_tasks(seeded, 30, now=NOW)
        state = state_mod.materialize(seeded)
        assert state.tasks["JAN"].archived == "2024-01"
        assert state.tasks["FEB"].archived == "2024-02"
        assert state.tasks["JAN"].comments[0].body == "almost"

    def test_rerun_is_idempotent(self, seeded):
        archive_mod.archive_tasks(seeded, 30, now=NOW)
        rollup = seeded.archive_file_for("2024-01").read_text()
        again = archive_mod.archive_tasks(seeded, 30, now=NOW)
        assert again.task_ids == []
        assert seeded.archive_file_for("2024-01").read_text() == rollup

    def test_rebuild_after_archive(self, seeded):
        archive_mod.archive_tasks(seeded, 30, now=NOW)
        index, state = rebuild_mod.rebuild(seeded)
        assert index.tasks["JAN"].archived == "2024-01"
        assert "2024-06-15.jsonl" in index.tasks["JAN"].contributing_files
        assert seeded.state_path.exists()
        assert set(state.tasks) == {"JAN", "FEB", "OPEN", "RECENT"}

    def test_rollup_lines_are_verbatim_copies(self, workspace, write_log):
        lines = [
            '{"v":1,"op":"create","id":"OFF","ts":"2024-03-01T09:00:00.123456789+02:00",'
            '"by":"@a","branch":"main","d":{"title":"Offset","extra":true}}',
            '{"op": "complete", "v": 1, "id": "OFF", "ts": "2024-03-02T09:00:00+02:00", '
            '"by": "@a", "branch": "main", "d": {}}',
        ]
        write_log("2024-03-01", *lines)
        archive_mod.archive_tasks(workspace, 30, now=NOW)
        assert workspace.archive_file_for("2024-03").read_text().splitlines() == lines


class TestBranchFallback:
    def test_default_branch_when_git_fails(self, seeded, fixed_branch):
        from spool.integrations import git as git_mod

        fixed_branch.side_effect = lambda cwd, default: git_mod.current_branch_or_default(cwd, default)
        with patch("spool.integrations.git.run_git", side_effect=GitError("no repo")):
            archive_mod.archive_tasks(seeded, 30, now=NOW, default_branch="trunk")
        markers = seeded.event_file_for("2024-06-15").read_text().splitlines()
        assert all(json.loads(m)["branch"] == "trunk" for m in markers)
