"""Workspace discovery and layout of the .spool directory."""

from dataclasses import dataclass
from pathlib import Path

from spool.errors import WorkspaceExists, WorkspaceNotFound

SPOOL_DIR = ".spool"
EVENTS_DIR = "events"
ARCHIVE_DIR = "archive"
LOG_SUFFIX = ".jsonl"

GITIGNORE = """# Derived files - rebuilt from events on checkout/merge
# These are caches for fast queries, not source of truth

# Task index: maps task_id -> status, date range, file locations
.index.json

# Materialized state: current snapshot of all tasks
.state.json

# Any temporary files from tooling
*.tmp
*.bak
"""


@dataclass(frozen=True)
class SpoolContext:
    """Handle on one workspace. Passed explicitly to every operation."""

    root: Path

    @property
    def events_dir(self) -> Path:
        return self.root / EVENTS_DIR

    @property
    def archive_dir(self) -> Path:
        return self.root / ARCHIVE_DIR

    @property
    def repo_root(self) -> Path:
        return self.root.parent

    @property
    def state_path(self) -> Path:
        return self.root / ".state.json"

    @property
    def index_path(self) -> Path:
        return self.root / ".index.json"

    @classmethod
    def discover(cls, start: str | Path | None = None) -> "SpoolContext":
        """Walk up from ``start`` (default cwd) looking for a .spool directory."""
        current = Path(start or Path.cwd()).resolve()
        for candidate in (current, *current.parents):
            spool_dir = candidate / SPOOL_DIR
            if spool_dir.is_dir():
                return cls(root=spool_dir)
        raise WorkspaceNotFound(
            "Not in a spool directory. Run 'spool init' to create one."
        )

    def event_files(self) -> list[Path]:
        """Daily logs, oldest first."""
        return _log_files(self.events_dir)

    def archive_files(self) -> list[Path]:
        """Monthly rollups, oldest first."""
        return _log_files(self.archive_dir)

    def event_file_for(self, day: str) -> Path:
        return self.events_dir / f"{day}{LOG_SUFFIX}"

    def archive_file_for(self, month: str) -> Path:
        return self.archive_dir / f"{month}{LOG_SUFFIX}"


def _log_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.suffix == LOG_SUFFIX)


def init_workspace(path: str | Path) -> SpoolContext:
    """Create the .spool layout under ``path``."""
    spool_dir = Path(path) / SPOOL_DIR
    if spool_dir.exists():
        raise WorkspaceExists(f"{SPOOL_DIR} directory already exists")

    ctx = SpoolContext(root=spool_dir)
    ctx.events_dir.mkdir(parents=True)
    ctx.archive_dir.mkdir(parents=True)
    (spool_dir / ".gitignore").write_text(GITIGNORE, encoding="utf-8")
    return ctx
