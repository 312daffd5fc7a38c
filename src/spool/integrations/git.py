"""Git subprocess wrappers for branch detection."""

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class GitError(Exception):
    """Raised when a git command fails."""


def run_git(args: list[str], cwd: str | Path | None = None) -> str:
    """Run a git command and return stdout. Raises GitError on failure."""
    cmd = ["git"] + args
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()
    except subprocess.CalledProcessError as e:
        raise GitError(f"git {' '.join(args)} failed: {e.stderr.strip()}") from e
    except OSError as e:
        raise GitError(f"git {' '.join(args)} could not run: {e}") from e


def get_current_branch(cwd: str | Path | None = None) -> str:
    """Get the current branch name."""
    return run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd)


def current_branch_or_default(cwd: str | Path | None, default: str = "main") -> str:
    """Best-effort branch lookup, falling back to ``default``."""
    try:
        branch = get_current_branch(cwd)
    except GitError as e:
        logger.warning("Could not determine git branch, using %s: %s", default, e)
        return default
    return branch or default
