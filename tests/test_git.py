"""Tests for git branch detection."""

import os
import subprocess
import tempfile
from pathlib import Path

import pytest

from spool.integrations.git import GitError, current_branch_or_default, get_current_branch


@pytest.fixture
def git_repo():
    """Create a temporary git repo with an initial commit on a feature branch."""
    with tempfile.TemporaryDirectory() as tmp:
        subprocess.run(["git", "init"], cwd=tmp, capture_output=True, check=True)
        subprocess.run(["git", "checkout", "-b", "feature/spool"], cwd=tmp, capture_output=True, check=True)
        (Path(tmp) / "README.md").write_text("# Test")
        subprocess.run(["git", "add", "."], cwd=tmp, capture_output=True, check=True)
        subprocess.run(
            ["git", "commit", "-m", "init"],
            cwd=tmp,
            capture_output=True,
            check=True,
            env={**os.environ, "GIT_AUTHOR_NAME": "Test", "GIT_AUTHOR_EMAIL": "test@test.com",
                 "GIT_COMMITTER_NAME": "Test", "GIT_COMMITTER_EMAIL": "test@test.com"},
        )
        yield tmp


def test_current_branch(git_repo):
    assert get_current_branch(git_repo) == "feature/spool"
    assert current_branch_or_default(git_repo, "main") == "feature/spool"


def test_outside_repo_raises():
    with tempfile.TemporaryDirectory() as tmp:
        env_dir = Path(tmp)
        with pytest.raises(GitError):
            get_current_branch(env_dir)


def test_fallback_outside_repo():
    with tempfile.TemporaryDirectory() as tmp:
        assert current_branch_or_default(tmp, "trunk") == "trunk"
