"""Pytest configuration and fixtures for no-dpts tests."""
import shutil
import subprocess
from pathlib import Path

import pytest


def _git(repo: Path, *args: str) -> str:
    completed = subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True)
    return completed.stdout.decode()


def _stage(repo: Path, path: str, content: str) -> Path:
    file_path = repo / path
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content)
    _git(repo, "add", path)
    return file_path


@pytest.fixture
def git():
    """Run a git command in a repository and return its stdout."""
    return _git


@pytest.fixture
def stage():
    """Write a file in a repository and add it to the index."""
    return _stage


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with one commit."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init")
    _git(repo, "config", "user.email", "test@example.com")
    _git(repo, "config", "user.name", "Test User")
    _git(repo, "config", "commit.gpgsign", "false")

    _stage(repo, "README.md", "# Test Repo\n")
    _git(repo, "commit", "-m", "Initial commit")
    return repo
