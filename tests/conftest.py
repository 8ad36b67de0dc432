"""Pytest configuration and fixtures for topbase tests."""

import os
import shutil
import subprocess
import tempfile
from pathlib import Path

import pytest

from topbase.core.log import ConsoleSink, setup_logger
from topbase.git.local import MIN_GIT_VERSION, parse_git_version
from topbase.git.memory import MemoryRepository


def _console_logger():
    setup_logger(
        log_root=Path(tempfile.gettempdir()) / "topbase-tests",
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Configure logging for console-only mode during tests.

    This enables debug output during test runs without requiring
    authentication or sending logs to logfire.dev.
    """
    _console_logger()


@pytest.fixture
def restore_logger():
    """Reinstall the console logger after a test replaces it."""
    yield
    _console_logger()


@pytest.fixture
def repo():
    """Empty in-memory repository."""
    return MemoryRepository()


class GitCheckout:
    """Thin helper for building histories in a scratch git repo."""

    def __init__(self, path: Path):
        self.path = path
        self.clock = 1_700_000_000

    def git(self, *args: str, env: dict | None = None) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            env=env,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout.strip()

    def commit(self, message: str, files: dict[str, str]) -> str:
        """Write files, stage them and commit with a fixed clock."""
        for name, content in files.items():
            target = self.path / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
            self.git("add", name)
        self.clock += 60
        date = f"{self.clock} +0000"
        env = dict(os.environ, GIT_AUTHOR_DATE=date, GIT_COMMITTER_DATE=date)
        self.git("commit", "-q", "-m", message, env=env)
        return self.rev("HEAD")

    def rev(self, ref: str) -> str:
        return self.git("rev-parse", ref)

    def first_parent_log(self, ref: str) -> list[str]:
        return self.git("rev-list", "--first-parent", ref).split()


@pytest.fixture
def checkout(tmp_path):
    """Fresh git repository with an identity configured."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    path = tmp_path / "repo"
    path.mkdir()
    co = GitCheckout(path)
    co.git("init", "-q", "-b", "main")
    co.git("config", "user.name", "Test User")
    co.git("config", "user.email", "test@example.com")
    co.git("config", "commit.gpgsign", "false")
    return co


@pytest.fixture
def replay_capable_git(checkout):
    """Skip unless the installed git can replay with merge-tree."""
    version = parse_git_version(checkout.git("version"))
    if version is None or version < MIN_GIT_VERSION:
        pytest.skip("git is too old for merge-tree --merge-base")
