"""Errors raised by reconciliation.

Every error carries enough context (branch names, commit ids,
conflicted paths) to be reported to a human without re-running
anything. None of them leave a partially updated branch behind:
they are raised before the single ref update that publishes a
result.
"""

from __future__ import annotations

from pathlib import Path


class TopbaseError(RuntimeError):
    """Base class for all reconciliation failures."""


class DirtyWorkingTree(TopbaseError):
    """Working tree has uncommitted changes; nothing was modified."""

    def __init__(self, workdir: Path | str | None = None):
        self.workdir = workdir
        where = f" in {workdir}" if workdir else ""
        super().__init__(
            f"You have modified changes{where}. Please stash or commit "
            f"your changes before running this command"
        )


class UnknownBranch(TopbaseError):
    """A named branch does not resolve to a commit."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown branch: {name}")


class ConflictDuringReplay(TopbaseError):
    """Replaying a commit onto the new parent produced a conflict."""

    def __init__(
        self,
        commit: str,
        paths: list[str] | None = None,
        subject: str = "",
    ):
        self.commit = commit
        self.paths = list(paths or [])
        self.subject = subject
        detail = f" ({subject})" if subject else ""
        files = f": {', '.join(self.paths)}" if self.paths else ""
        super().__init__(
            f"Conflict replaying {commit[:12]}{detail}{files}"
        )


class RefUpdateRejected(TopbaseError):
    """Publishing the new tip lost a race with another ref update."""

    def __init__(self, branch: str, expected: str, actual: str | None):
        self.branch = branch
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Refusing to move {branch}: expected it at "
            f"{expected[:12]}, found {(actual or 'nothing')[:12]}"
        )


class GitCommandError(TopbaseError):
    """A git invocation failed in a way we do not handle."""

    def __init__(self, command: str, returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"git command failed (exit code {returncode})\n"
            f"Command: {command}\n"
            f"stderr: {stderr.strip()}"
        )


class WorkingTreeUpdateRefused(TopbaseError):
    """The checked-out branch could not bring its files along.

    Raised before the branch is moved, so the ref, index and working
    tree all still show the old tip.
    """

    def __init__(self, branch: str, stderr: str = ""):
        self.branch = branch
        self.stderr = stderr
        super().__init__(
            f"Cannot update the working tree of {branch}; it was not "
            f"moved: {stderr.strip()}"
        )


class UnsupportedGitVersion(TopbaseError):
    """The installed git cannot replay commits as tree merges."""

    def __init__(self, found: str, required: tuple[int, int]):
        self.found = found
        self.required = required
        super().__init__(
            f"Replaying commits needs git "
            f"{required[0]}.{required[1]} or later; found {found.strip()}"
        )


__all__ = [
    "TopbaseError",
    "DirtyWorkingTree",
    "UnknownBranch",
    "ConflictDuringReplay",
    "RefUpdateRejected",
    "GitCommandError",
    "WorkingTreeUpdateRefused",
    "UnsupportedGitVersion",
]
