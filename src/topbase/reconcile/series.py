"""Merge-free commit series."""

from __future__ import annotations

from dataclasses import dataclass, field

from topbase.core.log import logger
from topbase.git.commit import Commit
from topbase.git.repository import Repository


@dataclass
class CommitSeries:
    """Commits unique to a branch since a base, oldest first.

    Never contains a merge commit; merges met on the way are
    listed in skipped_merges instead.
    """

    tip: str
    base: str | None
    commits: list[Commit] = field(default_factory=list)
    skipped_merges: list[Commit] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.commits)

    def __iter__(self):
        return iter(self.commits)

    def __bool__(self) -> bool:
        return bool(self.commits)

    @property
    def shas(self) -> list[str]:
        return [commit.sha for commit in self.commits]

    @property
    def newest(self) -> Commit | None:
        return self.commits[-1] if self.commits else None


def merge_free_history(repo: Repository, ref: str) -> list[Commit]:
    """First-parent history of ref without merges, newest first."""
    return [
        commit for commit in repo.list_commits(ref)
        if not repo.is_merge(commit)
    ]


def build_series(
    repo: Repository, tip: str, stop_at: str | None = None
) -> CommitSeries:
    """Collect commits from tip back to stop_at (exclusive).

    Walks first parents only. A merge is left out of the series
    entirely and the walk carries on through its first parent, so
    anything that only arrived through the merged side branch is
    not part of the result.

    Args:
        repo: Repository to read from
        tip: Branch name or commit id to start at
        stop_at: Commit id to stop at, or None to walk to the root

    Returns:
        CommitSeries, oldest commit first

    Raises:
        ValueError: If stop_at is not on tip's first-parent history
    """
    commits: list[Commit] = []
    merges: list[Commit] = []
    found = stop_at is None

    for commit in repo.list_commits(tip):
        if commit.sha == stop_at:
            found = True
            break
        if repo.is_merge(commit):
            logger.debug(
                "Omitting merge {sha}: {subject}",
                sha=commit.short,
                subject=commit.subject,
            )
            merges.append(commit)
            continue
        commits.append(commit)

    if not found:
        raise ValueError(
            f"{stop_at} is not on the first-parent history of {tip}"
        )

    commits.reverse()
    merges.reverse()
    return CommitSeries(
        tip=tip, base=stop_at, commits=commits, skipped_merges=merges
    )
