"""Read-only repository substitute for dry runs."""

from __future__ import annotations

from pathlib import Path

from topbase.core.log import logger
from topbase.git.commit import Commit, CommitMetadata
from topbase.git.repository import Repository


class DryRunRepository(Repository):
    """Wraps a repository and suppresses every ref update.

    Reads, merge-tree computation and commit object creation are
    forwarded, so the reconciliation runs exactly as it would for
    real and reports the same new tip. New objects stay
    unreachable; no branch, index or working tree is modified.

    Planned ref updates are logged and kept in `planned_moves`.
    """

    def __init__(self, inner: Repository):
        self.inner = inner
        self.planned_moves: list[tuple[str, str, str]] = []

    @property
    def read_only(self) -> bool:
        return True

    @property
    def workdir(self) -> Path | None:
        return self.inner.workdir

    def resolve_branch(self, name: str) -> str:
        return self.inner.resolve_branch(name)

    def current_branch(self) -> str | None:
        return self.inner.current_branch()

    def current_branch_is_clean(self) -> bool:
        return self.inner.current_branch_is_clean()

    def get_commit(self, sha: str) -> Commit:
        return self.inner.get_commit(sha)

    def list_commits(self, ref: str) -> list[Commit]:
        return self.inner.list_commits(ref)

    def diff(self, commit: Commit) -> str:
        return self.inner.diff(commit)

    def replay_tree(self, commit: Commit, onto: str) -> str:
        return self.inner.replay_tree(commit, onto)

    def create_commit(
        self, parent: str, tree: str, metadata: CommitMetadata
    ) -> str:
        return self.inner.create_commit(parent, tree, metadata)

    def move_ref(self, branch: str, new_tip: str, old_tip: str) -> None:
        self.planned_moves.append((branch, old_tip, new_tip))
        logger.info(
            "git update-ref refs/heads/{branch} {new} {old}",
            branch=branch,
            new=new_tip,
            old=old_tip,
            dry_run=True,
        )
