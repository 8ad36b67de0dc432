"""Repository ABC: the commit graph accessor used by reconciliation."""

from abc import ABC, abstractmethod
from pathlib import Path

from topbase.git.commit import Commit, CommitMetadata


class Repository(ABC):
    """Commit graph access plus the few writes replay needs.

    Reconciliation only ever talks to a repository through this
    interface, so the same pipeline runs against a real git
    checkout, an in-memory graph, or a read-only dry-run wrapper.
    """

    @abstractmethod
    def resolve_branch(self, name: str) -> str:
        """Return the commit id a branch points at.

        Raises:
            UnknownBranch: If the branch does not exist
        """

    @abstractmethod
    def current_branch(self) -> str | None:
        """Name of the checked-out branch, or None when detached."""

    @abstractmethod
    def current_branch_is_clean(self) -> bool:
        """True if no tracked file has uncommitted changes."""

    @abstractmethod
    def get_commit(self, sha: str) -> Commit:
        """Read a single commit."""

    @abstractmethod
    def list_commits(self, ref: str) -> list[Commit]:
        """Commits reachable from ref along first parents, newest
        first."""

    @abstractmethod
    def diff(self, commit: Commit) -> str:
        """Textual change of a non-merge commit against its parent
        (or against the empty tree for a root commit)."""

    @abstractmethod
    def replay_tree(self, commit: Commit, onto: str) -> str:
        """Tree that results from applying commit's change on top
        of the commit `onto`.

        Raises:
            ConflictDuringReplay: If the change does not apply
        """

    @abstractmethod
    def create_commit(
        self, parent: str, tree: str, metadata: CommitMetadata
    ) -> str:
        """Write a new commit object and return its id.

        No ref is moved; the commit is unreachable until published.
        """

    @abstractmethod
    def move_ref(self, branch: str, new_tip: str, old_tip: str) -> None:
        """Atomically rebind branch from old_tip to new_tip.

        Raises:
            RefUpdateRejected: If branch no longer points at old_tip
        """

    def is_merge(self, commit: Commit) -> bool:
        return commit.is_merge

    @property
    def read_only(self) -> bool:
        return False

    @property
    def workdir(self) -> Path | None:
        """Working directory of the checkout, if there is one."""
        return None
