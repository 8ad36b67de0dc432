"""Topbase command - layer a source branch's new commits on target."""

from typing import ClassVar

from topbase.command.base import ReconcileCommand
from topbase.core.result import ReconcileResult
from topbase.git.repository import Repository
from topbase.reconcile.orchestrator import topbase


class TopbaseCommand(ReconcileCommand):
    """Append the commits that are new on source to target.

    The fork point is located by patch content, so this works
    when source's history was rewritten, for example by a split.
    target is fast-forwarded when possible and otherwise receives
    replayed copies of the new commits. Merge commits are never
    carried over.
    """

    operation: ClassVar[str] = "topbase"

    def reconcile(
        self, repo: Repository, target: str
    ) -> ReconcileResult:
        return topbase(repo, self.source, target)
