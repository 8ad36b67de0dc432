"""Rebase command - replay source onto onto, publish to target."""

from typing import ClassVar

from pydantic import Field

from topbase.command.base import ReconcileCommand
from topbase.core.result import ReconcileResult
from topbase.git.repository import Repository
from topbase.reconcile.orchestrator import rebase


class RebaseCommand(ReconcileCommand):
    """Replay source's commits since its merge-base with target.

    Like git rebase, but merges are dropped instead of linearised
    and the branch is only moved once every commit has applied.
    """

    onto: str | None = Field(
        default=None,
        description="Commit or branch to replay onto (defaults to target)",
    )

    operation: ClassVar[str] = "rebase"

    def reconcile(
        self, repo: Repository, target: str
    ) -> ReconcileResult:
        return rebase(repo, self.source, target, onto=self.onto)
