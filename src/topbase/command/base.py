"""Shared plumbing for the topbase and rebase commands."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from topbase.core.errors import TopbaseError
from topbase.core.log import logger
from topbase.core.result import ReconcileResult
from topbase.git.dryrun import DryRunRepository
from topbase.git.local import GitRepository
from topbase.git.repository import Repository

if TYPE_CHECKING:
    from topbase.core.config import State


class ReconcileCommand(BaseModel):
    """Options common to every reconciling subcommand."""

    source: str = Field(
        description="Branch carrying the new commits",
    )
    target: str | None = Field(
        default=None,
        description=(
            "Branch to update (defaults to the checked-out branch)"
        ),
    )
    dry_run: bool = Field(
        default=False,
        alias="dry-run",
        description=(
            "Compute the result and report the ref update without "
            "moving any branch"
        ),
    )

    model_config = ConfigDict(populate_by_name=True)

    operation: ClassVar[str] = "reconcile"

    def open_repository(self, state: State) -> Repository:
        git = state.config.git
        repo: Repository = GitRepository(
            git.workdir,
            commands=state.config.commands.get("git"),
            empty_tree=git.empty_tree,
            timeout=git.timeout,
        )
        if self.dry_run:
            repo = DryRunRepository(repo)
        return repo

    @abstractmethod
    def reconcile(
        self, repo: Repository, target: str
    ) -> ReconcileResult:
        """Run this subcommand's operation against repo."""

    def run(self, state: State, repo: Repository | None = None) -> int:
        """Run the reconciliation and record it in state.runtime.

        Args:
            state: State instance
            repo: Accessor to use instead of the configured checkout

        Returns:
            Exit code (0=success, 1=reconciliation refused or failed)
        """
        runtime = state.runtime.reconcile
        runtime.operation = self.operation
        runtime.status = "running"

        try:
            repo = repo or self.open_repository(state)
            target = self.target or repo.current_branch()
            if target is None:
                raise TopbaseError(
                    "HEAD is detached; pass --target explicitly"
                )
            result = self.reconcile(repo, target)
        except TopbaseError as e:
            runtime.status = "failed"
            logger.error(str(e))
            return 1

        runtime.status = "complete"
        runtime.result = result
        report(result)
        return 0


def report(result: ReconcileResult) -> None:
    """Summarise a finished reconciliation on the console."""
    if not result.changed:
        logger.info("{target} unchanged", target=result.target)
        return

    how = "fast-forward" if result.fast_forwarded else "replay"
    verb = "would move" if result.dry_run else "moved"
    logger.info(
        "{operation}: {target} {verb} {old} -> {new} ({how}, "
        "{replayed} commit(s), {dropped} dropped, {merges} merge(s) "
        "left out)",
        operation=result.operation,
        target=result.target,
        verb=verb,
        old=result.previous_tip[:8],
        new=result.new_tip[:8],
        how=how,
        replayed=result.commits_replayed,
        dropped=result.commits_dropped,
        merges=result.skipped_merges,
    )
