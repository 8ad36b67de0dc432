"""Re-create a commit series on top of a new parent."""

from __future__ import annotations

from topbase.core.log import logger
from topbase.core.result import ReplayOutcome
from topbase.git.repository import Repository
from topbase.reconcile.series import CommitSeries


def replay(
    repo: Repository, series: CommitSeries, onto_tip: str
) -> ReplayOutcome:
    """Apply each commit of series, oldest first, starting at onto_tip.

    Each new commit keeps the original author, authored timestamp
    and message; its tree is recomputed against the new parent.
    Commits whose change is already present (the new tree equals
    the parent's) are dropped.

    Nothing is published here. On a conflict the commits written
    so far stay unreachable and the caller's branch is untouched.

    Raises:
        ConflictDuringReplay: Identifies the commit that failed
    """
    tip = onto_tip
    tip_tree = repo.get_commit(onto_tip).tree
    outcome = ReplayOutcome(tip=onto_tip)

    for commit in series:
        tree = repo.replay_tree(commit, tip)
        if tree == tip_tree:
            logger.info(
                "Dropping {sha} ({subject}): no changes left to apply",
                sha=commit.short,
                subject=commit.subject,
            )
            outcome.dropped.append(commit.sha)
            continue

        tip = repo.create_commit(tip, tree, commit.metadata)
        tip_tree = tree
        outcome.created.append(tip)
        logger.debug(
            "Replayed {old} as {new}: {subject}",
            old=commit.short,
            new=tip[:8],
            subject=commit.subject,
        )

    outcome.tip = tip
    return outcome
