"""topbase() and rebase(): the reconciliation pipeline."""

from __future__ import annotations

from topbase.core.errors import DirtyWorkingTree, TopbaseError
from topbase.core.log import logger
from topbase.core.result import ReconcileResult
from topbase.git.repository import Repository
from topbase.reconcile.fastforward import try_fast_forward
from topbase.reconcile.fingerprint import Fingerprinter
from topbase.reconcile.forkpoint import Matcher, by_sha, resolve_fork_point
from topbase.reconcile.replay import replay
from topbase.reconcile.series import build_series


def topbase(repo: Repository, source: str, target: str) -> ReconcileResult:
    """Layer source's new commits on top of target.

    The fork point is found by patch content, so a source branch
    whose history was rewritten (split out, filtered) still lines
    up with target. Fast-forwards keep the source commits as-is;
    otherwise the new commits are replayed onto target. target is
    moved once, at the end, and only on success.

    Args:
        repo: Repository accessor
        source: Branch carrying the new commits
        target: Branch to update

    Returns:
        ReconcileResult describing what was (or, in a dry run,
        would be) published

    Raises:
        DirtyWorkingTree: Uncommitted changes; nothing was touched
        UnknownBranch: source or target does not exist
        ConflictDuringReplay: A commit did not apply; target is
            unchanged
        WorkingTreeUpdateRefused: target is checked out and its
            files cannot follow; target is unchanged
    """
    return _reconcile(
        repo,
        operation="topbase",
        source=source,
        target=target,
        onto=target,
        key=Fingerprinter(repo),
    )


def rebase(
    repo: Repository,
    source: str,
    target: str,
    onto: str | None = None,
) -> ReconcileResult:
    """Replay source's commits since its merge-base with target.

    Same pipeline as topbase(), but the fork point is the newest
    first-parent commit shared by both branches, and the commits
    are replayed onto `onto` (target by default). The result is
    published to target.
    """
    return _reconcile(
        repo,
        operation="rebase",
        source=source,
        target=target,
        onto=onto or target,
        key=by_sha,
    )


def _reconcile(
    repo: Repository,
    operation: str,
    source: str,
    target: str,
    onto: str,
    key: Matcher,
) -> ReconcileResult:
    with logger.span(
        "{operation} {source} onto {onto}",
        operation=operation,
        source=source,
        target=target,
        onto=onto,
    ):
        if not repo.current_branch_is_clean():
            raise DirtyWorkingTree(repo.workdir)

        source_tip = repo.resolve_branch(source)
        target_tip = repo.resolve_branch(target)
        onto_tip = (
            target_tip if onto == target else repo.resolve_branch(onto)
        )

        fork_point = resolve_fork_point(repo, source_tip, target_tip, key)
        series = build_series(repo, source_tip, fork_point.source)

        logger.info(
            "Found {count} new commit(s) on {source}",
            count=len(series),
            source=source,
            skipped_merges=len(series.skipped_merges),
            fork_point=(fork_point.target or "root")[:8],
        )
        if series.skipped_merges:
            logger.warning(
                "Leaving out {count} merge commit(s); changes that only "
                "exist on their merged branches are not replayed",
                count=len(series.skipped_merges),
                merges=[c.short for c in series.skipped_merges],
            )

        result = ReconcileResult(
            operation=operation,
            source=source,
            target=target,
            onto=onto,
            previous_tip=target_tip,
            new_tip=onto_tip,
            fork_point=fork_point,
            skipped_merges=len(series.skipped_merges),
            ambiguous_fork_point=fork_point.is_root,
            dry_run=repo.read_only,
        )

        fast_forward = try_fast_forward(
            series, fork_point, onto_tip, source_tip
        )
        if fast_forward is not None:
            result.new_tip = fast_forward
            result.commits_replayed = len(series)
            result.fast_forwarded = True
            logger.info(
                "Fast-forwarding {target} to {tip}",
                target=target,
                tip=fast_forward[:8],
            )
        elif series:
            try:
                outcome = replay(repo, series, onto_tip)
            except TopbaseError as e:
                logger.error(
                    "Replay failed; {target} left unchanged",
                    target=target,
                    error=str(e),
                )
                raise
            result.new_tip = outcome.tip
            result.commits_replayed = len(outcome.created)
            result.commits_dropped = len(outcome.dropped)

        if result.changed:
            repo.move_ref(target, result.new_tip, target_tip)
            logger.info(
                "{target} moved from {old} to {new}",
                target=target,
                old=target_tip[:8],
                new=result.new_tip[:8],
                dry_run=result.dry_run,
            )
        else:
            logger.info("{target} is already up to date", target=target)

        return result
