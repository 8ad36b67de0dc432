"""Detect reconciliations that are a pure pointer move."""

from __future__ import annotations

from topbase.core.log import logger
from topbase.core.result import ForkPoint
from topbase.reconcile.series import CommitSeries


def try_fast_forward(
    series: CommitSeries,
    fork_point: ForkPoint,
    onto_tip: str,
    source_tip: str,
) -> str | None:
    """Return source_tip if onto can simply be moved there.

    Requires the series to sit directly on onto_tip through shared
    commits, with no merges anywhere between them. A merge
    disqualifies the fast-forward even when git would allow one,
    so merge commits never reach the target history.
    """
    if not series:
        return None
    if series.skipped_merges:
        logger.debug(
            "Fast-forward disqualified by {count} merge commit(s)",
            count=len(series.skipped_merges),
        )
        return None
    if not fork_point.is_shared_commit or fork_point.target != onto_tip:
        return None
    if series.commits[0].first_parent != onto_tip:
        return None
    if series.newest.sha != source_tip:
        return None
    return source_tip
