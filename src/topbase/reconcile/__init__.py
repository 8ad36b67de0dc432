"""History reconciliation: fork points, series, fast-forward, replay."""

from topbase.reconcile.fastforward import try_fast_forward
from topbase.reconcile.fingerprint import Fingerprinter, fingerprint_diff
from topbase.reconcile.forkpoint import (
    by_sha,
    find_fork_point,
    resolve_fork_point,
)
from topbase.reconcile.orchestrator import rebase, topbase
from topbase.reconcile.replay import replay
from topbase.reconcile.series import (
    CommitSeries,
    build_series,
    merge_free_history,
)

__all__ = [
    "CommitSeries",
    "Fingerprinter",
    "build_series",
    "by_sha",
    "find_fork_point",
    "fingerprint_diff",
    "merge_free_history",
    "rebase",
    "replay",
    "resolve_fork_point",
    "topbase",
    "try_fast_forward",
]
