"""Reconcile a branch with the new commits of another.

    from topbase import GitRepository, topbase

    result = topbase(GitRepository("."), source="split/lib", target="main")
"""

from topbase.core.errors import (
    ConflictDuringReplay,
    DirtyWorkingTree,
    GitCommandError,
    RefUpdateRejected,
    TopbaseError,
    UnknownBranch,
    UnsupportedGitVersion,
    WorkingTreeUpdateRefused,
)
from topbase.core.result import ForkPoint, ReconcileResult
from topbase.git import (
    DryRunRepository,
    GitRepository,
    MemoryRepository,
    Repository,
)
from topbase.reconcile.orchestrator import rebase, topbase

__all__ = [
    "ConflictDuringReplay",
    "DirtyWorkingTree",
    "DryRunRepository",
    "ForkPoint",
    "GitCommandError",
    "GitRepository",
    "MemoryRepository",
    "ReconcileResult",
    "RefUpdateRejected",
    "Repository",
    "TopbaseError",
    "UnknownBranch",
    "UnsupportedGitVersion",
    "WorkingTreeUpdateRefused",
    "rebase",
    "topbase",
]
