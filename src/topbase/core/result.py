"""Result types for reconciliation."""

from pydantic import BaseModel, ConfigDict, Field


class ForkPoint(BaseModel):
    """Where two merge-free histories agree.

    `target` is the matching commit on the target branch and
    `source` its counterpart on the source branch. They are the
    same commit when the histories share ancestry, and different
    commits with identical changes when the source was rewritten.
    Both are None when nothing matched (the repository root).
    """

    model_config = ConfigDict(frozen=True)

    target: str | None = None
    source: str | None = None
    matched_by: str | None = Field(
        default=None,
        description="'sha' for shared commits, 'fingerprint' for "
                    "content matches, None for the root",
    )

    @property
    def is_root(self) -> bool:
        return self.target is None

    @property
    def is_shared_commit(self) -> bool:
        return self.target is not None and self.target == self.source


class ReplayOutcome(BaseModel):
    """What the replay engine produced before anything is published."""

    tip: str
    created: list[str] = Field(default_factory=list)
    dropped: list[str] = Field(default_factory=list)


class ReconcileResult(BaseModel):
    """Outcome of a topbase or rebase call."""

    operation: str
    source: str
    target: str
    onto: str
    previous_tip: str
    new_tip: str
    fork_point: ForkPoint
    commits_replayed: int = 0
    commits_dropped: int = 0
    skipped_merges: int = 0
    fast_forwarded: bool = False
    ambiguous_fork_point: bool = False
    dry_run: bool = False

    @property
    def changed(self) -> bool:
        return self.new_tip != self.previous_tip
