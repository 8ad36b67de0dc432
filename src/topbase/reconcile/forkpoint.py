"""Fork-point resolution by commit identity or patch content."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence

from topbase.core.log import logger
from topbase.core.result import ForkPoint
from topbase.git.commit import Commit
from topbase.git.repository import Repository
from topbase.reconcile.series import merge_free_history

# Maps a non-merge commit to the value two histories are matched on
Matcher = Callable[[Commit], Hashable]


def by_sha(commit: Commit) -> str:
    """Ancestry matching: only the very same commit agrees."""
    return commit.sha


class _SourceIndex:
    """Source history indexed by sha, and lazily by matcher key.

    Keys are only computed once a target commit fails the sha
    lookup, so pure fast-forwards never need a diff.
    """

    def __init__(self, history: Sequence[Commit], key: Matcher):
        self.history = history
        self.key = key
        self.by_sha = {commit.sha: i for i, commit in enumerate(history)}
        self._by_key: dict[Hashable, list[int]] | None = None

    def positions(self, value: Hashable) -> list[int]:
        if self._by_key is None:
            self._by_key = {}
            for i, commit in enumerate(self.history):
                self._by_key.setdefault(self.key(commit), []).append(i)
        return self._by_key.get(value, [])

    def key_at(self, index: int) -> Hashable | None:
        if index >= len(self.history):
            return None
        return self.key(self.history[index])


def find_fork_point(
    source_history: Sequence[Commit],
    target_history: Sequence[Commit],
    key: Matcher = by_sha,
) -> ForkPoint:
    """Newest target commit whose key also appears in the source.

    Both histories are merge-free and newest first. The target is
    scanned from its tip; the first target commit found in the
    source (by sha, then by key) is the fork point.

    When a key occurs more than once in the source, the occurrence
    whose older neighbour matches the target's older neighbour
    wins. Without such agreement the oldest occurrence is used,
    which replays more commits rather than skipping any.
    """
    index = _SourceIndex(source_history, key)

    for j, candidate in enumerate(target_history):
        if candidate.sha in index.by_sha:
            return ForkPoint(
                target=candidate.sha,
                source=candidate.sha,
                matched_by="sha",
            )

        positions = index.positions(key(candidate))
        if not positions:
            continue

        chosen = positions[-1]
        if len(positions) > 1:
            neighbour = (
                key(target_history[j + 1])
                if j + 1 < len(target_history) else None
            )
            agreeing = [
                i for i in positions if index.key_at(i + 1) == neighbour
            ]
            if agreeing:
                chosen = agreeing[-1]
            logger.debug(
                "Duplicate change {sha} in source history",
                sha=candidate.short,
                occurrences=len(positions),
                chosen=source_history[chosen].short,
            )

        return ForkPoint(
            target=candidate.sha,
            source=source_history[chosen].sha,
            matched_by="fingerprint",
        )

    return ForkPoint()


def resolve_fork_point(
    repo: Repository,
    source: str,
    target: str,
    key: Matcher = by_sha,
) -> ForkPoint:
    """Fork point of two branches (names or commit ids).

    Falls back to the repository root, with a warning, when the
    histories share nothing; the whole source history will then
    be replayed.
    """
    fork_point = find_fork_point(
        merge_free_history(repo, source),
        merge_free_history(repo, target),
        key,
    )
    if fork_point.is_root:
        logger.warning(
            "No common fork point between {source} and {target}; "
            "treating the entire source history as new",
            source=source,
            target=target,
        )
    else:
        logger.debug(
            "Fork point {target_sha} (source {source_sha}) by {matched_by}",
            target_sha=fork_point.target[:8],
            source_sha=fork_point.source[:8],
            matched_by=fork_point.matched_by,
        )
    return fork_point
