"""Content-derived identity for a commit's change."""

from __future__ import annotations

import hashlib

from topbase.core.log import logger
from topbase.git.commit import Commit
from topbase.git.repository import Repository

Fingerprint = str


def normalize_diff(diff: str) -> str:
    """Drop blob index lines from a diff.

    `index <old>..<new> [mode]` names whole-file object ids, which
    differ between histories even when the change itself does not.
    Mode changes are still covered by the `old mode`/`new mode`
    and `new file mode` header lines.
    """
    return "".join(
        line for line in diff.splitlines(keepends=True)
        if not line.startswith("index ")
    )


def fingerprint_diff(diff: str) -> Fingerprint:
    data = normalize_diff(diff).encode("utf-8", "surrogateescape")
    return hashlib.sha256(data).hexdigest()


class Fingerprinter:
    """Computes and memoises fingerprints for one repository.

    Commits are immutable, so a fingerprint never goes stale for
    the lifetime of the repository handle.
    """

    def __init__(self, repo: Repository):
        self.repo = repo
        self._cache: dict[str, Fingerprint] = {}

    def fingerprint(self, commit: Commit) -> Fingerprint:
        """Fingerprint of a root or single-parent commit.

        Raises:
            ValueError: For merge commits, which are never matched
        """
        if self.repo.is_merge(commit):
            raise ValueError(
                f"Merge commit {commit.short} cannot be fingerprinted"
            )
        if commit.sha not in self._cache:
            self._cache[commit.sha] = fingerprint_diff(
                self.repo.diff(commit)
            )
            logger.spew(
                "fingerprint {sha}",
                sha=commit.short,
                fingerprint=self._cache[commit.sha][:12],
            )
        return self._cache[commit.sha]

    __call__ = fingerprint
