"""In-memory repository for tests and experiments.

MemoryRepository keeps a content-addressed commit graph in plain
dicts. It implements the full Repository interface plus a few
builder helpers (commit, create_branch, merge) so tests can lay
out histories without a git binary.

Mutation tracking:
- ref_moves: every (branch, old, new) published through move_ref()
"""

from __future__ import annotations

import difflib
import hashlib
import json

from topbase.core.errors import (
    ConflictDuringReplay,
    RefUpdateRejected,
    UnknownBranch,
)
from topbase.git.commit import Commit, CommitMetadata
from topbase.git.repository import Repository

Tree = dict[str, str]


def _digest(payload) -> str:
    data = json.dumps(payload, sort_keys=True).encode("utf-8")
    return hashlib.sha1(data).hexdigest()


class MemoryRepository(Repository):
    """Content-addressed commit graph held in memory."""

    def __init__(
        self,
        clean: bool = True,
        author: tuple[str, str] = ("Test Author", "author@example.com"),
        committer: tuple[str, str] = ("Test Committer",
                                      "committer@example.com"),
        start_time: int = 1_700_000_000,
    ):
        self.clean = clean
        self.author = author
        self.committer = committer
        self.branches: dict[str, str] = {}
        self.head: str | None = None
        self.ref_moves: list[tuple[str, str, str]] = []
        self._commits: dict[str, Commit] = {}
        self._trees: dict[str, Tree] = {}
        self._clock = start_time
        self.empty_tree = self._write_tree({})

    # --------------------------------------------------------
    # Builder helpers
    # --------------------------------------------------------

    def _write_tree(self, tree: Tree) -> str:
        tree_id = _digest(tree)
        self._trees[tree_id] = dict(tree)
        return tree_id

    def _tick(self) -> str:
        self._clock += 60
        return f"{self._clock} +0000"

    def _write_commit(
        self,
        parents: tuple[str, ...],
        tree: str,
        metadata: CommitMetadata,
    ) -> str:
        committer_date = self._tick()
        fields = {
            "parents": parents,
            "tree": tree,
            "author_name": metadata.author_name,
            "author_email": metadata.author_email,
            "author_date": metadata.author_date,
            "committer_name": self.committer[0],
            "committer_email": self.committer[1],
            "committer_date": committer_date,
            "message": metadata.message,
        }
        sha = _digest(fields)
        self._commits[sha] = Commit(sha=sha, **fields)
        return sha

    def tree(self, ref: str) -> Tree:
        """Files at a branch tip or commit."""
        commit = self.get_commit(self.resolve_branch(ref))
        return dict(self._trees[commit.tree])

    def commit(
        self,
        branch: str,
        message: str,
        changes: dict[str, str | None] | None = None,
        author: tuple[str, str] | None = None,
    ) -> str:
        """Commit changes on top of branch (creating it if needed).

        Args:
            branch: Branch to advance
            message: Commit message
            changes: path -> new content, or None to delete the path
            author: (name, email), defaults to self.author

        Returns:
            The new commit id
        """
        parent = self.branches.get(branch)
        tree = self.tree(parent) if parent else {}
        for path, content in (changes or {}).items():
            if content is None:
                tree.pop(path, None)
            else:
                tree[path] = content

        name, email = author or self.author
        sha = self._write_commit(
            (parent,) if parent else (),
            self._write_tree(tree),
            CommitMetadata(
                author_name=name,
                author_email=email,
                author_date=self._tick(),
                message=message,
            ),
        )
        self.branches[branch] = sha
        if self.head is None:
            self.head = branch
        return sha

    def create_branch(self, name: str, start: str) -> str:
        self.branches[name] = self.resolve_branch(start)
        return self.branches[name]

    def checkout(self, branch: str) -> None:
        self.resolve_branch(branch)
        self.head = branch

    def merge(self, branch: str, other: str, message: str | None = None):
        """Create a merge commit of other into branch.

        Files from other win on overlap; this helper never
        conflicts.
        """
        ours = self.resolve_branch(branch)
        theirs = self.resolve_branch(other)
        tree = self.tree(ours)
        tree.update(self.tree(theirs))
        name, email = self.author
        sha = self._write_commit(
            (ours, theirs),
            self._write_tree(tree),
            CommitMetadata(
                author_name=name,
                author_email=email,
                author_date=self._tick(),
                message=message or f"Merge branch '{other}' into {branch}",
            ),
        )
        self.branches[branch] = sha
        return sha

    # --------------------------------------------------------
    # Repository interface
    # --------------------------------------------------------

    def resolve_branch(self, name: str) -> str:
        if name in self.branches:
            return self.branches[name]
        if name in self._commits:
            return name
        raise UnknownBranch(name)

    def current_branch(self) -> str | None:
        return self.head

    def current_branch_is_clean(self) -> bool:
        return self.clean

    def get_commit(self, sha: str) -> Commit:
        try:
            return self._commits[sha]
        except KeyError:
            raise UnknownBranch(sha) from None

    def list_commits(self, ref: str) -> list[Commit]:
        commits = []
        sha = self.resolve_branch(ref)
        while sha is not None:
            commit = self._commits[sha]
            commits.append(commit)
            sha = commit.first_parent
        return commits

    def diff(self, commit: Commit) -> str:
        if commit.is_merge:
            raise ValueError(f"Merge commit {commit.short} has no single diff")
        before = (
            self._trees[self._commits[commit.first_parent].tree]
            if commit.first_parent else {}
        )
        after = self._trees[commit.tree]

        chunks = []
        for path in sorted(set(before) | set(after)):
            old, new = before.get(path), after.get(path)
            if old == new:
                continue
            chunks.append(f"diff a/{path} b/{path}\n")
            if old is None:
                chunks.append("new file\n")
            elif new is None:
                chunks.append("deleted file\n")
            chunks.extend(difflib.unified_diff(
                (old or "").splitlines(keepends=True),
                (new or "").splitlines(keepends=True),
                fromfile=f"a/{path}",
                tofile=f"b/{path}",
            ))
        return "".join(chunks)

    def replay_tree(self, commit: Commit, onto: str) -> str:
        base = (
            self._trees[self._commits[commit.first_parent].tree]
            if commit.first_parent else {}
        )
        ours = self._trees[self.get_commit(onto).tree]
        theirs = self._trees[commit.tree]

        # File-level three-way merge
        result = dict(ours)
        conflicts = []
        for path in sorted(set(base) | set(ours) | set(theirs)):
            b, o, t = base.get(path), ours.get(path), theirs.get(path)
            if t == b or o == t:
                continue
            if o == b:
                if t is None:
                    result.pop(path, None)
                else:
                    result[path] = t
                continue
            conflicts.append(path)

        if conflicts:
            raise ConflictDuringReplay(commit.sha, conflicts, commit.subject)
        return self._write_tree(result)

    def create_commit(
        self, parent: str, tree: str, metadata: CommitMetadata
    ) -> str:
        return self._write_commit((parent,), tree, metadata)

    def move_ref(self, branch: str, new_tip: str, old_tip: str) -> None:
        actual = self.branches.get(branch)
        if actual != old_tip:
            raise RefUpdateRejected(branch, old_tip, actual)
        self.branches[branch] = new_tip
        self.ref_moves.append((branch, old_tip, new_tip))
