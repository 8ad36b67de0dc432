"""Repository implementation backed by the git command line."""

from __future__ import annotations

import re
import shlex
from pathlib import Path

import yaml

from topbase.core.config import EMPTY_TREE
from topbase.core.errors import (
    ConflictDuringReplay,
    GitCommandError,
    RefUpdateRejected,
    UnknownBranch,
    UnsupportedGitVersion,
    WorkingTreeUpdateRefused,
)
from topbase.core.log import logger
from topbase.core.runner import Runner
from topbase.git.commit import Commit, CommitMetadata
from topbase.git.repository import Repository

# Field order of the log format below
_FIELDS = (
    "sha", "parents", "tree",
    "author_name", "author_email", "author_date",
    "committer_name", "committer_email", "committer_date",
    "message",
)
_LOG_FORMAT = "%x1f".join(
    ["%H", "%P", "%T", "%an", "%ae", "%ad", "%cn", "%ce", "%cd", "%B"]
)

# merge-tree --write-tree with --merge-base
MIN_GIT_VERSION = (2, 40)


def parse_git_version(output: str) -> tuple[int, int] | None:
    """Major and minor from `git version` output, if recognisable."""
    match = re.search(r"(\d+)\.(\d+)", output)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def default_commands() -> dict[str, str]:
    """Git command templates shipped in defaults/default.yaml."""
    path = Path(__file__).parent.parent / "defaults" / "default.yaml"
    with open(path) as f:
        data = yaml.safe_load(f)
    return dict(data["config"]["commands"]["git"])


def parse_log(output: str) -> list[Commit]:
    """Parse NUL-separated `git log -z` records in _LOG_FORMAT."""
    commits = []
    for record in output.split("\0"):
        if not record.strip():
            continue
        values = record.lstrip("\n").split("\x1f", len(_FIELDS) - 1)
        if len(values) != len(_FIELDS):
            raise ValueError(f"Unexpected git log record: {record[:80]!r}")
        fields = dict(zip(_FIELDS, values, strict=True))
        fields["parents"] = tuple(fields["parents"].split())
        commits.append(Commit(**fields))
    return commits


class GitRepository(Repository):
    """Commit graph accessor that shells out to git.

    Every command line comes from the `commands.git` templates in
    configuration, so hosts can adjust them without code changes.
    Replay uses `merge-tree --write-tree` and `commit-tree`, which
    write objects only; the index and working tree are touched
    once, when the checked-out branch itself is moved.
    """

    def __init__(
        self,
        workdir: Path,
        commands: dict[str, str] | None = None,
        empty_tree: str = EMPTY_TREE,
        runner: Runner | None = None,
        timeout: int | None = None,
    ):
        """Initialize repository accessor.

        Args:
            workdir: Path to the git working directory
            commands: Git command templates (defaults to the
                package defaults)
            empty_tree: Object id of the empty tree
            runner: Command runner (a fresh Runner if omitted)
            timeout: Seconds before any one git command is abandoned
        """
        self._workdir = Path(workdir)
        self.commands = commands or default_commands()
        self.empty_tree = empty_tree
        self.runner = runner or Runner()
        self.timeout = timeout
        self._commits: dict[str, Commit] = {}
        self._version_checked = False
        self._empty_base: str | None = None

    @property
    def workdir(self) -> Path:
        return self._workdir

    def _execute(self, command: str, stdin=None, env=None):
        return self.runner.execute(
            command,
            cwd=self.workdir,
            timeout=self.timeout,
            check=False,
            stdin=stdin,
            env=env,
        )

    def _git(self, name: str, check: bool = True, stdin=None, env=None,
             **params):
        """Run the named git command template.

        Parameters are shell-quoted before substitution. A command
        that outlives the timeout reports exit code -1.
        """
        command = self.commands[name].format(
            **{k: shlex.quote(str(v)) for k, v in params.items()}
        )
        result = self._execute(command, stdin=stdin, env=env)
        if check and result.exited != 0:
            raise GitCommandError(command, result.exited, result.stderr)
        return result

    def _rev_parse(self, rev: str) -> str | None:
        result = self._git("resolve", check=False, ref=f"{rev}^{{commit}}")
        if result.exited != 0:
            return None
        return result.stdout.strip()

    def resolve_branch(self, name: str) -> str:
        sha = self._rev_parse(name)
        if sha is None:
            raise UnknownBranch(name)
        return sha

    def current_branch(self) -> str | None:
        result = self._git("current_branch", check=False)
        if result.exited != 0:
            return None
        return result.stdout.strip() or None

    def current_branch_is_clean(self) -> bool:
        result = self._git("status")
        return not result.stdout.strip()

    def _log(self, ref: str, options: str) -> list[Commit]:
        command = self.commands["log"].format(
            format=shlex.quote(_LOG_FORMAT),
            options=options,
            ref=shlex.quote(ref),
        )
        result = self._execute(command)
        if result.exited != 0:
            raise GitCommandError(command, result.exited, result.stderr)
        commits = parse_log(result.stdout)
        for commit in commits:
            self._commits[commit.sha] = commit
        return commits

    def get_commit(self, sha: str) -> Commit:
        if sha not in self._commits:
            commits = self._log(sha, "-1")
            if not commits:
                raise UnknownBranch(sha)
        return self._commits[sha]

    def list_commits(self, ref: str) -> list[Commit]:
        return self._log(ref, "--first-parent")

    def diff(self, commit: Commit) -> str:
        if commit.is_merge:
            raise ValueError(f"Merge commit {commit.short} has no single diff")
        if commit.is_root:
            return self._git("diff_root", sha=commit.sha).stdout
        return self._git(
            "diff", parent=commit.first_parent, sha=commit.sha
        ).stdout

    def require_replay_support(self) -> None:
        """Fail early if git predates merge-tree --merge-base.

        Raises:
            UnsupportedGitVersion: If git is older than MIN_GIT_VERSION
        """
        if self._version_checked:
            return
        output = self._git("version").stdout
        version = parse_git_version(output)
        if version is None or version < MIN_GIT_VERSION:
            raise UnsupportedGitVersion(output, MIN_GIT_VERSION)
        self._version_checked = True

    def _root_base(self) -> str:
        """Parentless commit of the empty tree, the base for root commits.

        merge-tree only takes commits as --merge-base on older git,
        so the empty tree is wrapped once per accessor. Fixed identity
        and dates keep its id stable across runs.
        """
        if self._empty_base is None:
            stamp = "1000000000 +0000"
            env = {
                "GIT_AUTHOR_NAME": "topbase",
                "GIT_AUTHOR_EMAIL": "topbase@localhost",
                "GIT_AUTHOR_DATE": stamp,
                "GIT_COMMITTER_NAME": "topbase",
                "GIT_COMMITTER_EMAIL": "topbase@localhost",
                "GIT_COMMITTER_DATE": stamp,
            }
            result = self._git(
                "commit_root",
                stdin="empty base\n",
                env=env,
                tree=self.empty_tree,
            )
            self._empty_base = result.stdout.strip()
        return self._empty_base

    def replay_tree(self, commit: Commit, onto: str) -> str:
        self.require_replay_support()
        base = commit.first_parent or self._root_base()
        result = self._git(
            "merge_tree", check=False, base=base, onto=onto, sha=commit.sha
        )
        lines = result.stdout.splitlines()
        if result.exited == 0:
            return lines[0].strip()
        if result.exited == 1:
            # First line is the (conflicted) tree, then one path per line
            paths = [line.strip() for line in lines[1:] if line.strip()]
            raise ConflictDuringReplay(commit.sha, paths, commit.subject)
        raise GitCommandError(
            self.commands["merge_tree"], result.exited, result.stderr
        )

    def create_commit(
        self, parent: str, tree: str, metadata: CommitMetadata
    ) -> str:
        env = {
            "GIT_AUTHOR_NAME": metadata.author_name,
            "GIT_AUTHOR_EMAIL": metadata.author_email,
            "GIT_AUTHOR_DATE": metadata.author_date,
        }
        result = self._git(
            "commit_tree",
            stdin=metadata.message,
            env=env,
            tree=tree,
            parent=parent,
        )
        return result.stdout.strip()

    def move_ref(self, branch: str, new_tip: str, old_tip: str) -> None:
        """Publish new_tip on branch.

        When branch is checked out, index and files are moved to
        new_tip first and the ref follows only once that worked. A
        failed ref update puts the files back, so every failure leaves
        ref, index and working tree at old_tip.

        Raises:
            RefUpdateRejected: If branch no longer points at old_tip
            WorkingTreeUpdateRefused: If the checkout cannot follow,
                e.g. an untracked file would be overwritten
        """
        ref = f"refs/heads/{branch}"
        actual = self._rev_parse(ref)
        if actual != old_tip:
            raise RefUpdateRejected(branch, old_tip, actual)

        checked_out = self.current_branch() == branch
        if checked_out:
            synced = self._git(
                "read_tree", check=False, old=old_tip, new=new_tip
            )
            if synced.exited != 0:
                raise WorkingTreeUpdateRefused(branch, synced.stderr)

        result = self._git(
            "update_ref",
            check=False,
            reason=f"topbase: move {branch} to {new_tip[:12]}",
            ref=ref,
            new=new_tip,
            old=old_tip,
        )
        if result.exited != 0:
            if checked_out:
                self._git("read_tree", old=new_tip, new=old_tip)
            actual = self._rev_parse(ref)
            if actual != old_tip:
                raise RefUpdateRejected(branch, old_tip, actual)
            raise GitCommandError(
                self.commands["update_ref"], result.exited, result.stderr
            )

        if checked_out:
            logger.debug(
                "Updated working tree for checked-out branch",
                branch=branch,
            )
