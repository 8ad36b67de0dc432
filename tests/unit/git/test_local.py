"""Tests for the git command-line repository accessor."""

import pytest

from topbase.core.errors import (
    ConflictDuringReplay,
    GitCommandError,
    RefUpdateRejected,
    UnknownBranch,
    UnsupportedGitVersion,
)
from topbase.git.commit import Commit
from topbase.git.local import (
    GitRepository,
    default_commands,
    parse_git_version,
    parse_log,
)

SEP = "\x1f"


def _record(sha, parents, message):
    return SEP.join([
        sha, parents, "tree" + sha,
        "Ada", "ada@example.com", "1700000000 +0100",
        "Bob", "bob@example.com", "1700000060 +0000",
        message,
    ])


class TestParseLog:
    """Tests for parse_log()."""

    def test_parses_records(self):
        output = "\0".join([
            _record("c2", "c1", "second\n\nbody\n"),
            _record("c1", "", "first\n"),
        ]) + "\0"

        second, first = parse_log(output)

        assert second.parents == ("c1",)
        assert second.subject == "second"
        assert second.message == "second\n\nbody\n"
        assert second.author_date == "1700000000 +0100"
        assert first.is_root

    def test_merge_parents(self):
        (commit,) = parse_log(_record("m", "p1 p2", "merge\n"))
        assert commit.parents == ("p1", "p2")
        assert commit.is_merge

    def test_leading_newline_between_records(self):
        output = _record("c2", "c1", "x\n") + "\0\n" + _record("c1", "", "y\n")
        assert [c.sha for c in parse_log(output)] == ["c2", "c1"]

    def test_separator_inside_message_is_kept(self):
        (commit,) = parse_log(_record("c1", "", f"odd{SEP}subject\n"))
        assert commit.message == f"odd{SEP}subject\n"

    def test_empty_output(self):
        assert parse_log("") == []

    def test_truncated_record(self):
        with pytest.raises(ValueError, match="Unexpected git log record"):
            parse_log("abc\x1fdef")


def test_default_commands_cover_accessor():
    commands = default_commands()
    for name in ("resolve", "log", "diff", "diff_root", "merge_tree",
                 "commit_tree", "commit_root", "update_ref", "read_tree",
                 "status", "version"):
        assert name in commands


def _commands(**overrides):
    commands = default_commands()
    commands.update(overrides)
    return commands


class TestGitVersion:
    """Tests for the merge-tree capability check."""

    def test_parse_git_version(self):
        assert parse_git_version("git version 2.39.2\n") == (2, 39)
        assert parse_git_version("git version 2.45.1.windows.1") == (2, 45)
        assert parse_git_version("not git") is None

    def test_old_git_is_refused_before_replay(self, tmp_path):
        repo = GitRepository(
            tmp_path,
            commands=_commands(version="echo git version 2.39.2"),
        )
        commit = Commit(sha="c" * 40, parents=("p" * 40,), tree="t" * 40)

        with pytest.raises(UnsupportedGitVersion, match="2.40 or later"):
            repo.replay_tree(commit, "o" * 40)


def test_slow_command_times_out(tmp_path):
    repo = GitRepository(
        tmp_path, commands=_commands(status="sleep 5"), timeout=1
    )

    with pytest.raises(GitCommandError) as excinfo:
        repo.current_branch_is_clean()
    assert excinfo.value.returncode == -1


class TestGitRepository:
    """Tests against a scratch git repository."""

    def test_resolve_and_current_branch(self, checkout):
        sha = checkout.commit("initial", {"a.txt": "1\n"})
        repo = GitRepository(checkout.path)

        assert repo.resolve_branch("main") == sha
        assert repo.current_branch() == "main"
        with pytest.raises(UnknownBranch):
            repo.resolve_branch("missing")

    def test_clean_and_dirty(self, checkout):
        checkout.commit("initial", {"a.txt": "1\n"})
        repo = GitRepository(checkout.path)
        assert repo.current_branch_is_clean()

        (checkout.path / "untracked.txt").write_text("ignored\n")
        assert repo.current_branch_is_clean()

        (checkout.path / "a.txt").write_text("changed\n")
        assert not repo.current_branch_is_clean()

    def test_list_commits_reads_metadata(self, checkout):
        first = checkout.commit("first", {"a.txt": "1\n"})
        second = checkout.commit("second line\n\nbody", {"b.txt": "1\n"})
        repo = GitRepository(checkout.path)

        commits = repo.list_commits("main")

        assert [c.sha for c in commits] == [second, first]
        assert commits[0].parents == (first,)
        assert commits[0].subject == "second line"
        assert commits[0].author_name == "Test User"
        assert commits[0].author_date.endswith("+0000")
        assert repo.get_commit(first) == commits[1]

    def test_diff_omits_nothing_but_is_stable(self, checkout):
        sha = checkout.commit("first", {"a.txt": "1\n"})
        repo = GitRepository(checkout.path)
        commit = repo.get_commit(sha)

        diff = repo.diff(commit)
        assert "a.txt" in diff
        assert diff == repo.diff(commit)

    @pytest.mark.usefixtures("replay_capable_git")
    def test_replay_commit_and_publish(self, checkout):
        base = checkout.commit("base", {"a.txt": "1\n"})
        checkout.git("checkout", "-q", "-b", "feature")
        change = checkout.commit("feature", {"b.txt": "1\n"})
        checkout.git("checkout", "-q", "main")
        onto = checkout.commit("main moves", {"c.txt": "1\n"})
        repo = GitRepository(checkout.path)
        commit = repo.get_commit(change)

        tree = repo.replay_tree(commit, onto)
        new = repo.create_commit(onto, tree, commit.metadata)
        repo.move_ref("main", new, onto)

        replayed = repo.get_commit(new)
        assert replayed.parents == (onto,)
        assert replayed.message == commit.message
        assert replayed.author_date == commit.author_date
        assert checkout.rev("main") == new
        # Checked-out branch moved: files follow
        assert (checkout.path / "b.txt").read_text() == "1\n"
        assert repo.current_branch_is_clean()
        assert base in checkout.first_parent_log("main")

    @pytest.mark.usefixtures("replay_capable_git")
    def test_replay_conflict(self, checkout):
        checkout.commit("base", {"a.txt": "1\n"})
        checkout.git("checkout", "-q", "-b", "feature")
        change = checkout.commit("feature", {"a.txt": "feature\n"})
        checkout.git("checkout", "-q", "main")
        onto = checkout.commit("main", {"a.txt": "main\n"})
        repo = GitRepository(checkout.path)

        with pytest.raises(ConflictDuringReplay) as excinfo:
            repo.replay_tree(repo.get_commit(change), onto)
        assert excinfo.value.paths == ["a.txt"]
        assert excinfo.value.commit == change

    def test_move_ref_rejects_stale_tip(self, checkout):
        first = checkout.commit("first", {"a.txt": "1\n"})
        second = checkout.commit("second", {"a.txt": "2\n"})
        repo = GitRepository(checkout.path)

        with pytest.raises(RefUpdateRejected) as excinfo:
            repo.move_ref("main", first, first)
        assert excinfo.value.actual == second
        assert checkout.rev("main") == second

    def test_failed_ref_update_restores_checkout(self, checkout):
        base = checkout.commit("base", {"a.txt": "1\n"})
        checkout.git("checkout", "-q", "-b", "feature")
        change = checkout.commit("feature", {"b.txt": "1\n"})
        checkout.git("checkout", "-q", "main")
        repo = GitRepository(
            checkout.path, commands=_commands(update_ref="false")
        )

        with pytest.raises(GitCommandError):
            repo.move_ref("main", change, base)

        assert checkout.rev("main") == base
        assert not (checkout.path / "b.txt").exists()
        assert checkout.git("status", "--porcelain") == ""

    @pytest.mark.usefixtures("replay_capable_git")
    def test_replay_root_commit_onto_unrelated_history(self, checkout):
        onto = checkout.commit("main", {"a.txt": "1\n"})
        checkout.git("checkout", "-q", "--orphan", "other")
        checkout.git("rm", "-q", "-r", "--cached", ".")
        (checkout.path / "a.txt").unlink()
        root = checkout.commit("other root", {"b.txt": "1\n"})
        repo = GitRepository(checkout.path)

        tree = repo.replay_tree(repo.get_commit(root), onto)

        names = checkout.git("ls-tree", "--name-only", tree).split()
        assert names == ["a.txt", "b.txt"]
