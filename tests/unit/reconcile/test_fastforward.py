"""Tests for fast-forward detection."""

from topbase.core.result import ForkPoint
from topbase.reconcile.fastforward import try_fast_forward
from topbase.reconcile.forkpoint import resolve_fork_point
from topbase.reconcile.series import build_series


def _plan(repo, source="feature", target="main"):
    fork = resolve_fork_point(repo, source, target)
    series = build_series(repo, source, fork.source)
    return series, fork


def test_linear_descendant_fast_forwards(repo):
    base = repo.commit("main", "base", {"a": "1\n"})
    repo.create_branch("feature", "main")
    repo.commit("feature", "one", {"b": "1\n"})
    tip = repo.commit("feature", "two", {"c": "1\n"})

    series, fork = _plan(repo)
    assert try_fast_forward(series, fork, base, tip) == tip


def test_target_moved_on(repo):
    repo.commit("main", "base", {"a": "1\n"})
    repo.create_branch("feature", "main")
    tip = repo.commit("feature", "one", {"b": "1\n"})
    moved = repo.commit("main", "unrelated", {"c": "1\n"})

    series, fork = _plan(repo)
    assert try_fast_forward(series, fork, moved, tip) is None


def test_merge_in_series_disqualifies(repo):
    """git would fast-forward here; merges must not reach target."""
    base = repo.commit("main", "base", {"a": "1\n"})
    repo.create_branch("feature", "main")
    repo.commit("feature", "one", {"b": "1\n"})
    repo.create_branch("tmp1", "feature")
    repo.commit("tmp1", "tmp", {"t": "1\n"})
    repo.commit("feature", "two", {"c": "1\n"})
    repo.merge("feature", "tmp1")
    tip = repo.commit("feature", "three", {"d": "1\n"})

    series, fork = _plan(repo)
    assert series.skipped_merges
    assert try_fast_forward(series, fork, base, tip) is None


def test_content_match_is_not_a_fast_forward(repo):
    """Rewritten commits differ in id, so they must be replayed."""
    main_a = repo.commit("main", "add a", {"a": "1\n"})
    repo.commit("split", "add a", {"a": "1\n"})
    tip = repo.commit("split", "add b", {"b": "1\n"})

    fork = ForkPoint(
        target=main_a,
        source=repo.get_commit(tip).first_parent,
        matched_by="fingerprint",
    )
    series = build_series(repo, "split", fork.source)
    assert try_fast_forward(series, fork, main_a, tip) is None


def test_empty_series(repo):
    base = repo.commit("main", "base", {"a": "1\n"})
    repo.create_branch("feature", "main")

    series, fork = _plan(repo)
    assert try_fast_forward(series, fork, base, base) is None


def test_root_fork_point(repo):
    repo.commit("main", "main", {"a": "1\n"})
    tip = repo.commit("other", "other", {"b": "1\n"})

    series, fork = _plan(repo, source="other")
    assert fork.is_root
    assert try_fast_forward(series, fork, repo.branches["main"], tip) is None
