"""Tests for FakeRepositoryGateway behavior that other tests rely on."""

from pathlib import Path

import pytest

from snapmirror.gateway.repository.fake import FakeCommit, FakeRepositoryGateway
from snapmirror.gateway.repository.types import (
    CommitSummary,
    RefPushed,
    RefPushFailed,
    RefPushRejected,
)
from tests.test_utils.history import at_minute, linear_history

ROOT = Path("/repo")


def _gateway(**kwargs: object) -> FakeRepositoryGateway:
    commits = linear_history([("a1", "t1"), ("a2", "t2"), ("a3", "t3")])
    return FakeRepositoryGateway(
        repository_root=ROOT, commits=commits, **kwargs  # type: ignore[arg-type]
    )


def test_refresh_copies_remote_branches_to_tracking_refs() -> None:
    fake = _gateway(
        remote_refs={"origin": {"refs/heads/main": "a3", "refs/tags/v1": "a1"}},
    )

    fake.refresh_all_remotes(ROOT)

    assert fake.resolve_ref(ROOT, "refs/remotes/origin/main") == "a3"
    assert "refs/remotes/origin/v1" not in fake.refs
    assert fake.refresh_count == 1


def test_refresh_prunes_deleted_remote_branches() -> None:
    fake = _gateway(
        refs={"refs/remotes/origin/gone": "a1"},
        remote_refs={"origin": {"refs/heads/main": "a3"}},
    )

    fake.refresh_all_remotes(ROOT)

    assert "refs/remotes/origin/gone" not in fake.refs


def test_refresh_applies_concurrent_updates_after_syncing() -> None:
    fake = _gateway(
        remote_refs={"public": {"refs/heads/latest": "a2"}},
        concurrent_remote_updates={"public": {"refs/heads/latest": "a3"}},
    )

    fake.refresh_all_remotes(ROOT)

    assert fake.resolve_ref(ROOT, "refs/remotes/public/latest") == "a2"
    assert fake.remote_refs["public"]["refs/heads/latest"] == "a3"


def test_refresh_raises_configured_error() -> None:
    fake = _gateway(refresh_raises=RuntimeError("Failed to fetch"))

    with pytest.raises(RuntimeError, match="Failed to fetch"):
        fake.refresh_all_remotes(ROOT)


def test_resolve_ref_accepts_short_names_and_prefixes() -> None:
    fake = _gateway(refs={"refs/tags/public-sync": "a2", "refs/remotes/origin/main": "a3"})

    assert fake.resolve_ref(ROOT, "public-sync") == "a2"
    assert fake.resolve_ref(ROOT, "origin/main") == "a3"
    assert fake.resolve_ref(ROOT, "a1") == "a1"
    assert fake.resolve_ref(ROOT, "missing") is None


def test_object_type_distinguishes_commits_and_trees() -> None:
    fake = _gateway()

    assert fake.object_type(ROOT, "a1") == "commit"
    assert fake.object_type(ROOT, "t1") == "tree"
    assert fake.object_type(ROOT, "nothing") is None


def test_commit_range_summary_excludes_since_and_merges() -> None:
    commits = linear_history([("a1", "t1"), ("a2", "t2")])
    commits["b1"] = FakeCommit(tree="t5", parents=("a1",), committed_at=at_minute(5))
    commits["m1"] = FakeCommit(
        tree="t6", parents=("a2", "b1"), committed_at=at_minute(6), message="Merge b1"
    )
    fake = FakeRepositoryGateway(repository_root=ROOT, commits=commits)

    summaries = fake.commit_range_summary(ROOT, "m1", since="a1", limit=None)

    assert [s.short_sha for s in summaries] == ["b1", "a2"]
    assert summaries[1] == CommitSummary(short_sha="a2", subject="change a2", author="Test Author")


def test_commit_range_summary_honors_limit() -> None:
    fake = _gateway()

    summaries = fake.commit_range_summary(ROOT, "a3", since=None, limit=2)

    assert [s.short_sha for s in summaries] == ["a3", "a2"]


def test_commits_oldest_first_excludes_ancestor() -> None:
    fake = _gateway()

    assert fake.commits_oldest_first(ROOT, "a1", "a3") == ["a2", "a3"]


def test_commits_newest_first_is_lazy() -> None:
    fake = _gateway()

    walk = fake.commits_newest_first(ROOT, "a3")
    assert next(walk) == "a3"

    assert fake.history_walk_steps == 1


def test_is_ancestor() -> None:
    fake = _gateway()

    assert fake.is_ancestor(ROOT, "a1", "a3") is True
    assert fake.is_ancestor(ROOT, "a3", "a3") is True
    assert fake.is_ancestor(ROOT, "a3", "a1") is False


def test_create_commit_returns_new_id_with_given_tree() -> None:
    fake = _gateway()
    date = at_minute(30)

    sha = fake.create_commit(
        ROOT, "t9", parents=["a3"], message="snap\n", author_date=date, committer_date=date
    )

    assert fake.commits[sha].tree == "t9"
    assert fake.commits[sha].parents == ("a3",)
    assert fake.committer_timestamp(ROOT, sha) == date
    assert fake.created_commits[0].sha == sha


def test_create_tag_without_force_refuses_existing_tag() -> None:
    fake = _gateway(refs={"refs/tags/v1": "a1"})

    with pytest.raises(RuntimeError, match="already exists"):
        fake.create_or_move_tag(ROOT, "v1", "a2", message=None, force=False)

    fake.create_or_move_tag(ROOT, "v1", "a2", message=None, force=True)
    assert fake.refs["refs/tags/v1"] == "a2"


def test_push_fast_forward_updates_remote_and_tracking_ref() -> None:
    fake = _gateway(remote_refs={"public": {"refs/heads/latest": "a1"}})

    outcome = fake.push_ref(
        ROOT, "public", "a2", "refs/heads/latest", expected_remote_value=None, force=False
    )

    assert outcome == RefPushed()
    assert fake.remote_refs["public"]["refs/heads/latest"] == "a2"
    assert fake.refs["refs/remotes/public/latest"] == "a2"


def test_push_non_fast_forward_is_rejected() -> None:
    fake = _gateway(remote_refs={"public": {"refs/heads/latest": "a3"}})

    outcome = fake.push_ref(
        ROOT, "public", "a2", "refs/heads/latest", expected_remote_value=None, force=False
    )

    assert isinstance(outcome, RefPushRejected)
    assert "non-fast-forward" in outcome.message
    assert fake.pushed_refs == []


def test_push_with_stale_lease_is_rejected() -> None:
    fake = _gateway(remote_refs={"public": {"refs/heads/latest": "a3"}})

    outcome = fake.push_ref(
        ROOT, "public", "a1", "refs/heads/latest", expected_remote_value="a2", force=False
    )

    assert isinstance(outcome, RefPushRejected)
    assert "stale info" in outcome.message


def test_push_with_empty_lease_requires_absent_ref() -> None:
    fake = _gateway(remote_refs={"public": {}})

    outcome = fake.push_ref(
        ROOT, "public", "a1", "refs/heads/latest", expected_remote_value="", force=False
    )

    assert outcome == RefPushed()


def test_push_existing_tag_without_force_is_rejected() -> None:
    fake = _gateway(
        refs={"refs/tags/v1": "a2"},
        remote_refs={"origin": {"refs/tags/v1": "a1"}},
    )

    outcome = fake.push_ref(
        ROOT, "origin", "refs/tags/v1", "refs/tags/v1", expected_remote_value=None, force=False
    )
    forced = fake.push_ref(
        ROOT, "origin", "refs/tags/v1", "refs/tags/v1", expected_remote_value=None, force=True
    )

    assert isinstance(outcome, RefPushRejected)
    assert forced == RefPushed()
    assert fake.remote_refs["origin"]["refs/tags/v1"] == "a2"


def test_push_to_unknown_remote_fails() -> None:
    fake = _gateway()

    outcome = fake.push_ref(
        ROOT, "nowhere", "a1", "refs/heads/main", expected_remote_value=None, force=False
    )

    assert isinstance(outcome, RefPushFailed)
    assert outcome.error_type == "push-failed"


def test_configured_push_failure() -> None:
    fake = _gateway(
        remote_refs={"origin": {}},
        push_failures={"refs/heads/main": "connection reset"},
    )

    outcome = fake.push_ref(
        ROOT, "origin", "a1", "refs/heads/main", expected_remote_value=None, force=False
    )

    assert outcome == RefPushFailed(message="connection reset")
