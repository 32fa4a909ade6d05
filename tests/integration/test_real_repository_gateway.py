"""Integration tests for RealRepositoryGateway and the end-to-end flows against real git.

Each test builds a working clone with two bare remotes in tmp_path.
"""

import shutil
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from snapmirror.core.backfill import HistoryBackfiller
from snapmirror.core.config import SyncConfig
from snapmirror.core.publish import SnapshotPublisher
from snapmirror.core.types import NothingToPublish, SnapshotPublished
from snapmirror.gateway.message_provider.static import TemplateMessageProvider
from snapmirror.gateway.repository.real import RealRepositoryGateway
from snapmirror.gateway.repository.types import RefPushed, RefPushRejected

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def _commit_file(work: Path, name: str, content: str, message: str) -> str:
    (work / name).write_text(content, encoding="utf-8")
    _git(work, "add", name)
    _git(work, "commit", "-q", "-m", message)
    return _git(work, "rev-parse", "HEAD")


@pytest.fixture
def work(tmp_path: Path) -> Path:
    """Working clone with 'origin' and 'public' bare remotes; main has two commits."""
    for bare in ("origin.git", "public.git"):
        _git(tmp_path, "init", "-q", "--bare", bare)

    work = tmp_path / "work"
    work.mkdir()
    _git(work, "init", "-q")
    _git(work, "symbolic-ref", "HEAD", "refs/heads/main")
    _git(work, "config", "user.name", "Test Author")
    _git(work, "config", "user.email", "author@example.com")
    _git(work, "config", "commit.gpgsign", "false")
    _git(work, "config", "tag.gpgsign", "false")
    _git(work, "remote", "add", "origin", str(tmp_path / "origin.git"))
    _git(work, "remote", "add", "public", str(tmp_path / "public.git"))

    _commit_file(work, "README.md", "hello\n", "Add readme")
    _commit_file(work, "app.py", "print('v1')\n", "Add app")
    _git(work, "push", "-q", "origin", "main")
    return work


def _publisher(work: Path, **config: object) -> SnapshotPublisher:
    return SnapshotPublisher(
        git=RealRepositoryGateway(),
        message_provider=TemplateMessageProvider(),
        repo_root=work,
        config=SyncConfig(**config),  # type: ignore[arg-type]
    )


def test_first_publish_creates_snapshot_and_tags(work: Path) -> None:
    private_head = _git(work, "rev-parse", "main")

    outcome = _publisher(work).publish()

    assert isinstance(outcome, SnapshotPublished)
    origin = work.parent / "origin.git"
    public = work.parent / "public.git"
    assert _git(public, "rev-parse", "refs/heads/latest") == outcome.commit_sha
    assert _git(public, "rev-parse", "latest^{tree}") == _git(work, "rev-parse", "main^{tree}")
    assert _git(public, "rev-list", "--count", "latest") == "1"
    assert _git(origin, "rev-parse", "refs/tags/public-sync^{commit}") == private_head
    release_ref = f"refs/tags/{outcome.release_tag.name}"
    assert _git(origin, "rev-parse", f"{release_ref}^{{commit}}") == private_head
    assert _git(origin, "cat-file", "-t", release_ref) == "tag"
    assert "Private head:   " + private_head in _git(origin, "cat-file", "-p", release_ref)


def test_second_publish_without_changes_is_noop(work: Path) -> None:
    first = _publisher(work).publish()
    assert isinstance(first, SnapshotPublished)

    second = _publisher(work).publish()

    assert isinstance(second, NothingToPublish)
    assert _git(work.parent / "public.git", "rev-parse", "latest") == first.commit_sha


def test_subsequent_publish_extends_public_branch(work: Path) -> None:
    first = _publisher(work).publish()
    assert isinstance(first, SnapshotPublished)
    _commit_file(work, "app.py", "print('v2')\n", "Bump app")
    _git(work, "push", "-q", "origin", "main")
    backdate = datetime(2024, 12, 15, 14, 30, 0, tzinfo=timezone(timedelta(hours=-8)))

    second = _publisher(work, snapshot_date=backdate).publish()

    assert isinstance(second, SnapshotPublished)
    public = work.parent / "public.git"
    assert _git(public, "rev-parse", "latest^") == first.commit_sha
    assert _git(public, "show", "-s", "--format=%cI", "latest") == "2024-12-15T14:30:00-08:00"
    assert second.release_tag.name == "public-snap-20241215-143000"


def test_dirty_worktree_is_refused(work: Path) -> None:
    git = RealRepositoryGateway()
    assert git.is_worktree_clean(work) is True

    (work / "README.md").write_text("changed\n", encoding="utf-8")

    assert git.is_worktree_clean(work) is False


def test_backfill_recreates_missing_release_tag(work: Path) -> None:
    outcome = _publisher(work).publish()
    assert isinstance(outcome, SnapshotPublished)
    tag = outcome.release_tag.name
    origin = work.parent / "origin.git"
    _git(work, "tag", "-d", tag)
    _git(origin, "tag", "-d", tag)

    result = HistoryBackfiller(
        git=RealRepositoryGateway(), repo_root=work, config=SyncConfig()
    ).backfill(outcome.commit_sha)

    assert [created.tag_name for created in result.created] == [tag]
    assert _git(origin, "rev-parse", f"refs/tags/{tag}^{{commit}}") == outcome.private_head


class TestGatewayQueries:
    def test_resolve_ref_peels_and_reports_missing(self, work: Path) -> None:
        git = RealRepositoryGateway()
        head = _git(work, "rev-parse", "HEAD")
        _git(work, "tag", "-a", "-m", "annotated", "v1", head)

        assert git.resolve_ref(work, "v1") == head
        assert git.resolve_ref(work, "refs/remotes/public/latest") is None

    def test_object_type(self, work: Path) -> None:
        git = RealRepositoryGateway()
        tree = _git(work, "rev-parse", "HEAD^{tree}")

        assert git.object_type(work, "HEAD") == "commit"
        assert git.object_type(work, tree) == "tree"
        assert git.object_type(work, "0" * 40) is None

    def test_commit_range_summary(self, work: Path) -> None:
        git = RealRepositoryGateway()
        first = _git(work, "rev-parse", "HEAD~1")

        summaries = git.commit_range_summary(work, "HEAD", since=first, limit=None)

        assert [(s.subject, s.author) for s in summaries] == [("Add app", "Test Author")]

    def test_commits_newest_first_can_stop_early(self, work: Path) -> None:
        git = RealRepositoryGateway()
        walk = git.commits_newest_first(work, "HEAD")

        assert next(walk) == _git(work, "rev-parse", "HEAD")
        walk.close()

    def test_commits_oldest_first_and_ancestry(self, work: Path) -> None:
        git = RealRepositoryGateway()
        first = _git(work, "rev-parse", "HEAD~1")
        head = _git(work, "rev-parse", "HEAD")

        assert git.commits_oldest_first(work, first, head) == [head]
        assert git.is_ancestor(work, first, head) is True
        assert git.is_ancestor(work, head, first) is False

    def test_contents_differ(self, work: Path) -> None:
        git = RealRepositoryGateway()

        assert git.contents_differ(work, "HEAD~1", "HEAD") is True
        assert git.contents_differ(work, "HEAD", "HEAD") is False

    def test_configured_editor_reads_core_editor(
        self, work: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("GIT_EDITOR", raising=False)
        _git(work, "config", "core.editor", "my-editor --wait")

        assert RealRepositoryGateway().configured_editor(work) == "my-editor --wait"


class TestGatewayPush:
    def test_stale_lease_is_rejected(self, work: Path) -> None:
        git = RealRepositoryGateway()
        head = _git(work, "rev-parse", "HEAD")
        first = _git(work, "rev-parse", "HEAD~1")

        created = git.push_ref(
            work, "public", head, "refs/heads/latest", expected_remote_value="", force=False
        )
        stale = git.push_ref(
            work, "public", first, "refs/heads/latest", expected_remote_value=first, force=False
        )

        assert created == RefPushed()
        assert isinstance(stale, RefPushRejected)
        assert _git(work.parent / "public.git", "rev-parse", "latest") == head

    def test_non_fast_forward_is_rejected(self, work: Path) -> None:
        git = RealRepositoryGateway()
        first = _git(work, "rev-parse", "HEAD~1")

        outcome = git.push_ref(
            work, "origin", first, "refs/heads/main", expected_remote_value=None, force=False
        )

        assert isinstance(outcome, RefPushRejected)
