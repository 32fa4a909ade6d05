"""Fake repository gateway for testing.

FakeRepositoryGateway is an in-memory commit graph that accepts pre-configured
state in its constructor. Construct instances directly with keyword arguments.
"""

from __future__ import annotations

import hashlib
import heapq
from collections.abc import Generator, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import NamedTuple

from snapmirror.gateway.repository.abc import RepositoryGateway
from snapmirror.gateway.repository.types import (
    CommitSummary,
    RefPushed,
    RefPushFailed,
    RefPushOutcome,
    RefPushRejected,
)

_DEFAULT_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


@dataclass(frozen=True)
class FakeCommit:
    """A commit in the fake graph.

    Attributes:
        tree: Tree id (fingerprint)
        parents: Parent commit ids, first parent first
        committed_at: Committer timestamp (timezone-aware)
        message: Full commit message; its first line is the subject
        author: Author name
    """

    tree: str
    parents: tuple[str, ...]
    committed_at: datetime
    message: str = ""
    author: str = "Test Author"

    @property
    def subject(self) -> str:
        return self.message.split("\n", 1)[0]


class CreatedCommit(NamedTuple):
    """Record of a create_commit() call."""

    sha: str
    tree: str
    parents: tuple[str, ...]
    message: str
    author_date: datetime | None
    committer_date: datetime | None


class TagRecord(NamedTuple):
    """Record of a create_or_move_tag() call."""

    name: str
    target: str
    message: str | None
    force: bool


class PushedRef(NamedTuple):
    """Record of a successful push_ref() call."""

    remote: str
    local_value: str
    remote_ref: str
    expected_remote_value: str | None
    force: bool


class FakeRepositoryGateway(RepositoryGateway):
    """In-memory fake implementation of repository operations.

    State Management:
    -----------------
    Commits, local refs and remote refs are mutable: creating commits and tags,
    fetching and pushing change the state seen by later calls in the same test.

    Constructor Injection:
    ---------------------
    - repository_root: Root returned by get_repository_root() (None = not a repo)
    - commits: Mapping of commit id -> FakeCommit
    - refs: Local refs by full name (e.g. 'refs/remotes/origin/main',
      'refs/tags/public-sync') -> commit id
    - remote_refs: Mapping of remote name -> {full ref name -> commit id}
    - dirty: Whether the working tree has uncommitted modifications
    - concurrent_remote_updates: Mapping of remote name -> {ref -> commit id}
      applied to the remote right after refresh_all_remotes() syncs tracking
      refs, simulating another writer racing this run
    - push_failures: Mapping of remote ref -> message; pushes to that ref return
      RefPushFailed
    - refresh_raises: Exception to raise when refresh_all_remotes() is called
    - now: Timestamp given to commits created without a committer date
    - editor: Editor command reported by configured_editor()

    Mutation Tracking:
    -----------------
    - created_commits: CreatedCommit records from create_commit()
    - created_tags: TagRecord records from create_or_move_tag()
    - pushed_refs: PushedRef records for successful push_ref() calls
    - refresh_count: Number of refresh_all_remotes() calls
    - history_walk_steps: Commits yielded by commits_newest_first() walks
    - open_history_walks: commits_newest_first() walks started but not yet
      finished or closed

    Examples:
    ---------
        fake = FakeRepositoryGateway(
            repository_root=Path("/repo"),
            commits={"a1": FakeCommit(tree="t1", parents=(), committed_at=ts)},
            remote_refs={"origin": {"refs/heads/main": "a1"}, "public": {}},
        )
        fake.refresh_all_remotes(Path("/repo"))
        assert fake.resolve_ref(Path("/repo"), "refs/remotes/origin/main") == "a1"
    """

    def __init__(
        self,
        *,
        repository_root: Path | None = None,
        commits: dict[str, FakeCommit] | None = None,
        refs: dict[str, str] | None = None,
        remote_refs: dict[str, dict[str, str]] | None = None,
        dirty: bool = False,
        concurrent_remote_updates: dict[str, dict[str, str]] | None = None,
        push_failures: dict[str, str] | None = None,
        refresh_raises: Exception | None = None,
        now: datetime | None = None,
        editor: str | None = None,
    ) -> None:
        """Create FakeRepositoryGateway with pre-configured state.

        Args:
            repository_root: Root returned by get_repository_root()
            commits: Mapping of commit id -> FakeCommit
            refs: Local refs by full name -> commit id
            remote_refs: Mapping of remote -> {full ref name -> commit id}
            dirty: Whether the working tree has uncommitted modifications
            concurrent_remote_updates: Remote ref changes applied after each fetch
            push_failures: Mapping of remote ref -> failure message
            refresh_raises: Exception to raise from refresh_all_remotes()
            now: Default committer timestamp for created commits
            editor: Editor returned by configured_editor()
        """
        self._repository_root = repository_root
        self._commits: dict[str, FakeCommit] = dict(commits) if commits else {}
        self._refs: dict[str, str] = dict(refs) if refs else {}
        self._remote_refs: dict[str, dict[str, str]] = {
            remote: dict(values) for remote, values in (remote_refs or {}).items()
        }
        self._dirty = dirty
        self._concurrent_remote_updates = concurrent_remote_updates or {}
        self._push_failures = push_failures or {}
        self._refresh_raises = refresh_raises
        self._now = now if now is not None else _DEFAULT_NOW
        self._editor = editor
        self._tag_messages: dict[str, str | None] = {}

        # Mutation tracking
        self._created_commits: list[CreatedCommit] = []
        self._created_tags: list[TagRecord] = []
        self._pushed_refs: list[PushedRef] = []
        self._refresh_count = 0
        self._history_walk_steps = 0
        self._open_history_walks = 0

    # ============================================================================
    # Internal helpers
    # ============================================================================

    def _require_commit(self, rev: str) -> str:
        sha = self.resolve_ref(self._repository_root or Path("."), rev)
        if sha is None:
            raise RuntimeError(f"Failed to resolve {rev}: unknown revision")
        return sha

    def _walk(self, tip: str) -> Iterator[str]:
        """Yield commits reachable from tip, newest committer date first."""
        seen: set[str] = set()
        counter = 0
        heap: list[tuple[float, int, str]] = []

        def push(sha: str) -> None:
            nonlocal counter
            if sha in seen or sha not in self._commits:
                return
            seen.add(sha)
            heapq.heappush(heap, (-self._commits[sha].committed_at.timestamp(), counter, sha))
            counter += 1

        push(tip)
        while heap:
            _, _, sha = heapq.heappop(heap)
            yield sha
            for parent in self._commits[sha].parents:
                push(parent)

    # ============================================================================
    # Query Operations
    # ============================================================================

    def get_repository_root(self, cwd: Path) -> Path | None:
        """Return the configured repository root."""
        return self._repository_root

    def is_worktree_clean(self, repo_root: Path) -> bool:
        """Return the configured cleanliness."""
        return not self._dirty

    def resolve_ref(self, repo_root: Path, name: str) -> str | None:
        """Resolve full ref names, short ref names, and (abbreviated) commit ids."""
        for candidate in (name, f"refs/tags/{name}", f"refs/heads/{name}", f"refs/remotes/{name}"):
            if candidate in self._refs:
                return self._refs[candidate]
        if name in self._commits:
            return name
        if len(name) >= 4:
            matches = [sha for sha in self._commits if sha.startswith(name)]
            if len(matches) == 1:
                return matches[0]
        return None

    def object_type(self, repo_root: Path, rev: str) -> str | None:
        """Report 'commit' for commits and 'tree' for known trees."""
        if self.resolve_ref(repo_root, rev) is not None:
            return "commit"
        if any(commit.tree == rev for commit in self._commits.values()):
            return "tree"
        return None

    def fingerprint_of(self, repo_root: Path, commit: str) -> str:
        """Return the commit's tree."""
        return self._commits[self._require_commit(commit)].tree

    def contents_differ(self, repo_root: Path, commit_a: str, commit_b: str) -> bool:
        """Compare trees."""
        return self.fingerprint_of(repo_root, commit_a) != self.fingerprint_of(repo_root, commit_b)

    def commit_range_summary(
        self,
        repo_root: Path,
        tip: str,
        *,
        since: str | None,
        limit: int | None,
    ) -> list[CommitSummary]:
        """Summarize non-merge commits in since..tip."""
        excluded = set(self._walk(self._require_commit(since))) if since is not None else set()
        summaries: list[CommitSummary] = []
        for sha in self._walk(self._require_commit(tip)):
            if limit is not None and len(summaries) >= limit:
                break
            commit = self._commits[sha]
            if sha in excluded or len(commit.parents) > 1:
                continue
            summaries.append(
                CommitSummary(short_sha=sha[:7], subject=commit.subject, author=commit.author)
            )
        return summaries

    def committer_timestamp(self, repo_root: Path, commit: str) -> datetime:
        """Return the committer timestamp."""
        return self._commits[self._require_commit(commit)].committed_at

    def commits_oldest_first(self, repo_root: Path, ancestor: str, descendant: str) -> list[str]:
        """List ancestor..descendant, oldest first."""
        excluded = set(self._walk(self._require_commit(ancestor)))
        newest_first = [
            sha for sha in self._walk(self._require_commit(descendant)) if sha not in excluded
        ]
        return list(reversed(newest_first))

    def commits_newest_first(self, repo_root: Path, tip: str) -> Generator[str, None, None]:
        """Lazily walk history, counting steps and walks still in progress."""
        self._open_history_walks += 1
        try:
            for sha in self._walk(self._require_commit(tip)):
                self._history_walk_steps += 1
                yield sha
        finally:
            self._open_history_walks -= 1

    def is_ancestor(self, repo_root: Path, candidate: str, tip: str) -> bool:
        """Check reachability from tip."""
        target = self._require_commit(candidate)
        return target in set(self._walk(self._require_commit(tip)))

    def tag_exists(self, repo_root: Path, name: str) -> bool:
        """Check the local tag namespace."""
        return f"refs/tags/{name}" in self._refs

    def configured_editor(self, cwd: Path) -> str | None:
        """Return the configured editor."""
        return self._editor

    # ============================================================================
    # Mutation Operations
    # ============================================================================

    def refresh_all_remotes(self, repo_root: Path) -> None:
        """Copy remote branches to remote-tracking refs, pruning stale ones."""
        self._refresh_count += 1
        if self._refresh_raises is not None:
            raise self._refresh_raises

        for remote, values in self._remote_refs.items():
            prefix = f"refs/remotes/{remote}/"
            for ref in [r for r in self._refs if r.startswith(prefix)]:
                del self._refs[ref]
            for ref, sha in values.items():
                if ref.startswith("refs/heads/"):
                    self._refs[prefix + ref.removeprefix("refs/heads/")] = sha

        for remote, updates in self._concurrent_remote_updates.items():
            self._remote_refs.setdefault(remote, {}).update(updates)

    def create_commit(
        self,
        repo_root: Path,
        tree: str,
        *,
        parents: list[str],
        message: str,
        author_date: datetime | None,
        committer_date: datetime | None,
    ) -> str:
        """Add a commit to the graph with a content-derived id."""
        committed_at = committer_date if committer_date is not None else self._now
        payload = f"{tree}|{','.join(parents)}|{message}|{committed_at.isoformat()}"
        payload += f"|{len(self._commits)}"
        sha = hashlib.sha1(payload.encode("utf-8")).hexdigest()

        self._commits[sha] = FakeCommit(
            tree=tree,
            parents=tuple(parents),
            committed_at=committed_at,
            message=message,
        )
        self._created_commits.append(
            CreatedCommit(
                sha=sha,
                tree=tree,
                parents=tuple(parents),
                message=message,
                author_date=author_date,
                committer_date=committer_date,
            )
        )
        return sha

    def create_or_move_tag(
        self,
        repo_root: Path,
        name: str,
        target: str,
        *,
        message: str | None,
        force: bool,
    ) -> None:
        """Bind a tag name to a commit."""
        ref = f"refs/tags/{name}"
        if ref in self._refs and not force:
            raise RuntimeError(f"Failed to tag '{name}' at {target}: tag already exists")
        self._refs[ref] = self._require_commit(target)
        self._tag_messages[name] = message
        self._created_tags.append(TagRecord(name=name, target=target, message=message, force=force))

    def push_ref(
        self,
        repo_root: Path,
        remote: str,
        local_value: str,
        remote_ref: str,
        *,
        expected_remote_value: str | None,
        force: bool,
    ) -> RefPushOutcome:
        """Apply git's lease, fast-forward and tag rules to the fake remote."""
        if remote_ref in self._push_failures:
            return RefPushFailed(message=self._push_failures[remote_ref])
        if remote not in self._remote_refs:
            return RefPushFailed(message=f"'{remote}' does not appear to be a git repository")
        sha = self.resolve_ref(repo_root, local_value)
        if sha is None:
            return RefPushFailed(message=f"src refspec {local_value} does not match any")

        current = self._remote_refs[remote].get(remote_ref)
        if expected_remote_value is not None:
            if (current or "") != expected_remote_value:
                return RefPushRejected(message=f"! {remote_ref} [rejected] (stale info)")
        elif not force and current is not None and current != sha:
            if remote_ref.startswith("refs/tags/"):
                return RefPushRejected(message=f"! {remote_ref} [rejected] (already exists)")
            if current not in self._commits:
                return RefPushRejected(message=f"! {remote_ref} [rejected] (fetch first)")
            if not self.is_ancestor(repo_root, current, sha):
                return RefPushRejected(message=f"! {remote_ref} [rejected] (non-fast-forward)")

        self._remote_refs[remote][remote_ref] = sha
        if remote_ref.startswith("refs/heads/"):
            self._refs[f"refs/remotes/{remote}/{remote_ref.removeprefix('refs/heads/')}"] = sha
        self._pushed_refs.append(
            PushedRef(
                remote=remote,
                local_value=local_value,
                remote_ref=remote_ref,
                expected_remote_value=expected_remote_value,
                force=force,
            )
        )
        return RefPushed()

    # ============================================================================
    # Read-only State and Mutation Tracking Properties
    # ============================================================================

    @property
    def refs(self) -> dict[str, str]:
        """Current local refs (full name -> commit id)."""
        return dict(self._refs)

    @property
    def remote_refs(self) -> dict[str, dict[str, str]]:
        """Current remote refs (remote -> {full name -> commit id})."""
        return {remote: dict(values) for remote, values in self._remote_refs.items()}

    @property
    def tag_messages(self) -> dict[str, str | None]:
        """Annotations of tags created during the test (None for lightweight tags)."""
        return dict(self._tag_messages)

    @property
    def commits(self) -> dict[str, FakeCommit]:
        """All commits, including those created during the test."""
        return dict(self._commits)

    @property
    def created_commits(self) -> list[CreatedCommit]:
        """Commits created during the test."""
        return list(self._created_commits)

    @property
    def created_tags(self) -> list[TagRecord]:
        """Tags created or moved during the test."""
        return list(self._created_tags)

    @property
    def pushed_refs(self) -> list[PushedRef]:
        """Successful pushes during the test."""
        return list(self._pushed_refs)

    @property
    def refresh_count(self) -> int:
        """Number of refresh_all_remotes() calls."""
        return self._refresh_count

    @property
    def history_walk_steps(self) -> int:
        """Number of commits yielded by commits_newest_first() walks."""
        return self._history_walk_steps

    @property
    def open_history_walks(self) -> int:
        """Number of commits_newest_first() walks started but not finished or closed."""
        return self._open_history_walks
