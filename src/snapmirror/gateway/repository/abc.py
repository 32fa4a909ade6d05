"""Abstract repository gateway.

This module provides a clean abstraction over the version-control backend,
making the publishing and backfill logic testable without a real repository.

Architecture:
- RepositoryGateway: Abstract base class defining the interface
- RealRepositoryGateway: Production implementation using git subprocesses
- FakeRepositoryGateway: In-memory commit graph for tests
- DryRunRepositoryGateway: Wrapper that prints mutations instead of running them
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Generator
from datetime import datetime
from pathlib import Path

from snapmirror.gateway.repository.types import CommitSummary, RefPushOutcome


class RepositoryGateway(ABC):
    """Abstract interface for the repository operations snapshot publishing needs.

    All implementations (real, fake, dry-run) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.
    The gateway carries no policy: deciding what to commit, tag or push
    belongs to its callers.
    """

    # ============================================================================
    # Query Operations
    # ============================================================================

    @abstractmethod
    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the repository containing cwd.

        Returns:
            Repository root, or None if cwd is not inside a repository
        """
        ...

    @abstractmethod
    def is_worktree_clean(self, repo_root: Path) -> bool:
        """Check that there are no unstaged or staged modifications.

        Untracked files are ignored: they cannot reach a commit built from a
        remote-tracking tree.
        """
        ...

    @abstractmethod
    def resolve_ref(self, repo_root: Path, name: str) -> str | None:
        """Resolve a reference or revision to a full commit id.

        Annotated tags are peeled to the commit they point at.

        Args:
            repo_root: Path to the repository root
            name: Ref name or revision (e.g. 'refs/remotes/origin/main', 'public-sync')

        Returns:
            Full commit id, or None if the name does not resolve to a commit
        """
        ...

    @abstractmethod
    def object_type(self, repo_root: Path, rev: str) -> str | None:
        """Get the object type ('commit', 'tree', 'blob', 'tag') of a revision.

        Returns:
            The type name, or None if no such object exists
        """
        ...

    @abstractmethod
    def fingerprint_of(self, repo_root: Path, commit: str) -> str:
        """Get the tree id of a commit.

        Two commits with equal fingerprints have identical contents regardless
        of their history.

        Raises:
            RuntimeError: If the commit does not exist
        """
        ...

    @abstractmethod
    def contents_differ(self, repo_root: Path, commit_a: str, commit_b: str) -> bool:
        """Check whether two commits have different contents."""
        ...

    @abstractmethod
    def commit_range_summary(
        self,
        repo_root: Path,
        tip: str,
        *,
        since: str | None,
        limit: int | None,
    ) -> list[CommitSummary]:
        """Summarize non-merge commits reachable from tip, newest first.

        Args:
            repo_root: Path to the repository root
            tip: Newest commit of the range
            since: Exclusive start of the range; None summarizes all history
            limit: Maximum number of entries; None for no limit

        Returns:
            One CommitSummary per commit
        """
        ...

    @abstractmethod
    def committer_timestamp(self, repo_root: Path, commit: str) -> datetime:
        """Get a commit's committer date.

        Returns:
            Timezone-aware datetime in the offset recorded in the commit
        """
        ...

    @abstractmethod
    def commits_oldest_first(self, repo_root: Path, ancestor: str, descendant: str) -> list[str]:
        """List commits in ancestor..descendant, oldest first.

        The ancestor itself is not included.
        """
        ...

    @abstractmethod
    def commits_newest_first(self, repo_root: Path, tip: str) -> Generator[str, None, None]:
        """Walk all commits reachable from tip, newest first.

        The walk is lazy: callers that stop early do not pay for the rest of
        history.
        Callers that stop early should close() the generator so the walk
        releases its resources.
        """
        ...

    @abstractmethod
    def is_ancestor(self, repo_root: Path, candidate: str, tip: str) -> bool:
        """Check whether candidate is tip or one of its ancestors."""
        ...

    @abstractmethod
    def tag_exists(self, repo_root: Path, name: str) -> bool:
        """Check if a local tag exists."""
        ...

    @abstractmethod
    def configured_editor(self, cwd: Path) -> str | None:
        """Return the editor command git would use (`git var GIT_EDITOR`).

        Honors core.editor as well as the editor environment variables.
        Returns None if git cannot name one.
        """
        ...

    # ============================================================================
    # Mutation Operations
    # ============================================================================

    @abstractmethod
    def refresh_all_remotes(self, repo_root: Path) -> None:
        """Fetch every configured remote, pruning deleted remote branches.

        Raises:
            RuntimeError: If the fetch fails
        """
        ...

    @abstractmethod
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
        """Create a commit object without touching any branch or the index.

        Args:
            repo_root: Path to the repository root
            tree: Tree id the commit records
            parents: Parent commit ids (empty for a root commit)
            message: Full commit message
            author_date: Fixed author date, or None for the current time
            committer_date: Fixed committer date, or None for the current time

        Returns:
            Id of the new commit

        Raises:
            RuntimeError: If the commit cannot be created
        """
        ...

    @abstractmethod
    def create_or_move_tag(
        self,
        repo_root: Path,
        name: str,
        target: str,
        *,
        message: str | None,
        force: bool,
    ) -> None:
        """Create a local tag, or repoint an existing one when force is set.

        Args:
            repo_root: Path to the repository root
            name: Tag name
            target: Commit the tag points at
            message: Annotation; None creates a lightweight tag
            force: Replace an existing tag of the same name

        Raises:
            RuntimeError: If the tag exists and force is False, or git fails
        """
        ...

    @abstractmethod
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
        """Push a local object or ref to a fully qualified ref on a remote.

        Args:
            repo_root: Path to the repository root
            remote: Remote name (e.g. 'public')
            local_value: Commit id or local ref to push
            remote_ref: Destination ref (e.g. 'refs/heads/latest', 'refs/tags/v1')
            expected_remote_value: Compare-and-swap guard; the push only succeeds
                if the remote ref currently has this value. The empty string
                requires the remote ref to be absent. None disables the guard.
            force: Allow non-fast-forward updates when no guard is given

        Returns:
            RefPushed on success, RefPushRejected when the remote's current value
            prevented the update, RefPushFailed for any other failure
        """
        ...
