"""No-op repository gateway wrapper for dry-run mode.

This module provides a wrapper that prevents execution of mutating operations
while delegating read-only operations to the wrapped implementation.
"""

from collections.abc import Generator
from datetime import datetime
from pathlib import Path

from snapmirror.gateway.repository.abc import RepositoryGateway
from snapmirror.gateway.repository.types import CommitSummary, RefPushed, RefPushOutcome
from snapmirror.output.output import user_output

# Stand-in id for the commit a dry run would have created.
DRY_RUN_COMMIT = "0" * 40


class DryRunRepositoryGateway(RepositoryGateway):
    """No-op wrapper that prints mutating operations instead of running them.

    Fetches, commit creation, tag changes and pushes print what would happen.
    Query operations are delegated to the wrapped implementation, except for
    questions about the placeholder commit returned by create_commit().

    Usage:
        real_gateway = RealRepositoryGateway()
        noop_gateway = DryRunRepositoryGateway(real_gateway)

        # Query operations work normally
        tip = noop_gateway.resolve_ref(repo_root, "refs/remotes/origin/main")

        # Mutation operations print dry-run messages
        noop_gateway.create_or_move_tag(repo_root, "v1", tip, message=None, force=False)
    """

    def __init__(self, wrapped: RepositoryGateway) -> None:
        """Create a dry-run wrapper around a RepositoryGateway implementation.

        Args:
            wrapped: The gateway to wrap (usually RealRepositoryGateway)
        """
        self._wrapped = wrapped
        self._placeholder_committed_at: datetime | None = None

    # ============================================================================
    # Query Operations (delegate to wrapped implementation)
    # ============================================================================

    def get_repository_root(self, cwd: Path) -> Path | None:
        return self._wrapped.get_repository_root(cwd)

    def is_worktree_clean(self, repo_root: Path) -> bool:
        return self._wrapped.is_worktree_clean(repo_root)

    def resolve_ref(self, repo_root: Path, name: str) -> str | None:
        return self._wrapped.resolve_ref(repo_root, name)

    def object_type(self, repo_root: Path, rev: str) -> str | None:
        return self._wrapped.object_type(repo_root, rev)

    def fingerprint_of(self, repo_root: Path, commit: str) -> str:
        return self._wrapped.fingerprint_of(repo_root, commit)

    def contents_differ(self, repo_root: Path, commit_a: str, commit_b: str) -> bool:
        return self._wrapped.contents_differ(repo_root, commit_a, commit_b)

    def commit_range_summary(
        self,
        repo_root: Path,
        tip: str,
        *,
        since: str | None,
        limit: int | None,
    ) -> list[CommitSummary]:
        return self._wrapped.commit_range_summary(repo_root, tip, since=since, limit=limit)

    def committer_timestamp(self, repo_root: Path, commit: str) -> datetime:
        """Answer for the placeholder commit; delegate otherwise."""
        if commit == DRY_RUN_COMMIT and self._placeholder_committed_at is not None:
            return self._placeholder_committed_at
        return self._wrapped.committer_timestamp(repo_root, commit)

    def commits_oldest_first(self, repo_root: Path, ancestor: str, descendant: str) -> list[str]:
        return self._wrapped.commits_oldest_first(repo_root, ancestor, descendant)

    def commits_newest_first(self, repo_root: Path, tip: str) -> Generator[str, None, None]:
        return self._wrapped.commits_newest_first(repo_root, tip)

    def is_ancestor(self, repo_root: Path, candidate: str, tip: str) -> bool:
        return self._wrapped.is_ancestor(repo_root, candidate, tip)

    def tag_exists(self, repo_root: Path, name: str) -> bool:
        return self._wrapped.tag_exists(repo_root, name)

    def configured_editor(self, cwd: Path) -> str | None:
        return self._wrapped.configured_editor(cwd)

    # ============================================================================
    # Mutation Operations (print dry-run message)
    # ============================================================================

    def refresh_all_remotes(self, repo_root: Path) -> None:
        """Print dry-run message instead of fetching."""
        user_output("[DRY RUN] Would run: git fetch --all --prune")

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
        """Print dry-run message and return the placeholder commit id."""
        parent_args = "".join(f" -p {parent}" for parent in parents)
        user_output(f"[DRY RUN] Would run: git commit-tree {tree}{parent_args}")
        self._placeholder_committed_at = (
            committer_date if committer_date is not None else datetime.now().astimezone()
        )
        return DRY_RUN_COMMIT

    def create_or_move_tag(
        self,
        repo_root: Path,
        name: str,
        target: str,
        *,
        message: str | None,
        force: bool,
    ) -> None:
        """Print dry-run message instead of tagging."""
        flags = " -f" if force else ""
        annotation = f" -a -m '{message}'" if message is not None else ""
        user_output(f"[DRY RUN] Would run: git tag{flags}{annotation} {name} {target}")

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
        """Print dry-run message and report success."""
        if expected_remote_value is not None:
            flags = f" --force-with-lease={remote_ref}:{expected_remote_value}"
        elif force:
            flags = " --force"
        else:
            flags = ""
        user_output(f"[DRY RUN] Would run: git push{flags} {remote} {local_value}:{remote_ref}")
        return RefPushed()
