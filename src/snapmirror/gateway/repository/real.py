"""Production repository gateway using git subprocesses."""

import logging
import os
import subprocess
from collections.abc import Generator
from datetime import datetime
from pathlib import Path

from snapmirror.gateway.repository.abc import RepositoryGateway
from snapmirror.gateway.repository.types import (
    CommitSummary,
    RefPushed,
    RefPushFailed,
    RefPushOutcome,
    RefPushRejected,
)
from snapmirror.subprocess_utils import copied_env_for_git_subprocess, run_subprocess_with_context

logger = logging.getLogger(__name__)

# Field separator for --format output; cannot appear in subjects or names.
_FIELD_SEP = "\x1f"

# Substrings git prints when a push is refused because of the remote ref's value.
_REJECTION_MARKERS = (
    "[rejected]",
    "stale info",
    "non-fast-forward",
    "fetch first",
    "already exists",
)


def _exit_code_as_bool(
    result: subprocess.CompletedProcess[str], operation_context: str
) -> bool:
    """Interpret commands that answer yes/no with exit codes 0/1."""
    if result.returncode == 0:
        return True
    if result.returncode == 1:
        return False
    raise RuntimeError(
        f"Failed to {operation_context} (exit code {result.returncode}): {result.stderr.strip()}"
    )


class RealRepositoryGateway(RepositoryGateway):
    """Real implementation of repository operations using git subprocesses."""

    # ============================================================================
    # Query Operations
    # ============================================================================

    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the repository top-level directory."""
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return Path(result.stdout.strip())

    def is_worktree_clean(self, repo_root: Path) -> bool:
        """Check for unstaged and staged modifications."""
        unstaged = run_subprocess_with_context(
            cmd=["git", "diff", "--quiet"],
            operation_context="check for unstaged changes",
            cwd=repo_root,
            check=False,
        )
        if not _exit_code_as_bool(unstaged, "check for unstaged changes"):
            return False
        staged = run_subprocess_with_context(
            cmd=["git", "diff", "--cached", "--quiet"],
            operation_context="check for staged changes",
            cwd=repo_root,
            check=False,
        )
        return _exit_code_as_bool(staged, "check for staged changes")

    def resolve_ref(self, repo_root: Path, name: str) -> str | None:
        """Resolve a ref to a commit id, peeling tags."""
        result = subprocess.run(
            ["git", "rev-parse", "--verify", "--quiet", f"{name}^{{commit}}"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def object_type(self, repo_root: Path, rev: str) -> str | None:
        """Get the type of the object rev names."""
        result = subprocess.run(
            ["git", "cat-file", "-t", rev],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def fingerprint_of(self, repo_root: Path, commit: str) -> str:
        """Get the tree id of a commit."""
        return run_subprocess_with_context(
            cmd=["git", "rev-parse", "--verify", f"{commit}^{{tree}}"],
            operation_context=f"read tree of {commit}",
            cwd=repo_root,
        ).stdout.strip()

    def contents_differ(self, repo_root: Path, commit_a: str, commit_b: str) -> bool:
        """Compare two commits' contents."""
        context = f"compare {commit_a} with {commit_b}"
        result = run_subprocess_with_context(
            cmd=["git", "diff", "--quiet", commit_a, commit_b],
            operation_context=context,
            cwd=repo_root,
            check=False,
        )
        return not _exit_code_as_bool(result, context)

    def commit_range_summary(
        self,
        repo_root: Path,
        tip: str,
        *,
        since: str | None,
        limit: int | None,
    ) -> list[CommitSummary]:
        """Summarize non-merge commits with git log."""
        cmd = ["git", "log", "--no-merges", f"--format=%h{_FIELD_SEP}%s{_FIELD_SEP}%an"]
        if limit is not None:
            cmd.append(f"--max-count={limit}")
        cmd.append(f"{since}..{tip}" if since is not None else tip)

        output = run_subprocess_with_context(
            cmd=cmd,
            operation_context=f"summarize commits up to {tip}",
            cwd=repo_root,
        ).stdout

        summaries: list[CommitSummary] = []
        for line in output.splitlines():
            parts = line.split(_FIELD_SEP)
            if len(parts) != 3:
                continue
            summaries.append(CommitSummary(short_sha=parts[0], subject=parts[1], author=parts[2]))
        return summaries

    def committer_timestamp(self, repo_root: Path, commit: str) -> datetime:
        """Read the committer date in the commit's own offset."""
        output = run_subprocess_with_context(
            cmd=["git", "show", "-s", "--format=%cI", commit],
            operation_context=f"read committer date of {commit}",
            cwd=repo_root,
        ).stdout.strip()
        return datetime.fromisoformat(output)

    def commits_oldest_first(self, repo_root: Path, ancestor: str, descendant: str) -> list[str]:
        """List ancestor..descendant with rev-list --reverse."""
        output = run_subprocess_with_context(
            cmd=["git", "rev-list", "--reverse", f"{ancestor}..{descendant}"],
            operation_context=f"list commits in {ancestor}..{descendant}",
            cwd=repo_root,
        ).stdout
        return [line.strip() for line in output.splitlines() if line.strip()]

    def commits_newest_first(self, repo_root: Path, tip: str) -> Generator[str, None, None]:
        """Stream rev-list output so an early stop does not walk all history."""
        proc = subprocess.Popen(
            ["git", "rev-list", tip],
            cwd=repo_root,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        finished = False
        try:
            if proc.stdout is not None:
                for line in proc.stdout:
                    sha = line.strip()
                    if sha:
                        yield sha
            finished = True
        finally:
            if not finished:
                proc.kill()
            stderr = proc.stderr.read() if proc.stderr is not None else ""
            returncode = proc.wait()
            if proc.stdout is not None:
                proc.stdout.close()
            if proc.stderr is not None:
                proc.stderr.close()

        if returncode != 0:
            raise RuntimeError(
                f"Failed to walk history of {tip} (exit code {returncode}): {stderr.strip()}"
            )

    def is_ancestor(self, repo_root: Path, candidate: str, tip: str) -> bool:
        """Check ancestry with merge-base --is-ancestor."""
        context = f"check whether {candidate} is an ancestor of {tip}"
        result = run_subprocess_with_context(
            cmd=["git", "merge-base", "--is-ancestor", candidate, tip],
            operation_context=context,
            cwd=repo_root,
            check=False,
        )
        return _exit_code_as_bool(result, context)

    def tag_exists(self, repo_root: Path, name: str) -> bool:
        """Check if a local tag exists."""
        result = subprocess.run(
            ["git", "show-ref", "--verify", "--quiet", f"refs/tags/{name}"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        return result.returncode == 0

    def configured_editor(self, cwd: Path) -> str | None:
        """Ask git for its editor; covers core.editor, VISUAL and EDITOR."""
        result = subprocess.run(
            ["git", "var", "GIT_EDITOR"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    # ============================================================================
    # Mutation Operations
    # ============================================================================

    def refresh_all_remotes(self, repo_root: Path) -> None:
        """Fetch all remotes with pruning."""
        run_subprocess_with_context(
            cmd=["git", "fetch", "--all", "--prune"],
            operation_context="fetch all remotes",
            cwd=repo_root,
            env=copied_env_for_git_subprocess(),
        )

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
        """Create a commit object with commit-tree."""
        env = os.environ.copy()
        if author_date is not None:
            env["GIT_AUTHOR_DATE"] = author_date.isoformat()
        if committer_date is not None:
            env["GIT_COMMITTER_DATE"] = committer_date.isoformat()

        cmd = ["git", "commit-tree", tree]
        for parent in parents:
            cmd.extend(["-p", parent])

        sha = run_subprocess_with_context(
            cmd=cmd,
            operation_context=f"create commit for tree {tree}",
            cwd=repo_root,
            env=env,
            input=message,
        ).stdout.strip()
        if not sha:
            raise RuntimeError(f"Failed to create commit for tree {tree}: no commit id returned")
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
        """Create or repoint a tag."""
        cmd = ["git", "tag"]
        if force:
            cmd.append("-f")
        if message is not None:
            cmd.extend(["-a", "-m", message])
        cmd.extend([name, target])
        run_subprocess_with_context(
            cmd=cmd,
            operation_context=f"tag '{name}' at {target}",
            cwd=repo_root,
        )

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
        """Push with an optional --force-with-lease guard."""
        cmd = ["git", "push", "--porcelain"]
        if expected_remote_value is not None:
            cmd.append(f"--force-with-lease={remote_ref}:{expected_remote_value}")
        elif force:
            cmd.append("--force")
        cmd.extend([remote, f"{local_value}:{remote_ref}"])

        result = run_subprocess_with_context(
            cmd=cmd,
            operation_context=f"push {local_value} to {remote} {remote_ref}",
            cwd=repo_root,
            check=False,
            env=copied_env_for_git_subprocess(),
        )
        if result.returncode == 0:
            return RefPushed()

        output = f"{result.stdout}\n{result.stderr}".strip()
        logger.debug("push of %s to %s %s failed: %s", local_value, remote, remote_ref, output)
        if any(marker in output for marker in _REJECTION_MARKERS):
            return RefPushRejected(message=output)
        return RefPushFailed(message=output)
