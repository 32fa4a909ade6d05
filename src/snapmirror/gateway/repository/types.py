"""Value types returned by RepositoryGateway operations.

RefPushed | RefPushRejected | RefPushFailed is a discriminated union: callers
branch on the concrete type instead of catching exceptions, so a rejected
compare-and-swap push is an expected outcome rather than an error.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CommitSummary:
    """One line of a commit range summary."""

    short_sha: str
    subject: str
    author: str

    def format_line(self) -> str:
        """Render as '- <short> <subject> (<author>)'."""
        return f"- {self.short_sha} {self.subject} ({self.author})"


@dataclass(frozen=True)
class RefPushed:
    """Success result from pushing a ref to a remote."""


@dataclass(frozen=True)
class RefPushRejected:
    """The remote refused the update because its current value was not the expected one.

    Covers stale leases, non-fast-forward updates, and tags that already exist
    remotely with a different target.
    """

    message: str

    @property
    def error_type(self) -> str:
        return "push-rejected"


@dataclass(frozen=True)
class RefPushFailed:
    """The push failed for a reason unrelated to the remote ref's value."""

    message: str

    @property
    def error_type(self) -> str:
        return "push-failed"


RefPushOutcome = RefPushed | RefPushRejected | RefPushFailed
