"""Result types for publish and backfill runs."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TagUpdate:
    """A tag name and the commit it now points at."""

    name: str
    target: str


@dataclass(frozen=True)
class SnapshotPublished:
    """A new snapshot commit was pushed and the bookkeeping tags were updated."""

    commit_sha: str
    parent_sha: str | None
    private_head: str
    rolling_tag: TagUpdate
    release_tag: TagUpdate


@dataclass(frozen=True)
class NothingToPublish:
    """The public branch already carries the private branch's content."""

    public_tip: str
    reason: str


@dataclass(frozen=True)
class PublishAborted:
    """The finalized commit message was empty; nothing was created."""

    reason: str


PublishOutcome = SnapshotPublished | NothingToPublish | PublishAborted


@dataclass(frozen=True)
class BackfilledTag:
    """A per-release tag created for a historical public snapshot."""

    public_commit: str
    private_commit: str
    tag_name: str


@dataclass(frozen=True)
class ExistingTag:
    """A public snapshot skipped because its per-release tag already exists."""

    public_commit: str
    tag_name: str


@dataclass(frozen=True)
class UnmatchedSnapshot:
    """A public snapshot whose content matches no private commit."""

    public_commit: str
    tag_name: str
    fingerprint: str


@dataclass(frozen=True)
class TagNameCollision:
    """A public snapshot whose tag name an earlier snapshot in the same run took.

    Tag names have one-second resolution, so two public commits with the same
    committer second map to one name. The later commit is left untagged.
    """

    public_commit: str
    tag_name: str
    existing_public_commit: str
    private_commit: str | None


@dataclass(frozen=True)
class FailedTagPush:
    """A backfill tag that was created locally but could not be pushed."""

    public_commit: str
    private_commit: str
    tag_name: str
    message: str


@dataclass(frozen=True)
class BackfillResult:
    """Everything a backfill run did, in processing order."""

    processed: list[str] = field(default_factory=list)
    created: list[BackfilledTag] = field(default_factory=list)
    skipped_existing: list[ExistingTag] = field(default_factory=list)
    unmatched: list[UnmatchedSnapshot] = field(default_factory=list)
    failed_pushes: list[FailedTagPush] = field(default_factory=list)
    collisions: list[TagNameCollision] = field(default_factory=list)
    rolling_tag: TagUpdate | None = None
