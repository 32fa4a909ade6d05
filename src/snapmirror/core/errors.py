"""Exceptions raised by snapshot publishing and tag backfill.

Every failure that needs a human decision is a SnapshotSyncError subclass.
Outcomes that are not failures (nothing to publish, an abandoned message,
a public commit with no private counterpart) are returned as values instead.
"""


class SnapshotSyncError(Exception):
    """Base class for publish and backfill failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigError(SnapshotSyncError):
    """A configuration value is missing or malformed."""


class PreflightError(SnapshotSyncError):
    """The repository is not in a state the operation can start from.

    Raised for uncommitted modifications, missing required refs, and objects of
    the wrong type.
    """


class InvalidInputError(SnapshotSyncError):
    """A command argument does not name a usable commit."""


class ConcurrentUpdateError(SnapshotSyncError):
    """The public branch moved on the remote since it was last fetched."""


class PushFailedError(SnapshotSyncError):
    """Pushing the snapshot commit failed for a reason other than a conflict."""


class TagPushFailure(SnapshotSyncError):
    """Creating or pushing a bookkeeping tag failed.

    When raised by publish, the snapshot commit is already on the public
    branch; only the tags lag behind and must be retried by hand.
    """

    def __init__(self, message: str, *, tag_name: str, published_commit: str | None) -> None:
        super().__init__(message)
        self.tag_name = tag_name
        self.published_commit = published_commit
