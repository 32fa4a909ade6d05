"""Configuration shared by the publish and backfill commands."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from snapmirror.core.errors import ConfigError

TagPushFailurePolicy = Literal["continue", "abort"]

TAG_PUSH_FAILURE_POLICIES: tuple[TagPushFailurePolicy, ...] = ("continue", "abort")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})

# Accepted in addition to ISO 8601; this is the form `git log --date=iso` prints.
_GIT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"


@dataclass(frozen=True)
class SyncConfig:
    """Remotes, branches and policies for one private -> public mirror.

    Attributes:
        private_remote: Remote holding the private history and the tags
        private_branch: Branch whose content is published
        public_remote: Remote receiving snapshot commits
        public_branch: Branch the snapshots are pushed to
        sync_tag: Rolling tag marking the most recently exported private commit
        allow_rewrite: Allow a compare-and-swap push when the public branch is
            not where this run last saw it
        snapshot_date: Fixed author/committer date for the snapshot commit
        guard_rolling_tag: Push the rolling tag with a lease on its previously
            observed value instead of force-pushing it
        on_tag_push_failure: Backfill policy when a per-release tag cannot be
            pushed
    """

    private_remote: str = "origin"
    private_branch: str = "main"
    public_remote: str = "public"
    public_branch: str = "latest"
    sync_tag: str = "public-sync"
    allow_rewrite: bool = False
    snapshot_date: datetime | None = None
    guard_rolling_tag: bool = False
    on_tag_push_failure: TagPushFailurePolicy = "continue"

    @property
    def private_tracking_ref(self) -> str:
        return f"refs/remotes/{self.private_remote}/{self.private_branch}"

    @property
    def public_tracking_ref(self) -> str:
        return f"refs/remotes/{self.public_remote}/{self.public_branch}"

    @property
    def public_branch_ref(self) -> str:
        return f"refs/heads/{self.public_branch}"

    @property
    def sync_tag_ref(self) -> str:
        return f"refs/tags/{self.sync_tag}"


def parse_bool(value: str | bool, *, key: str) -> bool:
    """Parse a boolean setting from an environment-style string.

    Raises:
        ConfigError: If the value is not a recognized boolean
    """
    if isinstance(value, bool):
        return value
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean for {key}: {value!r} (use 1/0, true/false)")


def parse_snapshot_date(value: str) -> datetime:
    """Parse a backdate such as '2024-12-15 14:30:00 -0800' or ISO 8601.

    A value without an offset is interpreted in the local timezone.

    Raises:
        ConfigError: If the value is not a recognized date
    """
    text = value.strip()
    try:
        parsed = datetime.strptime(text, _GIT_DATE_FORMAT)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ConfigError(
                f"Invalid snapshot date {value!r}: expected 'YYYY-mm-dd HH:MM:SS +HHMM' "
                "or ISO 8601"
            ) from e
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def parse_tag_push_failure_policy(value: str) -> TagPushFailurePolicy:
    """Validate the backfill tag-push failure policy.

    Raises:
        ConfigError: If the value is not 'continue' or 'abort'
    """
    normalized = value.strip().lower()
    if normalized == "continue":
        return "continue"
    if normalized == "abort":
        return "abort"
    raise ConfigError(
        f"Invalid tag push failure policy {value!r}: expected one of "
        f"{', '.join(TAG_PUSH_FAILURE_POLICIES)}"
    )
