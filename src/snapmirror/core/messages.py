"""Commit message templates, tag names and tag annotations."""

from datetime import datetime

from snapmirror.core.config import SyncConfig
from snapmirror.gateway.repository.types import CommitSummary

RELEASE_TAG_PREFIX = "public-snap-"

# How much history the template lists when no sync tag marks the last export.
SUMMARY_LIMIT_WITHOUT_SYNC_TAG = 50

_COMMENT_CHAR = "#"


def release_tag_name(committed_at: datetime) -> str:
    """Name the per-release tag after a public commit's committer timestamp."""
    return f"{RELEASE_TAG_PREFIX}{committed_at:%Y%m%d-%H%M%S}"


def _range_text(range_base: str | None, end: str) -> str:
    if range_base is None:
        return end
    return f"{range_base}..{end}"


def build_message_template(
    config: SyncConfig,
    *,
    range_base: str | None,
    summaries: list[CommitSummary],
) -> str:
    """Build the snapshot commit message offered for editing.

    The first line is the proposed message; everything after it is commented
    out and disappears unless the user uncomments it.
    """
    private_name = f"{config.private_remote}/{config.private_branch}"
    public_name = f"{config.public_remote}/{config.public_branch}"

    lines = [
        f"sync: snapshot {private_name} -> {public_name}",
        "",
        f"# Range: {_range_text(range_base, private_name)}",
        "# Notable changes:",
    ]
    lines.extend(f"# {summary.format_line()}" for summary in summaries)
    lines.append("# Lines starting with '#' are ignored.")
    return "\n".join(lines) + "\n"


def strip_comments(text: str) -> str:
    """Clean up an edited message the way `git stripspace --strip-comments` does.

    Comment lines are dropped, trailing whitespace is removed, runs of blank
    lines collapse to one, and leading/trailing blank lines go away. A message
    with no remaining content becomes the empty string.
    """
    kept: list[str] = []
    for raw_line in text.splitlines():
        if raw_line.startswith(_COMMENT_CHAR):
            continue
        line = raw_line.rstrip()
        if not line:
            if kept and kept[-1]:
                kept.append("")
            continue
        kept.append(line)

    while kept and not kept[-1]:
        kept.pop()
    if not kept:
        return ""
    return "\n".join(kept) + "\n"


def publish_tag_annotation(
    config: SyncConfig,
    *,
    public_commit: str,
    private_head: str,
    range_base: str | None,
) -> str:
    """Annotation for the per-release tag created by publish."""
    return "\n".join(
        [
            f"Public snapshot to {config.public_remote}/{config.public_branch}",
            f"Public commit:  {public_commit}",
            f"Private head:   {private_head}",
            f"Range:          {_range_text(range_base, private_head)}",
        ]
    )


def backfill_tag_annotation(
    config: SyncConfig,
    *,
    public_commit: str,
    private_commit: str,
) -> str:
    """Annotation for a per-release tag recreated by backfill."""
    return "\n".join(
        [
            f"Public snapshot to {config.public_remote}/{config.public_branch}",
            f"Public commit:  {public_commit}",
            f"Private commit: {private_commit}",
        ]
    )
