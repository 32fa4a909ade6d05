"""Tag bookkeeping shared by publish and backfill."""

import logging
from pathlib import Path

from snapmirror.core.config import SyncConfig
from snapmirror.core.errors import TagPushFailure
from snapmirror.core.types import TagUpdate
from snapmirror.gateway.repository.abc import RepositoryGateway
from snapmirror.gateway.repository.types import RefPushed

logger = logging.getLogger(__name__)


def _manual_retry_hint(config: SyncConfig, tag_name: str, *, force: bool) -> str:
    flag = "-f " if force else ""
    return f"Retry manually: git push {flag}{config.private_remote} refs/tags/{tag_name}"


def move_rolling_tag(
    git: RepositoryGateway,
    repo_root: Path,
    config: SyncConfig,
    *,
    target: str,
    observed: str | None,
    published_commit: str | None,
) -> TagUpdate:
    """Repoint the rolling sync tag at target and push it to the private remote.

    The rolling tag has a single writer per mirror, so by default it is moved
    with a force push. With config.guard_rolling_tag the push carries a lease
    on the value observed before the run (absent when observed is None), so a
    concurrent move is reported instead of overwritten.

    Raises:
        TagPushFailure: If the tag cannot be moved locally or pushed
    """
    name = config.sync_tag
    try:
        git.create_or_move_tag(repo_root, name, target, message=None, force=True)
    except RuntimeError as e:
        raise TagPushFailure(
            f"Could not move {name} to {target}: {e}",
            tag_name=name,
            published_commit=published_commit,
        ) from e

    expected = (observed or "") if config.guard_rolling_tag else None
    outcome = git.push_ref(
        repo_root,
        config.private_remote,
        config.sync_tag_ref,
        config.sync_tag_ref,
        expected_remote_value=expected,
        force=True,
    )
    if not isinstance(outcome, RefPushed):
        raise TagPushFailure(
            f"Could not push {name} to {config.private_remote}: {outcome.message}\n"
            + _manual_retry_hint(config, name, force=True),
            tag_name=name,
            published_commit=published_commit,
        )
    logger.info("moved %s -> %s", name, target)
    return TagUpdate(name=name, target=target)


def create_release_tag(
    git: RepositoryGateway,
    repo_root: Path,
    config: SyncConfig,
    *,
    name: str,
    target: str,
    annotation: str,
    published_commit: str | None,
) -> TagUpdate:
    """Create an annotated per-release tag and push it to the private remote.

    Release tags are never moved: an existing tag of the same name, locally or
    on the remote, is a failure.

    Raises:
        TagPushFailure: If the tag already exists, or creating or pushing it fails
    """
    if git.tag_exists(repo_root, name):
        raise TagPushFailure(
            f"Tag {name} already exists; release tags are never moved",
            tag_name=name,
            published_commit=published_commit,
        )
    try:
        git.create_or_move_tag(repo_root, name, target, message=annotation, force=False)
    except RuntimeError as e:
        raise TagPushFailure(
            f"Could not create {name} at {target}: {e}",
            tag_name=name,
            published_commit=published_commit,
        ) from e

    tag_ref = f"refs/tags/{name}"
    outcome = git.push_ref(
        repo_root,
        config.private_remote,
        tag_ref,
        tag_ref,
        expected_remote_value=None,
        force=False,
    )
    if not isinstance(outcome, RefPushed):
        raise TagPushFailure(
            f"Could not push {name} to {config.private_remote}: {outcome.message}\n"
            + _manual_retry_hint(config, name, force=False),
            tag_name=name,
            published_commit=published_commit,
        )
    logger.info("created %s at %s", name, target)
    return TagUpdate(name=name, target=target)
