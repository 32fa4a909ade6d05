"""Publish the private branch's content as a snapshot commit on the public branch.

The public branch never sees private commits. Each publish creates one new
commit whose tree is the private tip's tree and whose only parent is the
previous public tip, then records the correspondence with tags on the private
remote.

Mutations happen in a fixed order: the public branch push comes first, the
tags only after it succeeded. A run that dies in between leaves stale tags
but correct public content, and the next run's no-op check works from ref
state alone.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from snapmirror.core.config import SyncConfig
from snapmirror.core.errors import (
    ConcurrentUpdateError,
    PreflightError,
    PushFailedError,
)
from snapmirror.core.messages import (
    SUMMARY_LIMIT_WITHOUT_SYNC_TAG,
    build_message_template,
    publish_tag_annotation,
    release_tag_name,
    strip_comments,
)
from snapmirror.core.tags import create_release_tag, move_rolling_tag
from snapmirror.core.types import (
    NothingToPublish,
    PublishAborted,
    PublishOutcome,
    SnapshotPublished,
)
from snapmirror.gateway.message_provider.abc import MessageProvider
from snapmirror.gateway.repository.abc import RepositoryGateway
from snapmirror.gateway.repository.types import RefPushed, RefPushRejected

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ObservedState:
    """Refs as seen right after the fetch."""

    private_head: str
    private_tree: str
    public_tip: str | None
    sync_tag_commit: str | None


class SnapshotPublisher:
    """Decides whether a snapshot is needed, builds it, pushes it, and tags it."""

    def __init__(
        self,
        *,
        git: RepositoryGateway,
        message_provider: MessageProvider,
        repo_root: Path,
        config: SyncConfig,
    ) -> None:
        self._git = git
        self._message_provider = message_provider
        self._repo_root = repo_root
        self._config = config

    def publish(self) -> PublishOutcome:
        """Run one publish.

        Returns:
            SnapshotPublished, NothingToPublish when the public branch already
            has the private content, or PublishAborted when the finalized
            message was empty

        Raises:
            PreflightError: Uncommitted modifications, failed fetch, or missing
                private branch
            ConcurrentUpdateError: The public branch moved on the remote
            PushFailedError: The public branch push failed for another reason
            TagPushFailure: The snapshot was published but a tag update failed
        """
        state = self._observe()

        nothing = self._check_nothing_to_publish(state)
        if nothing is not None:
            logger.info("nothing to publish: %s", nothing.reason)
            return nothing

        message = self._compose_message(state)
        if not message:
            return PublishAborted(reason="Aborted: empty commit message.")

        snapshot_date = self._config.snapshot_date
        parents = [state.public_tip] if state.public_tip is not None else []
        new_sha = self._git.create_commit(
            self._repo_root,
            state.private_tree,
            parents=parents,
            message=message,
            author_date=snapshot_date,
            committer_date=snapshot_date,
        )
        logger.info("created snapshot commit %s (tree %s)", new_sha, state.private_tree)

        self._push_snapshot(new_sha, state)

        rolling_tag = move_rolling_tag(
            self._git,
            self._repo_root,
            self._config,
            target=state.private_head,
            observed=state.sync_tag_commit,
            published_commit=new_sha,
        )
        release_tag = create_release_tag(
            self._git,
            self._repo_root,
            self._config,
            name=release_tag_name(self._git.committer_timestamp(self._repo_root, new_sha)),
            target=state.private_head,
            annotation=publish_tag_annotation(
                self._config,
                public_commit=new_sha,
                private_head=state.private_head,
                range_base=state.sync_tag_commit,
            ),
            published_commit=new_sha,
        )
        return SnapshotPublished(
            commit_sha=new_sha,
            parent_sha=state.public_tip,
            private_head=state.private_head,
            rolling_tag=rolling_tag,
            release_tag=release_tag,
        )

    def _observe(self) -> _ObservedState:
        git = self._git
        root = self._repo_root
        config = self._config

        if not git.is_worktree_clean(root):
            raise PreflightError(
                "Working tree or index not clean. Commit/stash before running, "
                "or use a dedicated worktree."
            )

        try:
            git.refresh_all_remotes(root)
        except RuntimeError as e:
            raise PreflightError(str(e)) from e

        private_head = git.resolve_ref(root, config.private_tracking_ref)
        if private_head is None:
            raise PreflightError(f"Missing {config.private_tracking_ref} (fetch failed?).")

        return _ObservedState(
            private_head=private_head,
            private_tree=git.fingerprint_of(root, private_head),
            public_tip=git.resolve_ref(root, config.public_tracking_ref),
            sync_tag_commit=git.resolve_ref(root, config.sync_tag_ref),
        )

    def _check_nothing_to_publish(self, state: _ObservedState) -> NothingToPublish | None:
        if state.public_tip is None:
            return None
        if not self._git.contents_differ(self._repo_root, state.public_tip, state.private_head):
            return NothingToPublish(
                public_tip=state.public_tip,
                reason=(
                    f"No content differences between {self._config.public_tracking_ref} "
                    f"and {self._config.private_tracking_ref}."
                ),
            )
        if self._git.fingerprint_of(self._repo_root, state.public_tip) == state.private_tree:
            return NothingToPublish(
                public_tip=state.public_tip,
                reason="Private tree matches current public tip.",
            )
        return None

    def _compose_message(self, state: _ObservedState) -> str:
        limit = None if state.sync_tag_commit is not None else SUMMARY_LIMIT_WITHOUT_SYNC_TAG
        summaries = self._git.commit_range_summary(
            self._repo_root,
            state.private_head,
            since=state.sync_tag_commit,
            limit=limit,
        )
        template = build_message_template(
            self._config,
            range_base=state.sync_tag_commit,
            summaries=summaries,
        )
        edited = self._message_provider.edit(template)
        if edited is None:
            return ""
        return strip_comments(edited)

    def _push_snapshot(self, new_sha: str, state: _ObservedState) -> None:
        config = self._config
        public_name = f"{config.public_remote}/{config.public_branch}"
        observed = self._git.resolve_ref(self._repo_root, config.public_tracking_ref)

        expected: str | None
        if state.public_tip is not None and observed == state.public_tip:
            expected = None
            logger.info("pushing %s to %s as a fast-forward", new_sha, public_name)
        elif config.allow_rewrite:
            # Empty lease: the branch must still be absent on the remote.
            expected = observed or ""
            logger.info("pushing %s to %s with lease on %r", new_sha, public_name, expected)
        elif state.public_tip is None:
            expected = None
            logger.info("pushing %s to new branch %s", new_sha, public_name)
        else:
            raise ConcurrentUpdateError(
                f"Remote {public_name} moved; set ALLOW_REWRITE=1 to overwrite."
            )

        outcome = self._git.push_ref(
            self._repo_root,
            config.public_remote,
            new_sha,
            config.public_branch_ref,
            expected_remote_value=expected,
            force=False,
        )
        if isinstance(outcome, RefPushRejected):
            raise ConcurrentUpdateError(
                f"Remote {public_name} changed since it was fetched; "
                f"refusing to overwrite it.\n{outcome.message}"
            )
        if not isinstance(outcome, RefPushed):
            raise PushFailedError(f"Failed to push {new_sha} to {public_name}: {outcome.message}")
