"""Recreate per-release tags for public snapshots published before tagging existed.

Public snapshot commits and private commits share no history, only content.
Each public commit is matched to the newest private commit with the same tree
and tagged under the name publish would have given it. The public remote is
never written to.
"""

import logging
from pathlib import Path

from snapmirror.core.config import SyncConfig
from snapmirror.core.errors import InvalidInputError, PreflightError, TagPushFailure
from snapmirror.core.fingerprint_index import FingerprintIndex
from snapmirror.core.messages import backfill_tag_annotation, release_tag_name
from snapmirror.core.tags import create_release_tag, move_rolling_tag
from snapmirror.core.types import (
    BackfilledTag,
    BackfillResult,
    ExistingTag,
    FailedTagPush,
    TagNameCollision,
    UnmatchedSnapshot,
)
from snapmirror.gateway.repository.abc import RepositoryGateway

logger = logging.getLogger(__name__)


class HistoryBackfiller:
    """Matches public snapshots to private commits by tree and tags the matches."""

    def __init__(
        self,
        *,
        git: RepositoryGateway,
        repo_root: Path,
        config: SyncConfig,
    ) -> None:
        self._git = git
        self._repo_root = repo_root
        self._config = config

    def backfill(self, start_public_commit: str) -> BackfillResult:
        """Tag every public snapshot from start_public_commit to the public tip.

        Public commits whose tag already exists are skipped without
        re-validation, so re-running over the same range creates nothing new.
        Public commits with no private counterpart are reported and skipped.
        A public commit whose tag name an earlier commit in this run already
        claimed (same committer second) is reported as a collision and left
        untagged; its match still counts for the rolling tag.
        After the walk the rolling sync tag moves to the private commit matched
        for the newest processed public commit, if any matched.

        Args:
            start_public_commit: Oldest public snapshot to process (inclusive)

        Returns:
            BackfillResult describing each processed public commit

        Raises:
            PreflightError: Missing remote-tracking refs or failed fetch
            InvalidInputError: start_public_commit is unknown, not a commit, or
                not on the public branch
            TagPushFailure: A tag push failed under the 'abort' policy, or the
                rolling tag could not be updated
        """
        git = self._git
        root = self._repo_root
        config = self._config

        try:
            git.refresh_all_remotes(root)
        except RuntimeError as e:
            raise PreflightError(str(e)) from e

        public_tip = git.resolve_ref(root, config.public_tracking_ref)
        if public_tip is None:
            raise PreflightError(f"Missing {config.public_tracking_ref}")
        private_tip = git.resolve_ref(root, config.private_tracking_ref)
        if private_tip is None:
            raise PreflightError(f"Missing {config.private_tracking_ref}")

        start = self._resolve_start(start_public_commit, public_tip)
        public_commits = [start, *git.commits_oldest_first(root, start, public_tip)]

        processed: list[str] = []
        created: list[BackfilledTag] = []
        skipped_existing: list[ExistingTag] = []
        unmatched: list[UnmatchedSnapshot] = []
        failed_pushes: list[FailedTagPush] = []
        collisions: list[TagNameCollision] = []
        # Tag names this run has claimed -> public commit that claimed them
        claimed: dict[str, str] = {}
        latest_match: str | None = None

        logger.info("backfilling from %s on %s", start, config.public_tracking_ref)
        index = FingerprintIndex(git, root, private_tip)
        try:
            for public_commit in public_commits:
                processed.append(public_commit)
                tag_name = release_tag_name(git.committer_timestamp(root, public_commit))

                if tag_name in claimed:
                    private_commit = index.find(git.fingerprint_of(root, public_commit))
                    logger.warning(
                        "public %s has the same tag name %s as public %s; leaving it untagged",
                        public_commit[:7],
                        tag_name,
                        claimed[tag_name][:7],
                    )
                    collisions.append(
                        TagNameCollision(
                            public_commit=public_commit,
                            tag_name=tag_name,
                            existing_public_commit=claimed[tag_name],
                            private_commit=private_commit,
                        )
                    )
                    if private_commit is not None:
                        latest_match = private_commit
                    continue

                if git.tag_exists(root, tag_name):
                    logger.info("tag %s already exists; skipping %s", tag_name, public_commit[:7])
                    skipped_existing.append(
                        ExistingTag(public_commit=public_commit, tag_name=tag_name)
                    )
                    continue

                fingerprint = git.fingerprint_of(root, public_commit)
                private_commit = index.find(fingerprint)
                if private_commit is None:
                    logger.warning(
                        "no private commit matches public %s (tree %s); skipping",
                        public_commit[:7],
                        fingerprint[:7],
                    )
                    unmatched.append(
                        UnmatchedSnapshot(
                            public_commit=public_commit,
                            tag_name=tag_name,
                            fingerprint=fingerprint,
                        )
                    )
                    continue

                claimed[tag_name] = public_commit
                try:
                    create_release_tag(
                        git,
                        root,
                        config,
                        name=tag_name,
                        target=private_commit,
                        annotation=backfill_tag_annotation(
                            config,
                            public_commit=public_commit,
                            private_commit=private_commit,
                        ),
                        published_commit=None,
                    )
                except TagPushFailure as e:
                    if config.on_tag_push_failure == "abort":
                        raise
                    logger.warning("%s; continuing", e.message)
                    failed_pushes.append(
                        FailedTagPush(
                            public_commit=public_commit,
                            private_commit=private_commit,
                            tag_name=tag_name,
                            message=e.message,
                        )
                    )
                    continue

                created.append(
                    BackfilledTag(
                        public_commit=public_commit,
                        private_commit=private_commit,
                        tag_name=tag_name,
                    )
                )
                latest_match = private_commit
        finally:
            index.close()

        rolling_tag = None
        if latest_match is not None:
            rolling_tag = move_rolling_tag(
                git,
                root,
                config,
                target=latest_match,
                observed=git.resolve_ref(root, config.sync_tag_ref),
                published_commit=None,
            )
        else:
            logger.info("no matches made; %s unchanged", config.sync_tag)

        return BackfillResult(
            processed=processed,
            created=created,
            skipped_existing=skipped_existing,
            unmatched=unmatched,
            failed_pushes=failed_pushes,
            collisions=collisions,
            rolling_tag=rolling_tag,
        )

    def _resolve_start(self, start_public_commit: str, public_tip: str) -> str:
        git = self._git
        root = self._repo_root

        object_type = git.object_type(root, start_public_commit)
        if object_type is None:
            raise InvalidInputError(f"Unknown object {start_public_commit}")
        if object_type != "commit":
            raise InvalidInputError(f"{start_public_commit} is not a commit")

        start = git.resolve_ref(root, start_public_commit)
        if start is None:
            raise InvalidInputError(f"{start_public_commit} is not a commit")
        if not git.is_ancestor(root, start, public_tip):
            raise InvalidInputError(
                f"Provided commit is not an ancestor of {self._config.public_tracking_ref}"
            )
        return start
