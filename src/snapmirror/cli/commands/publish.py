"""Command to publish the private branch as a snapshot commit."""

import click

from snapmirror.cli.commands.options import collect_options, sync_options
from snapmirror.cli.config import PUBLISH_SETTINGS, resolve_sync_config
from snapmirror.cli.ensure import Ensure, UserFacingCliError, user_facing_errors
from snapmirror.core.context import SnapmirrorContext
from snapmirror.core.publish import SnapshotPublisher
from snapmirror.core.types import NothingToPublish, PublishAborted, SnapshotPublished
from snapmirror.gateway.message_provider.abc import MessageProvider
from snapmirror.gateway.message_provider.static import (
    FixedMessageProvider,
    TemplateMessageProvider,
)
from snapmirror.gateway.repository.dry_run import DryRunRepositoryGateway
from snapmirror.output.output import machine_output, user_output


def _select_message_provider(
    ctx: SnapmirrorContext, *, no_edit: bool, message: str | None
) -> MessageProvider:
    if message is not None and no_edit:
        raise UserFacingCliError("--message and --no-edit cannot be used together")
    if message is not None:
        return FixedMessageProvider(message)
    if no_edit:
        return TemplateMessageProvider()
    return ctx.message_provider


@click.command("publish")
@sync_options
@click.option(
    "--allow-rewrite/--no-allow-rewrite",
    default=None,
    help="Overwrite the public branch with a lease if it moved [env ALLOW_REWRITE]",
)
@click.option(
    "--snapshot-date",
    help="Backdate the snapshot, e.g. '2024-12-15 14:30:00 -0800' [env SNAPSHOT_DATE]",
)
@click.option("--no-edit", is_flag=True, help="Accept the proposed message without an editor")
@click.option("-m", "--message", help="Use this commit message instead of opening an editor")
@click.pass_obj
def publish_cmd(ctx: SnapmirrorContext, **params: object) -> None:
    """Publish the private branch's current content to the public branch.

    Creates one commit on the public branch whose tree equals the private
    branch tip, without carrying over private history. Afterwards the rolling
    sync tag moves to the exported private commit and a public-snap-* tag
    records the pair on the private remote.

    Does nothing when the public branch already has the same content. An
    empty commit message cancels the run before anything is created.
    """
    repo_root = Ensure.repository_root(ctx)
    dry_run = bool(params["dry_run"])
    message = params["message"]

    with user_facing_errors():
        config = resolve_sync_config(
            repo_root=repo_root,
            options=collect_options(params, "allow_rewrite", "snapshot_date"),
            env=ctx.env,
            settings=PUBLISH_SETTINGS,
        )
        if ctx.debug:
            snapshot_date = config.snapshot_date.isoformat() if config.snapshot_date else "now"
            user_output(
                click.style(
                    f"   {config.private_tracking_ref} -> {config.public_tracking_ref}, "
                    f"sync tag {config.sync_tag}, allow rewrite {config.allow_rewrite}, "
                    f"snapshot date {snapshot_date}",
                    dim=True,
                )
            )
        publisher = SnapshotPublisher(
            git=DryRunRepositoryGateway(ctx.git) if dry_run else ctx.git,
            message_provider=_select_message_provider(
                ctx,
                no_edit=bool(params["no_edit"]),
                message=message if isinstance(message, str) else None,
            ),
            repo_root=repo_root,
            config=config,
        )
        outcome = publisher.publish()

    if isinstance(outcome, NothingToPublish):
        user_output(f"{outcome.reason} Skipping snapshot.")
        return
    if isinstance(outcome, PublishAborted):
        user_output(click.style(outcome.reason, fg="yellow"))
        return
    if isinstance(outcome, SnapshotPublished):
        public_name = f"{config.public_remote}/{config.public_branch}"
        user_output(
            click.style("✓", fg="green")
            + f" Updated {click.style(public_name, fg='yellow')} -> {outcome.commit_sha}"
        )
        user_output(f"Tags: moved {outcome.rolling_tag.name}, created {outcome.release_tag.name}")
        machine_output(outcome.commit_sha)
