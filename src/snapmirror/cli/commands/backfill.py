"""Command to recreate per-release tags for existing public snapshots."""

import click
from rich.console import Console
from rich.table import Table

from snapmirror.cli.commands.options import collect_options, sync_options
from snapmirror.cli.config import BACKFILL_SETTINGS, resolve_sync_config
from snapmirror.cli.ensure import Ensure, user_facing_errors
from snapmirror.core.backfill import HistoryBackfiller
from snapmirror.core.config import TAG_PUSH_FAILURE_POLICIES
from snapmirror.core.context import SnapmirrorContext
from snapmirror.core.types import BackfillResult
from snapmirror.gateway.repository.dry_run import DryRunRepositoryGateway
from snapmirror.output.output import user_output


def _short(sha: str) -> str:
    return sha[:7]


def _build_table(result: BackfillResult) -> Table:
    """One row per processed public commit, in processing order."""
    rows: dict[str, tuple[str, str, str]] = {}
    for tag in result.created:
        rows[tag.public_commit] = (
            tag.tag_name,
            _short(tag.private_commit),
            "[green]created[/green]",
        )
    for existing in result.skipped_existing:
        rows[existing.public_commit] = (existing.tag_name, "", "[dim]exists[/dim]")
    for unmatched in result.unmatched:
        rows[unmatched.public_commit] = (unmatched.tag_name, "", "[yellow]no match[/yellow]")
    for failed in result.failed_pushes:
        rows[failed.public_commit] = (
            failed.tag_name,
            _short(failed.private_commit),
            "[red]push failed[/red]",
        )
    for collision in result.collisions:
        rows[collision.public_commit] = (
            collision.tag_name,
            _short(collision.private_commit) if collision.private_commit is not None else "",
            f"[magenta]name taken by {_short(collision.existing_public_commit)}[/magenta]",
        )

    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("public", no_wrap=True)
    table.add_column("tag", no_wrap=True)
    table.add_column("private", no_wrap=True)
    table.add_column("status", no_wrap=True)
    for public_commit in result.processed:
        tag_name, private_commit, status = rows[public_commit]
        table.add_row(_short(public_commit), tag_name, private_commit, status)
    return table


@click.command("backfill")
@click.argument("start_commit")
@sync_options
@click.option(
    "--on-push-failure",
    "on_tag_push_failure",
    type=click.Choice(TAG_PUSH_FAILURE_POLICIES),
    default=None,
    help="Keep going or stop when a tag push fails [env BACKFILL_ON_PUSH_FAILURE; "
    "default continue]",
)
@click.pass_obj
def backfill_cmd(ctx: SnapmirrorContext, start_commit: str, **params: object) -> None:
    """Tag historical public snapshots starting at START_COMMIT.

    Walks START_COMMIT and every later commit on the public branch, finds the
    newest private commit with identical content, and creates the
    public-snap-* tag that publish would have created. Existing tags are left
    alone, so the command can be re-run. Finally the rolling sync tag moves to
    the private commit matched for the newest public snapshot.

    Nothing is pushed to the public remote.
    """
    repo_root = Ensure.repository_root(ctx)

    with user_facing_errors():
        config = resolve_sync_config(
            repo_root=repo_root,
            options=collect_options(params, "on_tag_push_failure"),
            env=ctx.env,
            settings=BACKFILL_SETTINGS,
        )
        if ctx.debug:
            user_output(
                click.style(
                    f"   {config.private_tracking_ref} -> {config.public_tracking_ref}, "
                    f"sync tag {config.sync_tag}, on push failure {config.on_tag_push_failure}",
                    dim=True,
                )
            )
        backfiller = HistoryBackfiller(
            git=DryRunRepositoryGateway(ctx.git) if params["dry_run"] else ctx.git,
            repo_root=repo_root,
            config=config,
        )
        user_output(f"Backfilling from {start_commit} on {config.public_tracking_ref}...")
        result = backfiller.backfill(start_commit)

    if result.processed:
        Console(stderr=True).print(_build_table(result))

    user_output(
        f"Created {len(result.created)}, already tagged {len(result.skipped_existing)}, "
        f"unmatched {len(result.unmatched)}, push failures {len(result.failed_pushes)}."
    )
    if result.rolling_tag is not None:
        user_output(f"Moved {result.rolling_tag.name} -> {_short(result.rolling_tag.target)}")
    else:
        user_output(f"No matches found; {config.sync_tag} unchanged.")
    if result.failed_pushes:
        user_output(
            click.style("Warning: ", fg="yellow")
            + "some tags exist only locally; push them with "
            + f"'git push {config.private_remote} refs/tags/<tag>'"
        )
        if ctx.debug:
            for failed in result.failed_pushes:
                user_output(click.style(f"   {failed.message}", dim=True))
    if result.collisions:
        user_output(
            click.style("Warning: ", fg="yellow")
            + f"{len(result.collisions)} public commit(s) share a tag name with an earlier "
            + "snapshot (same committer second) and were left untagged"
        )
