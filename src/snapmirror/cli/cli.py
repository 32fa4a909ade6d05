import logging

import click

from snapmirror.cli.commands.backfill import backfill_cmd
from snapmirror.cli.commands.publish import publish_cmd
from snapmirror.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="snapmirror")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Mirror a private branch to a public branch as snapshot commits."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(debug=debug)


cli.add_command(publish_cmd)
cli.add_command(backfill_cmd)
