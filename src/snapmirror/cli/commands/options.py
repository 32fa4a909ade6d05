"""Options shared by the publish and backfill commands."""

from collections.abc import Callable
from typing import Any, TypeVar

import click

from snapmirror.cli.config import SHARED_SETTINGS

F = TypeVar("F", bound=Callable[..., Any])


def sync_options(func: F) -> F:
    """Add the remote, branch and tag options.

    Every option defaults to None so that unset options fall through to the
    environment and the config file.
    """
    decorators = [
        click.option("--private-remote", help="Private remote [env PRIV_REMOTE; default origin]"),
        click.option("--private-branch", help="Private branch [env PRIV_BRANCH; default main]"),
        click.option("--public-remote", help="Public remote [env PUB_REMOTE; default public]"),
        click.option("--public-branch", help="Public branch [env PUB_BRANCH; default latest]"),
        click.option(
            "--sync-tag",
            help="Rolling tag marking the last exported private commit "
            "[env SYNC_TAG; default public-sync]",
        ),
        click.option(
            "--guard-sync-tag/--no-guard-sync-tag",
            "guard_rolling_tag",
            default=None,
            help="Push the rolling tag with a lease instead of forcing it [env GUARD_SYNC_TAG]",
        ),
        click.option(
            "--dry-run",
            is_flag=True,
            help="Print fetches, commits, tags and pushes instead of running them",
        ),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def collect_options(params: dict[str, Any], *names: str) -> dict[str, Any]:
    """Pick the config-related values out of a command's keyword arguments."""
    return {name: params[name] for name in (*SHARED_SETTINGS, *names)}
