"""Output helpers separating human-facing messages from machine-readable results.

user_output writes to stderr so that stdout stays clean for values that
scripts capture (such as the id of a newly published commit).
"""

from typing import Any

import click


def user_output(message: Any = "", *, nl: bool = True) -> None:
    """Print a message for the person running the command (stderr)."""
    click.echo(message, err=True, nl=nl)


def machine_output(message: Any = "", *, nl: bool = True) -> None:
    """Print a value intended for scripts (stdout)."""
    click.echo(message, nl=nl)
