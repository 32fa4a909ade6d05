"""CLI error handling: user-facing errors and precondition checks."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any, TypeVar

import click

from snapmirror.core.context import SnapmirrorContext
from snapmirror.core.errors import SnapshotSyncError
from snapmirror.output.output import user_output

T = TypeVar("T")


class UserFacingCliError(click.ClickException):
    """An error whose message is meant for the person running the command.

    Printed as 'Error: <message>' in red on stderr, without a traceback.
    """

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: IO[Any] | None = None) -> None:
        user_output(click.style("Error: ", fg="red") + self.message)


class Ensure:
    """Precondition checks that exit with a user-facing error when they fail."""

    @staticmethod
    def not_none(value: T | None, message: str) -> T:
        """Ensure value is not None, otherwise raise UserFacingCliError."""
        if value is None:
            raise UserFacingCliError(message)
        return value

    @staticmethod
    def repository_root(ctx: SnapmirrorContext) -> Path:
        """Ensure the command runs inside a repository and return its root."""
        return Ensure.not_none(ctx.git.get_repository_root(ctx.cwd), "Run inside a git repo.")


@contextmanager
def user_facing_errors() -> Iterator[None]:
    """Report SnapshotSyncError as a UserFacingCliError."""
    try:
        yield
    except SnapshotSyncError as e:
        raise UserFacingCliError(e.message) from e
