"""Dependency container threaded through the CLI.

SnapmirrorContext is created once at the CLI entry point and passed to
commands via click's context object. Tests build one with context_for_test()
to run commands against in-memory fakes.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from snapmirror.gateway.message_provider.abc import MessageProvider
from snapmirror.gateway.repository.abc import RepositoryGateway


@dataclass(frozen=True)
class SnapmirrorContext:
    """Immutable context holding all dependencies for snapmirror commands.

    Frozen to prevent accidental modification at runtime.
    """

    git: RepositoryGateway
    message_provider: MessageProvider  # used when the command runs interactively
    cwd: Path
    env: dict[str, str]
    debug: bool


def create_context(*, debug: bool) -> SnapmirrorContext:
    """Create the production context backed by git and the user's editor."""
    # Inline imports keep subprocess-backed implementations out of test imports
    from snapmirror.gateway.message_provider.real import EditorMessageProvider
    from snapmirror.gateway.repository.real import RealRepositoryGateway

    git = RealRepositoryGateway()
    cwd = Path.cwd()
    env = dict(os.environ)
    return SnapmirrorContext(
        git=git,
        message_provider=EditorMessageProvider(git=git, cwd=cwd, env=env),
        cwd=cwd,
        env=env,
        debug=debug,
    )


def context_for_test(
    *,
    git: RepositoryGateway | None = None,
    message_provider: MessageProvider | None = None,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    debug: bool = False,
) -> SnapmirrorContext:
    """Create a test context, defaulting every dependency to a fake.

    Args:
        git: Gateway to use; defaults to a FakeRepositoryGateway rooted at cwd
        message_provider: Provider to use; defaults to one that accepts the template
        cwd: Working directory (defaults to Path("/fake/repo"))
        env: Environment seen by config resolution (defaults to empty)
        debug: Whether debug mode is enabled

    Example:
        >>> fake_git = FakeRepositoryGateway(repository_root=Path("/repo"))
        >>> ctx = context_for_test(git=fake_git, cwd=Path("/repo"))
    """
    from snapmirror.gateway.message_provider.fake import FakeMessageProvider
    from snapmirror.gateway.repository.fake import FakeRepositoryGateway

    resolved_cwd = cwd if cwd is not None else Path("/fake/repo")
    return SnapmirrorContext(
        git=git if git is not None else FakeRepositoryGateway(repository_root=resolved_cwd),
        message_provider=(
            message_provider
            if message_provider is not None
            else FakeMessageProvider(use_template=True)
        ),
        cwd=resolved_cwd,
        env=env if env is not None else {},
        debug=debug,
    )
