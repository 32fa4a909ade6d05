"""Message provider that opens the user's editor."""

from collections.abc import Mapping
from pathlib import Path

import click

from snapmirror.gateway.message_provider.abc import MessageProvider
from snapmirror.gateway.repository.abc import RepositoryGateway


class EditorMessageProvider(MessageProvider):
    """Opens an editor on the template via click.edit.

    The editor is $GIT_EDITOR if set, otherwise whatever git reports through
    `git var GIT_EDITOR` (core.editor, $VISUAL, $EDITOR). If neither names
    one, click picks its own default. Quitting the editor without saving
    counts as an abort.
    """

    def __init__(self, *, git: RepositoryGateway, cwd: Path, env: Mapping[str, str]) -> None:
        self._git = git
        self._cwd = cwd
        self._env = env

    def _editor(self) -> str | None:
        from_env = self._env.get("GIT_EDITOR")
        if from_env:
            return from_env
        return self._git.configured_editor(self._cwd)

    def edit(self, template: str) -> str | None:
        return click.edit(
            template,
            editor=self._editor(),
            extension=".txt",
            require_save=True,
        )
