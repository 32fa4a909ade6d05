"""Tests for the message provider implementations."""

from pathlib import Path
from unittest.mock import patch

from snapmirror.gateway.message_provider.fake import FakeMessageProvider
from snapmirror.gateway.message_provider.real import EditorMessageProvider
from snapmirror.gateway.message_provider.static import (
    FixedMessageProvider,
    TemplateMessageProvider,
)
from snapmirror.gateway.repository.fake import FakeRepositoryGateway

CWD = Path("/repo")


def test_template_provider_returns_template_unchanged() -> None:
    assert TemplateMessageProvider().edit("subject\n# comment\n") == "subject\n# comment\n"


def test_fixed_provider_ignores_template() -> None:
    assert FixedMessageProvider("release notes").edit("subject\n") == "release notes"


def test_fake_provider_records_templates() -> None:
    provider = FakeMessageProvider(response="edited")

    assert provider.edit("first") == "edited"
    assert provider.edit("second") == "edited"
    assert provider.templates == ["first", "second"]


def test_fake_provider_none_response_simulates_abandoned_edit() -> None:
    assert FakeMessageProvider().edit("template") is None


def test_editor_provider_prefers_git_editor_environment() -> None:
    git = FakeRepositoryGateway(editor="nano")
    provider = EditorMessageProvider(git=git, cwd=CWD, env={"GIT_EDITOR": "vim"})

    with patch("snapmirror.gateway.message_provider.real.click.edit") as mock_edit:
        mock_edit.return_value = "edited\n"
        result = provider.edit("template\n")

    assert result == "edited\n"
    mock_edit.assert_called_once_with(
        "template\n", editor="vim", extension=".txt", require_save=True
    )


def test_editor_provider_falls_back_to_git_configured_editor() -> None:
    git = FakeRepositoryGateway(editor="code --wait")
    provider = EditorMessageProvider(git=git, cwd=CWD, env={"GIT_EDITOR": ""})

    with patch("snapmirror.gateway.message_provider.real.click.edit") as mock_edit:
        mock_edit.return_value = "edited\n"
        provider.edit("template\n")

    assert mock_edit.call_args.kwargs["editor"] == "code --wait"


def test_editor_provider_lets_click_choose_when_git_has_no_editor() -> None:
    provider = EditorMessageProvider(git=FakeRepositoryGateway(), cwd=CWD, env={})

    with patch("snapmirror.gateway.message_provider.real.click.edit") as mock_edit:
        mock_edit.return_value = "edited\n"
        provider.edit("template\n")

    assert mock_edit.call_args.kwargs["editor"] is None


def test_editor_provider_returns_none_when_not_saved() -> None:
    provider = EditorMessageProvider(git=FakeRepositoryGateway(), cwd=CWD, env={})

    with patch("snapmirror.gateway.message_provider.real.click.edit", return_value=None):
        assert provider.edit("template\n") is None
