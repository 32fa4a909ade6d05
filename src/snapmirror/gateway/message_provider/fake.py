"""Fake message provider for testing."""

from snapmirror.gateway.message_provider.abc import MessageProvider


class FakeMessageProvider(MessageProvider):
    """Returns a pre-configured response and records the templates it was shown.

    Constructor Injection:
    ---------------------
    - response: Text to return; None simulates quitting the editor. When
      use_template is True the template is returned instead.

    Mutation Tracking:
    -----------------
    - templates: Templates passed to edit(), in call order
    """

    def __init__(self, *, response: str | None = None, use_template: bool = False) -> None:
        self._response = response
        self._use_template = use_template
        self._templates: list[str] = []

    def edit(self, template: str) -> str | None:
        self._templates.append(template)
        if self._use_template:
            return template
        return self._response

    @property
    def templates(self) -> list[str]:
        """Templates shown during the test."""
        return list(self._templates)
