"""Non-interactive message providers for unattended runs."""

from snapmirror.gateway.message_provider.abc import MessageProvider


class TemplateMessageProvider(MessageProvider):
    """Accepts the template unchanged."""

    def edit(self, template: str) -> str | None:
        return template


class FixedMessageProvider(MessageProvider):
    """Replaces the template with a message supplied up front (e.g. via --message)."""

    def __init__(self, message: str) -> None:
        self._message = message

    def edit(self, template: str) -> str | None:
        return self._message
