"""Abstract interface for finalizing a commit message from a template."""

from abc import ABC, abstractmethod


class MessageProvider(ABC):
    """Turns a proposed message template into the text the user settled on."""

    @abstractmethod
    def edit(self, template: str) -> str | None:
        """Offer the template for revision.

        Args:
            template: Proposed message, including '#' comment lines

        Returns:
            The revised text (comment lines not yet stripped), or None if the
            user explicitly abandoned the edit
        """
        ...
