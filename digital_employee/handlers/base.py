"""
Abstract base class for action handlers.
"""

from abc import ABC, abstractmethod

from digital_employee.core.models import Action, ActionResult, IncomingMessage


class BaseHandler(ABC):
    """Abstract handler interface for processing matched requests."""

    HANDLED_ACTIONS: frozenset[Action] = frozenset()

    def can_handle(self, action: Action) -> bool:
        """
        Check if this handler can process the given action.

        Args:
            action: Matched action

        Returns:
            True if this handler can process this action
        """
        return action in self.HANDLED_ACTIONS

    @abstractmethod
    async def handle(self, message: IncomingMessage) -> ActionResult:
        """
        Perform the action for a message.

        Args:
            message: The request message, including attachments

        Returns:
            ActionResult with the reply content
        """
        pass
