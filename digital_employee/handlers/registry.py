"""
Handler registry for routing matched actions to handlers.
"""

from digital_employee.core.logging import get_logger
from digital_employee.core.models import Action
from digital_employee.handlers.base import BaseHandler

log = get_logger(__name__)


class HandlerRegistry:
    """Ordered collection of handler instances."""

    def __init__(self, handlers: list[BaseHandler] | None = None):
        self._handlers: list[BaseHandler] = []
        for handler in handlers or []:
            self.register(handler)

    def register(self, handler: BaseHandler) -> BaseHandler:
        """Add a handler instance."""
        self._handlers.append(handler)
        log.info(
            "handler_registered",
            handler=type(handler).__name__,
            actions=sorted(action.value for action in handler.HANDLED_ACTIONS),
        )
        return handler

    def get_handler(self, action: Action) -> BaseHandler | None:
        """
        Get the handler for an action.

        Args:
            action: Matched action

        Returns:
            First handler that can process this action, or None
        """
        for handler in self._handlers:
            if handler.can_handle(action):
                return handler
        return None

    def actions(self) -> set[Action]:
        """All actions some registered handler accepts."""
        return {action for action in Action if self.get_handler(action)}
