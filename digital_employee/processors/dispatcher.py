"""
Dispatch coordinator: matched request -> action -> reply.
"""

import asyncio
from typing import Protocol

from digital_employee.classifiers.base import BaseClassifier
from digital_employee.core.logging import bind_context, clear_context, get_logger
from digital_employee.core.models import ActionResult, IncomingMessage, OutboundMessage
from digital_employee.handlers.registry import HandlerRegistry

log = get_logger(__name__)

HTML_FALLBACK_TEXT = "Please view this email in HTML format."


class ReplySender(Protocol):
    def send(self, outbound: OutboundMessage) -> bool: ...


def reply_subject(subject: str) -> str:
    """Mirror a subject using the Re: convention."""
    return subject if subject.startswith("Re:") else f"Re: {subject}"


def unmatched_text(sender: str) -> str:
    return (
        f"Dear {sender},\n\n"
        "Thank you for your email. Unfortunately, I was unable to identify "
        "the specific request you're making.\n\n"
        "Could you please provide more details or rephrase your request? "
        "Alternatively, you may contact our support team directly for assistance.\n\n"
        "I apologize for any inconvenience.\n\n"
        "Best regards,\nDigital Employee"
    )


def failure_text(sender: str, error: str) -> str:
    return (
        f"Dear {sender},\n\n"
        f"We encountered an error while processing your request: {error}\n\n"
        "Our team has been notified and will look into this issue.\n\n"
        "Please try again later or contact support if the issue persists.\n\n"
        "Best regards,\nDigital Employee"
    )


class DispatchCoordinator:
    """Resolves a message to an action, runs it and sends one reply."""

    def __init__(
        self,
        matcher: BaseClassifier,
        registry: HandlerRegistry,
        sender: ReplySender,
    ):
        self.matcher = matcher
        self.registry = registry
        self.sender = sender

    async def handle(self, message: IncomingMessage) -> bool:
        """
        Process a request message and reply to its sender.

        Returns:
            True if the source message should be marked read, i.e. the
            action ran and its reply was delivered
        """
        bind_context(identity=message.identity, sender=message.sender)
        try:
            try:
                result = await self.resolve(message)
            except Exception as e:
                log.exception("action_failed", error=str(e))
                await self._send(OutboundMessage(
                    to=message.sender,
                    subject=reply_subject(message.subject),
                    text=failure_text(message.sender, str(e)),
                ))
                # Left unseen so the request can be retried
                return False

            return await self._send(self.compose(message, result))
        finally:
            clear_context()

    async def resolve(self, message: IncomingMessage) -> ActionResult:
        """Match the message and run its handler, or build the unmatched reply."""
        match = self.matcher.match(message.subject, message.body)

        handler = self.registry.get_handler(match.action) if match.action else None
        if handler is None:
            if match.action:
                log.warning("no_handler", action=match.action.value)
            log.info("request_unmatched", score=round(match.score, 3))
            return ActionResult(success=False, message=unmatched_text(message.sender))

        log.info("action_executing", action=match.action.value, handler=type(handler).__name__)
        result = await handler.handle(message)
        log.info("action_complete", action=match.action.value, success=result.success)
        return result

    def compose(self, message: IncomingMessage, result: ActionResult) -> OutboundMessage:
        """Turn an action result into a reply."""
        if result.is_html:
            return OutboundMessage(
                to=message.sender,
                subject=result.subject or reply_subject(message.subject),
                text=result.message or HTML_FALLBACK_TEXT,
                html=result.html,
            )
        return OutboundMessage(
            to=message.sender,
            subject=reply_subject(message.subject),
            text=result.message,
        )

    async def _send(self, outbound: OutboundMessage) -> bool:
        try:
            return await asyncio.to_thread(self.sender.send, outbound)
        except Exception as e:
            log.error("reply_delivery_error", to=outbound.to, error=str(e))
            return False
