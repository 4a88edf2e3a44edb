"""
Intake handlers that acknowledge a request with a reference number.
"""

import time
from abc import abstractmethod

from digital_employee.core.logging import get_logger
from digital_employee.core.models import Action, ActionResult, IncomingMessage
from digital_employee.handlers.base import BaseHandler

log = get_logger(__name__)


def reference_number(prefix: str) -> str:
    """Reference like LOAN-1718000000000 (epoch milliseconds)."""
    return f"{prefix}-{int(time.time() * 1000)}"


class AcknowledgementHandler(BaseHandler):
    """Replies with a fixed acknowledgement text and a fresh reference."""

    REFERENCE_PREFIX = ""
    REFERENCE_LABEL = "Reference"
    SIGNATURE = "Digital Employee"

    @abstractmethod
    def body(self, message: IncomingMessage) -> str:
        """Request-specific paragraph between greeting and reference."""

    async def handle(self, message: IncomingMessage) -> ActionResult:
        reference = reference_number(self.REFERENCE_PREFIX)
        log.info(
            "request_acknowledged",
            handler=type(self).__name__,
            sender=message.sender,
            reference=reference,
        )
        text = (
            f"Dear {message.sender},\n\n"
            f"{self.body(message)}\n\n"
            f"{self.REFERENCE_LABEL}: {reference}\n\n"
            f"Best regards,\n{self.SIGNATURE}"
        )
        return ActionResult(success=True, message=text)


class LoanApplicationHandler(AcknowledgementHandler):
    HANDLED_ACTIONS = frozenset({Action.PROCESS_LOAN_APPLICATION})
    REFERENCE_PREFIX = "LOAN"
    REFERENCE_LABEL = "Application Reference"

    def body(self, message: IncomingMessage) -> str:
        return (
            "Thank you for your loan application.\n\n"
            "Your application has been received and is being processed. "
            "We will evaluate your request and get back to you within 5 business days."
        )


class AccountStatementHandler(AcknowledgementHandler):
    HANDLED_ACTIONS = frozenset({Action.GENERATE_ACCOUNT_STATEMENT})
    REFERENCE_PREFIX = "STMT"
    REFERENCE_LABEL = "Request ID"

    def body(self, message: IncomingMessage) -> str:
        return (
            "Your account statement request has been received.\n\n"
            "We are generating your monthly statement and will send it to you shortly. "
            "Please allow 1-2 hours for processing."
        )


class SupportRequestHandler(AcknowledgementHandler):
    HANDLED_ACTIONS = frozenset({Action.HANDLE_SUPPORT_REQUEST})
    REFERENCE_PREFIX = "SUP"
    REFERENCE_LABEL = "Ticket Number"
    SIGNATURE = "Digital Employee Support"

    def body(self, message: IncomingMessage) -> str:
        return (
            "Thank you for contacting our support team.\n\n"
            "Your support request has been logged and assigned to a specialist. "
            "We aim to respond to all inquiries within 24 hours."
        )
