from .handler import (
    AccountStatementHandler,
    AcknowledgementHandler,
    LoanApplicationHandler,
    SupportRequestHandler,
)

__all__ = [
    "AccountStatementHandler",
    "AcknowledgementHandler",
    "LoanApplicationHandler",
    "SupportRequestHandler",
]
