"""Action handlers."""

from .base import BaseHandler
from .registry import HandlerRegistry
from .card_summary import CardSummaryHandler
from .intake import AccountStatementHandler, LoanApplicationHandler, SupportRequestHandler
from digital_employee.services.analysis import StatementAnalyzer
from digital_employee.services.charts import ChartRenderer
from digital_employee.services.statement_parser import StatementParser


def build_registry(
    analyzer: StatementAnalyzer,
    parser: StatementParser | None = None,
    charts: ChartRenderer | None = None,
    currency: str = "AED",
) -> HandlerRegistry:
    """Registry with one handler per supported action."""
    return HandlerRegistry([
        CardSummaryHandler(
            parser=parser or StatementParser(),
            analyzer=analyzer,
            charts=charts or ChartRenderer(currency=currency),
            currency=currency,
        ),
        LoanApplicationHandler(),
        AccountStatementHandler(),
        SupportRequestHandler(),
    ])


__all__ = [
    "BaseHandler",
    "HandlerRegistry",
    "CardSummaryHandler",
    "LoanApplicationHandler",
    "AccountStatementHandler",
    "SupportRequestHandler",
    "build_registry",
]
