"""
Credit card statement analysis handler.
"""

import asyncio
import base64

from digital_employee.core.exceptions import AnalysisError, AttachmentParseError
from digital_employee.core.logging import get_logger
from digital_employee.core.models import Action, ActionResult, IncomingMessage
from digital_employee.handlers.base import BaseHandler
from digital_employee.handlers.card_summary.report import render_statement_report
from digital_employee.services.analysis import StatementAnalyzer
from digital_employee.services.charts import ChartRenderer
from digital_employee.services.statement_parser import StatementParser

log = get_logger(__name__)

REPORT_SUBJECT = "Your Credit Card Statement Analysis Report"


class CardSummaryHandler(BaseHandler):
    """Analyzes an attached statement and replies with an HTML report."""

    HANDLED_ACTIONS = frozenset({Action.GENERATE_CARD_SUMMARY})

    def __init__(
        self,
        parser: StatementParser,
        analyzer: StatementAnalyzer,
        charts: ChartRenderer,
        currency: str = "AED",
    ):
        self.parser = parser
        self.analyzer = analyzer
        self.charts = charts
        self.currency = currency

    async def handle(self, message: IncomingMessage) -> ActionResult:
        """
        Build a statement analysis report.

        1. Decode the first attachment to text
        2. Analyze it with the analysis service
        3. Render a pie chart of spending categories
        4. Compose the HTML report
        """
        log.info("card_summary_start", sender=message.sender, attachments=len(message.attachments))

        if not message.attachments:
            log.warning("card_summary_no_attachment", sender=message.sender)
            return ActionResult(success=False, message=self._missing_attachment_text(message.sender))

        attachment = message.attachments[0]
        try:
            statement = await asyncio.to_thread(self.parser.parse, attachment)
            analysis = await asyncio.to_thread(self.analyzer.analyze, statement)
            chart = await asyncio.to_thread(self.charts.pie_chart, analysis.spending_categories)
            report = render_statement_report(
                recipient=message.sender,
                analysis=analysis,
                chart_base64=base64.b64encode(chart).decode("ascii"),
                currency=self.currency,
            )
        except (AttachmentParseError, AnalysisError) as e:
            log.error("card_summary_failed", error=str(e), filename=attachment.filename)
            return ActionResult(success=False, message=self._failure_text(message.sender, str(e)))
        except Exception as e:
            log.exception("card_summary_failed", error=str(e), filename=attachment.filename)
            return ActionResult(success=False, message=self._failure_text(message.sender, str(e)))

        log.info("card_summary_complete", sender=message.sender, report_length=len(report))
        return ActionResult(
            success=True,
            message="Please view this email in HTML format.",
            html=report,
            subject=REPORT_SUBJECT,
        )

    def _missing_attachment_text(self, sender: str) -> str:
        return (
            f"Dear {sender},\n\n"
            "Thank you for your credit card statement analysis request.\n\n"
            "However, no statement file was attached to your email. "
            "Please resend your email with your credit card statement attached "
            "(supported formats: CSV, PDF, TXT).\n\n"
            "Best regards,\nDigital Employee"
        )

    def _failure_text(self, sender: str, error: str) -> str:
        return (
            f"Dear {sender},\n\n"
            f"We encountered an error while analyzing your credit card statement: {error}\n\n"
            "Please ensure your file is in a supported format (CSV, PDF, or TXT) and try again.\n\n"
            "Best regards,\nDigital Employee"
        )
