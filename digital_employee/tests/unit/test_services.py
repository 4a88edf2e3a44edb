"""Unit tests for mailbox, delivery, parsing, analysis and chart services."""

import smtplib
import threading
import time
from datetime import date
from email.message import EmailMessage
from unittest.mock import MagicMock, patch

import fitz
import pytest

from digital_employee.core.exceptions import AnalysisError, AttachmentParseError, MailboxError
from digital_employee.core.models import Attachment, OutboundMessage
from digital_employee.core.schemas import SpendingCategory
from digital_employee.services.analysis import StatementAnalyzer
from digital_employee.services.charts import BASE_COLORS, ChartRenderer, generate_colors
from digital_employee.services.imap import IMAPClient, imap_date
from digital_employee.services.smtp import SMTPSender
from digital_employee.services.statement_parser import StatementParser


def make_raw_email() -> bytes:
    msg = EmailMessage()
    msg["From"] = "Jane Doe <jane@example.com>"
    msg["To"] = "bot@example.com"
    msg["Subject"] = "DIGITAL EMPLOYEE : credit card evaluation"
    msg["Message-ID"] = "<req-1@example.com>"
    msg["Date"] = "Sun, 01 Mar 2026 09:30:00 +0000"
    msg.set_content("Please review my statement.")
    msg.add_attachment(b"Date,Amount\n2026-02-01,10\n", maintype="text", subtype="csv", filename="statement.csv")
    return msg.as_bytes()


class TestIMAPClient:
    """Tests for IMAPClient against a mocked imaplib connection."""

    @pytest.fixture
    def client(self):
        client = IMAPClient(host="imap.example.com", port=993, user="bot", password="secret")
        client._conn = MagicMock()
        return client

    def test_imap_date(self):
        assert imap_date(date(2026, 1, 5)) == "05-Jan-2026"

    def test_connect_failure_raises_mailbox_error(self):
        client = IMAPClient(host="imap.example.com", port=993, user="bot", password="secret")
        with patch("digital_employee.services.imap.imaplib.IMAP4_SSL", side_effect=OSError("refused")):
            with pytest.raises(MailboxError):
                client.connect()
        assert client.connected is False

    def test_requires_connection(self):
        client = IMAPClient(host="imap.example.com", port=993, user="bot", password="secret")
        with pytest.raises(MailboxError):
            client.search_unseen()

    def test_search_unseen_with_since(self, client):
        client._conn.uid.return_value = ("OK", [b"3 7"])

        assert client.search_unseen(date(2026, 1, 15)) == ["3", "7"]
        client._conn.uid.assert_called_once_with("SEARCH", "UNSEEN", "SINCE", "15-Jan-2026")

    def test_fetch_message(self, client):
        client._conn.uid.return_value = ("OK", [(b"3 (UID 3 BODY[] {100}", make_raw_email()), b")"])

        message = client.fetch_message("3")

        client._conn.uid.assert_called_once_with("FETCH", "3", "(BODY.PEEK[])")
        assert message.uid == "3"
        assert message.sender == "Jane Doe <jane@example.com>"
        assert message.subject == "DIGITAL EMPLOYEE : credit card evaluation"
        assert message.message_id == "<req-1@example.com>"
        assert message.received_at.isoformat() == "2026-03-01T09:30:00+00:00"
        assert "Please review my statement." in message.body
        assert len(message.attachments) == 1
        assert message.attachments[0].filename == "statement.csv"
        assert message.attachments[0].content.startswith(b"Date,Amount")

    def test_fetch_empty(self, client):
        client._conn.uid.return_value = ("OK", [None])
        assert client.fetch_message("3") is None

    def test_mark_seen(self, client):
        client._conn.uid.return_value = ("OK", [b"3 (FLAGS (\\Seen))"])

        assert client.mark_seen("3") is True
        client._conn.uid.assert_called_once_with("STORE", "3", "+FLAGS", "(\\Seen)")

    def test_interrupt_drops_connection(self, client):
        conn = client._conn
        client.interrupt()
        conn.shutdown.assert_called_once()
        assert client.connected is False

    def test_wake_ends_poll_wait_and_keeps_session(self, client):
        client._conn.capabilities = ("IMAP4REV1",)
        client.poll_interval = 60
        timer = threading.Timer(0.05, client.wake)
        timer.start()

        started = time.monotonic()
        assert client.wait_for_push(30) is False

        assert time.monotonic() - started < 5
        assert client.connected is True
        client._conn.shutdown.assert_not_called()

    def test_wait_after_wake_skips_idle(self, client):
        client._conn.capabilities = ("IMAP4REV1", "IDLE")
        client.wake()

        assert client.wait_for_push(30) is False
        client._conn.idle.assert_not_called()

    def test_wake_drops_socket_only_while_idling(self, client):
        conn = client._conn
        client._idling = True

        client.wake(drop_idle=False)
        assert client.connected is True

        client.wake()
        conn.shutdown.assert_called_once()
        assert client.connected is False


class TestSMTPSender:
    @pytest.fixture
    def sender(self):
        return SMTPSender(
            host="smtp.example.com",
            port=587,
            user="bot@example.com",
            password="secret",
            sender_address="bot@example.com",
        )

    def test_build_html_reply(self, sender):
        msg = sender.build(OutboundMessage(
            to="jane@example.com", subject="Report", text="fallback", html="<p>report</p>",
        ))

        assert msg["From"] == "Digital Employee <bot@example.com>"
        assert msg["To"] == "jane@example.com"
        assert msg.is_multipart()
        assert msg.get_body(("html",)).get_content().strip() == "<p>report</p>"
        assert msg.get_body(("plain",)).get_content().strip() == "fallback"

    def test_send(self, sender):
        with patch("digital_employee.services.smtp.smtplib.SMTP") as smtp:
            server = smtp.return_value.__enter__.return_value
            smtp.return_value.has_extn.return_value = True

            assert sender.send(OutboundMessage(to="jane@example.com", subject="Re: x", text="hi")) is True

        smtp.return_value.starttls.assert_called_once()
        smtp.return_value.login.assert_called_once_with("bot@example.com", "secret")
        server.send_message.assert_called_once()

    def test_send_failure_returns_false(self, sender):
        with patch("digital_employee.services.smtp.smtplib.SMTP", side_effect=smtplib.SMTPConnectError(421, b"busy")):
            assert sender.send(OutboundMessage(to="jane@example.com", subject="Re: x", text="hi")) is False


class TestStatementParser:
    """Tests for StatementParser."""

    @pytest.fixture
    def parser(self):
        return StatementParser()

    @pytest.mark.parametrize("filename,content_type,expected", [
        ("statement.CSV", "application/octet-stream", "csv"),
        ("statement.pdf", "", "pdf"),
        ("notes.txt", "", "txt"),
        ("export", "text/csv", "csv"),
        ("export", "application/pdf", "pdf"),
        ("export", "text/plain", "txt"),
        ("image.png", "image/png", "unknown"),
    ])
    def test_detect_file_type(self, parser, filename, content_type, expected):
        attachment = Attachment(filename=filename, content_type=content_type, content=b"")
        assert parser.detect_file_type(attachment) == expected

    def test_parse_csv(self, parser, csv_attachment):
        assert parser.parse(csv_attachment) == (
            "Credit Card Transactions:\n\n"
            "Transaction 1:\n  Date: 2026-02-01\n  Merchant: Cafe Nero\n  Amount: 25.50\n\n"
            "Transaction 2:\n  Date: 2026-02-02\n  Merchant: Carrefour\n  Amount: 110.00\n\n"
        )

    def test_parse_text(self, parser):
        attachment = Attachment(filename="s.txt", content_type="text/plain", content="Café 12".encode())
        assert parser.parse(attachment) == "Café 12"

    def test_parse_pdf(self, parser):
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "Statement total 2000")
        data = doc.tobytes()
        doc.close()

        text = parser.parse(Attachment(filename="s.pdf", content_type="application/pdf", content=data))

        assert "Statement total 2000" in text

    def test_invalid_pdf(self, parser):
        with pytest.raises(AttachmentParseError):
            parser.parse_pdf(b"not a pdf")


class TestStatementAnalyzer:
    """Tests for StatementAnalyzer with a mocked Gemini client."""

    PAYLOAD = (
        '{"spendingCategories": [{"category": "Dining", "amount": 10, "percentage": 100, '
        '"transactionCount": 1}], "topCategories": ["Dining"], "mostFrequentTransactions": [], '
        '"totalSpend": 10, "averageTransactionAmount": 10, "analysis": "ok", "recommendations": []}'
    )

    def test_analyze(self):
        client = MagicMock()
        client.models.generate_content.return_value.text = self.PAYLOAD
        analyzer = StatementAnalyzer(api_key="key", client=client)

        analysis = analyzer.analyze("Transaction 1: Dining 10")

        assert analysis.spending_categories[0].category == "Dining"
        assert analysis.total_spend == 10
        kwargs = client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.0-flash"
        assert "Transaction 1: Dining 10" in kwargs["contents"]
        assert kwargs["config"]["response_mime_type"] == "application/json"

    def test_strips_markdown_fences(self):
        analyzer = StatementAnalyzer(api_key="key", client=MagicMock())
        analysis = analyzer._parse_response(f"```json\n{self.PAYLOAD}\n```")
        assert analysis.top_categories == ["Dining"]

    def test_invalid_json(self):
        analyzer = StatementAnalyzer(api_key="key", client=MagicMock())
        with pytest.raises(AnalysisError):
            analyzer._parse_response("not json")

    def test_api_error(self):
        client = MagicMock()
        client.models.generate_content.side_effect = RuntimeError("429 quota exceeded")
        analyzer = StatementAnalyzer(api_key="key", client=client)

        with pytest.raises(AnalysisError, match="quota"):
            analyzer.analyze("statement")

    def test_missing_api_key(self):
        with pytest.raises(AnalysisError):
            StatementAnalyzer(api_key="").analyze("statement")


class TestCharts:
    def test_generate_colors(self):
        assert generate_colors(3) == BASE_COLORS[:3]
        colors = generate_colors(14)
        assert len(colors) == 14
        assert all(color.startswith("#") and len(color) == 7 for color in colors)

    def test_pie_chart_png(self):
        chart = ChartRenderer().pie_chart([
            SpendingCategory(category="Dining", amount=60, percentage=60, transaction_count=3),
            SpendingCategory(category="Travel", amount=40, percentage=40, transaction_count=1),
        ])
        assert chart.startswith(b"\x89PNG")

    def test_pie_chart_without_spending(self):
        assert ChartRenderer().pie_chart([]).startswith(b"\x89PNG")
