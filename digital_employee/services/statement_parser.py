"""
Statement attachment decoding (CSV, PDF, plain text).
"""

import csv
import io

import fitz  # PyMuPDF

from digital_employee.core.exceptions import AttachmentParseError
from digital_employee.core.logging import get_logger
from digital_employee.core.models import Attachment

log = get_logger(__name__)


class StatementParser:
    """Turns a statement attachment into plain text for analysis."""

    def detect_file_type(self, attachment: Attachment) -> str:
        """Return csv, pdf, txt or unknown, checking the filename first."""
        filename = (attachment.filename or "").lower()
        if filename.endswith(".csv"):
            return "csv"
        if filename.endswith(".pdf"):
            return "pdf"
        if filename.endswith(".txt"):
            return "txt"

        content_type = (attachment.content_type or "").lower()
        if "csv" in content_type:
            return "csv"
        if "pdf" in content_type:
            return "pdf"
        if "text" in content_type:
            return "txt"

        return "unknown"

    def parse(self, attachment: Attachment) -> str:
        """
        Extract text from an attachment.

        Raises:
            AttachmentParseError: if the file cannot be decoded
        """
        file_type = self.detect_file_type(attachment)
        log.info(
            "attachment_parsing",
            filename=attachment.filename,
            content_type=attachment.content_type,
            file_type=file_type,
        )

        if file_type == "csv":
            return self.parse_csv(attachment.content)
        if file_type == "pdf":
            return self.parse_pdf(attachment.content)
        if file_type == "unknown":
            log.warning("attachment_type_unsupported", filename=attachment.filename)
        return attachment.content.decode("utf-8", errors="replace")

    def parse_csv(self, data: bytes) -> str:
        """Format CSV rows as numbered transaction blocks."""
        try:
            text = data.decode("utf-8-sig", errors="replace")
            reader = csv.DictReader(io.StringIO(text), skipinitialspace=True)
            records = []
            for row in reader:
                # Overflow columns land under a None key; drop them
                record = {
                    key.strip(): (value or "").strip()
                    for key, value in row.items()
                    if key is not None
                }
                if any(record.values()):
                    records.append(record)
        except csv.Error as e:
            raise AttachmentParseError(f"Invalid CSV: {e}") from e

        log.info("csv_parsed", records=len(records))

        lines = ["Credit Card Transactions:", ""]
        for index, record in enumerate(records, 1):
            lines.append(f"Transaction {index}:")
            lines.extend(f"  {key}: {value}" for key, value in record.items())
            lines.append("")
        return "\n".join(lines) + "\n"

    def parse_pdf(self, data: bytes) -> str:
        """Extract the text of every page, in order."""
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except (RuntimeError, ValueError) as e:
            raise AttachmentParseError(f"Invalid PDF: {e}") from e

        try:
            text = "".join(page.get_text() for page in doc)
            log.info("pdf_parsed", pages=len(doc))
        finally:
            doc.close()
        return text
