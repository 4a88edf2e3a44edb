"""
Data models for email processing.

Uses dataclasses for clean, typed data structures.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parseaddr
from enum import Enum


class Action(str, Enum):
    """Supported request types."""

    GENERATE_CARD_SUMMARY = "generate_card_summary"
    PROCESS_LOAN_APPLICATION = "process_loan_application"
    GENERATE_ACCOUNT_STATEMENT = "generate_account_statement"
    HANDLE_SUPPORT_REQUEST = "handle_support_request"


class PollerState(str, Enum):
    """Mailbox poller lifecycle states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FETCHING = "fetching"
    IDLE = "idle"
    STOPPED = "stopped"


@dataclass
class Attachment:
    """Email attachment with its decoded payload."""

    filename: str
    content_type: str
    content: bytes = b""

    @property
    def size_bytes(self) -> int:
        return len(self.content)


@dataclass
class IncomingMessage:
    """A message fetched from the monitored folder."""

    uid: str = ""
    message_id: str = ""
    sender: str = ""
    subject: str = ""
    body_plain: str = ""
    body_html: str = ""
    received_at: datetime | None = None
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def identity(self) -> str:
        """Deduplication key: Message-ID (or UID when missing) plus date."""
        key = self.message_id or self.uid
        stamp = self.received_at.isoformat() if self.received_at else ""
        return f"{key}-{stamp}"

    @property
    def body(self) -> str:
        """Get message body, preferring plain text."""
        return self.body_plain or self._strip_html(self.body_html)

    @property
    def sender_email(self) -> str:
        """Extract email address from sender header."""
        if not self.sender:
            return ""
        _, address = parseaddr(self.sender)
        return address.lower() if address else ""

    @staticmethod
    def _strip_html(html: str) -> str:
        """Strip HTML tags from text."""
        if not html:
            return ""
        text = re.sub(r"<[^>]+>", " ", html)
        return re.sub(r"\s+", " ", text).strip()


@dataclass(frozen=True)
class MatchResult:
    """Best catalog match for a message."""

    action: Action | None
    score: float

    @property
    def matched(self) -> bool:
        return self.action is not None


@dataclass
class ActionResult:
    """Outcome of an action handler, ready to be turned into a reply."""

    success: bool
    message: str = ""
    html: str | None = None
    subject: str | None = None

    @property
    def is_html(self) -> bool:
        return bool(self.html)


@dataclass
class OutboundMessage:
    """A composed reply handed to the delivery transport."""

    to: str
    subject: str
    text: str
    html: str | None = None
