"""
In-memory collaborators for pipeline tests.
"""

import threading
import time
from collections import deque
from datetime import datetime, timezone

from digital_employee.core.exceptions import MailboxError
from digital_employee.core.models import Attachment, IncomingMessage, OutboundMessage
from digital_employee.core.schemas import StatementAnalysis

PREFIX = "DIGITAL EMPLOYEE :"


class FakeIMAPClient:
    """In-memory stand-in for IMAPClient."""

    def __init__(self, messages: dict | None = None, fail_connects: int = 0):
        self.messages = dict(messages or {})
        self.seen: list[str] = []
        self.connected = False
        self.fail_connects = fail_connects
        self.connect_calls = 0
        self.interrupt_calls = 0
        self.wake_calls = 0
        self.disconnect_calls = 0
        self.searches: list = []
        self.pushes: deque[bool] = deque()
        self._woken = threading.Event()

    def connect(self):
        self.connect_calls += 1
        if self.fail_connects:
            self.fail_connects -= 1
            raise MailboxError("connection refused")
        self.connected = True
        self._woken.clear()

    def disconnect(self):
        self.disconnect_calls += 1
        self.connected = False

    def wake(self, drop_idle=True):
        self.wake_calls += 1
        self._woken.set()

    def interrupt(self):
        self.interrupt_calls += 1
        self._woken.set()
        self.connected = False

    def select_folder(self, folder="INBOX"):
        return len(self.messages)

    def search_unseen(self, since=None):
        self.searches.append(since)
        return [uid for uid in self.messages if uid not in self.seen]

    def fetch_message(self, uid):
        message = self.messages[uid]
        if isinstance(message, Exception):
            raise message
        return message

    def mark_seen(self, uid):
        self.seen.append(uid)
        return True

    def wait_for_push(self, timeout):
        if self._woken.wait(timeout):
            return False
        if not self.connected:
            raise MailboxError("connection closed")
        return self.pushes.popleft() if self.pushes else False


class FakeSender:
    """Records replies instead of sending them."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent: list[OutboundMessage] = []

    def send(self, outbound: OutboundMessage) -> bool:
        self.sent.append(outbound)
        return self.succeed


class SlowSender(FakeSender):
    """Takes a while to deliver, like a real SMTP round trip."""

    def __init__(self, delay: float = 0.3):
        super().__init__()
        self.delay = delay

    def send(self, outbound: OutboundMessage) -> bool:
        time.sleep(self.delay)
        return super().send(outbound)


class FakeAnalyzer:
    """Returns a fixed analysis, or raises the configured error."""

    def __init__(self, analysis: StatementAnalysis | None = None, error: Exception | None = None):
        self.analysis = analysis
        self.error = error
        self.statements: list[str] = []

    def analyze(self, statement: str) -> StatementAnalysis:
        self.statements.append(statement)
        if self.error:
            raise self.error
        return self.analysis


class FakeCharts:
    def pie_chart(self, categories) -> bytes:
        return b"png"


def make_message(
    subject: str = f"{PREFIX} loan application",
    uid: str = "1",
    message_id: str | None = None,
    body: str = "",
    attachments: list[Attachment] | None = None,
) -> IncomingMessage:
    return IncomingMessage(
        uid=uid,
        message_id=message_id if message_id is not None else f"<msg-{uid}@example.com>",
        sender="Jane Doe <jane@example.com>",
        subject=subject,
        body_plain=body,
        received_at=datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc),
        attachments=attachments or [],
    )


